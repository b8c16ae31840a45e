"""Service exports for convenient imports."""

from .registration import RegistrationService

__all__ = ["RegistrationService"]
