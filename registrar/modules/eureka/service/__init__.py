"""Registration lifecycle service."""

from .core import EurekaClient

__all__ = ["EurekaClient"]
