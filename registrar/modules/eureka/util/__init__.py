"""Utility modules for the eureka module."""

from .urls import EUREKA_SEGMENT, build_url

__all__ = ["EUREKA_SEGMENT", "build_url"]
