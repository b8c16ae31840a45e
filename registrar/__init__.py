"""Eureka registration client packaged as a small FastAPI service."""

__version__ = "0.1.0"
