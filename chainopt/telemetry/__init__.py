"""Convenience exports for chainopt telemetry utilities."""

from . import logger

__all__ = ["logger"]
