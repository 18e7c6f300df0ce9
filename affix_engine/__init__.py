"""Affix & modifier resolution engine for dice-driven combat."""

from .config import settings, setup_logging

__version__ = "0.1.0"

__all__ = ["settings", "setup_logging", "__version__"]
