"""Route group exports."""

from . import health, slots

__all__ = ["health", "slots"]
