"""Route group exports."""

from . import health, pricing, sessions

__all__ = ["health", "sessions", "pricing"]
