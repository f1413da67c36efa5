"""API route handlers."""

from src.api.openapi.routes import events, health, maintenance

__all__ = [
    "events",
    "health",
    "maintenance",
]
