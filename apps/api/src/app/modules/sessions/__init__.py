"""Sessions module - device sessions and token refresh."""

from app.modules.sessions.router import router

__all__ = ["router"]
