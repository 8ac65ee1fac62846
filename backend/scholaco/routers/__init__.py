"""API routers for the Scholaco backend."""

from . import applications, auth, dashboard, health

__all__ = ["applications", "auth", "dashboard", "health"]
