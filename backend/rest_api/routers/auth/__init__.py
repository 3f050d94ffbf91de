"""
Authentication routers - /api/auth/*
Handles staff login and current-user info.
"""

from .routes import router

__all__ = ["router"]
