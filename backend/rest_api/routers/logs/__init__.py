"""
Activity log routers - /api/logs/*
"""

from .routes import router

__all__ = ["router"]
