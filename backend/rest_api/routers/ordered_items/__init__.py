"""
Ordered item routers - /api/ordered-items/*
"""

from .routes import router

__all__ = ["router"]
