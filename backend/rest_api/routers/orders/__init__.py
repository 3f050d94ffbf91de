"""
Order routers - /api/orders/*
Tickets sent to the kitchen and bar, and course firing.
"""

from .routes import router

__all__ = ["router"]
