"""
Staff routers - /api/users/*
Staff accounts and role levels, managed by managers and owners.
"""

from .routes import router

__all__ = ["router"]
