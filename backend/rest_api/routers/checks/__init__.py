"""
Check routers - /api/checks/*
Open, list, edit, print, close and void checks.
"""

from .routes import router

__all__ = ["router"]
