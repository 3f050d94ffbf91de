"""
Modifier routers - /api/modifiers/*
Item/mod-group, mod/mod-group and ordered-item/mod attachments.
"""

from .routes import router

__all__ = ["router"]
