"""Purchasing domain API package."""

from purchasing.api.errors import register_error_handlers
from purchasing.api.routes import cart_router, purchase_router

__all__ = ["cart_router", "purchase_router", "register_error_handlers"]
