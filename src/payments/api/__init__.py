"""Payments domain API package."""

from payments.api.routes import receipt_router

__all__ = ["receipt_router"]
