"""Checkout API package."""

from checkout.api.routes import invoice_router, router

__all__ = ["router", "invoice_router"]
