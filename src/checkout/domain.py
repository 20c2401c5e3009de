"""Checkout bounded context for the single-product purchase flow.

Loads the product, resolves the buyer, prices the purchase (with an optional
coupon), takes payment online or records a cash order, and follows up with
guest account provisioning and invoice generation.
"""

from protean.domain import Domain

from checkout.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

checkout = Domain(name="checkout")
