"""Checkout error taxonomy.

Mandatory steps (product load, form validation, payment, order persistence)
raise these and abort the current transition. Optional steps (account
provisioning, invoicing) capture them into result objects instead.
"""


class CheckoutError(Exception):
    """Base class for every checkout failure.

    ``message`` is the short text safe to show a buyer.
    """

    message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidTransition(CheckoutError):
    """An event arrived in a stage that does not accept it."""


class BillingValidationError(CheckoutError):
    message = "Please fill in all required fields"

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        super().__init__()


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class CouponError(CheckoutError):
    message = "Failed to apply coupon"


class InvalidCoupon(CouponError):
    message = "Invalid coupon code"


class ExpiredCoupon(CouponError):
    message = "Coupon has expired"


class UsageExhausted(CouponError):
    message = "Coupon usage limit reached"


class BelowMinimum(CouponError):
    def __init__(self, minimum: int, formatted_minimum: str) -> None:
        self.minimum = minimum
        super().__init__(f"Minimum order amount is {formatted_minimum}")


class CouponAlreadyApplied(CouponError):
    message = "A coupon has already been applied"


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
class PaymentCancelled(CheckoutError):
    """The buyer dismissed the gateway surface. Expected; never shown."""

    message = "Payment cancelled by user"


class PaymentFailed(CheckoutError):
    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason or "Payment failed"
        super().__init__(self.reason)


# ---------------------------------------------------------------------------
# Persistence and collaborators
# ---------------------------------------------------------------------------
class PersistenceError(CheckoutError):
    message = "We could not place your order. Please try again."


class IdentityError(CheckoutError):
    message = "Authentication failed"


class StorageError(CheckoutError):
    message = "Storage request failed"


class BucketNotFound(StorageError):
    def __init__(self, bucket: str) -> None:
        self.bucket = bucket
        super().__init__(f"Bucket not found: {bucket}")


# ---------------------------------------------------------------------------
# Best-effort steps
# ---------------------------------------------------------------------------
class ProvisioningFailure(CheckoutError):
    message = "Account could not be created"


class InvoiceFailure(CheckoutError):
    message = "Invoice could not be generated"
