"""Coupon aggregate. Discount codes managed by the storefront admin.

Checkout reads coupons but never changes them; ``uses_count`` is advanced by
order fulfilment, outside this flow.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from checkout.domain import checkout


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@checkout.aggregate
class Coupon:
    code = String(required=True, max_length=100)
    description = String(max_length=500)
    discount_type = String(
        choices=DiscountType,
        default=DiscountType.PERCENTAGE.value,
    )
    discount_value = Float(required=True, min_value=0.0)
    is_active = Boolean(default=True)
    valid_until = DateTime()
    max_uses = Integer(min_value=0)
    uses_count = Integer(default=0)
    min_order_amount = Integer(min_value=0)

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.discount_value > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @classmethod
    def create(cls, code: str, discount_type: str, discount_value: float, **kwargs):
        return cls(
            code=code.strip().upper(),
            discount_type=discount_type,
            discount_value=discount_value,
            **kwargs,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.valid_until is None:
            return False
        now = now or datetime.now(UTC)
        valid_until = self.valid_until
        if valid_until.tzinfo is None:
            valid_until = valid_until.replace(tzinfo=UTC)
        return valid_until < now

    def is_exhausted(self) -> bool:
        # A cap of 0 means "no cap", as on the admin screen.
        return bool(self.max_uses) and (self.uses_count or 0) >= self.max_uses
