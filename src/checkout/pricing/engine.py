"""Coupon validation and discount arithmetic."""

from dataclasses import dataclass
from datetime import UTC, datetime

from protean.exceptions import ProteanException
from protean.utils.globals import current_domain

from checkout.errors import BelowMinimum, CouponError, ExpiredCoupon, InvalidCoupon, UsageExhausted
from checkout.pricing.coupon import Coupon, DiscountType
from checkout.shared.money import format_money, percentage_of
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CouponApplication:
    """A coupon fixed to a checkout session with its computed discount."""

    coupon_id: str
    code: str
    discount: int


def normalize_code(code: str) -> str:
    return code.strip().upper()


def compute_discount(coupon: Coupon, subtotal: int) -> int:
    """Discount for ``subtotal``. Not clamped: the order total absorbs overshoot."""
    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        return percentage_of(subtotal, coupon.discount_value)
    return int(coupon.discount_value)


class CouponEngine:
    """Checks a code against the coupon rules; the first failing rule wins."""

    def __init__(self, currency: str = "INR") -> None:
        self.currency = currency

    def find_active(self, code: str) -> Coupon | None:
        repo = current_domain.repository_for(Coupon)
        try:
            return repo._dao.query.filter(code=code, is_active=True).all().first
        except ProteanException as exc:
            logger.error("Coupon lookup failed", code=code, error=str(exc))
            raise CouponError() from exc

    def apply(self, code: str, subtotal: int, now: datetime | None = None) -> CouponApplication:
        normalized = normalize_code(code)
        coupon = self.find_active(normalized) if normalized else None
        if coupon is None:
            raise InvalidCoupon()

        if coupon.is_expired(now or datetime.now(UTC)):
            raise ExpiredCoupon()

        if coupon.is_exhausted():
            raise UsageExhausted()

        if coupon.min_order_amount and subtotal < coupon.min_order_amount:
            raise BelowMinimum(
                coupon.min_order_amount,
                format_money(coupon.min_order_amount, self.currency),
            )

        discount = compute_discount(coupon, subtotal)
        logger.info("Coupon accepted", code=normalized, coupon_id=str(coupon.id), discount=discount)
        return CouponApplication(coupon_id=str(coupon.id), code=normalized, discount=discount)
