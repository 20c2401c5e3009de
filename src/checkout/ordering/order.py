"""Order aggregate, the durable outcome of a checkout.

Checkout writes the initial status only: ``pending`` for cash orders awaiting
admin approval, ``processing`` once the gateway has settled. Later transitions
belong to fulfilment.

State Machine:
    PENDING → PROCESSING → COMPLETED → REFUNDED
    PENDING/PROCESSING → CANCELLED → REFUNDED
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from checkout.domain import checkout
from checkout.ordering.events import OrderLinkedToCustomer, OrderPlaced
from checkout.shared.money import compute_total


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


_INITIAL_STATUSES = {OrderStatus.PENDING, OrderStatus.PROCESSING}


def generate_order_number(now: datetime) -> str:
    return f"ORD-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


@checkout.aggregate
class Order:
    order_number = String(required=True, max_length=50)
    user_id = Identifier()
    product_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    subtotal = Integer(required=True, min_value=0)
    discount_amount = Integer(default=0, min_value=0)
    tax_amount = Integer(default=0, min_value=0)
    total_amount = Integer(required=True, min_value=0)
    coupon_id = Identifier()
    coupon_code = String(max_length=100)
    order_metadata = Text()  # JSON: {"billing_info": {...}, "is_guest": bool}
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_pricing(self):
        expected = compute_total(self.subtotal or 0, self.discount_amount or 0, self.tax_amount or 0)
        if self.total_amount != expected:
            raise ValidationError({"total_amount": [f"Total must be {expected}, got {self.total_amount}"]})

    @classmethod
    def place(
        cls,
        product_id: str,
        subtotal: int,
        discount: int,
        status: str,
        billing_info: dict,
        is_guest: bool,
        user_id: str | None = None,
        coupon_id: str | None = None,
        coupon_code: str | None = None,
        tax: int = 0,
    ):
        """Record a new order with its pricing locked in."""
        if OrderStatus(status) not in _INITIAL_STATUSES:
            raise ValidationError({"status": [f"Orders cannot be placed as {status}"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=generate_order_number(now),
            user_id=user_id,
            product_id=product_id,
            status=status,
            subtotal=subtotal,
            discount_amount=discount,
            tax_amount=tax,
            total_amount=compute_total(subtotal, discount, tax),
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            order_metadata=json.dumps({"billing_info": billing_info, "is_guest": is_guest}),
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=user_id,
                product_id=product_id,
                status=status,
                total_amount=order.total_amount,
                coupon_code=coupon_code,
                placed_at=now,
            )
        )
        return order

    @property
    def billing_info(self) -> dict:
        return json.loads(self.order_metadata).get("billing_info", {}) if self.order_metadata else {}

    @property
    def is_guest(self) -> bool:
        return bool(json.loads(self.order_metadata).get("is_guest")) if self.order_metadata else False

    def link_customer(self, user_id: str) -> None:
        """Attach the order to the account created for a guest buyer."""
        if self.user_id and str(self.user_id) != str(user_id):
            raise ValidationError({"user_id": ["Order already belongs to another customer"]})

        now = datetime.now(UTC)
        self.user_id = user_id
        self.updated_at = now
        self.raise_(
            OrderLinkedToCustomer(
                order_id=str(self.id),
                user_id=str(user_id),
                linked_at=now,
            )
        )
