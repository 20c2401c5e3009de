"""Payment aggregate. One per order, written together with it.

Cash orders carry a ``pending`` manual payment until an admin confirms the
money arrived. Online payments are recorded ``completed`` because the gateway
has already settled by the time the order is written.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from checkout.domain import checkout
from checkout.payments.events import PaymentRecorded


class PaymentStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class PaymentMethod(Enum):
    CASH = "cash"
    ONLINE = "online"


GATEWAY_FOR_METHOD = {
    PaymentMethod.CASH: "manual",
    PaymentMethod.ONLINE: "razorpay",
}


@checkout.aggregate
class Payment:
    order_id = Identifier(required=True)
    user_id = Identifier()
    amount = Integer(required=True, min_value=0)
    status = String(
        choices=PaymentStatus,
        default=PaymentStatus.PENDING.value,
    )
    payment_gateway = String(max_length=50)
    payment_method = String(
        choices=PaymentMethod,
        default=PaymentMethod.ONLINE.value,
    )
    gateway_payment_id = String(max_length=255)
    paid_at = DateTime()
    created_at = DateTime()

    @invariant.post
    def completed_payment_needs_transaction(self):
        if self.status == PaymentStatus.COMPLETED.value and not self.gateway_payment_id:
            raise ValidationError({"gateway_payment_id": ["Completed payments need a gateway transaction id"]})

    @classmethod
    def record(
        cls,
        order_id: str,
        amount: int,
        method: str,
        user_id: str | None = None,
        gateway_payment_id: str | None = None,
    ):
        """Record the payment for a freshly placed order.

        A gateway transaction id means the money has been captured.
        """
        payment_method = PaymentMethod(method)
        now = datetime.now(UTC)
        completed = gateway_payment_id is not None
        status = PaymentStatus.COMPLETED if completed else PaymentStatus.PENDING

        payment = cls(
            order_id=order_id,
            user_id=user_id,
            amount=amount,
            status=status.value,
            payment_gateway=GATEWAY_FOR_METHOD[payment_method],
            payment_method=payment_method.value,
            gateway_payment_id=gateway_payment_id,
            paid_at=now if completed else None,
            created_at=now,
        )
        payment.raise_(
            PaymentRecorded(
                payment_id=str(payment.id),
                order_id=order_id,
                amount=amount,
                status=status.value,
                payment_gateway=payment.payment_gateway,
                gateway_payment_id=gateway_payment_id,
                recorded_at=now,
            )
        )
        return payment
