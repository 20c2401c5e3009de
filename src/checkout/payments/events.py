"""Domain events for the Payment aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Payment")
class PaymentRecorded:
    """A payment was written alongside its order."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    amount = Integer(required=True)
    status = String(required=True)
    payment_gateway = String(required=True)
    gateway_payment_id = String()
    recorded_at = DateTime(required=True)
