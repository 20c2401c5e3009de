"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A checkout produced an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier()
    product_id = Identifier(required=True)
    status = String(required=True)
    total_amount = Integer(required=True)
    coupon_code = String()
    placed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderLinkedToCustomer:
    """A guest order was attached to the account provisioned for its buyer."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    linked_at = DateTime(required=True)
