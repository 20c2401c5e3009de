"""CheckoutSubmission aggregate: the raw checkout form as the buyer sent it."""

import json
from datetime import UTC, datetime

from protean.fields import DateTime, String, Text

from checkout.domain import checkout


@checkout.aggregate
class CheckoutSubmission:
    form_name = String(required=True, max_length=100, default="Checkout")
    form_data = Text(required=True)  # JSON billing form
    email = String(max_length=254)
    context = Text()  # JSON: order_id, product_id, is_guest
    submitted_at = DateTime()

    @classmethod
    def capture(cls, billing_info: dict, order_id: str, product_id: str, is_guest: bool):
        return cls(
            form_name="Checkout",
            form_data=json.dumps(billing_info),
            email=billing_info.get("email"),
            context=json.dumps({"order_id": order_id, "product_id": product_id, "is_guest": is_guest}),
            submitted_at=datetime.now(UTC),
        )
