"""Product aggregate: the purchasable service package.

Checkout only reads products; catalogue management happens elsewhere. The
``create`` factory exists for seeding and tests.
"""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Integer, String, Text

from checkout.domain import checkout


class PricingType(Enum):
    SUBSCRIPTION = "subscription"
    ONE_TIME = "one_time"


@checkout.aggregate
class Product:
    name = String(required=True, max_length=255)
    slug = String(max_length=255)
    description = Text()
    short_description = String(max_length=500)
    pricing_type = String(
        choices=PricingType,
        default=PricingType.ONE_TIME.value,
    )
    one_time_price = Integer(min_value=0)
    monthly_price = Integer(min_value=0)
    features = Text()  # JSON list of strings
    image_url = String(max_length=1000)
    is_active = Boolean(default=True)

    @invariant.post
    def features_must_be_a_list(self):
        if not self.features:
            return
        try:
            parsed = json.loads(self.features)
        except (json.JSONDecodeError, TypeError):
            raise ValidationError({"features": ["Features must be valid JSON"]})
        if not isinstance(parsed, list):
            raise ValidationError({"features": ["Features must be a list"]})

    @classmethod
    def create(cls, name, pricing_type="one_time", one_time_price=None, monthly_price=None, features=None, **kwargs):
        return cls(
            name=name,
            pricing_type=pricing_type,
            one_time_price=one_time_price,
            monthly_price=monthly_price,
            features=json.dumps(features or []),
            **kwargs,
        )

    @property
    def price(self) -> int:
        """Price charged at checkout, in minor units."""
        if self.pricing_type == PricingType.SUBSCRIPTION.value:
            return self.monthly_price or 0
        return self.one_time_price or 0

    @property
    def feature_list(self) -> list[str]:
        return json.loads(self.features) if self.features else []
