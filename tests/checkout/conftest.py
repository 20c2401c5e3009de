from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------
@pytest.fixture()
def product():
    from checkout.catalogue.product import Product
    from protean import current_domain

    record = Product.create(
        name="Business Website",
        slug="business-website",
        short_description="Five-page responsive site",
        one_time_price=50000,
        features=["Responsive design", "Contact form"],
    )
    current_domain.repository_for(Product).add(record)
    return record


@pytest.fixture()
def make_coupon():
    from checkout.pricing.coupon import Coupon
    from protean import current_domain

    def _make(code, discount_type="percentage", discount_value=20, **kwargs):
        coupon = Coupon.create(code=code, discount_type=discount_type, discount_value=discount_value, **kwargs)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make


@pytest.fixture()
def expired():
    return datetime.now(UTC) - timedelta(days=1)


@pytest.fixture()
def billing():
    from checkout.shared.billing import BillingInfo

    return BillingInfo(
        full_name="Asha Rao",
        email="asha@example.com",
        phone="+91 98765 43210",
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
    )
