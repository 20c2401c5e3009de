"""Shared BDD fixtures and step definitions for checkout."""

import asyncio

import pytest
from checkout.catalogue.product import Product
from checkout.config import Settings
from checkout.flow.orchestrator import CheckoutOrchestrator
from checkout.flow.state import CheckoutStage
from checkout.identity.memory import InMemoryIdentityProvider
from checkout.invoicing.storage import InMemoryBlobStorage
from checkout.ordering.order import Order
from checkout.payments.gateway.adapter import PaymentGatewayAdapter
from checkout.payments.gateway.fake_sdk import FakeCheckoutSDK
from checkout.payments.payment import Payment
from checkout.pricing.coupon import Coupon
from protean import current_domain
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def world():
    """Collaborators and results shared between the steps of one scenario."""
    sdk = FakeCheckoutSDK()
    identity = InMemoryIdentityProvider()
    storage = InMemoryBlobStorage("https://cdn.example.com/storage")
    return {
        "sdk": sdk,
        "identity": identity,
        "storage": storage,
        "orchestrator": CheckoutOrchestrator(
            identity=identity,
            gateway=PaymentGatewayAdapter(sdk),
            storage=storage,
            settings=Settings(),
        ),
        "product": None,
        "error": None,
    }


def _order(world):
    return current_domain.repository_for(Order).get(world["orchestrator"].state.order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced at {price:d}'))
def priced_product(world, name, price):
    product = Product.create(name=name, one_time_price=price)
    current_domain.repository_for(Product).add(product)
    world["product"] = product


@given(parsers.cfparse('a percentage coupon "{code}" worth {value:d}'))
def percentage_coupon(code, value):
    current_domain.repository_for(Coupon).add(Coupon.create(code=code, discount_type="percentage", discount_value=value))


@given(parsers.cfparse('a percentage coupon "{code}" worth {value:d} with a minimum order of {minimum:d}'))
def percentage_coupon_with_minimum(code, value, minimum):
    current_domain.repository_for(Coupon).add(
        Coupon.create(code=code, discount_type="percentage", discount_value=value, min_order_amount=minimum)
    )


@given(parsers.cfparse('a guest buyer at the billing form with email "{email}"'))
def guest_at_billing_form(world, email):
    orchestrator = world["orchestrator"]
    asyncio.run(orchestrator.start(str(world["product"].id)))
    orchestrator.continue_as_guest()
    orchestrator.update_billing(
        full_name="Asha Rao",
        email=email,
        phone="+91 98765 43210",
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
    )


@given(parsers.cfparse('the buyer chooses to pay by "{method}"'))
def choose_payment_method(world, method):
    world["orchestrator"].select_payment_method(method)


@given("the buyer will close the payment window")
def buyer_will_dismiss(world):
    world["sdk"].configure("dismiss")


@given("invoice storage is unavailable")
def storage_unavailable(world):
    world["storage"].available = False


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the checkout is complete")
def checkout_complete(world):
    assert world["orchestrator"].state.stage == CheckoutStage.COMPLETE


@then(parsers.cfparse('the order status is "{status}"'))
def order_status(world, status):
    assert _order(world).status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status(world, status):
    order_id = world["orchestrator"].state.order_id
    payment = current_domain.repository_for(Payment)._dao.query.filter(order_id=order_id).all().first
    assert payment.status == status


@then(parsers.cfparse('credentials were issued for "{email}"'))
def credentials_issued(world, email):
    credentials = world["orchestrator"].state.credentials
    assert credentials is not None
    assert credentials.email == email


@then("the order belongs to the new account")
def order_linked(world):
    assert str(_order(world).user_id) == world["orchestrator"].state.credentials.user_id


@then("no payment surface was opened")
def no_payment_surface(world):
    assert world["sdk"].opened == []


@then(parsers.cfparse("the order total is {total:d}"))
def order_total(world, total):
    assert _order(world).total_amount == total


@then(parsers.cfparse("the gateway was asked for {amount:d}"))
def gateway_amount(world, amount):
    assert world["sdk"].opened[-1]["amount"] == amount


@then(parsers.cfparse('the coupon is refused with "{message}"'))
def coupon_refused(world, message):
    assert world["error"] is not None
    assert world["error"].message == message


@then(parsers.cfparse("the checkout total is {total:d}"))
def checkout_total(world, total):
    assert world["orchestrator"].state.total == total


@then("the buyer is back at the billing form without a message")
def back_at_form(world):
    state = world["orchestrator"].state
    assert state.stage == CheckoutStage.FORM_ENTRY
    assert state.message is None


@then("no order was recorded")
def no_order(world):
    assert current_domain.repository_for(Order)._dao.query.all().total == 0


@then("no invoice link is offered")
def no_invoice_link(world):
    assert world["orchestrator"].state.invoice_url is None
