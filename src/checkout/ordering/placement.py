"""Order placement command and handler.

The handler runs inside one unit of work: the order, its payment and the raw
form submission are committed together or not at all.
"""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.ordering.order import Order, OrderStatus
from checkout.ordering.submission import CheckoutSubmission
from checkout.payments.payment import Payment, PaymentMethod
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@checkout.command(part_of="Order")
class PlaceOrder:
    """Record the outcome of a checkout attempt."""

    product_id = Identifier(required=True)
    user_id = Identifier()
    payment_method = String(required=True, max_length=20)
    gateway_payment_id = String(max_length=255)
    subtotal = Integer(required=True)
    discount = Integer(default=0)
    tax = Integer(default=0)
    coupon_id = Identifier()
    coupon_code = String(max_length=100)
    billing_info = Text(required=True)  # JSON billing form
    is_guest = Boolean(default=False)


@checkout.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        billing_info = (
            json.loads(command.billing_info) if isinstance(command.billing_info, str) else command.billing_info
        )
        settled = command.gateway_payment_id is not None
        status = OrderStatus.PROCESSING if settled else OrderStatus.PENDING

        order = Order.place(
            product_id=command.product_id,
            subtotal=command.subtotal,
            discount=command.discount or 0,
            tax=command.tax or 0,
            status=status.value,
            billing_info=billing_info,
            is_guest=bool(command.is_guest),
            user_id=command.user_id,
            coupon_id=command.coupon_id,
            coupon_code=command.coupon_code,
        )
        payment = Payment.record(
            order_id=str(order.id),
            amount=order.total_amount,
            method=command.payment_method or PaymentMethod.ONLINE.value,
            user_id=command.user_id,
            gateway_payment_id=command.gateway_payment_id,
        )
        submission = CheckoutSubmission.capture(
            billing_info=billing_info,
            order_id=str(order.id),
            product_id=str(command.product_id),
            is_guest=bool(command.is_guest),
        )

        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(Payment).add(payment)
        current_domain.repository_for(CheckoutSubmission).add(submission)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            payment_id=str(payment.id),
            total_amount=order.total_amount,
        )
        return str(order.id)


@checkout.command(part_of="Order")
class LinkOrderToCustomer:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)


@checkout.command_handler(part_of=Order)
class LinkOrderToCustomerHandler:
    @handle(LinkOrderToCustomer)
    def link_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.link_customer(str(command.user_id))
        repo.add(order)
