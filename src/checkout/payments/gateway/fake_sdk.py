"""Configurable fake gateway SDK for development and testing.

Simulates the hosted checkout without a browser: ``open()`` schedules the
configured buyer action on the running loop, so the outcome arrives through
the same callbacks a real surface would use.

Outcomes:
- ``success``: the success handler fires with a fake transaction id
- ``dismiss``: the buyer closes the surface
- ``fail``:    the gateway emits ``payment.failed``
- ``hang``:    nothing happens until ``settle_pending()`` is called
"""

import asyncio
from uuid import uuid4

from checkout.payments.gateway.port import PAYMENT_FAILED_EVENT, CheckoutHandle, CheckoutSDK

OUTCOMES = ("success", "dismiss", "fail", "hang")


class FakeCheckout(CheckoutHandle):
    def __init__(self, sdk: "FakeCheckoutSDK", options: dict) -> None:
        self.sdk = sdk
        self.options = options
        self.listeners: dict[str, list] = {}

    def on(self, event, callback):
        self.listeners.setdefault(event, []).append(callback)

    def open(self):
        self.sdk.opened.append(self.options)
        outcome = self.sdk.outcome
        if outcome == "hang":
            self.sdk.pending.append(self)
            return
        asyncio.get_running_loop().call_soon(self.act, outcome)

    def act(self, outcome: str) -> None:
        if outcome == "success":
            self.options["handler"](
                {
                    "razorpay_payment_id": f"pay_fake_{uuid4().hex[:14]}",
                    "razorpay_order_id": self.options.get("order_id"),
                    "razorpay_signature": "fake-signature",
                }
            )
        elif outcome == "dismiss":
            self.options["modal"]["ondismiss"]()
        elif outcome == "fail":
            for callback in self.listeners.get(PAYMENT_FAILED_EVENT, []):
                callback({"error": {"description": self.sdk.failure_reason}})


class FakeCheckoutSDK(CheckoutSDK):
    """Configurable fake gateway SDK."""

    def __init__(self, outcome: str = "success", failure_reason: str = "Card declined") -> None:
        self.outcome = outcome
        self.failure_reason = failure_reason
        self.load_should_fail = False
        self.load_delay = 0.0
        self.load_calls = 0
        self.opened: list[dict] = []
        self.pending: list[FakeCheckout] = []

    def configure(self, outcome: str, failure_reason: str = "Card declined") -> None:
        """Configure the buyer's next action at runtime."""
        if outcome not in OUTCOMES:
            raise ValueError(f"Unknown outcome: {outcome}")
        self.outcome = outcome
        self.failure_reason = failure_reason

    async def load(self) -> None:
        self.load_calls += 1
        if self.load_delay:
            await asyncio.sleep(self.load_delay)
        if self.load_should_fail:
            raise ConnectionError("checkout.js could not be fetched")

    def create(self, options):
        return FakeCheckout(self, options)

    def settle_pending(self, outcome: str) -> None:
        """Complete every surface left open by the ``hang`` outcome."""
        pending, self.pending = self.pending, []
        for checkout in pending:
            checkout.act(outcome)
