"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap the SDK behind the adapter:
- FakeCheckoutSDK for development and testing (default)
- a real hosted-checkout SDK in production
"""

from checkout.payments.gateway.adapter import PaymentGatewayAdapter
from checkout.payments.gateway.fake_sdk import FakeCheckoutSDK

_current_gateway: PaymentGatewayAdapter | None = None


def get_gateway() -> PaymentGatewayAdapter:
    """Return the process-wide gateway adapter. Defaults to a FakeCheckoutSDK."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = PaymentGatewayAdapter(FakeCheckoutSDK())
    return _current_gateway


def set_gateway(gateway: PaymentGatewayAdapter) -> None:
    """Override the active gateway adapter (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
