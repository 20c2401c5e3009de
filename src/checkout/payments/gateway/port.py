"""Payment gateway port (abstract interface).

Models the gateway's client SDK the way the hosted checkout exposes it: an
SDK is loaded once, builds a checkout from an options dict, and reports the
outcome only through callbacks (``handler`` on success, ``modal.ondismiss``
when the buyer closes the surface, and a ``payment.failed`` event).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

PAYMENT_FAILED_EVENT = "payment.failed"


@dataclass(frozen=True)
class Prefill:
    name: str | None = None
    email: str | None = None
    contact: str | None = None


@dataclass(frozen=True)
class PaymentOptions:
    """What the buyer is asked to pay. ``amount`` is in minor units, sent as-is."""

    key: str
    amount: int
    currency: str
    name: str
    description: str
    prefill: Prefill = field(default_factory=Prefill)
    theme_color: str | None = None
    notes: dict[str, str] = field(default_factory=dict)
    order_id: str | None = None

    def to_sdk_options(self) -> dict:
        options = {
            "key": self.key,
            "amount": self.amount,
            "currency": self.currency,
            "name": self.name,
            "description": self.description,
            "prefill": {
                "name": self.prefill.name,
                "email": self.prefill.email,
                "contact": self.prefill.contact,
            },
            "notes": dict(self.notes),
        }
        if self.theme_color:
            options["theme"] = {"color": self.theme_color}
        if self.order_id:
            options["order_id"] = self.order_id
        return options


@dataclass(frozen=True)
class GatewayResult:
    """Settlement reported by the gateway's success handler."""

    transaction_id: str
    gateway_order_id: str | None = None
    signature: str | None = None


class CheckoutHandle(ABC):
    """A single checkout surface built by the SDK."""

    @abstractmethod
    def on(self, event: str, callback: Callable[[dict], None]) -> None:
        """Subscribe to an SDK event such as ``payment.failed``."""
        ...

    @abstractmethod
    def open(self) -> None:
        """Show the gateway-controlled surface. Returns immediately."""
        ...


class CheckoutSDK(ABC):
    """Abstract gateway client SDK."""

    @abstractmethod
    async def load(self) -> None:
        """Fetch and initialise the client library. Raises on failure."""
        ...

    @abstractmethod
    def create(self, options: dict) -> CheckoutHandle:
        """Build a checkout. ``options`` carries ``handler`` and ``modal.ondismiss``."""
        ...
