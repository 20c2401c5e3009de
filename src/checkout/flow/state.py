"""Checkout state machine.

The session is an immutable ``CheckoutState``; ``transition`` maps a state and
an event to the next state without doing any I/O. The orchestrator performs
the I/O and feeds the outcomes back in as events.

Stages:
    LOADING → IDENTITY_PENDING → FORM_ENTRY → PROCESSING → COMPLETE
    LOADING → NOT_FOUND
    FORM_ENTRY → IDENTITY_PENDING       (submit without session or guest flag)
    PROCESSING → FORM_ENTRY             (payment rejected or order not saved)

While ``identity_prompt_open`` is set, the session is blocked on the
sign-in / continue-as-guest prompt.
"""

from dataclasses import dataclass, field, replace
from enum import Enum

from checkout.catalogue.product import Product
from checkout.errors import CouponAlreadyApplied, InvalidTransition
from checkout.identity.port import Session
from checkout.identity.provisioning import GuestCredentials
from checkout.payments.payment import PaymentMethod
from checkout.pricing.engine import CouponApplication
from checkout.shared.billing import BillingInfo, validate_billing
from checkout.shared.money import compute_total


class CheckoutStage(Enum):
    LOADING = "loading"
    IDENTITY_PENDING = "identity_pending"
    FORM_ENTRY = "form_entry"
    PROCESSING = "processing"
    COMPLETE = "complete"
    NOT_FOUND = "not_found"


TERMINAL_STAGES = {CheckoutStage.COMPLETE, CheckoutStage.NOT_FOUND}


@dataclass(frozen=True)
class CheckoutState:
    stage: CheckoutStage = CheckoutStage.LOADING
    product: Product | None = None
    session: Session | None = None
    is_guest: bool = False
    identity_prompt_open: bool = False
    billing: BillingInfo = field(default_factory=BillingInfo)
    errors: dict[str, str] = field(default_factory=dict)
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    coupon: CouponApplication | None = None
    message: str | None = None
    order_id: str | None = None
    order_number: str | None = None
    credentials: GuestCredentials | None = None
    credentials_shown: bool = False
    invoice_url: str | None = None

    @property
    def subtotal(self) -> int:
        return self.product.price if self.product else 0

    @property
    def discount(self) -> int:
        return self.coupon.discount if self.coupon else 0

    @property
    def total(self) -> int:
        return compute_total(self.subtotal, self.discount)

    @property
    def user_id(self) -> str | None:
        return self.session.user_id if self.session else None

    @property
    def identity_resolved(self) -> bool:
        return self.session is not None or self.is_guest


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ProductLoaded:
    product: Product


@dataclass(frozen=True)
class ProductNotFound:
    pass


@dataclass(frozen=True)
class SignedIn:
    session: Session


@dataclass(frozen=True)
class GuestSelected:
    pass


@dataclass(frozen=True)
class BillingFieldChanged:
    name: str
    value: str


@dataclass(frozen=True)
class PaymentMethodSelected:
    method: PaymentMethod


@dataclass(frozen=True)
class CouponAccepted:
    application: CouponApplication


@dataclass(frozen=True)
class SubmitRequested:
    pass


@dataclass(frozen=True)
class PaymentRejected:
    cancelled: bool
    reason: str | None = None


@dataclass(frozen=True)
class CheckoutFailed:
    message: str


@dataclass(frozen=True)
class CheckoutCompleted:
    order_id: str
    order_number: str
    credentials: GuestCredentials | None = None
    invoice_url: str | None = None
    notice: str | None = None


@dataclass(frozen=True)
class CredentialsShown:
    pass


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def _with_session(state: CheckoutState, session: Session) -> CheckoutState:
    billing = state.billing
    if session.email:
        billing = billing.with_field("email", session.email)
    return replace(state, session=session, is_guest=False, billing=billing)


def _on_loading(state, event):
    if isinstance(event, ProductLoaded):
        if state.identity_resolved:
            return replace(state, stage=CheckoutStage.FORM_ENTRY, product=event.product)
        return replace(
            state,
            stage=CheckoutStage.IDENTITY_PENDING,
            product=event.product,
            identity_prompt_open=True,
        )
    if isinstance(event, ProductNotFound):
        return replace(state, stage=CheckoutStage.NOT_FOUND, message="Product not found")
    if isinstance(event, SignedIn):
        return _with_session(state, event.session)
    return None


def _on_identity_pending(state, event):
    if isinstance(event, SignedIn):
        return replace(
            _with_session(state, event.session),
            stage=CheckoutStage.FORM_ENTRY,
            identity_prompt_open=False,
            message=None,
        )
    if isinstance(event, GuestSelected):
        return replace(
            state,
            stage=CheckoutStage.FORM_ENTRY,
            is_guest=True,
            identity_prompt_open=False,
            message=None,
        )
    return None


def _on_form_entry(state, event):
    if isinstance(event, BillingFieldChanged):
        errors = {key: value for key, value in state.errors.items() if key != event.name}
        return replace(state, billing=state.billing.with_field(event.name, event.value), errors=errors)

    if isinstance(event, PaymentMethodSelected):
        return replace(state, payment_method=event.method)

    if isinstance(event, CouponAccepted):
        if state.coupon is not None:
            raise CouponAlreadyApplied()
        return replace(state, coupon=event.application, message=None)

    if isinstance(event, SignedIn):
        return _with_session(state, event.session)

    if isinstance(event, SubmitRequested):
        if not state.identity_resolved:
            return replace(state, stage=CheckoutStage.IDENTITY_PENDING, identity_prompt_open=True)
        errors = validate_billing(state.billing)
        if errors:
            return replace(state, errors=errors, message="Please fill in all required fields")
        return replace(state, stage=CheckoutStage.PROCESSING, errors={}, message=None)

    return None


def _on_processing(state, event):
    if isinstance(event, PaymentRejected):
        # A dismissed gateway surface is the buyer's own choice: no banner
        message = None if event.cancelled else (event.reason or "Payment failed. Please try again.")
        return replace(state, stage=CheckoutStage.FORM_ENTRY, message=message)

    if isinstance(event, CheckoutFailed):
        return replace(state, stage=CheckoutStage.FORM_ENTRY, message=event.message)

    if isinstance(event, CheckoutCompleted):
        return replace(
            state,
            stage=CheckoutStage.COMPLETE,
            order_id=event.order_id,
            order_number=event.order_number,
            credentials=event.credentials,
            invoice_url=event.invoice_url,
            message=event.notice,
        )
    return None


def _on_complete(state, event):
    if isinstance(event, SignedIn):
        # Generated credentials are spent once the buyer is signed in with them
        return replace(state, session=event.session, credentials=None)
    if isinstance(event, CredentialsShown) and state.credentials is not None:
        return replace(state, credentials_shown=True)
    return None


_HANDLERS = {
    CheckoutStage.LOADING: _on_loading,
    CheckoutStage.IDENTITY_PENDING: _on_identity_pending,
    CheckoutStage.FORM_ENTRY: _on_form_entry,
    CheckoutStage.PROCESSING: _on_processing,
    CheckoutStage.COMPLETE: _on_complete,
}


def transition(state: CheckoutState, event) -> CheckoutState:
    """Apply ``event`` to ``state``. Raises ``InvalidTransition`` if the stage rejects it."""
    handler = _HANDLERS.get(state.stage)
    next_state = handler(state, event) if handler else None
    if next_state is None:
        raise InvalidTransition(f"{type(event).__name__} is not accepted while {state.stage.value}")
    return next_state
