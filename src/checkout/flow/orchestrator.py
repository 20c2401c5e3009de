"""Checkout orchestrator.

Drives one buyer's checkout session: feeds the outcome of every I/O step into
the pure state machine in ``checkout.flow.state`` and keeps the resulting
state. One orchestrator instance is one session; operations on it are not
meant to run concurrently.
"""

import asyncio
import json
from uuid import uuid4

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.catalogue.product import Product
from checkout.config import Settings, get_settings
from checkout.errors import CheckoutError, CouponAlreadyApplied, InvalidTransition, PaymentCancelled, PaymentFailed, PersistenceError
from checkout.flow.state import (
    BillingFieldChanged,
    CheckoutCompleted,
    CheckoutFailed,
    CheckoutStage,
    CheckoutState,
    CouponAccepted,
    CredentialsShown,
    GuestSelected,
    PaymentMethodSelected,
    PaymentRejected,
    ProductLoaded,
    ProductNotFound,
    SignedIn,
    SubmitRequested,
    transition,
)
from checkout.identity.port import IdentityProvider, Session
from checkout.identity.provisioning import AccountProvisioner, GuestCredentials, ProvisioningResult
from checkout.invoicing.document import InvoiceAmounts
from checkout.invoicing.generation import InvoiceResult, InvoiceService
from checkout.invoicing.storage import BlobStorage, InMemoryBlobStorage
from checkout.ordering.order import Order
from checkout.ordering.placement import PlaceOrder
from checkout.payments.gateway import get_gateway
from checkout.payments.gateway.adapter import PaymentGatewayAdapter
from checkout.payments.gateway.config import GatewayKeyResolver
from checkout.payments.gateway.port import PaymentOptions, Prefill
from checkout.payments.payment import PaymentMethod
from checkout.pricing.engine import CouponEngine
from checkout.utils.logging import add_context, get_logger

logger = get_logger(__name__)

ORDER_FAILED_MESSAGE = "Failed to process order. Please try again."
CASH_ORDER_NOTICE = "Order placed! Awaiting admin approval."
ONLINE_ORDER_NOTICE = "Payment successful! Order confirmed."


class CheckoutOrchestrator:
    def __init__(
        self,
        identity: IdentityProvider,
        gateway: PaymentGatewayAdapter | None = None,
        storage: BlobStorage | None = None,
        settings: Settings | None = None,
        checkout_id: str | None = None,
    ) -> None:
        self.checkout_id = checkout_id or str(uuid4())
        self.identity = identity
        self.settings = settings or get_settings()
        self.gateway = gateway or get_gateway()
        self.storage = storage or InMemoryBlobStorage(self.settings.storage_public_base_url)

        self.coupons = CouponEngine(self.settings.currency)
        self.keys = GatewayKeyResolver(self.settings.gateway_name, self.settings.fallback_gateway_key)
        self.provisioner = AccountProvisioner(identity)
        self.invoices = InvoiceService(
            storage=self.storage,
            bucket=self.settings.invoice_bucket,
            company=self.settings.company,
            currency=self.settings.currency,
        )

        self.state = CheckoutState()

    def dispatch(self, event) -> CheckoutState:
        previous = self.state.stage
        self.state = transition(self.state, event)
        if self.state.stage != previous:
            logger.info(
                "Checkout stage changed",
                trigger=type(event).__name__,
                from_stage=previous.value,
                to_stage=self.state.stage.value,
            )
        return self.state

    def _bind(self) -> None:
        add_context(checkout_id=self.checkout_id)

    # -------------------------------------------------------------------
    # Product and identity
    # -------------------------------------------------------------------
    async def start(self, product_id: str, access_token: str | None = None) -> CheckoutState:
        """Load the product, signed in already when the buyer brings a live session token."""
        self._bind()

        if access_token:
            session = await self.identity.get_session(access_token)
            if session is None:
                logger.info("Stale session token, continuing anonymously")
            else:
                self.dispatch(SignedIn(session))

        try:
            product = current_domain.repository_for(Product).get(product_id)
        except ObjectNotFoundError:
            product = None

        if product is None or not product.is_active:
            logger.warning("Product not found", product_id=product_id)
            return self.dispatch(ProductNotFound())
        return self.dispatch(ProductLoaded(product))

    async def sign_in(self, email: str, password: str) -> CheckoutState:
        """Explicit sign-in from the identity prompt. ``IdentityError`` propagates."""
        self._bind()
        session = await self.identity.sign_in(email, password)
        logger.info("Buyer signed in", user_id=session.user_id)
        return self.dispatch(SignedIn(session))

    def continue_as_guest(self) -> CheckoutState:
        self._bind()
        return self.dispatch(GuestSelected())

    # -------------------------------------------------------------------
    # Form entry
    # -------------------------------------------------------------------
    def update_billing(self, **fields: str) -> CheckoutState:
        self._bind()
        for name, value in fields.items():
            self.dispatch(BillingFieldChanged(name, value))
        return self.state

    def select_payment_method(self, method: PaymentMethod | str) -> CheckoutState:
        self._bind()
        return self.dispatch(PaymentMethodSelected(PaymentMethod(method)))

    def apply_coupon(self, code: str) -> CheckoutState:
        """Validate ``code`` and fix its discount to the session.

        A blank code does nothing. Raises a ``CouponError`` subclass when the
        code is rejected or a coupon is already applied.
        """
        self._bind()
        if self.state.stage != CheckoutStage.FORM_ENTRY:
            raise InvalidTransition(f"Coupons cannot be applied while {self.state.stage.value}")
        if not code or not code.strip():
            return self.state
        if self.state.coupon is not None:
            raise CouponAlreadyApplied()

        application = self.coupons.apply(code, self.state.subtotal)
        return self.dispatch(CouponAccepted(application))

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    async def submit(self) -> CheckoutState:
        """Gate, pay, record and complete.

        Returns the new state. A rejected payment or an unsaved order lands
        back in form entry with ``message`` set (or unset, for a dismissed
        payment surface).
        """
        self._bind()
        if self.dispatch(SubmitRequested()).stage != CheckoutStage.PROCESSING:
            return self.state

        state = self.state
        transaction_id = None
        if state.payment_method == PaymentMethod.ONLINE:
            try:
                result = await self.gateway.initiate(self._payment_options(state))
            except PaymentCancelled:
                logger.info("Payment cancelled by buyer")
                return self.dispatch(PaymentRejected(cancelled=True))
            except PaymentFailed as exc:
                logger.warning("Payment failed", reason=exc.reason)
                return self.dispatch(PaymentRejected(cancelled=False, reason=exc.reason))
            transaction_id = result.transaction_id

        try:
            order_id = self._place_order(state, transaction_id)
        except PersistenceError as exc:
            logger.error(
                "Order could not be recorded",
                payment_method=state.payment_method.value,
                transaction_id=transaction_id,
                error=str(exc.__cause__ or exc),
            )
            return self.dispatch(CheckoutFailed(ORDER_FAILED_MESSAGE))

        provisioning, invoice = await self._follow_up(state, order_id, transaction_id)
        order_number = current_domain.repository_for(Order).get(order_id).order_number

        return self.dispatch(
            CheckoutCompleted(
                order_id=order_id,
                order_number=order_number,
                credentials=provisioning.credentials if provisioning else None,
                invoice_url=invoice.pdf_url,
                notice=ONLINE_ORDER_NOTICE if transaction_id else CASH_ORDER_NOTICE,
            )
        )

    def _payment_options(self, state: CheckoutState) -> PaymentOptions:
        billing = state.billing
        return PaymentOptions(
            key=self.keys.get_key(),
            amount=state.total,
            currency=self.settings.currency,
            name=self.settings.brand_name,
            description=state.product.name,
            prefill=Prefill(name=billing.full_name, email=billing.email, contact=billing.phone),
            theme_color=self.settings.theme_color,
            notes={"checkout_id": self.checkout_id, "product_id": str(state.product.id)},
        )

    def _place_order(self, state: CheckoutState, transaction_id: str | None) -> str:
        coupon = state.coupon
        try:
            return current_domain.process(
                PlaceOrder(
                    product_id=str(state.product.id),
                    user_id=state.user_id,
                    payment_method=state.payment_method.value,
                    gateway_payment_id=transaction_id,
                    subtotal=state.subtotal,
                    discount=state.discount,
                    tax=0,
                    coupon_id=coupon.coupon_id if coupon else None,
                    coupon_code=coupon.code if coupon else None,
                    billing_info=json.dumps(state.billing.to_dict()),
                    is_guest=state.is_guest,
                ),
                asynchronous=False,
            )
        except CheckoutError:
            raise
        except Exception as exc:
            raise PersistenceError() from exc

    async def _follow_up(
        self, state: CheckoutState, order_id: str, transaction_id: str | None
    ) -> tuple[ProvisioningResult | None, InvoiceResult]:
        """Guest provisioning and invoicing, side by side. Neither can fail the checkout."""
        amounts = InvoiceAmounts(subtotal=state.subtotal, discount=state.discount, tax=0, total=state.total)
        invoice_step = self.invoices.create_for_order(
            order_id=order_id,
            user_id=state.user_id,
            payment_id=transaction_id,
            billing=state.billing,
            product_name=state.product.name,
            amounts=amounts,
        )

        if not state.is_guest:
            return None, await invoice_step

        provisioning, invoice = await asyncio.gather(
            self.provisioner.provision(order_id, state.billing),
            invoice_step,
        )
        if not provisioning.success:
            logger.warning("Guest account was not created", order_id=order_id, error=str(provisioning.error))
        return provisioning, invoice

    # -------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------
    def reveal_credentials(self) -> GuestCredentials | None:
        """Generated guest credentials, handed out once. Later calls return None."""
        if self.state.credentials is None or self.state.credentials_shown:
            return None
        credentials = self.state.credentials
        self.dispatch(CredentialsShown())
        return credentials

    async def log_in_now(self) -> Session:
        """Sign in with the credentials generated for a guest buyer, then forget them."""
        self._bind()
        credentials = self.state.credentials
        if self.state.stage != CheckoutStage.COMPLETE or credentials is None:
            raise InvalidTransition("No generated account to log in with")

        session = await self.identity.sign_in(credentials.email, credentials.password)
        self.dispatch(SignedIn(session))
        logger.info("Signed in with generated account", user_id=session.user_id)
        return session
