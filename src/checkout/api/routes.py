"""FastAPI endpoints for checkout sessions and invoice downloads."""

from fastapi import APIRouter, Header, HTTPException

from checkout.api.schemas import (
    ApplyCouponRequest,
    CheckoutView,
    CredentialsView,
    InvoiceLinkResponse,
    ProductView,
    SelectPaymentMethodRequest,
    SignedInResponse,
    SignInRequest,
    StartCheckoutRequest,
    UpdateBillingRequest,
)
from checkout.api.sessions import CheckoutNotFound, get_registry
from checkout.config import get_settings
from checkout.errors import CouponError, IdentityError, InvalidTransition
from checkout.flow.orchestrator import CheckoutOrchestrator
from checkout.flow.state import CheckoutStage
from checkout.invoicing.generation import InvoiceService

router = APIRouter(prefix="/checkout", tags=["checkout"])
invoice_router = APIRouter(prefix="/invoices", tags=["invoices"])


def _session(checkout_id: str) -> CheckoutOrchestrator:
    try:
        return get_registry().get(checkout_id)
    except CheckoutNotFound:
        raise HTTPException(status_code=404, detail="Checkout not found") from None


def _bearer_token(authorization: str) -> str | None:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _view(orchestrator: CheckoutOrchestrator) -> CheckoutView:
    # Generated credentials appear in exactly one response
    credentials = orchestrator.reveal_credentials()
    state = orchestrator.state
    product = state.product
    return CheckoutView(
        checkout_id=orchestrator.checkout_id,
        stage=state.stage.value,
        identity_prompt_open=state.identity_prompt_open,
        is_guest=state.is_guest,
        user_id=state.user_id,
        product=ProductView(
            id=str(product.id),
            name=product.name,
            description=product.short_description or product.description,
            pricing_type=product.pricing_type,
            price=product.price,
            features=product.feature_list,
        )
        if product
        else None,
        billing=state.billing.to_dict(),
        errors=state.errors,
        payment_method=state.payment_method.value,
        coupon_code=state.coupon.code if state.coupon else None,
        subtotal=state.subtotal,
        discount=state.discount,
        total=state.total,
        message=state.message,
        order_id=state.order_id,
        order_number=state.order_number,
        credentials=CredentialsView(email=credentials.email, password=credentials.password) if credentials else None,
        invoice_url=state.invoice_url,
    )


def _conflict(exc: InvalidTransition) -> HTTPException:
    return HTTPException(status_code=409, detail=exc.message)


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------
@router.post("", status_code=201, response_model=CheckoutView)
async def start_checkout(body: StartCheckoutRequest, authorization: str = Header(default="")) -> CheckoutView:
    registry = get_registry()
    orchestrator = registry.open()
    state = await orchestrator.start(body.product_id, access_token=_bearer_token(authorization))
    if state.stage == CheckoutStage.NOT_FOUND:
        registry.discard(orchestrator.checkout_id)
        raise HTTPException(status_code=404, detail="Product not found")
    return _view(orchestrator)


@router.get("/{checkout_id}", response_model=CheckoutView)
async def get_checkout(checkout_id: str) -> CheckoutView:
    return _view(_session(checkout_id))


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
@router.post("/{checkout_id}/login", response_model=CheckoutView)
async def sign_in(checkout_id: str, body: SignInRequest) -> CheckoutView:
    orchestrator = _session(checkout_id)
    try:
        await orchestrator.sign_in(body.email, body.password)
    except IdentityError as exc:
        raise HTTPException(status_code=401, detail=exc.message) from None
    except InvalidTransition as exc:
        raise _conflict(exc) from None
    return _view(orchestrator)


@router.post("/{checkout_id}/guest", response_model=CheckoutView)
async def continue_as_guest(checkout_id: str) -> CheckoutView:
    orchestrator = _session(checkout_id)
    try:
        orchestrator.continue_as_guest()
    except InvalidTransition as exc:
        raise _conflict(exc) from None
    return _view(orchestrator)


# ---------------------------------------------------------------------------
# Form entry
# ---------------------------------------------------------------------------
@router.put("/{checkout_id}/billing", response_model=CheckoutView)
async def update_billing(checkout_id: str, body: UpdateBillingRequest) -> CheckoutView:
    orchestrator = _session(checkout_id)
    try:
        orchestrator.update_billing(**body.model_dump(exclude_none=True))
    except InvalidTransition as exc:
        raise _conflict(exc) from None
    return _view(orchestrator)


@router.put("/{checkout_id}/payment-method", response_model=CheckoutView)
async def select_payment_method(checkout_id: str, body: SelectPaymentMethodRequest) -> CheckoutView:
    orchestrator = _session(checkout_id)
    try:
        orchestrator.select_payment_method(body.payment_method)
    except InvalidTransition as exc:
        raise _conflict(exc) from None
    return _view(orchestrator)


@router.post("/{checkout_id}/coupon", response_model=CheckoutView)
async def apply_coupon(checkout_id: str, body: ApplyCouponRequest) -> CheckoutView:
    orchestrator = _session(checkout_id)
    try:
        orchestrator.apply_coupon(body.code)
    except CouponError as exc:
        raise HTTPException(status_code=422, detail=exc.message) from None
    except InvalidTransition as exc:
        raise _conflict(exc) from None
    return _view(orchestrator)


@router.post("/{checkout_id}/submit", response_model=CheckoutView)
async def submit(checkout_id: str) -> CheckoutView:
    orchestrator = _session(checkout_id)
    try:
        await orchestrator.submit()
    except InvalidTransition as exc:
        raise _conflict(exc) from None
    view = _view(orchestrator)
    get_registry().release(orchestrator)
    return view


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------
@router.post("/{checkout_id}/login-now", response_model=SignedInResponse)
async def log_in_now(checkout_id: str) -> SignedInResponse:
    orchestrator = _session(checkout_id)
    try:
        session = await orchestrator.log_in_now()
    except InvalidTransition as exc:
        raise _conflict(exc) from None
    except IdentityError:
        raise HTTPException(status_code=401, detail="Auto-login failed. Please login manually.") from None
    get_registry().release(orchestrator)
    return SignedInResponse(user_id=session.user_id, email=session.email, access_token=session.access_token)


@invoice_router.get("/{order_id}", response_model=InvoiceLinkResponse)
async def download_invoice(order_id: str) -> InvoiceLinkResponse:
    settings = get_settings()
    service = InvoiceService(
        storage=get_registry().storage,
        bucket=settings.invoice_bucket,
        company=settings.company,
        currency=settings.currency,
    )
    pdf_url = service.invoice_url_for_order(order_id)
    if pdf_url is None:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return InvoiceLinkResponse(order_id=order_id, pdf_url=pdf_url)
