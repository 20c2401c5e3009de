"""Storefront checkout FastAPI application.

Processes checkout sessions synchronously via HTTP. Every checkout and
invoice request is wrapped in the checkout domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the Protean config overlay.
from checkout.domain import checkout  # noqa: E402
from checkout.utils.logging import clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

checkout.init()

_DOMAIN_PREFIXES = ("/checkout", "/invoices")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Checkout API",
    description="Single-product checkout: identity, billing, coupons, payment and invoicing",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context for checkout and invoice requests.

    Log context bound while handling the request (``checkout_id``) is dropped
    afterwards so it cannot leak into the next request on the same worker.
    """
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        try:
            with checkout.domain_context():
                response = await call_next(request)
        finally:
            clear_context()
        return response
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import invoice_router, router as checkout_router  # noqa: E402

app.include_router(checkout_router)
app.include_router(invoice_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": checkout.name}})
