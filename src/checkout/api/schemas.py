"""Pydantic request/response schemas for the Checkout API."""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- Request Schemas ---


class StartCheckoutRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"product_id": "3f0e6c2a-8d0b-4c1e-9a55-0d3c8f2e7b11"}]}}

    product_id: str = Field(..., max_length=255)


class SignInRequest(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class UpdateBillingRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "full_name": "Asha Rao",
                    "email": "asha@example.com",
                    "phone": "+91 98765 43210",
                    "address_line1": "12 MG Road",
                    "city": "Bengaluru",
                    "state": "Karnataka",
                    "postal_code": "560001",
                }
            ]
        }
    }

    full_name: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=254)
    phone: str | None = Field(None, max_length=20)
    address_line1: str | None = Field(None, max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=2000)


class SelectPaymentMethodRequest(BaseModel):
    payment_method: str = Field(..., pattern="^(cash|online)$")


class ApplyCouponRequest(BaseModel):
    code: str = Field(..., max_length=100)


# --- Response Schemas ---


class ProductView(BaseModel):
    id: str
    name: str
    description: str | None = None
    pricing_type: str
    price: int
    features: list[str] = []


class CredentialsView(BaseModel):
    email: str
    password: str


class CheckoutView(BaseModel):
    checkout_id: str
    stage: str
    identity_prompt_open: bool
    is_guest: bool
    user_id: str | None = None
    product: ProductView | None = None
    billing: dict[str, str]
    errors: dict[str, str] = {}
    payment_method: str
    coupon_code: str | None = None
    subtotal: int
    discount: int
    total: int
    message: str | None = None
    order_id: str | None = None
    order_number: str | None = None
    credentials: CredentialsView | None = None
    invoice_url: str | None = None


class SignedInResponse(BaseModel):
    user_id: str
    email: str
    access_token: str


class InvoiceLinkResponse(BaseModel):
    order_id: str
    pdf_url: str
