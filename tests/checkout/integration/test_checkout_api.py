"""Integration tests for the checkout HTTP surface."""

import asyncio

import pytest
from checkout.api.routes import invoice_router, router
from checkout.api.sessions import CheckoutRegistry, get_registry
from checkout.domain import checkout
from checkout.payments.gateway import get_gateway
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

BILLING = {
    "full_name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "+91 98765 43210",
    "address_line1": "12 MG Road",
    "city": "Bengaluru",
    "state": "Karnataka",
    "postal_code": "560001",
}


@pytest.fixture()
def client():
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with checkout.domain_context():
            return await call_next(request)

    app.include_router(router)
    app.include_router(invoice_router)
    return TestClient(app)


@pytest.fixture()
def registry() -> CheckoutRegistry:
    return get_registry()


def _start(client, product):
    response = client.post("/checkout", json={"product_id": str(product.id)})
    assert response.status_code == 201
    return response.json()["checkout_id"]


def _guest_with_billing(client, product):
    checkout_id = _start(client, product)
    client.post(f"/checkout/{checkout_id}/guest")
    client.put(f"/checkout/{checkout_id}/billing", json=BILLING)
    return checkout_id


class TestStartCheckoutAPI:
    def test_start_returns_view(self, client, product):
        response = client.post("/checkout", json={"product_id": str(product.id)})
        assert response.status_code == 201
        body = response.json()
        assert body["stage"] == "identity_pending"
        assert body["identity_prompt_open"] is True
        assert body["product"]["name"] == "Business Website"
        assert body["product"]["features"] == ["Responsive design", "Contact form"]
        assert body["total"] == 50000

    def test_unknown_product_returns_404(self, client):
        response = client.post("/checkout", json={"product_id": "missing"})
        assert response.status_code == 404

    def test_get_checkout(self, client, product):
        checkout_id = _start(client, product)
        response = client.get(f"/checkout/{checkout_id}")
        assert response.status_code == 200
        assert response.json()["checkout_id"] == checkout_id

    def test_unknown_checkout_returns_404(self, client):
        assert client.get("/checkout/nope").status_code == 404


class TestIdentityAPI:
    def test_guest(self, client, product):
        checkout_id = _start(client, product)
        body = client.post(f"/checkout/{checkout_id}/guest").json()
        assert body["stage"] == "form_entry"
        assert body["is_guest"] is True

    def test_login(self, client, registry, product):
        asyncio.run(registry.identity.sign_up("member@example.com", "Member123!", {}))
        checkout_id = _start(client, product)

        response = client.post(
            f"/checkout/{checkout_id}/login",
            json={"email": "member@example.com", "password": "Member123!"},
        )
        assert response.status_code == 200
        assert response.json()["billing"]["email"] == "member@example.com"

    def test_bad_login_returns_401(self, client, product):
        checkout_id = _start(client, product)
        response = client.post(f"/checkout/{checkout_id}/login", json={"email": "x@y.com", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid login credentials"


class TestFormAPI:
    def test_billing_update(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        body = client.get(f"/checkout/{checkout_id}").json()
        assert body["billing"]["city"] == "Bengaluru"
        assert body["billing"]["country"] == "India"

    def test_billing_before_identity_conflicts(self, client, product):
        checkout_id = _start(client, product)
        response = client.put(f"/checkout/{checkout_id}/billing", json={"city": "Pune"})
        assert response.status_code == 409

    def test_payment_method(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        body = client.put(f"/checkout/{checkout_id}/payment-method", json={"payment_method": "cash"}).json()
        assert body["payment_method"] == "cash"

    def test_invalid_payment_method_rejected(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        response = client.put(f"/checkout/{checkout_id}/payment-method", json={"payment_method": "cheque"})
        assert response.status_code == 422

    def test_coupon_applied(self, client, product, make_coupon):
        make_coupon("SAVE20", discount_value=20)
        checkout_id = _guest_with_billing(client, product)
        body = client.post(f"/checkout/{checkout_id}/coupon", json={"code": "SAVE20"}).json()
        assert body["coupon_code"] == "SAVE20"
        assert body["total"] == 40000

    def test_invalid_coupon_returns_422_with_message(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        response = client.post(f"/checkout/{checkout_id}/coupon", json={"code": "NOPE"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Invalid coupon code"


class TestSubmitAPI:
    def test_cash_checkout_completes(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        client.put(f"/checkout/{checkout_id}/payment-method", json={"payment_method": "cash"})

        body = client.post(f"/checkout/{checkout_id}/submit").json()
        assert body["stage"] == "complete"
        assert body["order_number"].startswith("ORD-")
        assert body["credentials"]["email"] == "asha@example.com"
        assert body["invoice_url"] is not None

    def test_incomplete_form_reports_errors(self, client, product):
        checkout_id = _start(client, product)
        client.post(f"/checkout/{checkout_id}/guest")

        body = client.post(f"/checkout/{checkout_id}/submit").json()
        assert body["stage"] == "form_entry"
        assert body["errors"]["full_name"] == "Full name is required"

    def test_dismissed_payment_returns_to_form(self, client, product):
        get_gateway().sdk.configure("dismiss")
        checkout_id = _guest_with_billing(client, product)

        body = client.post(f"/checkout/{checkout_id}/submit").json()
        assert body["stage"] == "form_entry"
        assert body["message"] is None
        assert body["order_id"] is None

    def test_login_now(self, client, registry, product):
        checkout_id = _guest_with_billing(client, product)
        client.post(f"/checkout/{checkout_id}/submit")

        response = client.post(f"/checkout/{checkout_id}/login-now")
        assert response.status_code == 200
        assert response.json()["user_id"] == registry.identity.find_by_email("asha@example.com").user_id
        assert response.json()["email"] == "asha@example.com"

    def test_login_now_before_completion_conflicts(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        assert client.post(f"/checkout/{checkout_id}/login-now").status_code == 409


class TestInvoiceAPI:
    def test_download_link(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        submitted = client.post(f"/checkout/{checkout_id}/submit").json()

        response = client.get(f"/invoices/{submitted['order_id']}")
        assert response.status_code == 200
        assert response.json()["pdf_url"] == submitted["invoice_url"]

    def test_missing_invoice_returns_404(self, client):
        assert client.get("/invoices/unknown-order").status_code == 404


class TestSessionIsolationAPI:
    def test_sign_in_does_not_carry_over_to_another_buyer(self, client, registry, product):
        asyncio.run(registry.identity.sign_up("alice@example.com", "Alice123!", {}))
        first = _start(client, product)
        client.post(f"/checkout/{first}/login", json={"email": "alice@example.com", "password": "Alice123!"})

        body = client.post("/checkout", json={"product_id": str(product.id)}).json()
        assert body["stage"] == "identity_pending"
        assert body["user_id"] is None
        assert body["billing"]["email"] == ""

    def test_bearer_token_starts_signed_in(self, client, registry, product):
        asyncio.run(registry.identity.sign_up("alice@example.com", "Alice123!", {}))
        session = asyncio.run(registry.identity.sign_in("alice@example.com", "Alice123!"))

        response = client.post(
            "/checkout",
            json={"product_id": str(product.id)},
            headers={"Authorization": f"Bearer {session.access_token}"},
        )
        body = response.json()
        assert body["stage"] == "form_entry"
        assert body["user_id"] == session.user_id

    def test_unknown_token_starts_anonymously(self, client, product):
        response = client.post(
            "/checkout",
            json={"product_id": str(product.id)},
            headers={"Authorization": "Bearer not-a-session"},
        )
        assert response.json()["stage"] == "identity_pending"


class TestCompletionLifecycleAPI:
    def test_credentials_only_in_first_completion_view(self, client, product):
        checkout_id = _guest_with_billing(client, product)

        submitted = client.post(f"/checkout/{checkout_id}/submit").json()
        assert submitted["credentials"]["email"] == "asha@example.com"

        for _ in range(2):
            assert client.get(f"/checkout/{checkout_id}").json()["credentials"] is None

    def test_log_in_now_still_works_after_credentials_were_shown(self, client, product):
        checkout_id = _guest_with_billing(client, product)
        client.post(f"/checkout/{checkout_id}/submit")
        client.get(f"/checkout/{checkout_id}")

        response = client.post(f"/checkout/{checkout_id}/login-now")
        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_checkout_released_after_log_in_now(self, client, registry, product):
        checkout_id = _guest_with_billing(client, product)
        client.post(f"/checkout/{checkout_id}/submit")
        client.post(f"/checkout/{checkout_id}/login-now")

        assert checkout_id not in registry
        assert client.get(f"/checkout/{checkout_id}").status_code == 404

    def test_signed_in_checkout_released_on_completion(self, client, registry, product):
        asyncio.run(registry.identity.sign_up("asha@example.com", "Member123!", {}))
        checkout_id = _start(client, product)
        client.post(f"/checkout/{checkout_id}/login", json={"email": "asha@example.com", "password": "Member123!"})
        client.put(f"/checkout/{checkout_id}/billing", json=BILLING)

        body = client.post(f"/checkout/{checkout_id}/submit").json()
        assert body["stage"] == "complete"
        assert body["credentials"] is None
        assert checkout_id not in registry
