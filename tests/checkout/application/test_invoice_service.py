"""Tests for invoice numbering, storage and the invoice service."""

import json
from datetime import UTC, datetime

import pytest
from checkout.config import CompanyInfo
from checkout.errors import InvoiceFailure, StorageError
from checkout.invoicing.document import InvoiceAmounts
from checkout.invoicing.generation import InvoiceService, next_invoice_number
from checkout.invoicing.invoice import Invoice, InvoiceStatus
from checkout.invoicing.storage import InMemoryBlobStorage, invoice_path, store_invoice_pdf
from checkout.ordering.placement import PlaceOrder
from protean import current_domain

AMOUNTS = InvoiceAmounts(subtotal=50000, discount=10000, tax=0, total=40000)


@pytest.fixture()
def storage():
    return InMemoryBlobStorage("https://cdn.example.com/storage")


@pytest.fixture()
def service(storage):
    return InvoiceService(storage=storage, bucket="documents", company=CompanyInfo(), currency="INR")


@pytest.fixture()
def order_id(billing):
    return current_domain.process(
        PlaceOrder(
            product_id="prod-001",
            payment_method="online",
            gateway_payment_id="pay_123",
            subtotal=50000,
            discount=10000,
            billing_info=json.dumps(billing.to_dict()),
        ),
        asynchronous=False,
    )


async def _create(service, order_id, billing, payment_id="pay_123"):
    return await service.create_for_order(
        order_id=order_id,
        user_id=None,
        payment_id=payment_id,
        billing=billing,
        product_name="Business Website",
        amounts=AMOUNTS,
    )


class TestInvoiceNumbering:
    def test_first_invoice_of_the_year(self):
        assert next_invoice_number(datetime(2026, 3, 1, tzinfo=UTC)) == "INV-2026-00001"

    async def test_numbers_increase(self, service, order_id, billing):
        first = await _create(service, order_id, billing)
        second = await _create(service, order_id, billing)
        year = datetime.now(UTC).year
        assert first.invoice_number == f"INV-{year}-00001"
        assert second.invoice_number == f"INV-{year}-00002"


class TestStoreInvoicePdf:
    def test_path_keeps_invoice_number(self):
        assert invoice_path("ord-1", "INV-2026-00001") == "invoices/ord-1/INV-2026-00001.pdf"

    async def test_missing_bucket_is_created_then_upload_retried(self, storage):
        url = await store_invoice_pdf(storage, "documents", "ord-1", "INV-2026-00001", b"%PDF-1.4")

        assert url == "https://cdn.example.com/storage/documents/invoices/ord-1/INV-2026-00001.pdf"
        assert "documents" in storage.public_buckets
        assert storage.upload_attempts == 2
        assert storage.read("documents", "invoices/ord-1/INV-2026-00001.pdf") == b"%PDF-1.4"

    async def test_existing_bucket_uploads_once(self, storage):
        await storage.create_bucket("documents")
        await store_invoice_pdf(storage, "documents", "ord-1", "INV-2026-00001", b"%PDF-1.4")
        assert storage.upload_attempts == 1

    async def test_outage_propagates(self, storage):
        storage.available = False
        with pytest.raises(StorageError):
            await store_invoice_pdf(storage, "documents", "ord-1", "INV-2026-00001", b"%PDF-1.4")


class TestInvoiceService:
    async def test_invoice_recorded_with_pdf(self, service, storage, order_id, billing):
        result = await _create(service, order_id, billing)

        assert result.ok
        invoice = current_domain.repository_for(Invoice).get(result.invoice_id)
        assert invoice.status == InvoiceStatus.PAID.value
        assert invoice.total_amount == 40000
        assert invoice.billing_email == "asha@example.com"
        assert invoice.pdf_url == result.pdf_url
        assert storage.read("documents", f"invoices/{order_id}/{result.invoice_number}.pdf").startswith(b"%PDF")

    async def test_cash_invoice_is_draft(self, service, order_id, billing):
        result = await _create(service, order_id, billing, payment_id=None)
        invoice = current_domain.repository_for(Invoice).get(result.invoice_id)
        assert invoice.status == InvoiceStatus.DRAFT.value

    async def test_storage_outage_records_invoice_without_pdf(self, service, storage, order_id, billing):
        storage.available = False
        result = await _create(service, order_id, billing)

        assert result.ok
        assert result.pdf_url is None
        invoice = current_domain.repository_for(Invoice).get(result.invoice_id)
        assert invoice.pdf_url is None

    async def test_record_failure_is_reported_not_raised(self, service, billing):
        result = await _create(service, None, billing)

        assert not result.ok
        assert isinstance(result.error, InvoiceFailure)
        assert current_domain.repository_for(Invoice)._dao.query.all().total == 0

    async def test_invoice_url_for_order(self, service, order_id, billing):
        result = await _create(service, order_id, billing)
        assert service.invoice_url_for_order(order_id) == result.pdf_url

    def test_invoice_url_for_unknown_order(self, service):
        assert service.invoice_url_for_order("missing") is None
