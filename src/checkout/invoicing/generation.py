"""Invoice generation: command, handler and the checkout-facing service.

Invoice numbers run per calendar year: ``INV-2026-00001``, ``INV-2026-00002``.
The next number is read from the count of this year's invoices before the new
one is written, without a lock. Two concurrent checkouts can therefore draw
the same number; the numbering is advisory, not a legal sequence.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from checkout.config import CompanyInfo
from checkout.domain import checkout
from checkout.errors import InvoiceFailure
from checkout.invoicing.document import InvoiceAmounts, InvoiceDocument, build_invoice_document
from checkout.invoicing.invoice import Invoice
from checkout.invoicing.renderer import render_invoice_pdf
from checkout.invoicing.storage import BlobStorage, store_invoice_pdf
from checkout.ordering.order import Order
from checkout.shared.billing import BillingInfo
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


@checkout.command(part_of="Invoice")
class GenerateInvoice:
    """Record an invoice for an order."""

    invoice_number = String(required=True, max_length=50)
    order_id = Identifier(required=True)
    user_id = Identifier()
    payment_id = String(max_length=255)
    billing_info = Text(required=True)  # JSON billing form
    line_items = Text(required=True)  # JSON: list of {name, quantity, unit_price, total}
    subtotal = Integer(required=True)
    discount = Integer(default=0)
    tax = Integer(default=0)
    total = Integer(required=True)
    pdf_url = String(max_length=1000)


@checkout.command_handler(part_of=Invoice)
class GenerateInvoiceHandler:
    @handle(GenerateInvoice)
    def generate_invoice(self, command):
        billing = BillingInfo.from_dict(
            json.loads(command.billing_info) if isinstance(command.billing_info, str) else command.billing_info
        )
        line_items_data = json.loads(command.line_items) if isinstance(command.line_items, str) else command.line_items

        invoice = Invoice.create(
            invoice_number=command.invoice_number,
            order_id=command.order_id,
            line_items_data=line_items_data,
            subtotal=command.subtotal,
            discount=command.discount or 0,
            tax=command.tax or 0,
            total=command.total,
            billing_name=billing.full_name,
            billing_email=billing.email,
            billing_address=billing.address(),
            user_id=command.user_id,
            payment_id=command.payment_id,
            pdf_url=command.pdf_url,
        )
        current_domain.repository_for(Invoice).add(invoice)
        return str(invoice.id)


@dataclass(frozen=True)
class InvoiceResult:
    invoice_id: str | None = None
    invoice_number: str | None = None
    pdf_url: str | None = None
    error: InvoiceFailure | None = None

    @property
    def ok(self) -> bool:
        return self.invoice_id is not None


def next_invoice_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    start_of_year = datetime(now.year, 1, 1, tzinfo=UTC)
    issued = current_domain.repository_for(Invoice)._dao.query.filter(created_at__gte=start_of_year).all().total
    return f"INV-{now.year}-{issued + 1:05d}"


class InvoiceService:
    """Builds, renders, stores and records the invoice for a placed order.

    Never raises: any failure comes back in the ``InvoiceResult``. A render or
    upload failure still records the invoice, just without a PDF link.
    """

    def __init__(self, storage: BlobStorage, bucket: str, company: CompanyInfo, currency: str) -> None:
        self.storage = storage
        self.bucket = bucket
        self.company = company
        self.currency = currency

    def _order_number(self, order_id: str) -> str | None:
        try:
            return current_domain.repository_for(Order).get(order_id).order_number
        except ObjectNotFoundError:
            return None

    async def _render_and_store(self, document: InvoiceDocument) -> str | None:
        try:
            pdf = render_invoice_pdf(document)
            return await store_invoice_pdf(self.storage, self.bucket, document.order_id, document.invoice_number, pdf)
        except Exception as exc:
            logger.warning(
                "Invoice PDF could not be stored, continuing without it",
                order_id=document.order_id,
                invoice_number=document.invoice_number,
                error=str(exc),
            )
            return None

    async def create_for_order(
        self,
        order_id: str,
        user_id: str | None,
        payment_id: str | None,
        billing: BillingInfo,
        product_name: str,
        amounts: InvoiceAmounts,
    ) -> InvoiceResult:
        try:
            now = datetime.now(UTC)
            invoice_number = next_invoice_number(now)
            document = build_invoice_document(
                invoice_number=invoice_number,
                order_id=order_id,
                order_number=self._order_number(order_id),
                billing=billing,
                product_name=product_name,
                amounts=amounts,
                company=self.company,
                currency=self.currency,
                issued_on=now.date(),
                payment_id=payment_id,
            )
            pdf_url = await self._render_and_store(document)

            invoice_id = current_domain.process(
                GenerateInvoice(
                    invoice_number=invoice_number,
                    order_id=order_id,
                    user_id=user_id,
                    payment_id=payment_id,
                    billing_info=json.dumps(billing.to_dict()),
                    line_items=json.dumps([item.to_dict() for item in document.items]),
                    subtotal=amounts.subtotal,
                    discount=amounts.discount,
                    tax=amounts.tax,
                    total=amounts.total,
                    pdf_url=pdf_url,
                ),
                asynchronous=False,
            )
        except Exception as exc:
            logger.error("Invoice generation failed", order_id=order_id, error=str(exc))
            return InvoiceResult(error=InvoiceFailure(str(exc)))

        logger.info(
            "Invoice created",
            order_id=order_id,
            invoice_id=invoice_id,
            invoice_number=invoice_number,
            has_pdf=pdf_url is not None,
        )
        return InvoiceResult(invoice_id=invoice_id, invoice_number=invoice_number, pdf_url=pdf_url)

    def invoice_url_for_order(self, order_id: str) -> str | None:
        """Stored PDF link for an order's invoice, if one was uploaded."""
        invoice = current_domain.repository_for(Invoice)._dao.query.filter(order_id=order_id).all().first
        if invoice is None or not invoice.pdf_url:
            logger.warning("Invoice not found for order", order_id=order_id)
            return None
        return invoice.pdf_url
