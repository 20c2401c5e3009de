"""Invoice aggregate: the billing record issued after checkout.

Invoices are written after the order and payment, and their absence never
affects the order. Status is ``paid`` when a gateway transaction backs the
order, ``draft`` for cash orders still awaiting payment.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from checkout.domain import checkout
from checkout.invoicing.events import InvoiceGenerated


class InvoiceStatus(Enum):
    DRAFT = "draft"
    PAID = "paid"


@checkout.entity(part_of="Invoice")
class InvoiceLineItem:
    """A line item on an invoice. Amounts in minor units."""

    name = String(required=True, max_length=255)
    description = String(max_length=500)
    quantity = Integer(required=True, min_value=1)
    unit_price = Integer(required=True, min_value=0)
    total = Integer(required=True, min_value=0)


@checkout.aggregate
class Invoice:
    invoice_number = String(required=True, max_length=50)
    user_id = Identifier()
    order_id = Identifier(required=True)
    payment_id = String(max_length=255)  # gateway transaction id
    billing_name = String(max_length=255)
    billing_email = String(max_length=254)
    billing_address = Text()  # JSON address block
    line_items = HasMany(InvoiceLineItem)
    subtotal = Integer(default=0)
    discount_amount = Integer(default=0)
    tax_amount = Integer(default=0)
    total_amount = Integer(default=0)
    status = String(
        choices=InvoiceStatus,
        default=InvoiceStatus.DRAFT.value,
    )
    pdf_url = String(max_length=1000)
    created_at = DateTime()

    @classmethod
    def create(
        cls,
        invoice_number: str,
        order_id: str,
        line_items_data: list[dict],
        subtotal: int,
        discount: int,
        tax: int,
        total: int,
        billing_name: str | None = None,
        billing_email: str | None = None,
        billing_address: dict | None = None,
        user_id: str | None = None,
        payment_id: str | None = None,
        pdf_url: str | None = None,
    ):
        """Create the invoice record for an order."""
        now = datetime.now(UTC)
        status = InvoiceStatus.PAID if payment_id else InvoiceStatus.DRAFT

        invoice = cls(
            invoice_number=invoice_number,
            user_id=user_id,
            order_id=order_id,
            payment_id=payment_id,
            billing_name=billing_name,
            billing_email=billing_email,
            billing_address=json.dumps(billing_address) if billing_address else None,
            subtotal=subtotal,
            discount_amount=discount,
            tax_amount=tax,
            total_amount=total,
            status=status.value,
            pdf_url=pdf_url,
            created_at=now,
        )
        for item_data in line_items_data:
            invoice.add_line_items(
                InvoiceLineItem(
                    name=item_data["name"],
                    description=item_data.get("description"),
                    quantity=item_data["quantity"],
                    unit_price=item_data["unit_price"],
                    total=item_data["total"],
                )
            )

        invoice.raise_(
            InvoiceGenerated(
                invoice_id=str(invoice.id),
                order_id=order_id,
                invoice_number=invoice_number,
                status=status.value,
                total=total,
                has_pdf=pdf_url is not None,
                generated_at=now,
            )
        )
        return invoice
