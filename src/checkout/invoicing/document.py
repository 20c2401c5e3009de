"""Invoice document model. Holds everything the renderer prints, so it never looks anything up."""

from dataclasses import dataclass, field
from datetime import date

from checkout.config import CompanyInfo
from checkout.shared.billing import BillingInfo


@dataclass(frozen=True)
class InvoiceAmounts:
    subtotal: int
    discount: int
    tax: int
    total: int


@dataclass(frozen=True)
class BillTo:
    name: str
    email: str
    phone: str | None = None
    address: dict | None = None


@dataclass(frozen=True)
class LineItem:
    name: str
    quantity: int
    unit_price: int
    total: int
    description: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total": self.total,
        }


@dataclass(frozen=True)
class InvoiceDocument:
    invoice_number: str
    order_number: str
    order_id: str
    issued_on: date
    company: CompanyInfo
    bill_to: BillTo
    items: list[LineItem]
    amounts: InvoiceAmounts
    currency: str
    payment_status: str
    payment_method: str | None = None
    payment_id: str | None = None
    tax_rate: float = 0.0
    due_on: date | None = None
    footer: list[str] = field(
        default_factory=lambda: [
            "Thank you for your business!",
            "This is a computer-generated invoice.",
        ]
    )


def build_invoice_document(
    invoice_number: str,
    order_id: str,
    order_number: str | None,
    billing: BillingInfo,
    product_name: str,
    amounts: InvoiceAmounts,
    company: CompanyInfo,
    currency: str,
    issued_on: date,
    payment_id: str | None = None,
) -> InvoiceDocument:
    """Assemble the invoice for a single-product checkout.

    The purchase is one line item priced at the subtotal; the discount shows
    in the totals block.
    """
    return InvoiceDocument(
        invoice_number=invoice_number,
        order_number=order_number or order_id,
        order_id=order_id,
        issued_on=issued_on,
        company=company,
        bill_to=BillTo(
            name=billing.full_name or "Customer",
            email=billing.email,
            phone=billing.phone or None,
            address=billing.address(),
        ),
        items=[
            LineItem(
                name=product_name,
                quantity=1,
                unit_price=amounts.subtotal,
                total=amounts.subtotal,
            )
        ],
        amounts=amounts,
        currency=currency,
        payment_status="paid" if payment_id else "pending",
        payment_method="Online" if payment_id else "Cash",
        payment_id=payment_id,
    )
