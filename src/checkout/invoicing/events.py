"""Domain events for the Invoice aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Invoice")
class InvoiceGenerated:
    """An invoice was recorded for an order."""

    __version__ = 1

    invoice_id = Identifier(required=True)
    order_id = Identifier(required=True)
    invoice_number = String(required=True)
    status = String(required=True)
    total = Integer(required=True)
    has_pdf = Boolean(default=False)
    generated_at = DateTime(required=True)
