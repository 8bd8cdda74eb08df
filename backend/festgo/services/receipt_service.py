# Overview: Builds denormalized receipt payloads for client-side printing.

from __future__ import annotations

from flask import current_app

from ..models import Ticket
from ..money import rate_percent, tax_cents, to_amount
from ..time_utils import receipt_date, receipt_datetime, receipt_time, to_utc_z


PAYMENT_LABELS = {
    "cash": "Efectivo",
    "card": "Tarjeta",
    "mixed": "Mixto",
    "transfer": "Transferencia",
    "administrator": "Administrador",
    "entradas": "Entradas",
    "dj": "DJ",
    "other": "Otro",
}


def _cfg(key: str, default=""):
    return current_app.config.get(key, default)


def build_print_format(ticket: Ticket) -> dict:
    """
    Full receipt payload returned by cart confirm.

    Per-item tax is informational (rounded per line); the totals block is
    the ticket's own figures.
    """
    currency = _cfg("CURRENCY", "ARS")
    rate_bps = ticket.tax_rate_bps or 0
    created = ticket.created_at
    bar = ticket.bar
    event = bar.event if bar is not None else None

    items = []
    for item in ticket.items:
        items.append({
            "name": item.product_name,
            "quantity": item.quantity,
            "unitPrice": to_amount(item.unit_price_cents),
            "subtotal": to_amount(item.line_total_cents),
            "taxRate": rate_percent(rate_bps),
            "tax": to_amount(tax_cents(item.line_total_cents, rate_bps)),
        })

    return {
        "header": {
            "businessName": _cfg("BUSINESS_NAME"),
            "businessAddress": _cfg("BUSINESS_ADDRESS"),
            "businessPhone": _cfg("BUSINESS_PHONE"),
            "businessTaxId": _cfg("BUSINESS_TAX_ID"),
            "businessEmail": _cfg("BUSINESS_EMAIL"),
        },
        "ticket": {
            "ticketNumber": ticket.ticket_number,
            "userName": ticket.employee_name or ticket.employee_id,
            "barName": bar.name if bar is not None else None,
            "eventName": event.name if event is not None else None,
            "date": receipt_date(created),
            "time": receipt_time(created),
            "currency": currency,
        },
        "items": items,
        "totals": {
            "subtotal": to_amount(ticket.subtotal_cents),
            "tax": to_amount(ticket.tax_cents),
            "total": to_amount(ticket.total_cents),
            "currency": currency,
        },
        "payment": {
            "method": ticket.payment_method,
            "methodLabel": PAYMENT_LABELS.get(ticket.payment_method, ticket.payment_method),
            "paidAmount": to_amount(ticket.total_cents),
            "changeAmount": 0.0,
            "currency": currency,
        },
        "footer": {
            "thankYouMessage": _cfg("RECEIPT_THANK_YOU"),
            "businessWebsite": _cfg("BUSINESS_WEBSITE"),
            "receiptFooter": _cfg("RECEIPT_FOOTER"),
        },
        "printerSettings": {
            "paperWidth": _cfg("PRINTER_PAPER_WIDTH", 80),
            "fontSize": _cfg("PRINTER_FONT_SIZE", 12),
            "fontFamily": _cfg("PRINTER_FONT_FAMILY", "monospace"),
        },
    }


def build_print_data(ticket: Ticket) -> dict:
    """Compact payload for re-printing an existing ticket."""
    created = ticket.created_at
    return {
        "ticketId": ticket.id,
        "printData": {
            "header": _cfg("BUSINESS_NAME"),
            "ticketNumber": ticket.ticket_number,
            "date": receipt_datetime(created),
            "customer": ticket.customer_name,
            "items": [
                {
                    "name": item.product_name,
                    "quantity": item.quantity,
                    "price": to_amount(item.unit_price_cents),
                    "total": to_amount(item.line_total_cents),
                }
                for item in ticket.items
            ],
            "subtotal": to_amount(ticket.subtotal_cents),
            "tax": to_amount(ticket.tax_cents),
            "total": to_amount(ticket.total_cents),
        },
        "printedAt": to_utc_z(ticket.printed_at),
    }
