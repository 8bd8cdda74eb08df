# Overview: Service-layer operations for tickets; cart confirmation, annotations and voids.

"""
Ticket Factory

confirm_cart() is the bridge between a bartender cart and the stock ledger.
In ONE database transaction it:

1. locks the cart and rejects an empty one (EmptyCart)
2. validates the bar (ValidationError)
3. inserts the Ticket snapshot (lines copied, totals recomputed)
4. decrements stock for every product with a conditional UPDATE
5. empties the cart

Any failure in 1-5 rolls the whole transaction back: no stock is taken and
the cart is left exactly as it was, so the bartender can fix quantities and
retry. A ticket can therefore never exist without its stock, and stock can
never be taken without a ticket.

The only ambiguous moment is COMMIT itself. When it raises we look the
ticket up by its pre-generated ticket_number: found means it committed,
missing means nothing did, and a failed lookup is a ConsistencyFault
(outcome unknown, logged CRITICAL with the whole attempt).
"""

from __future__ import annotations

import json
import secrets

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import ConsistencyFault, EmptyCart, Forbidden, NotFound, ValidationError
from ..models import Bar, Cart, Ticket, TicketItem
from ..models.tickets import TICKET_STATUS_ISSUED, TICKET_STATUS_VOIDED
from ..money import tax_cents
from ..time_utils import ticket_day, utcnow
from ..validation import ModelValidationPolicy, validate_payload
from . import cart_service, receipt_service, stock_service
from .auth_service import Principal
from .concurrency import begin_write, lock_for_update, run_with_retry


TICKET_PATCH_POLICY = ModelValidationPolicy(
    writable_fields={"customer_name", "notes"},
    field_aliases={"customerName": "customer_name"},
)


def new_ticket_number() -> str:
    return f"T-{ticket_day(utcnow())}-{secrets.token_hex(4).upper()}"


def resolve_payment_method(value: str | None) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError("paymentMethod must be a string", details={"paymentMethod": value})
    methods = current_app.config.get("PAYMENT_METHODS") or ()
    method = (value or current_app.config.get("DEFAULT_PAYMENT_METHOD", "cash")).strip().lower()
    if method not in methods:
        raise ValidationError(
            f"Invalid payment method: {value}",
            details={"paymentMethod": value, "allowed": list(methods)},
        )
    return method


def _load_cart_for_confirm(principal: Principal, cart_id) -> Cart | None:
    if cart_id in (None, ""):
        return cart_service.find_cart(principal.id, lock=True)

    try:
        cart_id = int(cart_id)
    except (TypeError, ValueError):
        raise ValidationError("cartId must be an integer")

    cart = lock_for_update(db.session.query(Cart).filter_by(id=cart_id)).populate_existing().first()
    if cart is None:
        raise NotFound(f"Cart {cart_id} not found")
    if cart.bartender_id != principal.id and not principal.is_admin:
        raise Forbidden("Cannot confirm another bartender's cart")
    return cart


def _attempt_payload(ticket: Ticket, principal: Principal) -> dict:
    return {
        "ticketNumber": ticket.ticket_number,
        "barId": ticket.bar_id,
        "eventId": ticket.event_id,
        "employeeId": principal.id,
        "paymentMethod": ticket.payment_method,
        "subtotalCents": ticket.subtotal_cents,
        "taxCents": ticket.tax_cents,
        "totalCents": ticket.total_cents,
        "items": [
            {
                "productId": item.product_id,
                "code": item.product_code,
                "quantity": item.quantity,
                "unitPriceCents": item.unit_price_cents,
            }
            for item in ticket.items
        ],
    }


def find_by_number(ticket_number: str) -> Ticket | None:
    return db.session.query(Ticket).filter_by(ticket_number=ticket_number).first()


def _commit_ticket(ticket: Ticket, attempt: dict) -> Ticket:
    ticket_number = attempt["ticketNumber"]
    try:
        db.session.commit()
        return ticket
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Commit failed for ticket %s; verifying outcome", ticket_number)
        try:
            persisted = find_by_number(ticket_number)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.critical(
                "CONSISTENCY FAULT: ticket %s outcome unknown after commit error. attempt=%s",
                ticket_number,
                json.dumps(attempt, sort_keys=True),
            )
            raise ConsistencyFault("Ticket outcome unknown", details=attempt) from exc

        if persisted is not None:
            current_app.logger.warning("Ticket %s was committed despite the commit error", ticket_number)
            return persisted
        raise


def confirm_cart(
    principal: Principal,
    *,
    bar_id,
    cart_id=None,
    customer_name: str | None = None,
    payment_method: str | None = None,
    notes: str | None = None,
) -> tuple[Ticket, dict]:
    """
    Confirm the cart into an immutable ticket. Returns (ticket, printFormat).
    """
    method = resolve_payment_method(payment_method)
    annotations = validate_payload(
        model=Ticket,
        payload={"customerName": customer_name, "notes": notes},
        policy=TICKET_PATCH_POLICY,
    )
    tax_rate_bps = current_app.config.get("TAX_RATE_BPS", 0)
    ticket_number = new_ticket_number()

    def _op():
        begin_write()
        cart = _load_cart_for_confirm(principal, cart_id)
        if cart is None or cart.is_empty:
            raise EmptyCart("Cart is empty")

        if bar_id in (None, ""):
            raise ValidationError("barId is required")
        try:
            bar = db.session.get(Bar, int(bar_id))
        except (TypeError, ValueError):
            raise ValidationError("barId must be an integer")
        if bar is None:
            raise ValidationError(f"Bar {bar_id} not found", details={"barId": bar_id})
        if cart.event_id is not None and bar.event_id != cart.event_id:
            raise ValidationError(
                "Bar does not belong to the cart's event",
                details={"barId": bar.id, "eventId": cart.event_id},
            )

        lines = list(cart.items)
        subtotal = sum(line.line_total_cents for line in lines)
        tax = tax_cents(subtotal, tax_rate_bps)

        ticket = Ticket(
            ticket_number=ticket_number,
            event_id=cart.event_id,
            bar_id=bar.id,
            employee_id=principal.id,
            employee_name=principal.name,
            customer_name=annotations["customer_name"],
            notes=annotations["notes"],
            subtotal_cents=subtotal,
            tax_cents=tax,
            total_cents=subtotal + tax,
            tax_rate_bps=tax_rate_bps,
            payment_method=method,
            status=TICKET_STATUS_ISSUED,
            created_at=utcnow(),
        )
        for position, line in enumerate(lines, start=1):
            ticket.items.append(TicketItem(
                product_id=line.product_id,
                product_name=line.product_name,
                product_code=line.product_code,
                unit=line.unit,
                unit_price_cents=line.unit_price_cents,
                quantity=line.quantity,
                line_total_cents=line.line_total_cents,
                position=position,
            ))
        db.session.add(ticket)
        db.session.flush()

        # Fixed product order keeps concurrent confirms from deadlocking.
        per_product: dict[int, int] = {}
        for line in lines:
            per_product[line.product_id] = per_product.get(line.product_id, 0) + line.quantity
        for product_id in sorted(per_product):
            stock_service.decrement(
                product_id,
                bar.id,
                per_product[product_id],
                ticket_id=ticket.id,
                actor_id=principal.id,
            )

        cart_service.empty(cart)
        db.session.flush()
        return ticket, _attempt_payload(ticket, principal)

    ticket, attempt = run_with_retry(_op)
    ticket = _commit_ticket(ticket, attempt)
    return ticket, receipt_service.build_print_format(ticket)


def get_ticket(ticket_id: int, principal: Principal) -> Ticket:
    ticket = db.session.get(Ticket, ticket_id)
    if ticket is None or ticket.status == TICKET_STATUS_VOIDED:
        raise NotFound(f"Ticket {ticket_id} not found")
    if not principal.is_admin and ticket.employee_id != principal.id:
        raise Forbidden("Cannot access another bartender's ticket")
    return ticket


def update_ticket(ticket_id: int, principal: Principal, payload: dict) -> Ticket:
    """Patch customerName / notes. Financial fields are rejected."""
    patch = validate_payload(model=Ticket, payload=payload, policy=TICKET_PATCH_POLICY)

    def _op():
        ticket = get_ticket(ticket_id, principal)
        for key, value in patch.items():
            setattr(ticket, key, value)
        db.session.commit()
        return ticket

    return run_with_retry(_op)


def mark_printed(ticket_id: int, principal: Principal) -> Ticket:
    """
    Idempotent print annotation: every call sets printed=True and
    overwrites printed_at with the latest print time.
    """
    def _op():
        ticket = get_ticket(ticket_id, principal)
        ticket.printed = True
        ticket.printed_at = utcnow()
        db.session.commit()
        return ticket

    return run_with_retry(_op)


def void_ticket(ticket_id: int, principal: Principal) -> Ticket:
    """
    Void a ticket and credit its items back to the bar's stock.

    The row is kept for audit; it disappears from reads and reports.
    """
    def _op():
        begin_write()
        ticket = lock_for_update(
            db.session.query(Ticket).filter_by(id=ticket_id)
        ).populate_existing().first()
        if ticket is None or ticket.status == TICKET_STATUS_VOIDED:
            raise NotFound(f"Ticket {ticket_id} not found")

        for item in ticket.items:
            stock_service.restock(
                item.product_id,
                ticket.bar_id,
                item.quantity,
                ticket_id=ticket.id,
                actor_id=principal.id,
                notes=f"Void {ticket.ticket_number}",
            )

        ticket.status = TICKET_STATUS_VOIDED
        ticket.voided_at = utcnow()
        ticket.voided_by = principal.id
        db.session.commit()
        return ticket

    return run_with_retry(_op)


def search(
    principal: Principal,
    *,
    event_id: int | None = None,
    employee_id: str | None = None,
    bar_id: int | None = None,
    payment_method: str | None = None,
) -> list[Ticket]:
    q = db.session.query(Ticket).filter(Ticket.status == TICKET_STATUS_ISSUED)

    if not principal.is_admin:
        employee_id = principal.id

    if event_id is not None:
        q = q.filter(Ticket.event_id == event_id)
    if employee_id:
        q = q.filter(Ticket.employee_id == str(employee_id))
    if bar_id is not None:
        q = q.filter(Ticket.bar_id == bar_id)
    if payment_method:
        q = q.filter(Ticket.payment_method == payment_method.lower())

    return q.order_by(Ticket.created_at.desc(), Ticket.id.desc()).all()
