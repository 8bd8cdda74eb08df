# Overview: Service-layer operations for bartender carts; encapsulates business logic and database work.

"""
Cart state machine

    Empty --add--> Active --add/remove--> Active
    Active --remove last / clear / confirm--> Empty

A cart is created lazily by the first add and then persists for its
bartender. Mutations from the same session are serialized with a row lock
(BEGIN IMMEDIATE on SQLite) plus Cart.version_id, so two rapid adds cannot
lose an update to the summary.

Summary rule, recomputed after every mutation:
    subtotal = sum(line_total)
    tax      = subtotal * TAX_RATE_BPS / 10000 (half-up, cents)
    total    = subtotal + tax
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import InsufficientStock, NotFound, ValidationError
from ..models import Cart, CartItem, Event, Product
from ..money import tax_cents, to_amount
from . import catalog_service, stock_service
from .concurrency import begin_write, lock_for_update, run_with_retry


STOCK_CHECK_OFF = "off"
STOCK_CHECK_EVENT = "event"
STOCK_CHECK_BAR = "bar"


@dataclass
class AddResult:
    product: Product
    added_quantity: int
    line: CartItem
    cart: Cart

    def product_dict(self) -> dict:
        return {
            "id": self.product.id,
            "name": self.line.product_name,
            "code": self.line.product_code,
            "price": to_amount(self.line.unit_price_cents),
            "quantity": self.added_quantity,
            "cartQuantity": self.line.quantity,
            "total": to_amount(self.line.line_total_cents),
        }


def empty_summary() -> dict:
    return {
        "totalItems": 0,
        "totalQuantity": 0,
        "subtotal": 0.0,
        "tax": 0.0,
        "total": 0.0,
        "items": [],
    }


def recompute(cart: Cart) -> Cart:
    """Refresh the derived summary columns from the cart lines."""
    items = list(cart.items)
    subtotal = sum(item.line_total_cents for item in items)
    tax = tax_cents(subtotal, current_app.config.get("TAX_RATE_BPS", 0))

    cart.total_items = len(items)
    cart.total_quantity = sum(item.quantity for item in items)
    cart.subtotal_cents = subtotal
    cart.tax_cents = tax
    cart.total_cents = subtotal + tax
    return cart


def empty(cart: Cart) -> Cart:
    """Drop every line (no commit)."""
    cart.items.clear()
    return recompute(cart)


def find_cart(bartender_id: str, *, lock: bool = False) -> Cart | None:
    query = db.session.query(Cart).filter_by(bartender_id=bartender_id)
    if lock:
        query = lock_for_update(query).populate_existing()
    return query.first()


def get_current(bartender_id: str) -> Cart:
    """Read the bartender's cart; NotFound when none was ever created."""
    cart = find_cart(bartender_id)
    if cart is None:
        raise NotFound("No cart found for this bartender")
    return cart


def _check_availability(
    product: Product,
    requested: int,
    *,
    event_id: int,
    bar_id: int | None,
) -> None:
    mode = STOCK_CHECK_BAR if bar_id is not None else current_app.config.get("CART_STOCK_CHECK", STOCK_CHECK_EVENT)

    if mode == STOCK_CHECK_OFF:
        return
    if mode == STOCK_CHECK_BAR:
        if bar_id is None:
            return
        available = stock_service.get_quantity(bar_id, product.id)
    else:
        available = stock_service.get_event_quantity(event_id, product.id)

    if requested > available:
        raise InsufficientStock(
            f"Insufficient stock for {product.name} ({product.code}). "
            f"Available: {available}, requested: {requested}",
            details={
                "productId": product.id,
                "code": product.code,
                "requested": requested,
                "available": available,
            },
        )


def add_item(
    bartender_id: str,
    token: str,
    event_id,
    *,
    bartender_name: str | None = None,
    bar_id=None,
) -> AddResult:
    """
    Parse a bartender token and merge it into the cart.

    Same product twice -> one line with the summed quantity, priced at the
    unit price captured on the first add.
    """
    if event_id is None or event_id == "":
        raise ValidationError("eventId is required")
    try:
        event_id = int(event_id)
        bar_id = int(bar_id) if bar_id not in (None, "") else None
    except (TypeError, ValueError):
        raise ValidationError("eventId and barId must be integers")

    if db.session.get(Event, event_id) is None:
        raise ValidationError(f"Event {event_id} not found", details={"eventId": event_id})

    resolution = catalog_service.resolve(token, event_id)
    product = resolution.product
    product_id = product.id

    def _op():
        begin_write()
        cart = find_cart(bartender_id, lock=True)
        if cart is None:
            cart = Cart(bartender_id=bartender_id, bartender_name=bartender_name, event_id=event_id)
            db.session.add(cart)
            db.session.flush()

        if cart.items and cart.event_id != event_id:
            raise ValidationError(
                "Cart already holds items for another event; clear it first",
                details={"cartEventId": cart.event_id, "eventId": event_id},
            )
        cart.event_id = event_id
        if bartender_name:
            cart.bartender_name = bartender_name

        line = next((item for item in cart.items if item.product_id == product_id), None)
        new_quantity = (line.quantity if line else 0) + resolution.quantity

        _check_availability(product, new_quantity, event_id=event_id, bar_id=bar_id)

        if line is None:
            position = max((item.position for item in cart.items), default=0) + 1
            line = CartItem(
                product_id=product_id,
                product_name=product.name,
                product_code=product.code,
                unit=product.unit,
                unit_price_cents=product.price_cents,
                quantity=new_quantity,
                line_total_cents=product.price_cents * new_quantity,
                position=position,
            )
            cart.items.append(line)
        else:
            line.quantity = new_quantity
            line.line_total_cents = line.unit_price_cents * new_quantity

        recompute(cart)
        db.session.commit()
        return AddResult(product=product, added_quantity=resolution.quantity, line=line, cart=cart)

    return run_with_retry(_op, retry_on=(IntegrityError,))


def remove_item(bartender_id: str, product_id) -> Cart:
    """Remove a whole line (not a partial quantity)."""
    try:
        product_id = int(product_id)
    except (TypeError, ValueError):
        raise ValidationError("productId is required")

    def _op():
        begin_write()
        cart = find_cart(bartender_id, lock=True)
        if cart is None:
            raise NotFound("No cart found for this bartender")

        line = next((item for item in cart.items if item.product_id == product_id), None)
        if line is None:
            raise NotFound(
                f"Product {product_id} is not in the cart",
                details={"productId": product_id},
            )

        cart.items.remove(line)
        recompute(cart)
        db.session.commit()
        return cart

    return run_with_retry(_op)


def clear(bartender_id: str) -> Cart | None:
    """
    Empty the cart. Idempotent: an empty or missing cart is not an error.

    Returns None when the bartender never had a cart.
    """
    def _op():
        begin_write()
        cart = find_cart(bartender_id, lock=True)
        if cart is None:
            db.session.rollback()
            return None
        empty(cart)
        db.session.commit()
        return cart

    return run_with_retry(_op)
