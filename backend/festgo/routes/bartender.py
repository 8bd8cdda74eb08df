# backend/festgo/routes/bartender.py
"""
Bartender cart API routes.

Tokens like "CE", "2CE" or "CE2" are added to the caller's cart; confirm
turns the cart into a ticket.
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import ServiceError
from ..services import cart_service, ticket_service
from ..services.auth_service import ROLE_ADMIN, ROLE_BARTENDER
from . import internal_error


bartender_bp = Blueprint("bartender", __name__, url_prefix="/bartender")


@bartender_bp.post("/input")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def add_input():
    """
    Add a product token to the caller's cart.

    Request body:
    {
        "input": str,        e.g. "2CE"
        "eventId": int,
        "barId": int (optional, enables the per-bar stock check)
    }

    Returns:
        200: {success, message, product, cartSummary}
        400: invalid_format / validation_error / insufficient_stock
        404: unknown product code
    """
    data = request.get_json(silent=True) or {}
    principal = g.principal

    try:
        result = cart_service.add_item(
            principal.id,
            data.get("input"),
            data.get("eventId"),
            bartender_name=principal.name,
            bar_id=data.get("barId"),
        )
        return jsonify({
            "success": True,
            "message": f"Added {result.added_quantity} x {result.product.name}",
            "product": result.product_dict(),
            "cartSummary": result.cart.summary_dict(),
        }), 200

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("add bartender input")


@bartender_bp.get("/cart")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def get_cart():
    try:
        cart = cart_service.get_current(g.principal.id)
        return jsonify(cart.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("read cart")


@bartender_bp.delete("/cart")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def clear_cart():
    """Empty the cart. Clearing an empty cart succeeds."""
    try:
        cart = cart_service.clear(g.principal.id)
        summary = cart.summary_dict() if cart is not None else cart_service.empty_summary()
        return jsonify({"success": True, "message": "Cart cleared", "cartSummary": summary}), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("clear cart")


@bartender_bp.delete("/cart/item")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def remove_cart_item():
    """
    Remove one whole line from the cart.

    Request body: {"productId": int} (query string ?productId= also accepted)
    """
    data = request.get_json(silent=True) or {}
    product_id = data.get("productId", request.args.get("productId"))

    try:
        cart = cart_service.remove_item(g.principal.id, product_id)
        return jsonify({
            "success": True,
            "message": "Product removed from cart",
            "cartSummary": cart.summary_dict(),
        }), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("remove cart item")


@bartender_bp.post("/cart/confirm")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def confirm_cart():
    """
    Confirm the cart into a ticket and decrement the bar's stock.

    Request body:
    {
        "barId": int,
        "cartId": int (optional, admins may confirm another cart),
        "customerName": str (optional),
        "paymentMethod": str (optional, defaults to DEFAULT_PAYMENT_METHOD),
        "notes": str (optional)
    }

    Returns:
        201: {success, ticketId, ticketNumber, message, printFormat, ticket}
        400: empty_cart / insufficient_stock / validation_error
        500: consistency_fault (check ticket history before retrying)
    """
    data = request.get_json(silent=True) or {}

    try:
        ticket, print_format = ticket_service.confirm_cart(
            g.principal,
            bar_id=data.get("barId"),
            cart_id=data.get("cartId"),
            customer_name=data.get("customerName"),
            payment_method=data.get("paymentMethod"),
            notes=data.get("notes"),
        )
        return jsonify({
            "success": True,
            "ticketId": ticket.id,
            "ticketNumber": ticket.ticket_number,
            "message": "Ticket created",
            "printFormat": print_format,
            "ticket": ticket.to_dict(),
        }), 201

    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("confirm cart")
