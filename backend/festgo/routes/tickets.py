# backend/festgo/routes/tickets.py
"""
Ticket API routes.

Tickets are immutable financial records once issued; only customerName,
notes and the print annotation change. DELETE voids (admin only).
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import ServiceError
from ..services import receipt_service, ticket_service
from ..services.auth_service import ROLE_ADMIN, ROLE_BARTENDER
from ..time_utils import to_utc_z
from . import internal_error


tickets_bp = Blueprint("tickets", __name__, url_prefix="/tickets")


@tickets_bp.get("/search")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def search_tickets():
    """
    Query params (all optional): eventId, employeeId, barId, paymentMethod.

    Bartenders only ever get their own tickets.
    """
    try:
        tickets = ticket_service.search(
            g.principal,
            event_id=request.args.get("eventId", type=int),
            employee_id=request.args.get("employeeId"),
            bar_id=request.args.get("barId", type=int),
            payment_method=request.args.get("paymentMethod"),
        )
        return jsonify([t.to_dict() for t in tickets]), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("search tickets")


@tickets_bp.get("/<int:ticket_id>")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def get_ticket(ticket_id: int):
    try:
        ticket = ticket_service.get_ticket(ticket_id, g.principal)
        return jsonify(ticket.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("read ticket")


@tickets_bp.patch("/<int:ticket_id>")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def update_ticket(ticket_id: int):
    """
    Request body: {"customerName": str?, "notes": str?}

    Any other key is rejected with 400.
    """
    data = request.get_json(silent=True) or {}

    try:
        ticket = ticket_service.update_ticket(ticket_id, g.principal, data)
        return jsonify(ticket.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("update ticket")


@tickets_bp.patch("/<int:ticket_id>/print")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def mark_printed(ticket_id: int):
    try:
        ticket = ticket_service.mark_printed(ticket_id, g.principal)
        return jsonify({
            "id": ticket.id,
            "printed": ticket.printed,
            "printedAt": to_utc_z(ticket.printed_at),
        }), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("mark ticket printed")


@tickets_bp.get("/<int:ticket_id>/print")
@require_auth
@require_role(ROLE_BARTENDER, ROLE_ADMIN)
def get_print_data(ticket_id: int):
    try:
        ticket = ticket_service.get_ticket(ticket_id, g.principal)
        return jsonify(receipt_service.build_print_data(ticket)), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("build ticket print data")


@tickets_bp.delete("/<int:ticket_id>")
@require_auth
@require_role(ROLE_ADMIN)
def void_ticket(ticket_id: int):
    """Void the ticket and restock its items. 204 on success."""
    try:
        ticket_service.void_ticket(ticket_id, g.principal)
        return "", 204
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("void ticket")
