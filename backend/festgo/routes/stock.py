# backend/festgo/routes/stock.py
"""
Per-bar stock API routes (admin only).

Every mutation is appended to the stock movement history.
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..errors import ServiceError, ValidationError
from ..services import stock_service
from ..services.auth_service import ROLE_ADMIN
from . import internal_error


stock_bp = Blueprint("stock", __name__, url_prefix="/stock")


@stock_bp.post("/assign")
@require_auth
@require_role(ROLE_ADMIN)
def assign_stock():
    """
    Request body:
    {
        "productId": int,
        "barId": int,
        "quantity": int > 0,
        "notes": str (optional)
    }

    Returns:
        201: AssignmentRecord
        400: validation_error
    """
    data = request.get_json(silent=True) or {}

    try:
        record = stock_service.assign(
            data.get("productId"),
            data.get("barId"),
            data.get("quantity"),
            notes=data.get("notes"),
            actor_id=g.principal.id,
        )
        return jsonify(record), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("assign stock")


@stock_bp.post("/move")
@require_auth
@require_role(ROLE_ADMIN)
def move_stock():
    """
    Request body:
    {
        "productId": int,
        "fromBarId": int,
        "toBarId": int,
        "quantity": int > 0,
        "notes": str (optional)
    }

    Returns:
        201: MoveRecord
        400: insufficient_stock / validation_error
    """
    data = request.get_json(silent=True) or {}

    try:
        record = stock_service.move(
            data.get("productId"),
            data.get("fromBarId"),
            data.get("toBarId"),
            data.get("quantity"),
            notes=data.get("notes"),
            actor_id=g.principal.id,
        )
        return jsonify(record), 201
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("move stock")


@stock_bp.post("/bulk")
@require_auth
@require_role(ROLE_ADMIN)
def bulk_stock():
    """Best-effort batch; per-operation failures are reported in results."""
    data = request.get_json(silent=True) or {}

    try:
        result = stock_service.bulk(data.get("operations"), actor_id=g.principal.id)
        return jsonify(result), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("run bulk stock operations")


@stock_bp.get("/search")
@require_auth
@require_role(ROLE_ADMIN)
def search_stock():
    bar_id = request.args.get("barId", type=int)
    product_id = request.args.get("productId", type=int)

    try:
        if bar_id is None and product_id is None:
            raise ValidationError("barId or productId is required")
        rows = stock_service.query(bar_id=bar_id, product_id=product_id)
        return jsonify([row.to_dict() for row in rows]), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("search stock")


@stock_bp.get("/info")
@require_auth
@require_role(ROLE_ADMIN)
def stock_info():
    try:
        return jsonify(stock_service.stock_info()), 200
    except Exception:
        return internal_error("read stock info")


@stock_bp.patch("/<int:assignment_id>")
@require_auth
@require_role(ROLE_ADMIN)
def adjust_stock(assignment_id: int):
    """Request body: {"quantity": int >= 0 (optional), "notes": str (optional)}"""
    data = request.get_json(silent=True) or {}

    try:
        row = stock_service.adjust(
            assignment_id,
            quantity=data.get("quantity"),
            notes=data.get("notes"),
            actor_id=g.principal.id,
        )
        return jsonify(row.to_dict()), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("adjust stock")


@stock_bp.delete("/<int:assignment_id>")
@require_auth
@require_role(ROLE_ADMIN)
def delete_stock(assignment_id: int):
    try:
        stock_service.delete_assignment(assignment_id, actor_id=g.principal.id)
        return "", 204
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("delete stock assignment")
