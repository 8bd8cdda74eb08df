# backend/festgo/routes/bars.py
from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_role
from ..errors import ServiceError
from ..services import reporting_service
from ..services.auth_service import ROLE_ADMIN
from . import internal_error


bars_bp = Blueprint("bars", __name__, url_prefix="/bars")


@bars_bp.get("/<int:bar_id>/sales-summary")
@require_auth
@require_role(ROLE_ADMIN)
def sales_summary(bar_id: int):
    """
    Sales projection over the bar's issued tickets.

    Query params: start, end (ISO-8601, optional, inclusive)
    """
    try:
        summary = reporting_service.summarize(
            bar_id,
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
        return jsonify(summary), 200
    except ServiceError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        return internal_error("build sales summary")
