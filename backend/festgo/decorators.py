# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import Forbidden, Unauthorized
from .services import auth_service


def _is_authenticated() -> bool:
    return getattr(g, "principal", None) is not None


def require_auth(f):
    """
    Require a valid bearer token from the external auth provider.

    Sets g.principal (immutable Principal) for the rest of the request.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Token signature invalid or expired
    - Token missing sub/role claims
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify(Unauthorized("Authentication required").to_dict()), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            g.principal = auth_service.decode_token(token)
        except Unauthorized as e:
            return jsonify(e.to_dict()), 401

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the principal's role to be one of roles (403 otherwise)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify(Unauthorized("Authentication required").to_dict()), 401

            if g.principal.role not in roles:
                error = Forbidden(
                    f"Requires role: {' or '.join(roles)}",
                    details={"requiredRoles": list(roles), "role": g.principal.role},
                )
                return jsonify(error.to_dict()), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
