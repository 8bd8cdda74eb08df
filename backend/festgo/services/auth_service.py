# Overview: Service-layer operations for auth; verifies externally-issued bearer tokens.

"""
Identity comes from an external auth provider.

WHY: This service never stores users or passwords. Every request carries a
signed JWT; we verify it and turn its claims into an immutable Principal
that lives on flask.g for the request only.

CLAIMS:
- sub:  principal id (string)
- role: admin | bartender | bar_user
- name: display name (optional)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import JWTError, jwt

from ..errors import Unauthorized


ROLE_ADMIN = "admin"
ROLE_BARTENDER = "bartender"
ROLE_BAR_USER = "bar_user"

KNOWN_ROLES = {ROLE_ADMIN, ROLE_BARTENDER, ROLE_BAR_USER}


@dataclass(frozen=True)
class Principal:
    id: str
    role: str
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def decode_token(token: str) -> Principal:
    """Verify a bearer token and return its principal; raises Unauthorized."""
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except JWTError as exc:
        raise Unauthorized("Invalid or expired token") from exc

    subject = claims.get("sub")
    role = claims.get("role")
    if not subject or role not in KNOWN_ROLES:
        raise Unauthorized("Token is missing required claims")

    return Principal(id=str(subject), role=role, name=claims.get("name"))


def issue_token(subject: str, role: str, name: str | None = None, expires_minutes: int | None = None) -> str:
    """
    Sign a token the way the auth provider does.

    Used by the CLI for local development and by tests.
    """
    if role not in KNOWN_ROLES:
        raise ValueError(f"Unknown role: {role}")
    minutes = expires_minutes or current_app.config["JWT_EXPIRES_MINUTES"]
    payload = {
        "sub": str(subject),
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes),
    }
    if name:
        payload["name"] = name
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=current_app.config["JWT_ALGORITHM"])
