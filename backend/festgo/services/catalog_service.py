# Overview: Service-layer operations for the product catalog; bartender token parsing and code lookup.

"""
Bartender input tokens

A token is a 2-3 letter product code with an optional integer quantity,
written either before or after the code:

    "CCC"   -> 1 x CCC
    "CCC2"  -> 2 x CCC
    "3ccc"  -> 3 x CCC   (input is case-insensitive, codes are uppercase)

Anything else ("12X", "ABCD", "2CC3", "CC0") is an InvalidFormat.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..errors import InvalidFormat, NotFound, ValidationError
from ..models import Product


MAX_TOKEN_QUANTITY = 999

_TOKEN_RE = re.compile(r"^(?P<pre>\d+)?(?P<code>[A-Z]{2,3})(?P<post>\d+)?$")
_CODE_RE = re.compile(r"^[A-Z]{2,3}$")


@dataclass(frozen=True)
class ParsedToken:
    code: str
    quantity: int


@dataclass(frozen=True)
class Resolution:
    product: Product
    quantity: int


def normalize_code(code: str) -> str:
    """Canonical uppercase product code; raises ValidationError when malformed."""
    value = (code or "").strip().upper()
    if not _CODE_RE.match(value):
        raise ValidationError("code must be 2-3 letters", details={"code": code})
    return value


def parse_token(raw: str | None) -> ParsedToken:
    if raw is None or not isinstance(raw, str):
        raise InvalidFormat("input is required")

    token = re.sub(r"\s+", "", raw).upper()
    match = _TOKEN_RE.match(token)
    if not match:
        raise InvalidFormat(
            "Invalid input format, expected a 2-3 letter code with an optional quantity (e.g. CCC2)",
            details={"input": raw},
        )

    pre, post = match.group("pre"), match.group("post")
    if pre and post:
        raise InvalidFormat("Quantity may appear only once", details={"input": raw})

    quantity = int(pre or post or 1)
    if quantity <= 0:
        raise InvalidFormat("Quantity must be positive", details={"input": raw})
    if quantity > MAX_TOKEN_QUANTITY:
        raise InvalidFormat(
            f"Quantity cannot exceed {MAX_TOKEN_QUANTITY}",
            details={"input": raw},
        )

    return ParsedToken(code=match.group("code"), quantity=quantity)


class CatalogResolver:
    """Finds the product a code refers to inside some resolution scope."""

    def find(self, code: str, event_id: int | None) -> Product | None:
        raise NotImplementedError


class GlobalCatalogResolver(CatalogResolver):
    def find(self, code, event_id):
        return db.session.query(Product).filter_by(code=code, is_active=True).first()


class EventCatalogResolver(CatalogResolver):
    """Only products bound to the event are visible."""

    def find(self, code, event_id):
        if event_id is None:
            return None
        return db.session.query(Product).filter_by(
            code=code,
            event_id=event_id,
            is_active=True,
        ).first()


_RESOLVERS = {
    "global": GlobalCatalogResolver,
    "event": EventCatalogResolver,
}


def get_resolver(scope: str | None = None) -> CatalogResolver:
    scope = scope or current_app.config.get("CATALOG_SCOPE", "global")
    try:
        return _RESOLVERS[scope]()
    except KeyError:
        raise ValueError(f"Unknown CATALOG_SCOPE: {scope!r}")


def resolve(token: str, event_id: int | None, resolver: CatalogResolver | None = None) -> Resolution:
    """
    Resolve a bartender token to (product, quantity). Pure read.

    Raises InvalidFormat when the token does not parse and NotFound when no
    active product carries the code in the resolution scope.
    """
    parsed = parse_token(token)
    resolver = resolver or get_resolver()

    product = resolver.find(parsed.code, event_id)
    if product is None:
        raise NotFound(
            f"Product with code {parsed.code} not found",
            details={"code": parsed.code, "eventId": event_id},
        )
    return Resolution(product=product, quantity=parsed.quantity)
