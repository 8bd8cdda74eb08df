from __future__ import annotations

from ..extensions import db
from ..money import to_amount
from ..time_utils import to_utc_z


class Event(db.Model):
    """An event (festival night, party) that groups bars and carts."""
    __tablename__ = "events"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    # active, inactive, closed
    status = db.Column(db.String(16), nullable=False, default="active", index=True)
    starts_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "startsAt": to_utc_z(self.starts_at),
            "createdAt": to_utc_z(self.created_at),
        }


class Bar(db.Model):
    """
    A selling point inside an event.

    Stock is tracked per bar (see StockAssignment); tickets are always
    confirmed against exactly one bar.
    """
    __tablename__ = "bars"
    __table_args__ = (
        db.Index("ix_bars_event_name", "event_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    printer = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    event = db.relationship("Event", backref=db.backref("bars", lazy=True))

    def __repr__(self) -> str:
        return f"<Bar id={self.id} name={self.name!r} event_id={self.event_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "eventId": self.event_id,
            "printer": self.printer,
            "status": self.status,
        }


class Product(db.Model):
    """
    Product master data.

    CODE DESIGN:
    Product.code is the short alphabetic code bartenders type at the bar
    (2-3 uppercase letters, e.g. "CCC"). Codes are catalog-unique and
    immutable once created; lookups are always done on the uppercase form.

    Stock is never stored here. It lives in per-bar StockAssignment rows
    and only changes through stock_service.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_products_code"),
        db.Index("ix_products_event_active", "event_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(3), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False, default=0)

    unit = db.Column(db.String(32), nullable=True)
    category = db.Column(db.String(64), nullable=True)

    # Only consulted when CATALOG_SCOPE == "event"
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "price": to_amount(self.price_cents),
            "unit": self.unit,
            "category": self.category,
            "eventId": self.event_id,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
