from __future__ import annotations

from ..extensions import db
from ..money import to_amount
from ..time_utils import to_utc_z


class Cart(db.Model):
    """
    The bartender's working cart.

    OWNERSHIP: exactly one cart per bartender (unique bartender_id). It is
    created lazily on the first add and then persists, going back to empty
    after clear or confirm. Never shared between bartenders.

    SUMMARY: the total_* columns are derived and recomputed by cart_service
    after every mutation. version_id makes concurrent writers from the same
    session fail loudly (StaleDataError) instead of losing an update.
    """
    __tablename__ = "carts"
    __table_args__ = (
        db.UniqueConstraint("bartender_id", name="uq_carts_bartender"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bartender_id = db.Column(db.String(64), nullable=False)
    bartender_name = db.Column(db.String(255), nullable=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=True, index=True)

    total_items = db.Column(db.Integer, nullable=False, default=0)
    total_quantity = db.Column(db.Integer, nullable=False, default=0)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "CartItem",
        back_populates="cart",
        order_by="CartItem.position",
        cascade="all, delete-orphan",
        lazy="select",
    )
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_empty(self) -> bool:
        return not self.items

    def summary_dict(self) -> dict:
        return {
            "totalItems": self.total_items,
            "totalQuantity": self.total_quantity,
            "subtotal": to_amount(self.subtotal_cents),
            "tax": to_amount(self.tax_cents),
            "total": to_amount(self.total_cents),
            "items": [item.to_dict() for item in self.items],
        }

    def to_dict(self) -> dict:
        data = self.summary_dict()
        data.update({
            "id": self.id,
            "bartenderId": self.bartender_id,
            "bartenderName": self.bartender_name,
            "eventId": self.event_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        })
        return data


class CartItem(db.Model):
    """
    One line of a cart.

    Name, code, unit and price are snapshotted when the product is first
    added, so later catalog edits never alter an open cart.
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("carts.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    product_name = db.Column(db.String(255), nullable=False)
    product_code = db.Column(db.String(3), nullable=False)
    unit = db.Column(db.String(32), nullable=True)

    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    # Arrival order of the line inside the cart
    position = db.Column(db.Integer, nullable=False, default=0)

    cart = db.relationship("Cart", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "productCode": self.product_code,
            "price": to_amount(self.unit_price_cents),
            "quantity": self.quantity,
            "total": to_amount(self.line_total_cents),
            "unit": self.unit,
        }
