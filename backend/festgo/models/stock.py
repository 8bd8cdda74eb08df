from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class StockAssignment(db.Model):
    """
    Current allocation of one product to one bar.

    The row holds the quantity on hand, not a delta log. History lives in
    StockMovement. Quantity is only ever changed through conditional
    UPDATE statements in stock_service, so it can never go negative.
    """
    __tablename__ = "stock_assignments"
    __table_args__ = (
        db.UniqueConstraint("bar_id", "product_id", name="uq_stock_bar_product"),
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product")
    bar = db.relationship("Bar")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "barId": self.bar_id,
            "quantity": self.quantity,
            "status": "assigned",
            "notes": self.notes,
            "updatedAt": to_utc_z(self.updated_at),
        }


# Movement types
MOVEMENT_ASSIGN = "assign"
MOVEMENT_MOVE = "move"
MOVEMENT_SALE = "sale"
MOVEMENT_VOID = "void"
MOVEMENT_ADJUST = "adjust"


class StockMovement(db.Model):
    """
    Append-only history of stock changes.

    - assign: +quantity at to_bar_id
    - move:   -quantity at from_bar_id, +quantity at to_bar_id
    - sale:   -quantity at from_bar_id (ticket_id set)
    - void:   +quantity at to_bar_id (ticket_id set)
    - adjust: absolute correction; quantity is the signed delta
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    from_bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=True, index=True)
    to_bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.String(255), nullable=True)

    ticket_id = db.Column(db.Integer, db.ForeignKey("tickets.id"), nullable=True, index=True)
    actor_id = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "productId": self.product_id,
            "fromBarId": self.from_bar_id,
            "toBarId": self.to_bar_id,
            "quantity": self.quantity,
            "notes": self.notes,
            "ticketId": self.ticket_id,
            "createdAt": to_utc_z(self.created_at),
        }

    def to_assignment_record(self, current_quantity: int) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "barId": self.to_bar_id,
            "quantity": self.quantity,
            "currentQuantity": current_quantity,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }

    def to_move_record(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "fromBarId": self.from_bar_id,
            "toBarId": self.to_bar_id,
            "quantity": self.quantity,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }
