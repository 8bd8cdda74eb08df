from __future__ import annotations

from ..extensions import db
from ..money import to_amount
from ..time_utils import to_utc_z


TICKET_STATUS_ISSUED = "issued"
TICKET_STATUS_VOIDED = "voided"


class Ticket(db.Model):
    """
    Immutable sales receipt created by confirming a cart.

    INVARIANTS:
    - total_cents == subtotal_cents + tax_cents
    - subtotal_cents == sum(item.line_total_cents)
    - Financial fields never change after insert. Only customer_name, notes
      and the printed / printed_at annotation are patchable.
    - Voiding keeps the row (status='voided') and credits stock back; voided
      tickets are invisible to reads, searches and reports.
    """
    __tablename__ = "tickets"
    __table_args__ = (
        db.UniqueConstraint("ticket_number", name="uq_tickets_number"),
        db.Index("ix_tickets_bar_status_created", "bar_id", "status", "created_at"),
        db.Index("ix_tickets_event_employee", "event_id", "employee_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number, generated before the write (e.g. "T-20261019-3FA2C1D0")
    ticket_number = db.Column(db.String(64), nullable=False)

    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=True, index=True)
    bar_id = db.Column(db.Integer, db.ForeignKey("bars.id"), nullable=False, index=True)

    # Confirming principal (identity comes from the external auth provider)
    employee_id = db.Column(db.String(64), nullable=False, index=True)
    employee_name = db.Column(db.String(255), nullable=True)

    customer_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(32), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=TICKET_STATUS_ISSUED, index=True)

    printed = db.Column(db.Boolean, nullable=False, default=False)
    printed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    voided_at = db.Column(db.DateTime(timezone=True), nullable=True)
    voided_by = db.Column(db.String(64), nullable=True)

    items = db.relationship(
        "TicketItem",
        back_populates="ticket",
        order_by="TicketItem.position",
        cascade="all, delete-orphan",
    )
    bar = db.relationship("Bar")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ticketNumber": self.ticket_number,
            "eventId": self.event_id,
            "barId": self.bar_id,
            "employeeId": self.employee_id,
            "employeeName": self.employee_name,
            "customerName": self.customer_name,
            "items": [item.to_dict() for item in self.items],
            "subtotal": to_amount(self.subtotal_cents),
            "tax": to_amount(self.tax_cents),
            "total": to_amount(self.total_cents),
            "paymentMethod": self.payment_method,
            "notes": self.notes,
            "printed": self.printed,
            "printedAt": to_utc_z(self.printed_at),
            "createdAt": to_utc_z(self.created_at),
        }


class TicketItem(db.Model):
    """Snapshot of a cart line at confirm time."""
    __tablename__ = "ticket_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey("tickets.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    product_code = db.Column(db.String(3), nullable=False)
    unit = db.Column(db.String(32), nullable=True)

    unit_price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    position = db.Column(db.Integer, nullable=False, default=0)

    ticket = db.relationship("Ticket", back_populates="items")

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
