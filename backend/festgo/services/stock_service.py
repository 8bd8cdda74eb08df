# Overview: Service-layer operations for the per-bar stock ledger; encapsulates business logic and database work.

"""
Stock Ledger Invariants (authoritative)

- Stock is tracked per (bar, product) in StockAssignment.quantity.
- quantity >= 0 after every operation. Debits are a single conditional
  UPDATE ... SET quantity = quantity - n WHERE quantity >= n, so two
  concurrent debits can never both succeed against the same units, on any
  server instance.
- move debits the source before crediting the destination, inside one
  transaction. A failed debit raises before any credit is written.
- decrement() never commits; the caller owns the transaction (ticket
  confirm decrements every line and commits once, or rolls everything back).
- Every change appends a StockMovement row in the same transaction.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import InsufficientStock, NotFound, ServiceError, ValidationError
from ..models import Bar, Product, StockAssignment, StockMovement
from ..models.stock import (
    MOVEMENT_ADJUST,
    MOVEMENT_ASSIGN,
    MOVEMENT_MOVE,
    MOVEMENT_SALE,
    MOVEMENT_VOID,
)
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import begin_write, lock_for_update, run_with_retry


MAX_BULK_OPERATIONS = 500
RECENT_MOVEMENTS_LIMIT = 10

STOCK_NOTES_POLICY = ModelValidationPolicy(writable_fields={"notes"})


def _require_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        raise ValidationError(f"{field} must be an integer", details={field: value})
    return value


def _require_positive_int(value, field: str) -> int:
    value = _require_int(value, field)
    if value <= 0:
        raise ValidationError(f"{field} must be > 0", details={field: value})
    return value


def _clean_notes(notes) -> str | None:
    """Same rules as the StockAssignment.notes column (string, 255 chars max)."""
    return validate_payload(
        model=StockAssignment,
        payload={"notes": notes},
        policy=STOCK_NOTES_POLICY,
    )["notes"]


def _require_id(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} is required", details={field: value})


def _require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ValidationError(f"Product {product_id} not found", details={"productId": product_id})
    return product


def _require_bar(bar_id: int, field: str = "barId") -> Bar:
    bar = db.session.get(Bar, bar_id)
    if bar is None:
        raise ValidationError(f"Bar {bar_id} not found", details={field: bar_id})
    return bar


def get_quantity(bar_id: int, product_id: int) -> int:
    """Current quantity at a bar (0 when nothing was ever assigned)."""
    qty = db.session.execute(
        select(StockAssignment.quantity).where(
            StockAssignment.bar_id == bar_id,
            StockAssignment.product_id == product_id,
        )
    ).scalar()
    return int(qty or 0)


def get_event_quantity(event_id: int, product_id: int) -> int:
    """Quantity of a product summed over every bar of an event."""
    qty = db.session.execute(
        select(func.coalesce(func.sum(StockAssignment.quantity), 0))
        .join(Bar, Bar.id == StockAssignment.bar_id)
        .where(
            Bar.event_id == event_id,
            StockAssignment.product_id == product_id,
        )
    ).scalar()
    return int(qty or 0)


def _debit(product_id: int, bar_id: int, quantity: int) -> int:
    result = db.session.execute(
        update(StockAssignment)
        .where(
            StockAssignment.bar_id == bar_id,
            StockAssignment.product_id == product_id,
            StockAssignment.quantity >= quantity,
        )
        .values(quantity=StockAssignment.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = get_quantity(bar_id, product_id)
        raise InsufficientStock(
            f"Insufficient stock for product {product_id} at bar {bar_id}. "
            f"Available: {available}, requested: {quantity}",
            details={
                "productId": product_id,
                "barId": bar_id,
                "requested": quantity,
                "available": available,
            },
        )
    return get_quantity(bar_id, product_id)


def _credit(product_id: int, bar_id: int, quantity: int, notes: str | None = None) -> int:
    values = {"quantity": StockAssignment.quantity + quantity}
    if notes is not None:
        values["notes"] = notes
    result = db.session.execute(
        update(StockAssignment)
        .where(
            StockAssignment.bar_id == bar_id,
            StockAssignment.product_id == product_id,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # First allocation for this pair. A concurrent insert surfaces as
        # IntegrityError and the whole operation is retried.
        db.session.add(StockAssignment(
            product_id=product_id,
            bar_id=bar_id,
            quantity=quantity,
            notes=notes,
        ))
        db.session.flush()
    return get_quantity(bar_id, product_id)


def _record(movement_type: str, **fields) -> StockMovement:
    movement = StockMovement(type=movement_type, **fields)
    db.session.add(movement)
    db.session.flush()
    return movement


def decrement(
    product_id: int,
    bar_id: int,
    quantity: int,
    *,
    ticket_id: int | None = None,
    actor_id: str | None = None,
) -> int:
    """
    Atomically remove stock at a bar and return the new quantity.

    Does NOT commit. Raises InsufficientStock when the result would go
    negative, leaving the row untouched.
    """
    quantity = _require_positive_int(quantity, "quantity")
    new_qty = _debit(product_id, bar_id, quantity)
    _record(
        MOVEMENT_SALE,
        product_id=product_id,
        from_bar_id=bar_id,
        quantity=quantity,
        ticket_id=ticket_id,
        actor_id=actor_id,
    )
    return new_qty


def restock(
    product_id: int,
    bar_id: int,
    quantity: int,
    *,
    ticket_id: int | None = None,
    actor_id: str | None = None,
    notes: str | None = None,
) -> int:
    """Credit stock back (ticket void). Does NOT commit."""
    quantity = _require_positive_int(quantity, "quantity")
    new_qty = _credit(product_id, bar_id, quantity)
    _record(
        MOVEMENT_VOID,
        product_id=product_id,
        to_bar_id=bar_id,
        quantity=quantity,
        ticket_id=ticket_id,
        actor_id=actor_id,
        notes=notes,
    )
    return new_qty


def assign(
    product_id,
    bar_id,
    quantity,
    notes: str | None = None,
    actor_id: str | None = None,
) -> dict:
    """Add stock of a product to a bar. Returns the AssignmentRecord."""
    product_id = _require_id(product_id, "productId")
    bar_id = _require_id(bar_id, "barId")
    quantity = _require_positive_int(quantity, "quantity")
    notes = _clean_notes(notes)

    def _op():
        begin_write()
        _require_product(product_id)
        _require_bar(bar_id)

        current = _credit(product_id, bar_id, quantity, notes=notes)
        movement = _record(
            MOVEMENT_ASSIGN,
            product_id=product_id,
            to_bar_id=bar_id,
            quantity=quantity,
            notes=notes,
            actor_id=actor_id,
        )
        db.session.commit()
        return movement.to_assignment_record(current)

    return run_with_retry(_op, retry_on=(IntegrityError,))


def move(
    product_id,
    from_bar_id,
    to_bar_id,
    quantity,
    notes: str | None = None,
    actor_id: str | None = None,
) -> dict:
    """
    Move stock between two bars. Returns the MoveRecord.

    Both sides commit together or not at all.
    """
    product_id = _require_id(product_id, "productId")
    from_bar_id = _require_id(from_bar_id, "fromBarId")
    to_bar_id = _require_id(to_bar_id, "toBarId")
    quantity = _require_positive_int(quantity, "quantity")
    notes = _clean_notes(notes)

    if from_bar_id == to_bar_id:
        raise ValidationError("Cannot move stock to the same bar", details={"barId": from_bar_id})

    def _op():
        begin_write()
        _require_product(product_id)
        _require_bar(from_bar_id, "fromBarId")
        _require_bar(to_bar_id, "toBarId")

        _debit(product_id, from_bar_id, quantity)
        _credit(product_id, to_bar_id, quantity)
        movement = _record(
            MOVEMENT_MOVE,
            product_id=product_id,
            from_bar_id=from_bar_id,
            to_bar_id=to_bar_id,
            quantity=quantity,
            notes=notes,
            actor_id=actor_id,
        )
        db.session.commit()
        return movement.to_move_record()

    return run_with_retry(_op, retry_on=(IntegrityError,))


def query(bar_id: int | None = None, product_id: int | None = None) -> list[StockAssignment]:
    q = db.session.query(StockAssignment).populate_existing()
    if bar_id is not None:
        q = q.filter(StockAssignment.bar_id == bar_id)
    if product_id is not None:
        q = q.filter(StockAssignment.product_id == product_id)
    return q.order_by(StockAssignment.bar_id.asc(), StockAssignment.product_id.asc()).all()


def get_assignment(assignment_id: int, lock: bool = False) -> StockAssignment:
    q = db.session.query(StockAssignment).filter_by(id=assignment_id)
    if lock:
        q = lock_for_update(q).populate_existing()
    row = q.first()
    if row is None:
        raise NotFound(f"Stock assignment {assignment_id} not found")
    return row


def adjust(
    assignment_id: int,
    *,
    quantity=None,
    notes: str | None = None,
    actor_id: str | None = None,
) -> StockAssignment:
    """
    Absolute correction of an allocation (physical count, breakage).

    The signed difference is recorded as an adjust movement.
    """
    if quantity is not None:
        quantity = _require_int(quantity, "quantity")
        if quantity < 0:
            raise ValidationError("quantity must be >= 0", details={"quantity": quantity})
    notes = _clean_notes(notes)

    def _op():
        begin_write()
        row = get_assignment(assignment_id, lock=True)

        if quantity is not None and quantity != row.quantity:
            delta = quantity - row.quantity
            row.quantity = quantity
            _record(
                MOVEMENT_ADJUST,
                product_id=row.product_id,
                from_bar_id=row.bar_id if delta < 0 else None,
                to_bar_id=row.bar_id if delta > 0 else None,
                quantity=delta,
                notes=notes,
                actor_id=actor_id,
            )
        if notes is not None:
            row.notes = notes

        db.session.commit()
        return row

    return run_with_retry(_op)


def delete_assignment(assignment_id: int, actor_id: str | None = None) -> None:
    def _op():
        begin_write()
        row = get_assignment(assignment_id, lock=True)

        if row.quantity:
            _record(
                MOVEMENT_ADJUST,
                product_id=row.product_id,
                from_bar_id=row.bar_id,
                quantity=-row.quantity,
                notes="allocation removed",
                actor_id=actor_id,
            )
        db.session.delete(row)
        db.session.commit()

    run_with_retry(_op)


def stock_info() -> dict:
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)

    total_assignments = db.session.query(func.count(StockAssignment.id)).scalar() or 0
    total_products = db.session.query(
        func.count(func.distinct(StockAssignment.product_id))
    ).scalar() or 0
    low_stock = db.session.query(func.count(StockAssignment.id)).filter(
        StockAssignment.quantity < threshold
    ).scalar() or 0

    recent = db.session.query(StockMovement).filter(
        StockMovement.type == MOVEMENT_MOVE
    ).order_by(StockMovement.id.desc()).limit(RECENT_MOVEMENTS_LIMIT).all()

    return {
        "totalAssignments": int(total_assignments),
        "totalProducts": int(total_products),
        "lowStockItems": int(low_stock),
        "recentMovements": [m.to_move_record() for m in recent],
    }


def _run_bulk_operation(op, actor_id: str | None) -> dict:
    if not isinstance(op, dict):
        raise ValidationError("operation must be an object")

    op_type = op.get("type")
    if op_type == "assign":
        return assign(
            op.get("productId"),
            op.get("barId"),
            op.get("quantity"),
            notes=op.get("notes"),
            actor_id=actor_id,
        )
    if op_type == "move":
        return move(
            op.get("productId"),
            op.get("fromBarId"),
            op.get("toBarId"),
            op.get("quantity"),
            notes=op.get("notes"),
            actor_id=actor_id,
        )
    raise ValidationError(f"Unknown operation type: {op_type!r}")


def bulk(operations, actor_id: str | None = None) -> dict:
    """
    Best-effort batch of assign/move operations.

    Each operation runs in its own transaction; a failure is recorded in
    its result and never aborts the siblings.
    """
    if not isinstance(operations, list) or not operations:
        raise ValidationError("operations must be a non-empty list")
    if len(operations) > MAX_BULK_OPERATIONS:
        raise ValidationError(f"At most {MAX_BULK_OPERATIONS} operations per request")

    results = []
    successful = 0
    for op in operations:
        op_type = op.get("type") if isinstance(op, dict) else None
        try:
            record = _run_bulk_operation(op, actor_id)
        except ServiceError as exc:
            db.session.rollback()
            results.append({"operation": op_type, "status": "error", "message": exc.message})
            continue
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Bulk stock operation failed: %r", op)
            results.append({"operation": op_type, "status": "error", "message": "Internal error"})
            continue

        successful += 1
        results.append({"operation": op_type, "id": record["id"], "status": "success"})

    return {
        "processed": len(operations),
        "successful": successful,
        "failed": len(operations) - successful,
        "results": results,
    }
