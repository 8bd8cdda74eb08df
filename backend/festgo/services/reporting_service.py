# Overview: Service-layer operations for reporting; read-only sales projections over issued tickets.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import extract, func

from ..extensions import db
from ..errors import NotFound, ValidationError
from ..models import Bar, Ticket, TicketItem
from ..models.tickets import TICKET_STATUS_ISSUED
from ..money import to_amount
from ..time_utils import hour_bucket, parse_iso_datetime


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 datetimes")
    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("start must be before end")
    return start_dt, end_dt


def _ticket_filters(bar_id: int, start_dt, end_dt) -> list:
    filters = [
        Ticket.bar_id == bar_id,
        Ticket.status == TICKET_STATUS_ISSUED,
    ]
    if start_dt:
        filters.append(Ticket.created_at >= start_dt)
    if end_dt:
        filters.append(Ticket.created_at <= end_dt)
    return filters


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part * 100 / whole, 2)


def _product_rows(rows) -> list[dict]:
    rows = list(rows)
    revenue_total = sum(int(row.revenue or 0) for row in rows)
    products = [
        {
            "productId": row.product_id,
            "productName": row.product_name,
            "quantitySold": int(row.quantity or 0),
            "revenue": to_amount(int(row.revenue or 0)),
            "percentage": _percentage(int(row.revenue or 0), revenue_total),
        }
        for row in rows
    ]
    products.sort(key=lambda p: (-p["revenue"], p["productId"]))
    return products


def summarize(bar_id: int, start: str | None = None, end: str | None = None) -> dict:
    """
    Sales summary for one bar.

    - totalSales: units sold
    - totalRevenue: sum of ticket totals (tax included)
    - productsSold[].percentage: share of the bar's product revenue
    - hourlyDistribution: hour-of-day buckets ("HH:00") across all days
    Tolerates an empty ticket set (zeros and empty lists).
    """
    bar = db.session.get(Bar, bar_id)
    if bar is None:
        raise NotFound(f"Bar {bar_id} not found")

    start_dt, end_dt = _parse_range(start, end)
    filters = _ticket_filters(bar_id, start_dt, end_dt)

    ticket_count, revenue_cents = db.session.query(
        func.count(Ticket.id),
        func.coalesce(func.sum(Ticket.total_cents), 0),
    ).filter(*filters).one()
    ticket_count = int(ticket_count or 0)
    revenue_cents = int(revenue_cents or 0)

    item_query = db.session.query(
        TicketItem.product_id.label("product_id"),
        func.max(TicketItem.product_name).label("product_name"),
        func.coalesce(func.sum(TicketItem.quantity), 0).label("quantity"),
        func.coalesce(func.sum(TicketItem.line_total_cents), 0).label("revenue"),
    ).join(Ticket, Ticket.id == TicketItem.ticket_id).filter(*filters)

    product_rows = item_query.group_by(TicketItem.product_id).all()
    units_sold = sum(int(row.quantity or 0) for row in product_rows)

    by_method_rows = db.session.query(
        Ticket.payment_method.label("payment_method"),
        TicketItem.product_id.label("product_id"),
        func.max(TicketItem.product_name).label("product_name"),
        func.coalesce(func.sum(TicketItem.quantity), 0).label("quantity"),
        func.coalesce(func.sum(TicketItem.line_total_cents), 0).label("revenue"),
    ).join(Ticket, Ticket.id == TicketItem.ticket_id).filter(*filters).group_by(
        Ticket.payment_method, TicketItem.product_id
    ).all()

    grouped: dict[str, list] = {}
    for row in by_method_rows:
        grouped.setdefault(row.payment_method, []).append(row)
    products_by_method = {method: _product_rows(rows) for method, rows in sorted(grouped.items())}

    sales_by_method = {
        row.payment_method: to_amount(int(row.total or 0))
        for row in db.session.query(
            Ticket.payment_method.label("payment_method"),
            func.coalesce(func.sum(Ticket.total_cents), 0).label("total"),
        ).filter(*filters).group_by(Ticket.payment_method).order_by(Ticket.payment_method).all()
    }

    user_rows = db.session.query(
        Ticket.employee_id.label("employee_id"),
        func.max(Ticket.employee_name).label("employee_name"),
        func.count(Ticket.id).label("ticket_count"),
        func.coalesce(func.sum(Ticket.total_cents), 0).label("total"),
    ).filter(*filters).group_by(Ticket.employee_id).all()
    sales_by_user = sorted(
        (
            {
                "userId": row.employee_id,
                "userName": row.employee_name or row.employee_id,
                "ticketCount": int(row.ticket_count or 0),
                "totalSales": to_amount(int(row.total or 0)),
            }
            for row in user_rows
        ),
        key=lambda u: (-u["totalSales"], u["userId"]),
    )

    hour_expr = extract("hour", Ticket.created_at)
    hourly_rows = db.session.query(
        hour_expr.label("hour"),
        func.count(Ticket.id).label("ticket_count"),
        func.coalesce(func.sum(Ticket.total_cents), 0).label("revenue"),
    ).filter(*filters).group_by(hour_expr).order_by(hour_expr).all()
    hourly = [
        {
            "hour": hour_bucket(row.hour),
            "ticketCount": int(row.ticket_count or 0),
            "revenue": to_amount(int(row.revenue or 0)),
        }
        for row in hourly_rows
    ]

    return {
        "bar": bar.to_dict(),
        "totalSales": units_sold,
        "totalTickets": ticket_count,
        "totalRevenue": to_amount(revenue_cents),
        "averageTicketValue": round(revenue_cents / ticket_count / 100, 2) if ticket_count else 0.0,
        "productsSold": _product_rows(product_rows),
        "productsSoldByPaymentMethod": products_by_method,
        "salesByUser": sales_by_user,
        "salesByPaymentMethod": sales_by_method,
        "hourlyDistribution": hourly,
    }
