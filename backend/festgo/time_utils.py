from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


RECEIPT_DATE_FORMAT = "%Y-%m-%d"
RECEIPT_TIME_FORMAT = "%H:%M:%S"


def utcnow() -> datetime:
    """Server clock in UTC, stored naive. Every timestamp column uses this."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a sales-range bound or an event start time.

    Blank -> None. A bare date means midnight. Offsets (including "Z") are
    converted to UTC; naive values are taken as UTC already.
    Raises ValueError on anything else.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """API timestamp: whole seconds with a trailing 'Z'."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return f"{dt.replace(microsecond=0).isoformat()}Z"


def ticket_day(dt: datetime) -> str:
    """Compact day stamp embedded in ticket numbers (YYYYMMDD)."""
    return dt.strftime("%Y%m%d")


def receipt_date(dt: Optional[datetime]) -> Optional[str]:
    return dt.strftime(RECEIPT_DATE_FORMAT) if dt else None


def receipt_time(dt: Optional[datetime]) -> Optional[str]:
    return dt.strftime(RECEIPT_TIME_FORMAT) if dt else None


def receipt_datetime(dt: Optional[datetime]) -> Optional[str]:
    return dt.strftime(f"{RECEIPT_DATE_FORMAT} {RECEIPT_TIME_FORMAT}") if dt else None


def hour_bucket(hour) -> str:
    # Hour of day from SQL EXTRACT, which may come back as float or Decimal.
    return f"{int(hour):02d}:00"
