"""Time and date formatting helpers.

Hours on projects and tasks are stored as whole seconds and edited in
forms as ``hh:mm:ss``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional


def format_seconds_hhmmss(seconds: Optional[float]) -> str:
    if not seconds:
        return "00:00:00"
    total = int(abs(seconds))
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def parse_hhmmss_seconds(text: Optional[str]) -> int:
    """Parse ``hh:mm:ss``; malformed or negative parts count as zero."""
    if not text or text.strip() == "00:00:00":
        return 0
    parts = text.strip().split(":")
    if len(parts) != 3:
        return 0
    values = []
    for part in parts:
        try:
            values.append(max(0, int(part)))
        except ValueError:
            values.append(0)
    h, m, s = values
    return h * 3600 + m * 60 + s


def format_hours_hhmmss(hours: Optional[float]) -> str:
    if not hours:
        return "00:00:00"
    return f"{int(abs(hours)):02d}:00:00"


def parse_hhmmss_hours(text: Optional[str]) -> int:
    """Parse ``hh:mm:ss`` to whole hours, rounded half up."""
    seconds = parse_hhmmss_seconds(text)
    return int(seconds / 3600 + 0.5)


def format_duration(seconds: Optional[float]) -> str:
    if not seconds:
        return "0h"
    hours = seconds / 3600
    if float(hours).is_integer():
        return f"{int(hours)}h"
    return f"{hours:.1f}h"


def parse_date(value: Any) -> Optional[date]:
    """Accept a date, datetime or ISO string; blanks and junk become None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def format_date_br(value: Any) -> str:
    d = parse_date(value)
    return d.strftime("%d/%m/%Y") if d else ""
