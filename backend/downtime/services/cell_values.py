from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser
from openpyxl.utils.datetime import from_excel

logger = logging.getLogger(__name__)

DURATION_FALLBACK_MAX = 100.0


def as_number(value: Any) -> float | None:
    """Return the value as a finite float when it is numeric, else ``None``.

    Text that reads as a number counts; delimited files hand every cell back
    as a string.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        try:
            number = float(raw)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def cell_text(value: Any) -> str | None:
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def normalize_date(value: Any, *, dayfirst: bool = False) -> date | None:
    """Convert a serial number, date object or date text into a calendar date.

    Returns ``None`` for empty cells and for anything that does not parse.
    """
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        serial = as_number(value)
        if serial is not None:
            if serial == 0:
                return None
            if serial < 0:
                raise ValueError(f"negative date serial {serial}")
            return from_excel(serial).date()
        if isinstance(value, str):
            return date_parser.parse(value.strip(), dayfirst=dayfirst).date()
    except (ValueError, OverflowError) as exc:
        logger.warning("Failed to parse date: %r. Error: %s", value, exc)
        return None
    logger.warning("Failed to parse date: %r. Error: unsupported cell type", value)
    return None


def resolve_duration(
    row: Sequence[Any],
    duration_index: int | None,
    *,
    fallback_max: float = DURATION_FALLBACK_MAX,
) -> float | None:
    """Read the stop duration in hours.

    The mapped column wins when it holds a non-negative number. Otherwise the
    first number strictly between 0 and ``fallback_max`` anywhere in the row is
    taken.
    """
    if duration_index is not None and 0 <= duration_index < len(row):
        direct = as_number(row[duration_index])
        if direct is not None and direct >= 0:
            return direct
    for cell in row:
        number = as_number(cell)
        if number is not None and 0 < number < fallback_max:
            return number
    return None
