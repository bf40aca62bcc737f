"""
Date helpers

Stored dates arrive in several shapes: ISO strings, epoch milliseconds,
timestamp objects ({"seconds": n}), and long-form Spanish strings such as
"30 de agosto de 2025, 10:10:00 a.m. UTC-5". Everything is normalized to
timezone-aware UTC datetimes.
"""
import logging
import math
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


SPANISH_MONTHS = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
}

_SPANISH_DATE = re.compile(
    r"^(\d{1,2})\s+de\s+(\w+)\s+de\s+(\d{4}),\s+(\d{1,2}):(\d{2}):(\d{2})\s+(a\.m\.|p\.m\.)"
    r"(?:\s*UTC([+-]\d{1,2}))?$",
    re.IGNORECASE,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_spanish_date(value: str) -> Optional[datetime]:
    """Parse "30 de agosto de 2025, 10:10:00 a.m. UTC-5" style strings."""
    match = _SPANISH_DATE.match(value.strip())
    if not match:
        return None

    day, month_name, year, hour, minute, second, period, offset = match.groups()
    month = SPANISH_MONTHS.get(month_name.lower())
    if month is None:
        logger.warning(f"Unknown Spanish month: {month_name}")
        return None

    hour24 = int(hour)
    is_pm = period.lower() == "p.m."
    if is_pm and hour24 != 12:
        hour24 += 12
    elif not is_pm and hour24 == 12:
        hour24 = 0

    tz = timezone(timedelta(hours=int(offset))) if offset else timezone.utc
    try:
        parsed = datetime(int(year), month, int(day), hour24, int(minute), int(second), tzinfo=tz)
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc)


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse any supported date representation.

    Returns None for missing or unparseable values and for the epoch itself,
    which older records use as "no date".
    """
    if value is None or value == "":
        return None

    parsed: Optional[datetime] = None

    if isinstance(value, datetime):
        parsed = to_utc(value)
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min, tzinfo=timezone.utc)
    elif isinstance(value, dict) and "seconds" in value:
        try:
            parsed = datetime.fromtimestamp(value["seconds"], tz=timezone.utc)
        except (OverflowError, OSError, ValueError, TypeError):
            logger.debug(f"Unparseable timestamp value: {value!r}")
            return None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if math.isnan(value):
            return None
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Epoch value out of range: {value!r}")
            return None
    elif isinstance(value, str):
        parsed = parse_spanish_date(value)
        if parsed is None:
            try:
                parsed = to_utc(date_parser.parse(value))
            except (ValueError, OverflowError):
                logger.debug(f"Unparseable date value: {value!r}")
                return None

    if parsed is None or parsed.timestamp() == 0:
        return None
    return parsed


def is_past(value: Any, now: Optional[datetime] = None) -> bool:
    """True when the value parses and lies strictly before `now`."""
    parsed = parse_date(value)
    if parsed is None:
        return False
    return parsed < to_utc(now or utcnow())


def format_date(value: Any, fmt: str = "%Y-%m-%d") -> str:
    parsed = parse_date(value)
    if parsed is None:
        return "Fecha no disponible"
    return parsed.strftime(fmt)


def format_file_size(size: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    scaled = round(size / (1024 ** exponent), 2)
    # Drop trailing zeros: 2.0 -> 2, 1.50 -> 1.5
    return f"{scaled:g} {units[exponent]}"
