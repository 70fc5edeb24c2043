import logging
import re
import unicodedata
from datetime import date, datetime
from typing import Optional

logger = logging.getLogger(__name__)


MONTHS = {
    "enero": 1,
    "febrero": 2,
    "marzo": 3,
    "abril": 4,
    "mayo": 5,
    "junio": 6,
    "julio": 7,
    "agosto": 8,
    "septiembre": 9,
    "setiembre": 9,
    "octubre": 10,
    "noviembre": 11,
    "diciembre": 12,
}

# Spreadsheet headers wrap dates in {braces} or "quotes"
_WRAPPERS = " \t{}\"'“”‘’"

_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})\s*[/\-]\s*([a-záéíóúñ]+)\s*[/\-]\s*(\d{4})$")
_LONG_FORM = re.compile(r"^(\d{1,2})\s+de\s+([a-záéíóúñ]+)\s+de\s+(\d{4})$")
_MONTH_YEAR = re.compile(r"^([a-záéíóúñ]+)\s*[/\-]\s*(\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_NUMERIC = re.compile(r"^(\d{1,2})\s*[/\-]\s*(\d{1,3})\s*[/\-]\s*(\d{4})$")


def _resolve_month(raw: str) -> Optional[int]:
    stripped = "".join(
        c for c in unicodedata.normalize("NFD", raw) if unicodedata.category(c) != "Mn"
    )
    return MONTHS.get(stripped.lower())


def _iso(year: str, month: int, day: str) -> str:
    return f"{year}-{month:02d}-{int(day):02d}"


def parse_spanish_date(raw: Optional[str]) -> Optional[str]:
    """
    Spanish date text -> "YYYY-MM-DD", or None when it cannot be parsed.

    Accepts:
      - 11/febrero/2025, 11-febrero-2025
      - 08 de diciembre de 2025
      - diciembre/2025 (first day of the month)
      - 2025-02-11 (returned as is)
      - 02/02/2006 (day/month/year)
    """
    if not raw:
        return None

    s = raw.strip().lower().strip(_WRAPPERS)
    if not s:
        return None

    m = _ISO.match(s)
    if m:
        return s

    m = _DAY_MONTH_YEAR.match(s) or _LONG_FORM.match(s)
    if m:
        day, month_name, year = m.groups()
        month = _resolve_month(month_name)
        if not month:
            logger.warning("Unknown month name %r (input: %r)", month_name, raw)
            return None
        return _iso(year, month, day)

    m = _MONTH_YEAR.match(s)
    if m:
        month_name, year = m.groups()
        month = _resolve_month(month_name)
        if not month:
            logger.warning("Unknown month name %r (input: %r)", month_name, raw)
            return None
        return _iso(year, month, "1")

    m = _NUMERIC.match(s)
    if m:
        day, month_raw, year = m.groups()
        month = int(month_raw)
        if not 1 <= month <= 12:
            logger.warning("Invalid month number %r (input: %r)", month_raw, raw)
            return None
        return _iso(year, month, day)

    logger.warning("No date pattern matched for %r", raw)
    return None


def normalize_db_date(raw: Optional[str]) -> str:
    """
    Date as stored in the registry. Empty -> today; unparseable -> raw text.
    Never raises.
    """
    if not raw or not str(raw).strip():
        return date.today().isoformat()

    parsed = parse_spanish_date(str(raw))
    if parsed:
        return parsed

    try:
        return datetime.fromisoformat(str(raw).strip()).date().isoformat()
    except ValueError:
        return str(raw)


def to_date(raw: Optional[str]) -> Optional[date]:
    """Best-effort conversion to a date object (None when not possible)."""
    parsed = parse_spanish_date(raw)
    if not parsed:
        return None
    try:
        return date.fromisoformat(parsed)
    except ValueError:
        return None
