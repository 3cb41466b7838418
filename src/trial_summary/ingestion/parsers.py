"""Cell, date and age parsers for loosely typed spreadsheet values.

Every parser here is best-effort: unparseable input yields ``None`` and never
raises, so a single malformed cell only blanks that field.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from openpyxl.utils.datetime import from_excel

from ..config import DEFAULT_CONFIG, ReportConfig

_MISSING_MARKERS = {"", "n/a"}
_DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})[./-](\d{1,2})[./-](\d{4})$")
_YEARS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*Y", re.IGNORECASE)
_MONTHS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*M", re.IGNORECASE)
_BARE_NUMBER_PATTERN = re.compile(r"^\d+(?:\.\d+)?$")


def cell_text(value: Any) -> str:
    """Render a raw cell as trimmed text; ``None`` becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_date(value: Any) -> Optional[date]:
    """Normalize a cell to a calendar date (UTC, time stripped)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError, TypeError):
            return None
        if isinstance(converted, datetime):
            return converted.date()
        return converted if isinstance(converted, date) else None
    if isinstance(value, str):
        return _parse_date_text(value)
    return None


def _parse_date_text(text: str) -> Optional[date]:
    cleaned = text.strip()
    if cleaned.lower() in _MISSING_MARKERS:
        return None

    iso_candidate = cleaned[:-1] + "+00:00" if cleaned.endswith(("Z", "z")) else cleaned
    try:
        parsed = datetime.fromisoformat(iso_candidate)
    except ValueError:
        parsed = None
    if parsed is not None:
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()

    match = _DAY_FIRST_PATTERN.match(cleaned)
    if match:
        day, month, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None


def parse_age_months(value: Any) -> Optional[float]:
    """Convert ages such as ``"1Y 8M"``, ``"6M"`` or ``"18"`` into months."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None

    text = str(value).strip()
    if not text:
        return None

    years = _YEARS_PATTERN.search(text)
    months = _MONTHS_PATTERN.search(text)
    if years or months:
        total = 0.0
        if years:
            total += float(years.group(1)) * 12
        if months:
            total += float(months.group(1))
        return total

    if _BARE_NUMBER_PATTERN.match(text):
        return float(text)
    return None


def normalize_site_name(raw: Any, config: ReportConfig = DEFAULT_CONFIG) -> str:
    """Trim and title-case a site name, mapping known-site variants to one spelling."""
    text = cell_text(raw)
    if not text:
        return ""
    canonical = config.canonical_site(text)
    if canonical:
        return canonical
    return " ".join(text.split()).title()


def normalize_strain(raw: Any) -> str:
    """Collapse whitespace in a strain name; compare with ``.casefold()``."""
    return " ".join(cell_text(raw).split())


__all__ = ["cell_text", "normalize_site_name", "normalize_strain", "parse_age_months", "parse_date"]
