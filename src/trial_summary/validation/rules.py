"""Row eligibility rules for the events file."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

_SAMPLE_PREFIX = re.compile(r"^(\d|RS)", re.IGNORECASE)
_SWAB_MARKER = re.compile(r"(^RS|\bRS\b|swab)", re.IGNORECASE)


@dataclass(slots=True)
class RowCheck:
    """Outcome of checking one events-file row."""

    row_index: int
    is_eligible: bool
    reasons: List[str] = field(default_factory=list)

    def summary(self) -> str:
        if self.is_eligible:
            return f"row {self.row_index}: eligible"
        return f"row {self.row_index}: skipped - {'; '.join(self.reasons)}"


def looks_like_sample_number(value: str) -> bool:
    """Sample rows start with a digit or an "RS" marker; footer rows say "total"."""
    text = value.strip()
    if not text or "total" in text.lower():
        return False
    return bool(_SAMPLE_PREFIX.match(text))


def is_swab_specimen(sample_number: str, specimen_type: str = "") -> bool:
    return bool(_SWAB_MARKER.search(sample_number.strip()) or _SWAB_MARKER.search(specimen_type.strip()))


class SampleRowValidator:
    """Decides whether an events-file row is a lab sample or a footer/summary row."""

    def __init__(self, has_sample_column: bool) -> None:
        self.has_sample_column = has_sample_column

    def check(
        self,
        row_index: int,
        participant_id: str,
        event_date: Optional[date],
        sample_number: str = "",
    ) -> RowCheck:
        reasons: List[str] = []

        if not participant_id:
            reasons.append("missing participant id")
        if event_date is None:
            reasons.append("collection date missing or unparseable")
        if self.has_sample_column and not looks_like_sample_number(sample_number):
            reasons.append(f"'{sample_number}' is not a sample number")

        return RowCheck(row_index=row_index, is_eligible=not reasons, reasons=reasons)


__all__ = ["RowCheck", "SampleRowValidator", "is_swab_specimen", "looks_like_sample_number"]
