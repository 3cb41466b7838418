"""Immutable report configuration catalog."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class GroupingStrategy(str, Enum):
    AUTO = "auto"
    IDENTIFIER = "identifier"
    TEMPORAL = "temporal"


@dataclass(frozen=True)
class AgeBracket:
    """Age bracket in months. The upper bound is always inclusive."""

    label: str
    lower: float
    upper: Optional[float] = None
    include_lower: bool = False

    def contains(self, age_months: float) -> bool:
        if age_months < self.lower or (age_months == self.lower and not self.include_lower):
            return False
        return self.upper is None or age_months <= self.upper


@dataclass(frozen=True)
class SiteIdRange:
    """Numeric randomization-number range that belongs to one site."""

    low: int
    high: int
    site_name: str

    def matches(self, number: int) -> bool:
        return self.low <= number <= self.high


@dataclass(frozen=True)
class ReportConfig:
    known_sites: Tuple[str, ...] = ("Tongi", "Mirpur", "Korail", "Mirzapur")
    # substring -> canonical name; checked longest first
    site_aliases: Tuple[Tuple[str, str], ...] = (
        ("mirzapur", "Mirzapur"),
        ("mirpur", "Mirpur"),
        ("tongi", "Tongi"),
        ("korail", "Korail"),
    )
    age_brackets: Tuple[AgeBracket, ...] = (
        AgeBracket("6-12 Months", 6, 12, include_lower=True),
        AgeBracket("13-24 Months", 12, 24),
        AgeBracket("25-36 Months", 24, 36),
        AgeBracket("37-48 Months", 36, 48),
        AgeBracket(">48 Months", 48, None),
    )
    site_id_ranges: Tuple[SiteIdRange, ...] = field(default_factory=tuple)
    unassigned_site: str = "Unassigned"
    totals_label: str = "Total"
    header_scan_rows: int = 50
    same_episode_gap_days: int = 3
    swab_episode_gap_days: int = 10
    post_dose2_window_days: int = 30
    grouping: GroupingStrategy = GroupingStrategy.AUTO

    def canonical_site(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for needle, canonical in sorted(self.site_aliases, key=lambda item: -len(item[0])):
            if needle in lowered:
                return canonical
        return None

    def site_for_participant_number(self, participant_id: str) -> Optional[str]:
        digits = "".join(ch for ch in participant_id if ch.isdigit())
        if not digits or not self.site_id_ranges:
            return None
        number = int(digits)
        for id_range in self.site_id_ranges:
            if id_range.matches(number):
                return id_range.site_name
        return None

    def age_group_for(self, age_months: Optional[float]) -> Optional[str]:
        if age_months is None:
            return None
        for bracket in self.age_brackets:
            if bracket.contains(age_months):
                return bracket.label
        return None


DEFAULT_CONFIG = ReportConfig()

__all__ = ["AgeBracket", "DEFAULT_CONFIG", "GroupingStrategy", "ReportConfig", "SiteIdRange"]
