"""Core data models for the trial summary report."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple


@dataclass(slots=True)
class Participant:
    """An enrolled participant, keyed by randomization number."""

    participant_id: str
    site_name: str
    dose1_date: Optional[date] = None
    dose2_date: Optional[date] = None
    age_months: Optional[float] = None


@dataclass(slots=True)
class RawEvent:
    """One laboratory sample row from the events file."""

    participant_id: str
    event_date: date
    culture_result_raw: str
    sample_identifier: str
    site_fallback: str
    row_index: int
    pcr_result_raw: str = ""
    strain: str = ""
    age_months: Optional[float] = None
    is_swab: bool = False
    event_no_site: str = ""


@dataclass(slots=True)
class EventBatch:
    """Events extracted from one file plus the column conventions it used."""

    events: List[RawEvent]
    has_episode_identifiers: bool = False


@dataclass(frozen=True, slots=True)
class GroupKey:
    participant_id: str
    normalized_identifier: str

    def __str__(self) -> str:
        return f"{self.participant_id}-{self.normalized_identifier}"


@dataclass(slots=True)
class Episode:
    """A clinically distinct diarrheal incident built from one or more samples."""

    key: GroupKey
    event_date: date
    culture_positive: bool
    site_fallback: str
    pcr_result: str = ""
    pcr_rank: int = 0
    strain: str = ""
    age_months: Optional[float] = None
    event_no_site: str = ""
    stool_count: int = 0
    swab_count: int = 0
    samples: List[RawEvent] = field(default_factory=list)
    participant_episode_count: int = 1

    @property
    def participant_id(self) -> str:
        return self.key.participant_id

    @property
    def culture_result(self) -> str:
        return "Positive" if self.culture_positive else "Negative"

    @property
    def has_pcr_result(self) -> bool:
        return self.pcr_rank > 0

    @property
    def pcr_positive(self) -> bool:
        return self.pcr_rank >= 2


class DoseWindow(str, Enum):
    AFTER_DOSE_1 = "After 1st Dose"
    AFTER_DOSE_2 = "After 2nd Dose"
    AFTER_30_DAYS_DOSE_2 = "After 30 Days of 2nd Dose"
    PRE_DOSE = "Pre-Dose 1"
    UNMAPPED = "No Dose 1 Date"

    @property
    def is_counted(self) -> bool:
        return self in COUNTED_WINDOWS

    @property
    def label(self) -> str:
        return self.value


COUNTED_WINDOWS = (DoseWindow.AFTER_DOSE_1, DoseWindow.AFTER_DOSE_2, DoseWindow.AFTER_30_DAYS_DOSE_2)


class _Additive:
    """Mixin for summaries whose integer fields add column-wise."""

    __slots__ = ()

    def add(self, other) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(self, item.name, value + getattr(other, item.name))


@dataclass(slots=True)
class SiteSummary(_Additive):
    site_name: str
    enrollment: int = 0
    total_diarrheal_events: int = 0
    reported_events_count: int = 0
    participants_with_events: int = 0
    after_1st_dose_events: int = 0
    after_1st_dose_culture_positive: int = 0
    after_2nd_dose_events: int = 0
    after_2nd_dose_culture_positive: int = 0
    after_30_days_2nd_dose_events: int = 0
    after_30_days_2nd_dose_culture_positive: int = 0

    def record_window(self, window: DoseWindow, positive: bool) -> None:
        prefix = _WINDOW_PREFIX[window]
        _bump(self, f"{prefix}_events")
        if positive:
            _bump(self, f"{prefix}_culture_positive")


@dataclass(slots=True)
class PcrSummary(_Additive):
    site_name: str
    total_tests: int = 0
    total_positive: int = 0
    after_1st_dose_tests: int = 0
    after_1st_dose_positive: int = 0
    after_2nd_dose_tests: int = 0
    after_2nd_dose_positive: int = 0
    after_30_days_tests: int = 0
    after_30_days_positive: int = 0

    def record_window(self, window: DoseWindow, positive: bool) -> None:
        prefix = _PCR_WINDOW_PREFIX[window]
        _bump(self, f"{prefix}_tests")
        if positive:
            _bump(self, f"{prefix}_positive")


@dataclass(slots=True)
class AgeSummary:
    age_group: str
    total_events: int = 0
    culture_positive: int = 0
    after_1st_dose_events: int = 0
    after_1st_dose_culture_positive: int = 0
    after_2nd_dose_events: int = 0
    after_2nd_dose_culture_positive: int = 0
    after_30_days_2nd_dose_events: int = 0
    after_30_days_2nd_dose_culture_positive: int = 0

    def record_window(self, window: DoseWindow, positive: bool) -> None:
        prefix = _WINDOW_PREFIX[window]
        _bump(self, f"{prefix}_events")
        if positive:
            _bump(self, f"{prefix}_culture_positive")


@dataclass(slots=True)
class StrainSummary:
    strain_name: str
    total: int = 0
    after_1st_dose: int = 0
    after_2nd_dose: int = 0
    after_30_days_2nd_dose: int = 0

    def record_window(self, window: DoseWindow) -> None:
        _bump(self, _WINDOW_PREFIX[window])


@dataclass(slots=True)
class DetailedParticipantEvent:
    site: str
    participant_id: str
    collection_date: str
    dose_category: str
    culture_result: str
    shigella_strain: str
    pcr_result: str
    age_months: str
    participant_total_events: int
    stools_collected: int
    rectal_swabs_collected: int


@dataclass(frozen=True, slots=True)
class EpisodeHistoryEntry:
    date: str
    result: str
    stage: str
    strain: str = ""


@dataclass(slots=True)
class RecurrentCase:
    participant_id: str
    site_name: str
    total_episodes: int
    culture_positives: int
    has_persistent_pathogen: bool
    history: List[EpisodeHistoryEntry] = field(default_factory=list)


@dataclass(slots=True)
class Concordance:
    """Culture versus RT-PCR agreement across episodes with a determinate PCR."""

    total_episodes: int = 0
    culture_pos_pcr_pos: int = 0
    culture_neg_pcr_pos: int = 0
    culture_pos_pcr_neg: int = 0
    both_negative: int = 0


@dataclass(slots=True)
class SpecimenCount:
    count: int = 0
    culture_positive: int = 0


@dataclass(slots=True)
class SpecimenYield:
    stool: SpecimenCount = field(default_factory=SpecimenCount)
    swab: SpecimenCount = field(default_factory=SpecimenCount)


@dataclass(frozen=True)
class SummaryData:
    """Final report handed to renderers; treat as read-only."""

    sites: Tuple[SiteSummary, ...]
    totals: SiteSummary
    strains: Tuple[StrainSummary, ...]
    pcr_sites: Tuple[PcrSummary, ...]
    pcr_totals: PcrSummary
    age_distribution: Tuple[AgeSummary, ...]
    detailed_events: Tuple[DetailedParticipantEvent, ...]
    recurrent_cases: Tuple[RecurrentCase, ...]
    unmapped_events: int
    concordance: Concordance = field(default_factory=Concordance)
    specimen_yield: SpecimenYield = field(default_factory=SpecimenYield)

    def site(self, name: str) -> SiteSummary:
        for summary in self.sites:
            if summary.site_name == name:
                return summary
        raise KeyError(f"No site summary for '{name}'")

    def pcr_site(self, name: str) -> PcrSummary:
        for summary in self.pcr_sites:
            if summary.site_name == name:
                return summary
        raise KeyError(f"No RT-PCR summary for '{name}'")


_WINDOW_PREFIX: Dict[DoseWindow, str] = {
    DoseWindow.AFTER_DOSE_1: "after_1st_dose",
    DoseWindow.AFTER_DOSE_2: "after_2nd_dose",
    DoseWindow.AFTER_30_DAYS_DOSE_2: "after_30_days_2nd_dose",
}

_PCR_WINDOW_PREFIX: Dict[DoseWindow, str] = {
    DoseWindow.AFTER_DOSE_1: "after_1st_dose",
    DoseWindow.AFTER_DOSE_2: "after_2nd_dose",
    DoseWindow.AFTER_30_DAYS_DOSE_2: "after_30_days",
}


def _bump(target, attribute: str) -> None:
    setattr(target, attribute, getattr(target, attribute) + 1)


__all__ = [
    "AgeSummary",
    "COUNTED_WINDOWS",
    "Concordance",
    "DetailedParticipantEvent",
    "DoseWindow",
    "Episode",
    "EpisodeHistoryEntry",
    "EventBatch",
    "GroupKey",
    "Participant",
    "PcrSummary",
    "RawEvent",
    "RecurrentCase",
    "SiteSummary",
    "SpecimenCount",
    "SpecimenYield",
    "StrainSummary",
    "SummaryData",
]
