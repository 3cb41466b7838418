"""Column synonym catalog for the participant and events files."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List

_AGE_WORD = re.compile(r"(?<![a-z])age(?![a-z])")
_AGE_HEADERS = ["Age", "Age (Months)", "Age in Months", "Age (M)"]


@dataclass(frozen=True, slots=True)
class ColumnAliases:
    """Maps canonical column names to the header spellings seen in trial exports."""

    participant_required: List[str] = field(default_factory=lambda: ["site", "participant_id", "visit", "date"])
    event_required: List[str] = field(default_factory=lambda: ["participant_id", "date", "result"])
    participant_aliases: Dict[str, List[str]] = field(
        default_factory=lambda: {
            "site": ["Site Name", "Site"],
            "participant_id": ["Randomization Number", "Rand#", "ID"],
            "visit": ["Visit Name", "Visit"],
            "date": ["Actual Date", "Date"],
            "age": list(_AGE_HEADERS),
        }
    )
    event_aliases: Dict[str, List[str]] = field(
        default_factory=lambda: {
            "participant_id": ["Rand# ID", "ID"],
            "date": ["Collection Date", "Date"],
            "result": ["Result"],
            "sample_no": ["Culture No", "C.No"],
            "strain": ["Shigella Strain", "Strain"],
            "pcr": ["RT-PCR result", "PCR"],
            "pcr_episode_no": ["PCR Episode No", "PCR No"],
            "place": ["Place", "Site", "Site Name"],
            "episode": ["Site specific Participants", "Site Number & Episode", "Episode ID", "Episode No"],
            "event_no_site": ["Event No (Site)"],
            "specimen": ["Specimen Type", "Sample Type"],
            "age": list(_AGE_HEADERS),
        }
    )

    def participant_groups(self) -> List[List[str]]:
        return [self.participant_aliases[name] for name in self.participant_required]

    def event_groups(self) -> List[List[str]]:
        return [self.event_aliases[name] for name in self.event_required]


def is_age_header(lowered_header: str) -> bool:
    """Fallback for age columns: "age" as a word, so "Sample Storage" or "Average" never match."""
    return bool(_AGE_WORD.search(lowered_header))


DEFAULT_ALIASES = ColumnAliases()

__all__ = ["ColumnAliases", "DEFAULT_ALIASES", "is_age_header"]
