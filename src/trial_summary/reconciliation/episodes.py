"""Group lab samples into clinical episodes."""
from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from ..config import DEFAULT_CONFIG, GroupingStrategy, ReportConfig
from ..models import Episode, EventBatch, GroupKey, RawEvent

_DAY_SUFFIX = re.compile(r"(,\s*Day[-\s]?\d+|\s*\(Day[-\s]?\d+\)|\s+Day[-\s]?\d+)", re.IGNORECASE)
_PENDING_VALUES = {"", "pending", "n/a", "na", "null", "-"}
_NEGATED_DETECTION = re.compile(r"\b(?:not|non|no|un)[\s-]?detect")

logger = logging.getLogger(__name__)


def normalize_episode_identifier(identifier: str) -> str:
    """Strip day suffixes so "E007, Day-2" and "E007 (Day-2)" both become "E007"."""
    return _DAY_SUFFIX.sub("", identifier).strip()


def episode_group_key(participant_id: str, identifier: str) -> GroupKey:
    return GroupKey(participant_id=participant_id.strip(), normalized_identifier=normalize_episode_identifier(identifier))


def is_culture_positive(raw_result: str) -> bool:
    text = raw_result.strip().lower()
    return "pos" in text or text == "1"


def pcr_rank(raw_result: str) -> int:
    """Rank a PCR result: 2 positive, 1 negative/other determinate, 0 missing or pending."""
    text = raw_result.strip().lower()
    if text in _PENDING_VALUES:
        return 0
    if _NEGATED_DETECTION.search(text):
        return 1
    if "pos" in text or "detect" in text or text in {"1", "true"}:
        return 2
    return 1


class EpisodeReconciler:
    """Merges a participant's samples into episodes using one grouping strategy."""

    def __init__(self, config: ReportConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def strategy_for(self, batch: EventBatch) -> GroupingStrategy:
        if self.config.grouping is not GroupingStrategy.AUTO:
            return self.config.grouping
        return GroupingStrategy.IDENTIFIER if batch.has_episode_identifiers else GroupingStrategy.TEMPORAL

    def reconcile(self, batch: EventBatch) -> List[Episode]:
        strategy = self.strategy_for(batch)
        by_participant: Dict[str, List[RawEvent]] = defaultdict(list)
        for event in batch.events:
            by_participant[event.participant_id].append(event)

        episodes: List[Episode] = []
        for participant_id in sorted(by_participant):
            ordered = sorted(by_participant[participant_id], key=lambda item: (item.event_date, item.row_index))
            if strategy is GroupingStrategy.IDENTIFIER:
                groups = self._group_by_identifier(ordered)
            else:
                groups = self._group_by_proximity(ordered)
            merged = [self._merge(key, members) for key, members in groups.items()]
            merged.sort(key=lambda item: (item.event_date, item.key.normalized_identifier))
            for episode in merged:
                episode.participant_episode_count = len(merged)
            episodes.extend(merged)

        logger.info(
            "Reconciled %d samples into %d episodes using %s grouping",
            len(batch.events),
            len(episodes),
            strategy.value,
        )
        return episodes

    def _group_by_identifier(self, events: Iterable[RawEvent]) -> Dict[GroupKey, List[RawEvent]]:
        groups: Dict[GroupKey, List[RawEvent]] = {}
        for event in events:
            groups.setdefault(episode_group_key(event.participant_id, event.sample_identifier), []).append(event)
        return groups

    def _group_by_proximity(self, events: List[RawEvent]) -> Dict[GroupKey, List[RawEvent]]:
        groups: Dict[GroupKey, List[RawEvent]] = {}
        current: Optional[List[RawEvent]] = None
        previous: Optional[RawEvent] = None

        for event in events:
            if current is None or previous is None or not self._same_episode(previous, event):
                key = episode_group_key(event.participant_id, f"{event.event_date.isoformat()}#{event.sample_identifier}")
                current = groups.setdefault(key, [])
            current.append(event)
            previous = event
        return groups

    def _same_episode(self, previous: RawEvent, event: RawEvent) -> bool:
        gap = (event.event_date - previous.event_date).days
        limit = self.config.swab_episode_gap_days if previous.is_swab or event.is_swab else self.config.same_episode_gap_days
        return gap <= limit

    def _merge(self, key: GroupKey, members: List[RawEvent]) -> Episode:
        positives = [member for member in members if is_culture_positive(member.culture_result_raw)]
        best_pcr = max(members, key=lambda member: pcr_rank(member.pcr_result_raw))
        strain_source = next((member.strain for member in positives if member.strain), "")
        if not strain_source:
            strain_source = next((member.strain for member in members if member.strain), "")

        swabs = sum(1 for member in members if member.is_swab)
        return Episode(
            key=key,
            event_date=min(member.event_date for member in members),
            culture_positive=bool(positives),
            site_fallback=members[0].site_fallback,
            pcr_result=best_pcr.pcr_result_raw,
            pcr_rank=pcr_rank(best_pcr.pcr_result_raw),
            strain=strain_source,
            age_months=next((member.age_months for member in members if member.age_months is not None), None),
            event_no_site=next((member.event_no_site for member in members if member.event_no_site), ""),
            stool_count=len(members) - swabs,
            swab_count=swabs,
            samples=list(members),
        )


__all__ = [
    "EpisodeReconciler",
    "episode_group_key",
    "is_culture_positive",
    "normalize_episode_identifier",
    "pcr_rank",
]
