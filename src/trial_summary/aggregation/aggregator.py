"""Fold participants and classified episodes into the summary report."""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Dict, Iterable, List, Optional, Set

from ..classification.dose_window import classify_for_participant
from ..config import DEFAULT_CONFIG, ReportConfig
from ..models import (
    AgeSummary,
    Concordance,
    DetailedParticipantEvent,
    DoseWindow,
    Episode,
    EpisodeHistoryEntry,
    GroupKey,
    Participant,
    PcrSummary,
    RecurrentCase,
    SiteSummary,
    SpecimenYield,
    StrainSummary,
    SummaryData,
)
from ..ingestion.parsers import normalize_strain
from ..reconciliation.episodes import is_culture_positive


@dataclass(slots=True)
class _Attributed:
    episode: Episode
    window: DoseWindow
    site_name: str


class SummaryAggregator:
    """Accumulates per-site, per-age, per-strain and RT-PCR counters.

    Each episode is counted at most once: a repeated ``GroupKey`` is ignored and
    positive counters are guarded by their own tracking sets.
    """

    def __init__(self, config: ReportConfig = DEFAULT_CONFIG, logger: logging.Logger | None = None) -> None:
        self.config = config
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.unmapped_events = 0
        self._participants: Dict[str, Participant] = {}
        self._sites: Dict[str, SiteSummary] = {}
        self._pcr_sites: Dict[str, PcrSummary] = {}
        self._ages: Dict[str, AgeSummary] = {bracket.label: AgeSummary(bracket.label) for bracket in config.age_brackets}
        self._strains: Dict[str, StrainSummary] = {}
        self._concordance = Concordance()
        self._specimen_yield = SpecimenYield()
        self._seen_episodes: Set[GroupKey] = set()
        self._positive_episodes: Set[GroupKey] = set()
        self._pcr_episodes: Set[GroupKey] = set()
        self._site_participants: DefaultDict[str, Set[str]] = defaultdict(set)
        self._site_event_numbers: DefaultDict[str, Set[str]] = defaultdict(set)
        self._history: DefaultDict[str, List[_Attributed]] = defaultdict(list)
        self._finalized = False

        for site_name in config.known_sites:
            self._site(site_name)

    # --- accumulation -----------------------------------------------------

    def add_participants(self, participants: Iterable[Participant]) -> None:
        self._ensure_open()
        for participant in participants:
            if participant.participant_id in self._participants:
                self.logger.debug("Duplicate participant ignored", extra={"participant_id": participant.participant_id})
                continue
            self._participants[participant.participant_id] = participant
            self._site(participant.site_name).enrollment += 1

    def add_episodes(self, episodes: Iterable[Episode]) -> None:
        for episode in episodes:
            self.add_episode(episode)

    def add_episode(self, episode: Episode) -> Optional[DoseWindow]:
        self._ensure_open()
        if episode.key in self._seen_episodes:
            self.logger.debug("Episode %s already counted", episode.key, extra={"participant_id": episode.participant_id})
            return None
        self._seen_episodes.add(episode.key)

        participant = self._participants.get(episode.participant_id)
        if participant is None:
            self.unmapped_events += 1
            site_name = episode.site_fallback or self.config.unassigned_site
            self.logger.debug(
                "Episode %s has no enrollment record; attributed to %s",
                episode.key,
                site_name,
                extra={"participant_id": episode.participant_id},
            )
        else:
            site_name = participant.site_name

        window = classify_for_participant(episode.event_date, participant, self.config.post_dose2_window_days)
        count_positive = episode.culture_positive and episode.key not in self._positive_episodes
        if episode.culture_positive:
            self._positive_episodes.add(episode.key)

        site = self._site(site_name)
        site.total_diarrheal_events += 1
        self._site_participants[site_name].add(episode.participant_id)
        if episode.event_no_site:
            self._site_event_numbers[site_name].add(episode.event_no_site)
        if window.is_counted:
            site.record_window(window, count_positive)

        self._record_age(episode, participant, window, count_positive)
        if count_positive and episode.strain:
            self._record_strain(episode.strain, window)
        self._record_pcr(episode, site_name, window)
        self._record_diagnostics(episode)

        self._history[episode.participant_id].append(_Attributed(episode, window, site_name))
        return window

    def _record_age(
        self, episode: Episode, participant: Optional[Participant], window: DoseWindow, count_positive: bool
    ) -> None:
        age = episode.age_months
        if age is None and participant is not None:
            age = participant.age_months
        group = self.config.age_group_for(age)
        if group is None:
            return
        summary = self._ages[group]
        summary.total_events += 1
        if count_positive:
            summary.culture_positive += 1
        if window.is_counted:
            summary.record_window(window, count_positive)

    def _record_strain(self, strain: str, window: DoseWindow) -> None:
        name = normalize_strain(strain)
        summary = self._strains.get(name.casefold())
        if summary is None:
            summary = self._strains[name.casefold()] = StrainSummary(name)
        summary.total += 1
        if window.is_counted:
            summary.record_window(window)

    def _record_pcr(self, episode: Episode, site_name: str, window: DoseWindow) -> None:
        if not episode.has_pcr_result or episode.key in self._pcr_episodes:
            return
        self._pcr_episodes.add(episode.key)
        summary = self._pcr_sites[site_name]
        summary.total_tests += 1
        if episode.pcr_positive:
            summary.total_positive += 1
        if window.is_counted:
            summary.record_window(window, episode.pcr_positive)

    def _record_diagnostics(self, episode: Episode) -> None:
        matrix = self._concordance
        matrix.total_episodes += 1
        if episode.has_pcr_result:
            if episode.culture_positive and episode.pcr_positive:
                matrix.culture_pos_pcr_pos += 1
            elif episode.pcr_positive:
                matrix.culture_neg_pcr_pos += 1
            elif episode.culture_positive:
                matrix.culture_pos_pcr_neg += 1
            else:
                matrix.both_negative += 1

        for sample in episode.samples:
            bucket = self._specimen_yield.swab if sample.is_swab else self._specimen_yield.stool
            bucket.count += 1
            if is_culture_positive(sample.culture_result_raw):
                bucket.culture_positive += 1

    # --- finalization -----------------------------------------------------

    def finalize(self) -> SummaryData:
        self._ensure_open()
        self._finalized = True

        sites = list(self._sites.values())
        for summary in sites:
            summary.participants_with_events = len(self._site_participants.get(summary.site_name, ()))
            summary.reported_events_count = len(self._site_event_numbers.get(summary.site_name, ()))

        totals = SiteSummary(self.config.totals_label)
        for summary in sites:
            totals.add(summary)

        pcr_sites = [self._pcr_sites[summary.site_name] for summary in sites]
        pcr_totals = PcrSummary(self.config.totals_label)
        for summary in pcr_sites:
            pcr_totals.add(summary)

        strains = sorted(self._strains.values(), key=lambda item: (-item.total, item.strain_name.lower()))

        self.logger.info(
            "Summary finalized: %d sites, %d episodes, %d unmapped",
            len(sites),
            len(self._seen_episodes),
            self.unmapped_events,
        )
        return SummaryData(
            sites=tuple(sites),
            totals=totals,
            strains=tuple(strains),
            pcr_sites=tuple(pcr_sites),
            pcr_totals=pcr_totals,
            age_distribution=tuple(self._ages.values()),
            detailed_events=tuple(self._detailed_events()),
            recurrent_cases=tuple(self._recurrent_cases()),
            unmapped_events=self.unmapped_events,
            concordance=self._concordance,
            specimen_yield=self._specimen_yield,
        )

    def _detailed_events(self) -> List[DetailedParticipantEvent]:
        rows: List[DetailedParticipantEvent] = []
        for participant_id in sorted(self._history):
            for item in sorted(self._history[participant_id], key=lambda entry: entry.episode.event_date):
                episode = item.episode
                rows.append(
                    DetailedParticipantEvent(
                        site=item.site_name,
                        participant_id=participant_id,
                        collection_date=episode.event_date.isoformat(),
                        dose_category=item.window.label,
                        culture_result=episode.culture_result,
                        shigella_strain=episode.strain,
                        pcr_result=episode.pcr_result,
                        age_months=_format_age(episode.age_months, self._participants.get(participant_id)),
                        participant_total_events=episode.participant_episode_count,
                        stools_collected=episode.stool_count,
                        rectal_swabs_collected=episode.swab_count,
                    )
                )
        return rows

    def _recurrent_cases(self) -> List[RecurrentCase]:
        cases: List[RecurrentCase] = []
        for participant_id in sorted(self._history):
            items = sorted(self._history[participant_id], key=lambda entry: entry.episode.event_date)
            if len(items) < 2:
                continue
            positive_strains = Counter(
                normalize_strain(item.episode.strain).casefold()
                for item in items
                if item.episode.culture_positive and item.episode.strain
            )
            cases.append(
                RecurrentCase(
                    participant_id=participant_id,
                    site_name=items[0].site_name,
                    total_episodes=len(items),
                    culture_positives=sum(1 for item in items if item.episode.culture_positive),
                    has_persistent_pathogen=any(count >= 2 for count in positive_strains.values()),
                    history=[
                        EpisodeHistoryEntry(
                            date=item.episode.event_date.isoformat(),
                            result=item.episode.culture_result,
                            stage=item.window.label,
                            strain=item.episode.strain,
                        )
                        for item in items
                    ],
                )
            )
        return cases

    # --- helpers ----------------------------------------------------------

    def _site(self, site_name: str) -> SiteSummary:
        summary = self._sites.get(site_name)
        if summary is None:
            summary = self._sites[site_name] = SiteSummary(site_name)
            self._pcr_sites[site_name] = PcrSummary(site_name)
        return summary

    def _ensure_open(self) -> None:
        if self._finalized:
            raise RuntimeError("SummaryAggregator has already been finalized")


def _format_age(age_months: Optional[float], participant: Optional[Participant]) -> str:
    if age_months is None and participant is not None:
        age_months = participant.age_months
    if age_months is None:
        return ""
    return f"{age_months:g}"


__all__ = ["SummaryAggregator"]
