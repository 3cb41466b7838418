"""Report orchestration: read both files, reconcile, classify and aggregate."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Tuple

from ..aggregation.aggregator import SummaryAggregator
from ..config import DEFAULT_CONFIG, ReportConfig
from ..ingestion import events as event_ingestion
from ..ingestion import participants as participant_ingestion
from ..ingestion.excel_ingestion import GridReader
from ..ingestion.headers import Grid
from ..models import EventBatch, Participant, SummaryData
from ..reconciliation.episodes import EpisodeReconciler

logger = logging.getLogger(__name__)


def build_summary(participant_rows: Grid, event_rows: Grid, config: ReportConfig = DEFAULT_CONFIG) -> SummaryData:
    """Derive the summary from two already-decoded grids."""
    participants = participant_ingestion.extract_participants(participant_rows, config)
    batch = event_ingestion.extract_events(event_rows, config)
    return summarize(participants, batch, config)


def summarize(participants: List[Participant], batch: EventBatch, config: ReportConfig = DEFAULT_CONFIG) -> SummaryData:
    episodes = EpisodeReconciler(config).reconcile(batch)
    aggregator = SummaryAggregator(config)
    aggregator.add_participants(participants)
    aggregator.add_episodes(episodes)
    return aggregator.finalize()


class ReportPipeline:
    """Loads the participant and events files concurrently, then summarizes."""

    def __init__(
        self,
        config: ReportConfig = DEFAULT_CONFIG,
        reader: GridReader | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.reader = reader or GridReader()
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def load_participants(self, path: str | Path) -> List[Participant]:
        source = participant_ingestion.SOURCE
        self.logger.info("Loading participants", extra={"source": source, "path": str(path)})
        rows = self.reader.load_grid(path, source)
        return participant_ingestion.extract_participants(rows, self.config)

    def load_events(self, path: str | Path) -> EventBatch:
        source = event_ingestion.SOURCE
        self.logger.info("Loading events", extra={"source": source, "path": str(path)})
        rows = self.reader.load_grid(path, source)
        return event_ingestion.extract_events(rows, self.config)

    def load(self, participants_path: str | Path, events_path: str | Path) -> Tuple[List[Participant], EventBatch]:
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="report-reader") as executor:
            participants_future = executor.submit(self.load_participants, participants_path)
            events_future = executor.submit(self.load_events, events_path)
            # result() re-raises the first failure; no partial report is built
            return participants_future.result(), events_future.result()

    def run(self, participants_path: str | Path, events_path: str | Path) -> SummaryData:
        participants, batch = self.load(participants_path, events_path)
        return summarize(participants, batch, self.config)


def process_files(
    participants_path: str | Path, events_path: str | Path, config: ReportConfig = DEFAULT_CONFIG
) -> SummaryData:
    return ReportPipeline(config).run(participants_path, events_path)


__all__ = ["ReportPipeline", "build_summary", "process_files", "summarize"]
