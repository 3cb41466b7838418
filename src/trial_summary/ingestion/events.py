"""Extract typed lab-sample events from the diarrheal-event export."""
from __future__ import annotations

import logging
from typing import List

from ..config import DEFAULT_CONFIG, ReportConfig
from ..errors import EmptyDatasetError
from ..models import EventBatch, RawEvent
from ..validation.rules import SampleRowValidator, is_swab_specimen
from .headers import Grid, HeaderResolver, cell_at
from .normalizer import DEFAULT_ALIASES, ColumnAliases, is_age_header
from .parsers import cell_text, normalize_site_name, parse_age_months, parse_date

SOURCE = "events file"

logger = logging.getLogger(__name__)


def extract_events(
    rows: Grid,
    config: ReportConfig = DEFAULT_CONFIG,
    aliases: ColumnAliases = DEFAULT_ALIASES,
) -> EventBatch:
    """Turn every eligible sample row into a RawEvent; footer rows are dropped."""
    match = HeaderResolver(config.header_scan_rows).resolve(rows, aliases.event_groups(), SOURCE)
    columns = {name: match.column(synonyms) for name, synonyms in aliases.event_aliases.items()}
    age_col = columns["age"]
    if age_col is None:
        age_col = match.find(is_age_header)
    validator = SampleRowValidator(has_sample_column=columns["sample_no"] is not None)

    events: List[RawEvent] = []
    dropped = 0

    for row_index, row in enumerate(rows[match.row_index + 1 :], start=match.row_index + 1):
        participant_id = cell_text(cell_at(row, columns["participant_id"]))
        event_date = parse_date(cell_at(row, columns["date"]))
        sample_number = cell_text(cell_at(row, columns["sample_no"]))

        check = validator.check(row_index, participant_id, event_date, sample_number)
        if not check.is_eligible:
            dropped += 1
            logger.debug(check.summary(), extra={"source": SOURCE, "row": row_index})
            continue

        episode_no = cell_text(cell_at(row, columns["episode"]))
        pcr_episode_no = cell_text(cell_at(row, columns["pcr_episode_no"]))
        sample_identifier = episode_no or sample_number or pcr_episode_no or f"{participant_id}-row{row_index}"

        age_months = None
        if age_col is not None:
            age_months = parse_age_months(cell_at(row, age_col))

        events.append(
            RawEvent(
                participant_id=participant_id,
                event_date=event_date,
                culture_result_raw=cell_text(cell_at(row, columns["result"])),
                sample_identifier=sample_identifier,
                site_fallback=_site_fallback(participant_id, cell_at(row, columns["place"]), config),
                row_index=row_index,
                pcr_result_raw=cell_text(cell_at(row, columns["pcr"])),
                strain=cell_text(cell_at(row, columns["strain"])),
                age_months=age_months,
                is_swab=is_swab_specimen(sample_number, cell_text(cell_at(row, columns["specimen"]))),
                event_no_site=cell_text(cell_at(row, columns["event_no_site"])),
            )
        )

    logger.info("Events extracted: %d (rows dropped: %d)", len(events), dropped, extra={"source": SOURCE})
    if not events:
        raise EmptyDatasetError(SOURCE, "No row had a participant id, a sample number and a collection date.")
    return EventBatch(events=events, has_episode_identifiers=columns["episode"] is not None)


def _site_fallback(participant_id: str, place: object, config: ReportConfig) -> str:
    by_range = config.site_for_participant_number(participant_id)
    if by_range:
        return by_range
    return normalize_site_name(place, config) or config.unassigned_site


__all__ = ["extract_events"]
