"""Extract typed participants from the enrollment/visit export."""
from __future__ import annotations

import logging
from typing import Dict, List

from ..config import DEFAULT_CONFIG, ReportConfig
from ..errors import EmptyDatasetError
from ..models import Participant
from .headers import Grid, HeaderResolver, cell_at
from .normalizer import DEFAULT_ALIASES, ColumnAliases, is_age_header
from .parsers import cell_text, normalize_site_name, parse_age_months, parse_date

SOURCE = "participant file"

DOSE1_VISITS = {"v1", "visit 1", "visit1", "visit-1"}
DOSE2_VISITS = {"v3", "visit 3", "visit3", "visit-3"}

logger = logging.getLogger(__name__)


def extract_participants(
    rows: Grid,
    config: ReportConfig = DEFAULT_CONFIG,
    aliases: ColumnAliases = DEFAULT_ALIASES,
) -> List[Participant]:
    """Build one participant per randomization number found in the grid."""
    match = HeaderResolver(config.header_scan_rows).resolve(rows, aliases.participant_groups(), SOURCE)
    columns = aliases.participant_aliases
    site_col = match.column(columns["site"])
    id_col = match.column(columns["participant_id"])
    visit_col = match.column(columns["visit"])
    date_col = match.column(columns["date"])
    age_col = match.column(columns["age"])
    if age_col is None:
        age_col = match.find(is_age_header)

    participants: Dict[str, Participant] = {}
    skipped = 0

    for row_index, row in enumerate(rows[match.row_index + 1 :], start=match.row_index + 1):
        participant_id = cell_text(cell_at(row, id_col))
        if not participant_id:
            skipped += 1
            continue

        participant = participants.get(participant_id)
        if participant is None:
            participant = Participant(
                participant_id=participant_id,
                site_name=normalize_site_name(cell_at(row, site_col), config),
            )
            participants[participant_id] = participant

        visit = cell_text(cell_at(row, visit_col)).lower()
        visit_date = parse_date(cell_at(row, date_col))
        if visit_date is not None:
            if visit in DOSE1_VISITS:
                participant.dose1_date = visit_date
            elif visit in DOSE2_VISITS:
                participant.dose2_date = visit_date
        elif visit in DOSE1_VISITS or visit in DOSE2_VISITS:
            logger.debug(
                "Dose visit without a usable date",
                extra={"source": SOURCE, "row": row_index, "participant_id": participant_id},
            )

        if age_col is not None and participant.age_months is None:
            participant.age_months = parse_age_months(cell_at(row, age_col))

    result = [item for item in participants.values() if item.participant_id and item.site_name]
    logger.info(
        "Participants extracted: %d (rows without id: %d, without site: %d)",
        len(result),
        skipped,
        len(participants) - len(result),
        extra={"source": SOURCE},
    )
    if not result:
        raise EmptyDatasetError(SOURCE, "No row carried both a randomization number and a site name.")
    return result


__all__ = ["extract_participants", "DOSE1_VISITS", "DOSE2_VISITS"]
