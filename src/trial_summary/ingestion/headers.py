"""Locate the header row of a loosely formatted spreadsheet grid."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from ..errors import MissingHeaderError
from .parsers import cell_text

Grid = Sequence[Sequence[Any]]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HeaderMatch:
    """The resolved header row; column lookups are case-insensitive exact matches."""

    row_index: int
    headers: List[str]

    def column(self, synonyms: Sequence[str]) -> Optional[int]:
        wanted = {name.strip().lower() for name in synonyms}
        for idx, header in enumerate(self.headers):
            if header.lower() in wanted:
                return idx
        return None

    def find(self, predicate: Callable[[str], bool]) -> Optional[int]:
        for idx, header in enumerate(self.headers):
            if header and predicate(header.lower()):
                return idx
        return None


class HeaderResolver:
    """Scans the top of a grid for a row holding every required column group."""

    def __init__(self, scan_rows: int = 50) -> None:
        self.scan_rows = scan_rows

    def resolve(self, rows: Grid, required_groups: Sequence[Sequence[str]], source: str) -> HeaderMatch:
        lowered_groups = [{name.strip().lower() for name in group} for group in required_groups]
        best_missing: List[Sequence[str]] = list(required_groups)

        for row_index, row in enumerate(rows[: self.scan_rows]):
            cells = {cell_text(cell).lower() for cell in row}
            missing = [group for group, wanted in zip(required_groups, lowered_groups) if not cells & wanted]
            if not missing:
                headers = [cell_text(cell) for cell in row]
                logger.debug("Header row resolved", extra={"source": source, "row": row_index})
                return HeaderMatch(row_index=row_index, headers=headers)
            if len(missing) < len(best_missing):
                best_missing = missing

        raise MissingHeaderError(source, best_missing, min(len(rows), self.scan_rows))


def cell_at(row: Sequence[Any], index: Optional[int]) -> Any:
    """Fetch a cell, treating absent columns and short rows as empty."""
    if index is None or index >= len(row):
        return None
    return row[index]


__all__ = ["Grid", "HeaderMatch", "HeaderResolver", "cell_at"]
