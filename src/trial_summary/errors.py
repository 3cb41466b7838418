"""Fatal error taxonomy for report generation."""
from __future__ import annotations

from typing import Iterable, Sequence


class ReportError(Exception):
    """Base class for errors that abort report generation."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message

    def __str__(self) -> str:
        return self.message


class MissingHeaderError(ReportError):
    """No row within the scan window carries every required column group."""

    def __init__(self, source: str, missing_groups: Iterable[Sequence[str]], scanned_rows: int) -> None:
        self.missing_groups = [list(group) for group in missing_groups]
        self.scanned_rows = scanned_rows
        described = "; ".join(" / ".join(f"'{name}'" for name in group) for group in self.missing_groups)
        super().__init__(
            source,
            f"Could not find the header row in the {source} within the first {scanned_rows} rows. "
            f"Make sure the file contains a row with the columns: {described}.",
        )


class EmptyDatasetError(ReportError):
    """A header was found but no data row survived row-level validation."""

    def __init__(self, source: str, detail: str | None = None) -> None:
        message = f"The {source} contains no valid data rows."
        if detail:
            message = f"{message} {detail}"
        super().__init__(source, message)


class UnreadableFileError(ReportError):
    """The spreadsheet could not be decoded into a cell grid."""

    def __init__(self, source: str, reason: str) -> None:
        self.reason = reason
        super().__init__(source, f"Failed to read the {source}: {reason}")


__all__ = ["ReportError", "MissingHeaderError", "EmptyDatasetError", "UnreadableFileError"]
