"""Excel/CSV grid reader."""
from __future__ import annotations

import csv
import zipfile
from pathlib import Path
from typing import Any, List
from xml.etree.ElementTree import ParseError

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..errors import UnreadableFileError

_WORKBOOK_ERRORS = (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, ParseError, OSError)


class GridReader:
    """Loads the first sheet of a CSV or Excel file as a grid of raw cells."""

    SUPPORTED_EXTENSIONS = {".csv", ".xlsx", ".xlsm"}

    def __init__(self, encoding: str = "utf-8-sig") -> None:
        self.encoding = encoding

    def load_grid(self, file_path: str | Path, source: str = "file") -> List[List[Any]]:
        path = Path(file_path)
        if path.suffix.lower() not in self.SUPPORTED_EXTENSIONS:
            raise UnreadableFileError(
                source,
                f"unsupported file type '{path.suffix}'. Expected one of {sorted(self.SUPPORTED_EXTENSIONS)}.",
            )
        if not path.is_file():
            raise UnreadableFileError(source, f"'{path}' does not exist")

        if path.suffix.lower() == ".csv":
            rows = self._read_csv(path, source)
        else:
            rows = self._read_excel(path, source)

        if not any(any(cell not in (None, "") for cell in row) for row in rows):
            raise UnreadableFileError(source, f"'{path.name}' appears to be empty")
        return rows

    def _read_csv(self, path: Path, source: str) -> List[List[Any]]:
        try:
            with path.open("r", encoding=self.encoding, newline="") as handle:
                return [[cell if cell != "" else None for cell in row] for row in csv.reader(handle)]
        except (UnicodeDecodeError, csv.Error, OSError) as exc:
            raise UnreadableFileError(source, f"'{path.name}' is not a valid CSV file ({exc})") from exc

    def _read_excel(self, path: Path, source: str) -> List[List[Any]]:
        try:
            workbook = load_workbook(filename=path, read_only=True, data_only=True)
        except _WORKBOOK_ERRORS as exc:
            raise UnreadableFileError(source, f"'{path.name}' is not a valid Excel workbook ({exc})") from exc

        try:
            if not workbook.sheetnames:
                raise UnreadableFileError(source, f"'{path.name}' contains no readable sheets")
            sheet = workbook[workbook.sheetnames[0]]
            return [list(row) for row in sheet.iter_rows(values_only=True)]
        except _WORKBOOK_ERRORS as exc:
            raise UnreadableFileError(source, f"'{path.name}' has an unreadable sheet ({exc})") from exc
        finally:
            workbook.close()


__all__ = ["GridReader"]
