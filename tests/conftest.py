"""Shared pytest fixtures for the trial summary tests."""
from __future__ import annotations

from datetime import datetime

import pytest

PARTICIPANT_HEADER = ["Site Name", "Randomization Number", "Visit Name", "Actual Date", "Age"]
EVENT_HEADER = [
    "Rand# ID",
    "Culture No",
    "Collection Date",
    "Result",
    "Shigella Strain",
    "RT-PCR result",
    "Episode ID",
    "Place",
]


def _grid(header, rows, preamble=True):
    grid = []
    if preamble:
        grid.append(["Shigella vaccine trial export", None, None])
        grid.append([])
    grid.append(list(header))
    grid.extend(list(row) for row in rows)
    return grid


@pytest.fixture
def participant_grid():
    """Builds a participant grid with a title preamble above the header."""

    def build(rows, header=PARTICIPANT_HEADER, preamble=True):
        return _grid(header, rows, preamble)

    return build


@pytest.fixture
def event_grid():
    """Builds an events grid; rows follow EVENT_HEADER unless a header is given."""

    def build(rows, header=EVENT_HEADER, preamble=True):
        return _grid(header, rows, preamble)

    return build


@pytest.fixture
def enrollment_rows():
    """Four participants across three sites with assorted date and age encodings."""
    return [
        ["mirpur field site", "R001", "V1", "2024-01-01", "1Y 8M"],
        ["Mirpur", "R001", "V3", "01.02.2024", None],
        ["Tongi", "R002", "V1", datetime(2024, 1, 10, 14, 30), "6M"],
        ["Tongi", "R002", "Visit 3", "2024-02-10", None],
        ["korail", "R003", "V1", "2024-01-05", "30"],
        ["Korail", "R004", "V2", "2024-01-20", "4Y"],
        [None, None, None, None, None],
    ]
