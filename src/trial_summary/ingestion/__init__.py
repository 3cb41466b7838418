"""Ingestion utilities."""
from .events import extract_events
from .excel_ingestion import GridReader
from .participants import extract_participants

__all__ = ["GridReader", "extract_events", "extract_participants"]
