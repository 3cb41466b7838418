"""Utilities to persist summary reports."""
from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from ..models import SummaryData


def summary_to_dict(summary: SummaryData) -> Dict[str, Any]:
    """Serialize a summary using the camelCase keys renderers expect."""
    return _camelize(asdict(summary))


def persist_summary(summary: SummaryData, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = summary_to_dict(summary)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def format_percent(numerator: int, denominator: int) -> str:
    if denominator == 0:
        return "0.00%"
    return f"{numerator / denominator * 100:.2f}%"


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel_key(key): _camelize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_camelize(item) for item in value]
    return value


def _camel_key(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


__all__ = ["format_percent", "persist_summary", "summary_to_dict"]
