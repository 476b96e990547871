"""Per-answer audit trail of a level test, flattened for download.

Each event is the dict ``process_answer`` emits (plus ``question_level`` from
the attempt driver). Exports always carry the same columns in the same order,
whatever extra keys an event holds.
"""
from __future__ import annotations

import csv
import io
from typing import Any, Callable, Dict, Iterable, List

_FIELDS: tuple[str, ...] = (
    "t",
    "question_number",
    "question_id",
    "question_level",
    "is_correct",
    "time_taken",
    "level_before",
    "level_after",
    "correct_streak",
    "incorrect_streak",
    "level_up_streak",
    "completed",
)


def _as_int(val: Any) -> int:
    try:
        return int(val)
    except (TypeError, ValueError):
        return 0


def _as_float(val: Any) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return 0.0


def _as_text(val: Any) -> str:
    return "" if val is None else str(val)


_COERCE: Dict[str, Callable[[Any], Any]] = {
    "question_number": _as_int,
    "correct_streak": _as_int,
    "incorrect_streak": _as_int,
    "level_up_streak": _as_int,
    "is_correct": bool,
    "completed": bool,
    "time_taken": _as_float,
}


def _row(event: Dict[str, Any] | None) -> Dict[str, Any]:
    src = event or {}
    return {key: _COERCE.get(key, _as_text)(src.get(key)) for key in _FIELDS}


def to_json(events: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    rows: List[Dict[str, Any]] = [_row(evt) for evt in events]
    return {"events": rows}


def to_csv(events: Iterable[Dict[str, Any]]) -> str:
    """CSV text with a header row; one line per answered question."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    writer.writerows(_row(evt) for evt in events)
    return buf.getvalue()


__all__ = ["to_json", "to_csv"]
