from __future__ import annotations
from typing import Any, Optional

from .types import Question


def _option_for_index(question: Question, raw: Any) -> Optional[str]:
    opts = question.options or []
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return opts[raw] if 0 <= raw < len(opts) else None
    if isinstance(raw, str) and raw.strip().isdigit() and raw.strip() not in opts:
        idx = int(raw.strip())
        return opts[idx] if 0 <= idx < len(opts) else None
    return None


def normalize_answer(question: Question, raw: Any) -> str:
    """Return the submitted answer as option text where an index was sent."""

    picked = _option_for_index(question, raw)
    if picked is not None:
        return picked
    return "" if raw is None else str(raw).strip()


def grade_answer(question: Question, raw: Any) -> bool:
    """Exact match against the recorded correct answer.

    Integer answers (or digit strings that are not options themselves) are
    read as option indices.
    """

    return normalize_answer(question, raw) == str(question.correct_answer).strip()
