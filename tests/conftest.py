from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cefr_core.levels import LEVEL_ORDER
from cefr_core.types import AnswerRecord, Question


def build_synthetic_bank(*, per_level: int = 2) -> list[Question]:
    """Create a deterministic synthetic bank: ``per_level`` questions on every sub-level."""

    items: list[Question] = []
    for level in LEVEL_ORDER:
        for idx in range(per_level):
            qtype = "reading" if idx % 2 == 0 else "listening"
            items.append(
                Question(
                    id=f"{level.value.lower()}_{idx}",
                    content=f"{level.value} question #{idx}",
                    type=qtype,
                    level=level,
                    options=["A", "B", "C", "D"],
                    correct_answer="A",
                )
            )
    return items


def make_answers(pattern: str, *, time_taken: float = 10.0) -> list[AnswerRecord]:
    """'ccx' -> correct, correct, incorrect answer records with increasing timestamps."""

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    out: list[AnswerRecord] = []
    for idx, ch in enumerate(pattern, start=1):
        out.append(
            AnswerRecord(
                question_id=f"q{idx}",
                answer="A" if ch == "c" else "B",
                is_correct=ch == "c",
                time_taken=time_taken,
                answered_at=base + timedelta(seconds=idx),
            )
        )
    return out


@pytest.fixture
def synthetic_bank() -> list[Question]:
    return build_synthetic_bank()


@pytest.fixture
def answers():
    return make_answers
