# cefr_core/engine.py
from __future__ import annotations
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence
import logging, math

from .errors import SessionCompletedError
from .levels import CEFRLevel, MIN_LEVEL, next_level, previous_level, shift_level, parse_level
from .types import AnswerOutcome, AnswerRecord, LevelTestResult, Session
from .config import (
    MAX_QUESTIONS,
    PROMOTE_STREAK,
    DEMOTE_STREAK,
    ACCELERATE_STREAK,
    ACCELERATE_STEPS,
    ABORT_STREAK,
    COMPLETE_AT_TOP_LEVEL,
    DEBUG_TRACE,
    TRACE_FIELDS,
)


log = logging.getLogger(__name__)


def _emit_trace(**values: object) -> None:
    if not DEBUG_TRACE:
        return
    ordered = []
    for key in TRACE_FIELDS:
        if key in values:
            ordered.append(f"{key}={values[key]}")
    if ordered:
        log.info("trace %s", " ".join(ordered))


def _trailing_misses(answers: Sequence[AnswerRecord]) -> int:
    """Length of the run of incorrect answers at the end of ``answers``.

    Unlike ``incorrect_streak`` this run is not reset by a demotion.
    """

    run = 0
    for rec in reversed(answers):
        if rec.is_correct:
            break
        run += 1
    return run


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def create_session(
    user_id: str,
    start_level: CEFRLevel | str = MIN_LEVEL,
    *,
    session_id: str = "",
    max_questions: Optional[int] = None,
) -> Session:
    """Build a fresh, in-progress session. Pure: the caller assigns the id."""

    level = parse_level(start_level)
    cap = MAX_QUESTIONS if max_questions is None else int(max_questions)
    if cap < 1:
        raise ValueError(f"max_questions must be >= 1, got {cap}")
    return Session(
        id=session_id,
        user_id=user_id,
        start_level=level,
        current_level=level,
        max_questions=cap,
        level_progression=(level,),
    )


def process_answer(
    session: Session,
    answer: AnswerRecord,
    *,
    complete_at_top: Optional[bool] = None,
) -> AnswerOutcome:
    """Apply one scored answer and return the next session state.

    ``session`` is left untouched. Raises ``SessionCompletedError`` when the
    session has already ended.
    """

    if session.is_completed:
        raise SessionCompletedError(session.id)
    top_exit = COMPLETE_AT_TOP_LEVEL if complete_at_top is None else bool(complete_at_top)

    answers = session.answers + (answer,)
    total = session.total_questions + 1
    level_before = session.current_level
    level = level_before
    correct_streak = session.correct_streak
    incorrect_streak = session.incorrect_streak
    level_up_streak = session.level_up_streak
    reason: Optional[str] = None

    if answer.is_correct:
        correct_streak += 1
        incorrect_streak = 0
        level_up_streak += 1

        if correct_streak >= PROMOTE_STREAK:
            correct_streak = 0
            nxt = next_level(level)
            if nxt is not None:
                level = nxt
            elif top_exit:
                reason = "top_level"

        if level_up_streak >= ACCELERATE_STREAK:
            level = shift_level(level, ACCELERATE_STEPS)
            level_up_streak = 0
    else:
        incorrect_streak += 1
        correct_streak = 0
        level_up_streak = 0

        if incorrect_streak >= DEMOTE_STREAK:
            incorrect_streak = 0
            prv = previous_level(level)
            if prv is not None:
                level = prv

        if _trailing_misses(answers) >= ABORT_STREAK:
            reason = "three_incorrect"

    if total >= session.max_questions and reason is None:
        reason = "max_questions"

    completed = reason is not None
    level_changed = level != level_before
    progression = session.level_progression
    if level_changed:
        progression = progression + (level,)

    updated = replace(
        session,
        current_level=level,
        current_question=session.current_question + 1,
        total_questions=total,
        correct_streak=correct_streak,
        incorrect_streak=incorrect_streak,
        level_up_streak=level_up_streak,
        answers=answers,
        is_completed=completed,
        final_level=level if completed else session.final_level,
        level_progression=progression,
        completion_reason=reason if completed else session.completion_reason,
    )

    log.debug(
        (
            "level_step session=%s question=%s correct=%d level=%s->%s "
            "streaks=c%d/i%d/u%d n=%d/%d completed=%s reason=%s"
        ),
        session.id,
        answer.question_id,
        int(answer.is_correct),
        level_before.value,
        level.value,
        correct_streak,
        incorrect_streak,
        level_up_streak,
        total,
        session.max_questions,
        completed,
        reason,
    )

    _emit_trace(
        session_id=session.id,
        question_id=answer.question_id,
        correct=int(answer.is_correct),
        level_before=level_before.value,
        level_after=level.value,
        correct_streak=correct_streak,
        incorrect_streak=incorrect_streak,
        level_up_streak=level_up_streak,
        completed=completed,
    )

    event = {
        "t": answer.answered_at.isoformat(),
        "question_id": answer.question_id,
        "question_number": total,
        "is_correct": bool(answer.is_correct),
        "time_taken": float(answer.time_taken),
        "level_before": level_before.value,
        "level_after": level.value,
        "correct_streak": correct_streak,
        "incorrect_streak": incorrect_streak,
        "level_up_streak": level_up_streak,
        "completed": completed,
    }
    return AnswerOutcome(
        session=updated,
        level_changed=level_changed,
        test_completed=completed,
        event=event,
    )


def calculate_result(session: Session) -> LevelTestResult:
    """Summarise a session. Meaningful once all intended answers are in."""

    correct = sum(1 for a in session.answers if a.is_correct)
    total = session.total_questions
    score = _round_half_up(100.0 * correct / total) if total > 0 else 0
    duration = float(sum(a.time_taken for a in session.answers))
    progression = list(session.level_progression) or [session.current_level]
    return LevelTestResult(
        final_level=session.final_level or session.current_level,
        score=score,
        total_questions=total,
        correct_answers=correct,
        test_duration=duration,
        level_progression=progression,
        completion_reason=session.completion_reason,
    )


def run_pattern(
    pattern: Iterable[bool],
    start_level: CEFRLevel | str = MIN_LEVEL,
    *,
    user_id: str = "sim_user",
    max_questions: Optional[int] = None,
    time_taken: float = 20.0,
    complete_at_top: Optional[bool] = None,
) -> List[AnswerOutcome]:
    """Feed a correctness pattern through a fresh session until it ends.

    Developer helper used by the simulation tool and tests; stops early on
    completion and returns one outcome per processed answer.
    """

    session = create_session(user_id, start_level, session_id=f"sim_{user_id}", max_questions=max_questions)
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    outcomes: List[AnswerOutcome] = []
    for idx, correct in enumerate(pattern, start=1):
        rec = AnswerRecord(
            question_id=f"q_{idx}",
            answer="correct" if correct else "wrong",
            is_correct=bool(correct),
            time_taken=time_taken,
            answered_at=base + timedelta(seconds=idx * time_taken),
        )
        outcome = process_answer(session, rec, complete_at_top=complete_at_top)
        outcomes.append(outcome)
        session = outcome.session
        if outcome.test_completed:
            break
    return outcomes


if __name__ == "__main__":  # pragma: no cover - developer diagnostics only
    logging.basicConfig(level=logging.DEBUG, format="[%(levelname)s] %(message)s")
    steps = run_pattern([True, True, False] * 20)
    for step in steps:
        print(step.event)
    print(calculate_result(steps[-1].session).to_dict())
