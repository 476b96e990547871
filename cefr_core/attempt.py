# cefr_core/attempt.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging, random

from .config import DEBUG_SEED, DEFAULT_START_LEVEL
from .engine import calculate_result, create_session, process_answer
from .errors import SessionCompletedError
from .levels import CEFRLevel
from .question_bank import find_question, load_bank, pick_question
from .scoring import grade_answer, normalize_answer
from .types import AnswerOutcome, AnswerRecord, LevelTestResult, Question, Session


log = logging.getLogger(__name__)


class LevelTestAttempt:
    """Drives one placement attempt: serves questions, grades, applies the engine.

    The engine only sees scored ``AnswerRecord``s; grading against the
    question's key and picking the next question both happen here.
    """

    def __init__(
        self,
        user_id: str,
        start_level: CEFRLevel | str | None = None,
        *,
        session_id: str = "",
        max_questions: Optional[int] = None,
        bank: Optional[List[Question]] = None,
        shuffle: bool = False,
    ):
        level = start_level if start_level is not None else DEFAULT_START_LEVEL
        self.session: Session = create_session(
            user_id, level, session_id=session_id, max_questions=max_questions
        )
        self.items: List[Question] = list(bank) if bank is not None else load_bank()
        self.rng: Optional[random.Random] = None
        if shuffle:
            seed = DEBUG_SEED if DEBUG_SEED is not None else random.randint(0, 2**31 - 1)
            self.rng = random.Random(int(seed))
        self._current: Optional[Question] = None
        self.audit_events: List[Dict[str, object]] = []
        self.started_at = datetime.now(timezone.utc)

    @classmethod
    def from_session(
        cls,
        session: Session,
        *,
        bank: Optional[List[Question]] = None,
        audit_events: Optional[List[Dict[str, object]]] = None,
    ) -> "LevelTestAttempt":
        att = cls(session.user_id, session.start_level, session_id=session.id,
                  max_questions=session.max_questions, bank=bank)
        att.session = session
        att.audit_events = list(audit_events or [])
        return att

    @property
    def is_completed(self) -> bool:
        return self.session.is_completed

    @property
    def current_question(self) -> Optional[Question]:
        return self._current

    def question(self, question_id: str) -> Question:
        return find_question(self.items, question_id)

    def next_question(self) -> Optional[Question]:
        if self.session.is_completed:
            return None
        it = pick_question(
            self.items,
            self.session.current_level,
            exclude=self.session.asked_question_ids(),
            rng=self.rng,
        )
        if it is None:
            log.warning(
                "question bank exhausted session=%s level=%s asked=%d",
                self.session.id,
                self.session.current_level.value,
                self.session.total_questions,
            )
        self._current = it
        return it

    def submit(
        self,
        question: Question,
        raw_answer: Any,
        time_taken: float = 0.0,
        answered_at: Optional[datetime] = None,
    ) -> AnswerOutcome:
        if self.session.is_completed:
            raise SessionCompletedError(self.session.id)
        record = AnswerRecord(
            question_id=question.id,
            answer=normalize_answer(question, raw_answer),
            is_correct=grade_answer(question, raw_answer),
            time_taken=max(0.0, float(time_taken or 0.0)),
            answered_at=answered_at or datetime.now(timezone.utc),
        )
        outcome = process_answer(self.session, record)
        self.session = outcome.session
        event = dict(outcome.event)
        event["question_level"] = question.level.value
        self.audit_events.append(event)
        self._current = None
        return outcome

    def answer_current(self, raw_answer: Any, time_taken: float = 0.0) -> Optional[AnswerOutcome]:
        if not self._current:
            return None
        return self.submit(self._current, raw_answer, time_taken)

    def finalize(self) -> LevelTestResult:
        return calculate_result(self.session)
