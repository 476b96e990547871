from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Tuple

from .levels import CEFRLevel, parse_level

QuestionType = Literal["reading", "listening"]
CompletionReason = Literal["top_level", "three_incorrect", "max_questions"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_ts(raw: object) -> datetime:
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, str) and raw:
        ts = datetime.fromisoformat(raw)
        return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)
    return _utcnow()


@dataclass
class Question:
    id: str; content: str; type: QuestionType; level: CEFRLevel
    options: List[str] = field(default_factory=list)
    correct_answer: str = ""
    explanation: Optional[str] = None

    def __post_init__(self) -> None:
        self.level = parse_level(self.level)

    def to_public(self) -> Dict[str, object]:
        """Client-facing view; never includes the key."""

        return {
            "id": self.id,
            "content": self.content,
            "type": self.type,
            "level": self.level.value,
            "options": list(self.options),
        }


@dataclass(frozen=True)
class AnswerRecord:
    """One scored learner response. Immutable once appended to a session."""

    question_id: str
    answer: str
    is_correct: bool
    time_taken: float = 0.0
    answered_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.time_taken < 0:
            raise ValueError(f"time_taken must be >= 0, got {self.time_taken}")

    def to_dict(self) -> Dict[str, object]:
        return {
            "question_id": self.question_id,
            "answer": self.answer,
            "is_correct": self.is_correct,
            "time_taken": self.time_taken,
            "answered_at": self.answered_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "AnswerRecord":
        return cls(
            question_id=str(data["question_id"]),
            answer=str(data.get("answer", "")),
            is_correct=bool(data["is_correct"]),
            time_taken=float(data.get("time_taken", 0.0) or 0.0),
            answered_at=_parse_ts(data.get("answered_at")),
        )


@dataclass(frozen=True)
class Session:
    """State of one placement attempt.

    Replaced, never mutated: the answer processor returns a new value for
    every submitted answer.
    """

    id: str
    user_id: str
    start_level: CEFRLevel
    current_level: CEFRLevel
    current_question: int = 0
    total_questions: int = 0
    max_questions: int = 50
    correct_streak: int = 0
    incorrect_streak: int = 0
    level_up_streak: int = 0
    answers: Tuple[AnswerRecord, ...] = ()
    is_completed: bool = False
    final_level: Optional[CEFRLevel] = None
    level_progression: Tuple[CEFRLevel, ...] = ()
    completion_reason: Optional[CompletionReason] = None

    def __post_init__(self) -> None:
        # frozen: normalise level fields in place, rejecting non-ladder values
        object.__setattr__(self, "start_level", parse_level(self.start_level))
        object.__setattr__(self, "current_level", parse_level(self.current_level))
        if self.final_level is not None:
            object.__setattr__(self, "final_level", parse_level(self.final_level))
        object.__setattr__(
            self, "level_progression", tuple(parse_level(x) for x in self.level_progression)
        )
        object.__setattr__(self, "answers", tuple(self.answers))

    def asked_question_ids(self) -> List[str]:
        return [a.question_id for a in self.answers]

    def to_dict(self) -> Dict[str, object]:
        """JSON-friendly representation used for persistence/debugging."""

        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_level": self.start_level.value,
            "current_level": self.current_level.value,
            "current_question": self.current_question,
            "total_questions": self.total_questions,
            "max_questions": self.max_questions,
            "correct_streak": self.correct_streak,
            "incorrect_streak": self.incorrect_streak,
            "level_up_streak": self.level_up_streak,
            "answers": [a.to_dict() for a in self.answers],
            "is_completed": self.is_completed,
            "final_level": self.final_level.value if self.final_level else None,
            "level_progression": [lvl.value for lvl in self.level_progression],
            "completion_reason": self.completion_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Session":
        answers = tuple(AnswerRecord.from_dict(a) for a in data.get("answers") or [])  # type: ignore[union-attr]
        final_raw = data.get("final_level")
        current = parse_level(data["current_level"])
        progression = tuple(parse_level(x) for x in data.get("level_progression") or [])  # type: ignore[union-attr]
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data["user_id"]),
            start_level=parse_level(data.get("start_level") or current),
            current_level=current,
            current_question=int(data.get("current_question", len(answers))),  # type: ignore[arg-type]
            total_questions=int(data.get("total_questions", len(answers))),  # type: ignore[arg-type]
            max_questions=int(data.get("max_questions", 50)),  # type: ignore[arg-type]
            correct_streak=int(data.get("correct_streak", 0)),  # type: ignore[arg-type]
            incorrect_streak=int(data.get("incorrect_streak", 0)),  # type: ignore[arg-type]
            level_up_streak=int(data.get("level_up_streak", 0)),  # type: ignore[arg-type]
            answers=answers,
            is_completed=bool(data.get("is_completed", False)),
            final_level=parse_level(final_raw) if final_raw else None,
            level_progression=progression or (current,),
            completion_reason=data.get("completion_reason"),  # type: ignore[arg-type]
        )


@dataclass(frozen=True)
class AnswerOutcome:
    session: Session
    level_changed: bool
    test_completed: bool
    event: Dict[str, object] = field(default_factory=dict)

    @property
    def should_continue(self) -> bool:
        return not self.test_completed


@dataclass
class LevelTestResult:
    final_level: CEFRLevel
    score: int
    total_questions: int
    correct_answers: int
    test_duration: float
    level_progression: List[CEFRLevel] = field(default_factory=list)
    completion_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "final_level": self.final_level.value,
            "score": self.score,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "test_duration": self.test_duration,
            "level_progression": [lvl.value for lvl in self.level_progression],
            "completion_reason": self.completion_reason,
        }
