"""Exceptions raised by the level-test engine.

Everything derives from ``LevelTestError`` so the HTTP layer can map the
whole family in one place.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class LevelTestError(Exception):
    """Base class for level-test errors."""

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details: Dict[str, Any] = details or {}


class InvalidLevelError(LevelTestError, ValueError):
    """Raised when a value is not one of the 21 ladder levels."""

    def __init__(self, value: object) -> None:
        super().__init__(f"not a CEFR ladder level: {value!r}", {"value": repr(value)})
        self.value = value


class SessionCompletedError(LevelTestError):
    """Raised when an answer is submitted to a session that already ended."""

    def __init__(self, session_id: str = "") -> None:
        label = session_id or "<unnamed>"
        super().__init__(f"session {label} is already completed", {"session_id": session_id})
        self.session_id = session_id


class UnknownQuestionError(LevelTestError, KeyError):
    """Raised when a question id is not present in the bank."""

    def __init__(self, question_id: str) -> None:
        super().__init__(f"question not found: {question_id}", {"question_id": question_id})
        self.question_id = question_id

    def __str__(self) -> str:
        return self.args[0] if self.args else ""
