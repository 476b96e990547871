# cefr_core/reporting.py
from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .levels import band_of
from .types import LevelTestResult, Session


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_report(
    session: Session,
    result: LevelTestResult,
    audit_events: Iterable[Dict[str, Any]] = (),
    *,
    report_id: Optional[str] = None,
    created_at: Optional[str] = None,
) -> Dict[str, Any]:
    """Assemble the stored/served report for a finished (or abandoned) attempt."""

    rid = report_id or str(uuid.uuid4())
    created = created_at or utcnow_iso()
    res = result.to_dict()
    meta = {
        "testId": session.id,
        "userId": session.user_id,
        "startLevel": session.start_level.value,
        "finalBand": band_of(result.final_level),
        "maxQuestions": session.max_questions,
        "completed": session.is_completed,
        "incomplete": not session.is_completed,
        "createdAt": created,
        "reportId": rid,
    }
    if not session.is_completed:
        meta["incomplete_reason"] = "FINISHED_EARLY"
    return {
        "id": rid,
        "reportId": rid,
        "created_at": created,
        "result": res,
        "meta": meta,
        "answers": [a.to_dict() for a in session.answers],
        "audit_events": [dict(evt) for evt in audit_events],
    }


def report_metadata(report: Dict[str, Any]) -> Dict[str, Any]:
    """Index entry kept next to the stored report."""

    meta = report.get("meta") or {}
    res = report.get("result") or {}
    return {
        "testId": meta.get("testId"),
        "userId": meta.get("userId"),
        "createdAt": report.get("created_at") or meta.get("createdAt"),
        "startLevel": meta.get("startLevel"),
        "finalLevel": res.get("final_level"),
        "score": res.get("score"),
        "completed": meta.get("completed"),
    }


def format_summary(result: LevelTestResult) -> str:
    progression = " -> ".join(lvl.value for lvl in result.level_progression)
    lines = [
        f"Final level: {result.final_level.value} ({band_of(result.final_level)})",
        f"Score: {result.score}% ({result.correct_answers}/{result.total_questions})",
        f"Duration: {result.test_duration:.0f}s",
        f"Progression: {progression}",
    ]
    if result.completion_reason:
        lines.append(f"Ended by: {result.completion_reason}")
    return "\n".join(lines)
