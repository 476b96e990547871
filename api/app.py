from __future__ import annotations
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field
import logging, os, threading, uuid, typing as t

# ---- Engine imports ----
from cefr_core.attempt import LevelTestAttempt
from cefr_core.audit_export import to_csv as audit_to_csv, to_json as audit_to_json
from cefr_core.config import AUDIT_EXPORT_ENABLED
from cefr_core.errors import InvalidLevelError, SessionCompletedError, UnknownQuestionError
from cefr_core.question_bank import load_bank
from cefr_core.report_html import render_report_html
from cefr_core.reporting import build_report, report_metadata, utcnow_iso
from cefr_core.types import Question, Session
from .storage import (
    active_sessions_for_user,
    clear_active_session,
    delete_report,
    find_report_by_test,
    list_reports_for_user,
    load_active_session,
    load_report,
    record_active_session,
    save_report,
    update_active_session,
)

log = logging.getLogger(__name__)

ATTEMPTS: dict[str, LevelTestAttempt] = {}
BANK: list[Question] | None = None

_LOCKS: dict[str, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()
# check-then-create for /start must not interleave
_START_GUARD = threading.Lock()

app = FastAPI(title="CEFR Level Test API")

ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


# ---- Schemas ----
class StartReq(BaseModel):
    user_id: str = Field(..., min_length=1)
    start_level: str | None = None
    max_questions: int | None = Field(None, ge=1, le=200)

class SubmitReq(BaseModel):
    question_id: str
    answer: int | str
    time_taken: float = Field(0.0, ge=0.0)


# ---- Error mapping ----
@app.exception_handler(InvalidLevelError)
async def _invalid_level(_request: Request, exc: InvalidLevelError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})

@app.exception_handler(SessionCompletedError)
async def _session_completed(_request: Request, exc: SessionCompletedError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})

@app.exception_handler(UnknownQuestionError)
async def _unknown_question(_request: Request, exc: UnknownQuestionError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ---- Helpers ----
def _bank() -> list[Question]:
    global BANK
    if BANK is None:
        BANK = load_bank()
    return BANK


def _lock_for(test_id: str) -> threading.Lock:
    # submissions for one attempt must be applied one at a time
    with _LOCKS_GUARD:
        lock = _LOCKS.get(test_id)
        if lock is None:
            lock = _LOCKS[test_id] = threading.Lock()
        return lock


def _serialize_question(q: Question | None) -> dict[str, t.Any] | None:
    if q is None:
        return None
    return q.to_public()


def _live_attempt(test_id: str) -> LevelTestAttempt | None:
    """In-memory attempt, reloaded from the active-session store after a restart."""
    att = ATTEMPTS.get(test_id)
    if att is not None:
        return att
    payload = load_active_session(test_id)
    if not payload or not payload.get("session"):
        return None
    att = LevelTestAttempt.from_session(
        Session.from_dict(payload["session"]),
        bank=_bank(),
        audit_events=payload.get("auditEvents"),
    )
    ATTEMPTS[test_id] = att
    log.info("restored attempt %s from storage", test_id)
    return att


def _get_attempt(test_id: str) -> LevelTestAttempt:
    att = _live_attempt(test_id)
    if att is not None:
        return att
    with _LOCKS_GUARD:
        _LOCKS.pop(test_id, None)
    if find_report_by_test(test_id):
        raise HTTPException(409, "test already completed")
    raise HTTPException(404, "test not found")


def _persist(att: LevelTestAttempt) -> None:
    update_active_session(
        att.session.id,
        {
            "lastUpdated": utcnow_iso(),
            "currentLevel": att.session.current_level.value,
            "questionNumber": att.session.total_questions,
            "session": att.session.to_dict(),
            "auditEvents": att.audit_events,
        },
    )


def _close(att: LevelTestAttempt) -> dict[str, t.Any]:
    result = att.finalize()
    report = build_report(att.session, result, att.audit_events)
    save_report(report["id"], report, report_metadata(report))
    clear_active_session(att.session.id)
    ATTEMPTS.pop(att.session.id, None)
    with _LOCKS_GUARD:
        _LOCKS.pop(att.session.id, None)
    log.info(
        "level test closed test=%s user=%s final=%s score=%d completed=%s",
        att.session.id,
        att.session.user_id,
        result.final_level.value,
        result.score,
        att.session.is_completed,
    )
    return report


def _user_has_active(user_id: str) -> bool:
    if any(a.session.user_id == user_id and not a.is_completed for a in ATTEMPTS.values()):
        return True
    return bool(active_sessions_for_user(user_id))


# ---- Health ----
@app.get("/health")
def health():
    return {"status": "ok", "service": "cefr-level-test", "active_attempts": len(ATTEMPTS)}


# ---- Level test flow ----
@app.post("/level-tests/start")
def start(req: StartReq):
    with _START_GUARD:
        if _user_has_active(req.user_id):
            raise HTTPException(400, "Already have an active test session")
        test_id = str(uuid.uuid4())
        att = LevelTestAttempt(
            req.user_id,
            req.start_level,
            session_id=test_id,
            max_questions=req.max_questions,
            bank=_bank(),
        )
        question = att.next_question()
        ATTEMPTS[test_id] = att
        started_at = utcnow_iso()
        record_active_session(
            test_id,
            {
                "testId": test_id,
                "userId": req.user_id,
                "startLevel": att.session.start_level.value,
                "currentLevel": att.session.current_level.value,
                "startedAt": started_at,
                "lastUpdated": started_at,
                "questionNumber": 0,
                "session": att.session.to_dict(),
                "auditEvents": [],
            },
        )
    return {
        "test_id": test_id,
        "current_level": att.session.current_level.value,
        "question": _serialize_question(question),
        "question_number": 1,
        "total_questions": att.session.max_questions,
    }


@app.post("/level-tests/{test_id}/submit")
def submit(test_id: str, req: SubmitReq):
    with _lock_for(test_id):
        att = _get_attempt(test_id)
        question = att.question(req.question_id)
        if req.question_id in att.session.asked_question_ids():
            raise HTTPException(400, "question already answered")
        outcome = att.submit(question, req.answer, req.time_taken)

        if outcome.test_completed:
            report = _close(att)
            return {
                "test_completed": True,
                "report_id": report["id"],
                "result": report["result"],
            }

        nxt = att.next_question()
        _persist(att)
        sess = outcome.session
        return {
            "test_completed": False,
            "current_level": sess.current_level.value,
            "level_changed": outcome.level_changed,
            "question": _serialize_question(nxt),
            "question_number": sess.current_question + 1,
            "correct_streak": sess.correct_streak,
            "incorrect_streak": sess.incorrect_streak,
        }


@app.post("/level-tests/{test_id}/finish")
def finish(test_id: str):
    with _lock_for(test_id):
        att = _get_attempt(test_id)
        return _close(att)


@app.get("/level-tests/{test_id}/result")
def result(test_id: str):
    stored = find_report_by_test(test_id)
    if stored:
        return stored
    att = _live_attempt(test_id)
    if att is None:
        raise HTTPException(404, "test not found")
    return {
        "testId": test_id,
        "completed": False,
        "result": att.finalize().to_dict(),
        "session": att.session.to_dict(),
    }


def _events_for(test_id: str) -> list[dict[str, t.Any]]:
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")
    stored = find_report_by_test(test_id)
    if stored:
        return list(stored.get("audit_events") or [])
    att = _live_attempt(test_id)
    if att is None:
        raise HTTPException(404, "test not found")
    return list(att.audit_events)


@app.get("/level-tests/{test_id}/audit.json")
def get_audit_json(test_id: str):
    events = _events_for(test_id)
    return {"test_id": test_id, **audit_to_json(events)}


@app.get("/level-tests/{test_id}/audit.csv")
def get_audit_csv(test_id: str):
    events = _events_for(test_id)
    filename = f"{test_id}_audit.csv"
    return Response(
        content=audit_to_csv(events),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )


@app.get("/level-tests/{test_id}/report.html", response_class=HTMLResponse)
def report_html(test_id: str):
    stored = find_report_by_test(test_id)
    if not stored:
        raise HTTPException(404, "report not found")
    return HTMLResponse(render_report_html(stored))


@app.get("/reports/{report_id}")
def get_report(report_id: str):
    report = load_report(report_id)
    if not report:
        raise HTTPException(404, "report not found")
    return report


@app.delete("/reports/{report_id}")
def delete_report_endpoint(report_id: str):
    ok = delete_report(report_id)
    if not ok:
        raise HTTPException(404, "report not found")
    return {"ok": True}


@app.get("/users/{user_id}/level-tests")
def list_history(user_id: str):
    return {"tests": list_reports_for_user(user_id)}


@app.get("/users/{user_id}/level-tests/active")
def list_active(user_id: str):
    return {"tests": active_sessions_for_user(user_id)}
