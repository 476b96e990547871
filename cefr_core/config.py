from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str | None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


MAX_QUESTIONS: int = 50

PROMOTE_STREAK: int = 2
DEMOTE_STREAK: int = 2
ACCELERATE_STREAK: int = 4
ACCELERATE_STEPS: int = 2
ABORT_STREAK: int = 3

# Two correct in a row while already at C2_3 ends the test.
# False keeps the legacy rule, where that exit can never fire.
COMPLETE_AT_TOP_LEVEL: bool = True

DEFAULT_START_LEVEL: str = "A1_1"

QUESTION_BANK_PATH: str | None = None
BANK_MIN_PER_LEVEL: int = 2

AUDIT_EXPORT_ENABLED: bool = True

DEBUG_TRACE: bool = False
DEBUG_SEED: int | None = None
TRACE_FIELDS: tuple[str, ...] = (
    "session_id",
    "question_id",
    "correct",
    "level_before",
    "level_after",
    "correct_streak",
    "incorrect_streak",
    "level_up_streak",
    "completed",
)

# // env overrides for staging/ops; defaults match the production test.
MAX_QUESTIONS = _env_int("MAX_QUESTIONS", MAX_QUESTIONS)
COMPLETE_AT_TOP_LEVEL = _env_bool("COMPLETE_AT_TOP_LEVEL", COMPLETE_AT_TOP_LEVEL)
DEFAULT_START_LEVEL = _env_str("DEFAULT_START_LEVEL", DEFAULT_START_LEVEL) or "A1_1"
QUESTION_BANK_PATH = _env_str("QUESTION_BANK_PATH", QUESTION_BANK_PATH)
BANK_MIN_PER_LEVEL = _env_int("BANK_MIN_PER_LEVEL", BANK_MIN_PER_LEVEL)
AUDIT_EXPORT_ENABLED = _env_bool("AUDIT_EXPORT_ENABLED", AUDIT_EXPORT_ENABLED)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)
_seed_raw = _env_str("DEBUG_SEED", None)
DEBUG_SEED = int(_seed_raw) if _seed_raw is not None and _seed_raw.lstrip("-").isdigit() else None
