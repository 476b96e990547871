from __future__ import annotations

import importlib

import cefr_core.config as config
import cefr_core.engine as engine
from cefr_core.levels import CEFRLevel

_ENV = ("MAX_QUESTIONS", "COMPLETE_AT_TOP_LEVEL", "DEBUG_TRACE", "DEBUG_SEED", "DEFAULT_START_LEVEL")


def _reload():
    importlib.reload(config)
    importlib.reload(engine)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MAX_QUESTIONS", "12")
    monkeypatch.setenv("COMPLETE_AT_TOP_LEVEL", "no")
    monkeypatch.setenv("DEBUG_SEED", "42")
    monkeypatch.setenv("DEFAULT_START_LEVEL", "B1_1")
    try:
        _reload()
        assert config.MAX_QUESTIONS == 12
        assert config.COMPLETE_AT_TOP_LEVEL is False
        assert config.DEBUG_SEED == 42
        assert config.DEFAULT_START_LEVEL == "B1_1"
        assert engine.create_session("u").max_questions == 12
        steps = engine.run_pattern([True] * 4, CEFRLevel.C2_3)
        assert not any(s.test_completed for s in steps), "top-level exit follows the env switch"
    finally:
        for name in _ENV:
            monkeypatch.delenv(name, raising=False)
        _reload()
    assert config.MAX_QUESTIONS == 50 and config.COMPLETE_AT_TOP_LEVEL is True


def test_bad_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("MAX_QUESTIONS", "lots")
    monkeypatch.setenv("DEBUG_SEED", "abc")
    try:
        _reload()
        assert config.MAX_QUESTIONS == 50
        assert config.DEBUG_SEED is None
    finally:
        for name in _ENV:
            monkeypatch.delenv(name, raising=False)
        _reload()


def test_trace_lines_when_enabled(monkeypatch, caplog):
    monkeypatch.setenv("DEBUG_TRACE", "1")
    try:
        _reload()
        with caplog.at_level("INFO", logger="cefr_core.engine"):
            engine.run_pattern([True, True], user_id="tracer")
        lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("trace ")]
        assert len(lines) == 2
        assert "session_id=sim_tracer" in lines[0]
        assert "level_before=A1_1 level_after=A1_2" in lines[1]
    finally:
        for name in _ENV:
            monkeypatch.delenv(name, raising=False)
        _reload()
