from __future__ import annotations

import json

import pytest

from cefr_core.engine import create_session, process_answer
from cefr_core.errors import InvalidLevelError
from cefr_core.levels import CEFRLevel
from cefr_core.types import Session


def test_session_survives_json_storage(answers):
    s = create_session("u", CEFRLevel.B1_1, session_id="t-9", max_questions=20)
    for rec in answers("ccxcc"):
        s = process_answer(s, rec).session

    payload = json.loads(json.dumps(s.to_dict()))
    assert payload["current_level"] == s.current_level.value
    assert payload["answers"][0]["answered_at"].endswith("+00:00")

    restored = Session.from_dict(payload)
    assert restored == s
    # the restored value keeps driving the engine the same way
    nxt = answers("x")[0]
    assert process_answer(restored, nxt).session == process_answer(s, nxt).session


def test_from_dict_fills_defaults_for_older_payloads():
    restored = Session.from_dict({"user_id": "u", "current_level": "a2-1"})
    assert restored.current_level is CEFRLevel.A2_1
    assert restored.start_level is CEFRLevel.A2_1
    assert restored.max_questions == 50
    assert restored.level_progression == (CEFRLevel.A2_1,)
    assert restored.answers == ()


def test_session_rejects_levels_off_the_ladder():
    with pytest.raises(InvalidLevelError):
        Session(id="", user_id="u", start_level="Z9", current_level="Z9")
    with pytest.raises(ValueError):
        Session(id="", user_id="u", start_level="A1_1", current_level="A1_1", final_level="C3_1")


def test_session_accepts_level_names(answers):
    s = Session(
        id="t-str",
        user_id="u",
        start_level="b1_1",
        current_level="B1_1",
        level_progression=["B1_1"],
    )
    assert s.current_level is CEFRLevel.B1_1 and s.start_level is CEFRLevel.B1_1
    assert s.level_progression == (CEFRLevel.B1_1,)
    out = process_answer(s, answers("c")[0])
    assert out.event["level_before"] == "B1_1"
    assert out.session.current_level is CEFRLevel.B1_1
