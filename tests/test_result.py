from __future__ import annotations

from cefr_core.engine import calculate_result, create_session, process_answer, run_pattern
from cefr_core.levels import CEFRLevel
from cefr_core.reporting import build_report, format_summary, report_metadata


def _session(pattern, answers, start=CEFRLevel.A1_1):
    s = create_session("u", start, session_id="t-1")
    for rec in answers(pattern):
        s = process_answer(s, rec).session
    return s


def test_score_counts_and_duration(answers):
    res = calculate_result(_session("cx" * 25, answers))
    assert res.total_questions == 50 and res.correct_answers == 25
    assert res.score == 50
    assert res.test_duration == 500.0
    assert res.final_level is CEFRLevel.A1_1
    assert res.completion_reason == "max_questions"


def test_score_rounds_half_up(answers):
    # 5/8 = 62.5%
    res = calculate_result(_session("cxcxcxcc", answers))
    assert res.score == 63, "x.5 rounds up, not to even"


def test_empty_session_scores_zero():
    res = calculate_result(create_session("u", CEFRLevel.B2_1))
    assert res.score == 0 and res.total_questions == 0 and res.test_duration == 0.0
    assert res.final_level is CEFRLevel.B2_1
    assert res.level_progression == [CEFRLevel.B2_1]


def test_unfinished_session_reports_current_level(answers):
    s = _session("cc", answers)
    res = calculate_result(s)
    assert not s.is_completed and s.final_level is None
    assert res.final_level is CEFRLevel.A1_2
    assert res.completion_reason is None
    assert res.to_dict()["level_progression"] == ["A1_1", "A1_2"]


def test_report_marks_unfinished_attempts(answers):
    s = _session("cc", answers)
    report = build_report(s, calculate_result(s), report_id="r-1", created_at="2024-01-01T00:00:00+00:00")
    assert report["id"] == report["reportId"] == "r-1"
    assert report["meta"]["incomplete"] is True
    assert report["meta"]["incomplete_reason"] == "FINISHED_EARLY"
    assert report["meta"]["finalBand"] == "A1"
    assert len(report["answers"]) == 2
    meta = report_metadata(report)
    assert meta == {
        "testId": "t-1",
        "userId": "u",
        "createdAt": "2024-01-01T00:00:00+00:00",
        "startLevel": "A1_1",
        "finalLevel": "A1_2",
        "score": 100,
        "completed": False,
    }


def test_summary_text_names_the_exit():
    steps = run_pattern([False] * 3, CEFRLevel.B1_1)
    text = format_summary(calculate_result(steps[-1].session))
    assert "Final level: A3_3 (A3)" in text
    assert "Ended by: three_incorrect" in text
