from __future__ import annotations

import json

from cefr_core.audit_bank import audit_items, main, write_summary
from cefr_core.types import Question


def test_synthetic_bank_has_no_warnings(synthetic_bank):
    summary = audit_items(synthetic_bank)
    assert summary["warnings"] == []
    assert summary["totals"] == {"reading": 21, "listening": 21}
    assert summary["coverage"]["B2_3"] == {"reading": 1, "listening": 1}


def test_gaps_duplicates_and_bad_keys_are_flagged(synthetic_bank):
    items = [q for q in synthetic_bank if q.level.value != "C1_1"]
    items.append(Question(id="a1_1_0", content="dup", type="reading", level="A1_1", options=["x"], correct_answer="x"))
    items.append(Question(id="broken", content="?", type="listening", level="A1_2", options=["x", "y"], correct_answer="z"))
    warnings = audit_items(items)["warnings"]
    assert "C1_1 has 0 questions (<2)" in warnings
    assert "duplicate question id a1_1_0 (2x)" in warnings
    assert "broken correct_answer is not one of its options" in warnings


def test_write_summary(tmp_path, synthetic_bank):
    path = tmp_path / "audit.json"
    write_summary(audit_items(synthetic_bank), path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert set(data) == {"coverage", "totals", "warnings"}


def test_packaged_bank_passes_audit(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "No warnings." in out
