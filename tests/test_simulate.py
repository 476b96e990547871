from __future__ import annotations

import pytest

from tools.simulate import expand, main, parse_pattern, simulate


def test_parse_pattern():
    assert parse_pattern("ccx") == [True, True, False]
    assert parse_pattern("1, 0 -c") == [True, False, True]
    with pytest.raises(ValueError):
        parse_pattern("cq")
    with pytest.raises(ValueError):
        parse_pattern("  ")


def test_expand_repeats_to_length():
    assert expand([True, False], 5) == [True, False, True, False, True]


def test_simulation_is_reproducible(capsys):
    first = simulate(parse_pattern("ccx"), runs=2, seed=3, quiet=True)
    second = simulate(parse_pattern("ccx"), runs=2, seed=3, quiet=True)
    assert first == second
    assert all(r["total_questions"] == 50 for r in first)
    assert capsys.readouterr().out == ""


def test_cli_prints_steps(capsys):
    assert main(["--pattern", "xxx", "--start-level", "B1_2"]) == 0
    out = capsys.readouterr().out
    assert "Q02: wrong   | level B1_1" in out
    assert "[completed: three_incorrect]" in out
    assert "final levels: B1_1" in out
