from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Iterable

from . import config
from .levels import LEVEL_ORDER
from .question_bank import load_bank
from .types import Question

QUESTION_TYPES: tuple[str, ...] = ("reading", "listening")


def _blank_level() -> dict[str, int]:
    return {qt: 0 for qt in QUESTION_TYPES}


def audit_items(items: Iterable[Question]) -> dict[str, object]:
    coverage: dict[str, dict[str, int]] = {lvl.value: _blank_level() for lvl in LEVEL_ORDER}
    totals = {qt: 0 for qt in QUESTION_TYPES}
    ids: Counter[str] = Counter()
    bad_keys: list[str] = []

    for item in items:
        ids[item.id] += 1
        level_data = coverage.setdefault(item.level.value, _blank_level())
        level_data[item.type] = level_data.get(item.type, 0) + 1
        totals[item.type] = totals.get(item.type, 0) + 1
        if item.options and item.correct_answer not in item.options:
            bad_keys.append(item.id)

    warnings: list[str] = []
    for level, data in coverage.items():
        count = sum(data.values())
        if count < config.BANK_MIN_PER_LEVEL:
            warnings.append(f"{level} has {count} questions (<{config.BANK_MIN_PER_LEVEL})")

    for qid, n in sorted(ids.items()):
        if n > 1:
            warnings.append(f"duplicate question id {qid} ({n}x)")
    for qid in bad_keys:
        warnings.append(f"{qid} correct_answer is not one of its options")

    return {"coverage": coverage, "warnings": warnings, "totals": totals}


def print_report(summary: dict[str, object]) -> None:
    coverage: dict[str, dict[str, int]] = summary["coverage"]  # type: ignore[assignment]
    print("=== Bank Coverage ===")
    for lvl in LEVEL_ORDER:
        data = coverage.get(lvl.value, {})
        parts = [f"{qt}:{data.get(qt, 0):3d}" for qt in QUESTION_TYPES]
        print(f"  {lvl.value}  " + "  ".join(parts))

    warnings: list[str] = summary["warnings"]  # type: ignore[assignment]
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
    else:
        print("\nNo warnings.")

    print("\nTotals:", summary["totals"])


def write_summary(summary: dict[str, object], path: Path) -> str:
    text = json.dumps(summary, indent=2, sort_keys=True)
    path.write_text(text + "\n", encoding="utf-8")
    return text


def main(argv: list[str] | None = None) -> int:
    args = list(argv or [])
    items = load_bank(args[0] if args else None)
    summary = audit_items(items)
    print_report(summary)
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
