from __future__ import annotations
import argparse
from pathlib import Path

from cefr_core import audit_bank
from cefr_core.question_bank import load_bank


def main():
    ap = argparse.ArgumentParser(description="Check question bank coverage per CEFR sub-level")
    ap.add_argument("--bank", default=None, help="path to a questions.json (defaults to the packaged bank)")
    ap.add_argument("--json", default=None, help="also write the summary JSON here")
    a = ap.parse_args()

    summary = audit_bank.audit_items(load_bank(a.bank))
    audit_bank.print_report(summary)
    if a.json:
        audit_bank.write_summary(summary, Path(a.json))
        print(f"\nSummary written to {a.json}")
    return 2 if summary["warnings"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
