from __future__ import annotations
import argparse, datetime, logging, os, time
from cefr_core.attempt import LevelTestAttempt
from cefr_core.report_html import export_report_html
from cefr_core.reporting import build_report, format_summary
def ask(prompt: str, options=None) -> str:
    if options:
        print(prompt)
        for i,opt in enumerate(options): print(f"  [{i}] {opt}")
        while True:
            v = input("Your choice (index): ").strip()
            if v.isdigit() and int(v) < len(options): return v
            print("Enter a number index.")
    else:
        return input(prompt + " ").strip()
def main():
    ap = argparse.ArgumentParser(description="Interactive CEFR placement test")
    ap.add_argument("--user", default="console")
    ap.add_argument("--start-level", default=None)
    ap.add_argument("--max-questions", type=int, default=None)
    ap.add_argument("--verbose", action="store_true")
    a = ap.parse_args()
    logging.basicConfig(level=logging.DEBUG if a.verbose else logging.WARNING, format="[%(levelname)s] %(message)s")
    print("CEFR Level Test")
    att = LevelTestAttempt(a.user, a.start_level, session_id=f"cli_{int(time.time())}", max_questions=a.max_questions, shuffle=True)
    try:
        while True:
            q = att.next_question()
            if q is None: break
            n = att.session.total_questions + 1
            print(f"\n--- Q{n} | {q.type} | level {q.level.value} ---")
            t0 = time.perf_counter(); v = ask(q.content, q.options); rt = time.perf_counter() - t0
            out = att.answer_current(int(v) if q.options else v, rt)
            if out is not None and out.level_changed: print(f"  level is now {out.session.current_level.value}")
    except KeyboardInterrupt:
        print("\nStopped by user.")
    res = att.finalize(); print("\n" + format_summary(res))
    os.makedirs("reports", exist_ok=True)
    ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    path = export_report_html(build_report(att.session, res, att.audit_events), os.path.join("reports", f"level_test_{ts}.html"))
    print(f"Done. Report saved to: {path}")
if __name__ == "__main__": main()
