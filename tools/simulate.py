# tools/simulate.py
from __future__ import annotations
import argparse, logging, random
from typing import List, Optional

from cefr_core.engine import calculate_result, run_pattern
from cefr_core.levels import MIN_LEVEL, parse_level
from cefr_core.types import AnswerOutcome


def parse_pattern(text: str) -> List[bool]:
    """'ccx' -> [True, True, False]. Accepts c/1/o for correct and x/0/w for wrong."""

    out: List[bool] = []
    for ch in text.strip().lower():
        if ch in "c1o":
            out.append(True)
        elif ch in "x0w":
            out.append(False)
        elif ch in " ,-":
            continue
        else:
            raise ValueError(f"unknown pattern symbol {ch!r}")
    if not out:
        raise ValueError("pattern is empty")
    return out


def expand(pattern: List[bool], length: int) -> List[bool]:
    return [pattern[i % len(pattern)] for i in range(length)]


def describe(outcome: AnswerOutcome, idx: int) -> str:
    s = outcome.session
    mark = "correct" if s.answers[-1].is_correct else "wrong  "
    tags = ""
    if outcome.level_changed: tags += " [level changed]"
    if outcome.test_completed: tags += f" [completed: {s.completion_reason}]"
    return (
        f"Q{idx:02d}: {mark} | level {s.current_level.value} | "
        f"c={s.correct_streak} i={s.incorrect_streak} up={s.level_up_streak}{tags}"
    )


def simulate(
    pattern: List[bool],
    runs: int = 1,
    start_level: str = MIN_LEVEL.value,
    max_questions: int = 50,
    seed: Optional[int] = None,
    quiet: bool = False,
) -> List[dict]:
    rng = random.Random(seed)
    results = []
    for run in range(1, runs + 1):
        # per-answer time in the 10-40s range
        steps = run_pattern(
            expand(pattern, max_questions),
            parse_level(start_level),
            user_id=f"sim_{run}",
            max_questions=max_questions,
            time_taken=float(rng.randint(10, 40)),
        )
        if not quiet:
            print(f"\n=== simulation {run} (start {start_level}) ===")
            for idx, outcome in enumerate(steps, start=1):
                print(describe(outcome, idx))
        res = calculate_result(steps[-1].session)
        results.append(res.to_dict())
        if not quiet:
            print(f"final={res.final_level.value} score={res.score}% "
                  f"answered={res.total_questions} correct={res.correct_answers}")
    return results


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Replay a correctness pattern through the level-test engine")
    ap.add_argument("--pattern", default="ccx", help="repeating pattern, e.g. ccx = 2 correct then 1 wrong")
    ap.add_argument("--runs", type=int, default=1)
    ap.add_argument("--start-level", default=MIN_LEVEL.value)
    ap.add_argument("--max-questions", type=int, default=50)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--quiet", action="store_true")
    ap.add_argument("--debug", action="store_true")
    a = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if a.debug else logging.INFO, format="[%(levelname)s] %(message)s")
    results = simulate(parse_pattern(a.pattern), a.runs, a.start_level, a.max_questions, a.seed, a.quiet)
    finals = sorted({r["final_level"] for r in results})
    print(f"\n{len(results)} run(s) done; final levels: {', '.join(finals)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
