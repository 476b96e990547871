from __future__ import annotations
import json, importlib.resources as ir, random
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .config import QUESTION_BANK_PATH
from .errors import UnknownQuestionError
from .levels import CEFRLevel, LEVEL_ORDER, index_of, parse_level
from .types import Question


def load_bank(path: Optional[str] = None) -> List[Question]:
    src = path or QUESTION_BANK_PATH
    if src:
        data = Path(src).read_text(encoding="utf-8")
    else:
        data = ir.files(__package__).joinpath("data/questions.json").read_text(encoding="utf-8")
    raw = json.loads(data)
    return [Question(**r) for r in raw]


def index_bank(items: Iterable[Question]) -> Dict[CEFRLevel, List[Question]]:
    out: Dict[CEFRLevel, List[Question]] = {lvl: [] for lvl in LEVEL_ORDER}
    for it in items:
        out[parse_level(it.level)].append(it)
    return out


def find_question(items: Iterable[Question], question_id: str) -> Question:
    for it in items:
        if it.id == question_id:
            return it
    raise UnknownQuestionError(question_id)


def _level_order(base: CEFRLevel) -> List[CEFRLevel]:
    """Target level first, then neighbours fanning outward, upper side first."""

    idx = index_of(base)
    order: List[CEFRLevel] = [base]
    for delta in range(1, len(LEVEL_ORDER)):
        for cand in (idx + delta, idx - delta):
            if 0 <= cand < len(LEVEL_ORDER):
                order.append(LEVEL_ORDER[cand])
    return order


def pick_question(
    items: Iterable[Question],
    level: CEFRLevel,
    exclude: Iterable[str] = (),
    rng: Optional[random.Random] = None,
) -> Optional[Question]:
    """Serve an unasked question at ``level``, or the nearest level that has one.

    Returns ``None`` once every question has been asked. Without ``rng`` the
    first unasked question in bank order is served.
    """

    asked = set(exclude)
    by_level = index_bank(items)
    for lvl in _level_order(parse_level(level)):
        options = [it for it in by_level.get(lvl, []) if it.id not in asked]
        if options:
            return rng.choice(options) if rng is not None else options[0]
    return None
