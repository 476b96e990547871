"""The 21-step CEFR ladder used by the placement test.

Seven bands (A1, A2, A3, B1, B2, C1, C2), each split into three sub-steps.
Only the ordering matters to the engine: every level has at most one
neighbour on either side.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

from .errors import InvalidLevelError

__all__ = [
    "CEFRLevel",
    "LEVEL_ORDER",
    "MIN_LEVEL",
    "MAX_LEVEL",
    "index_of",
    "next_level",
    "previous_level",
    "is_max_level",
    "is_min_level",
    "shift_level",
    "parse_level",
    "band_of",
]


class CEFRLevel(str, Enum):
    A1_1 = "A1_1"
    A1_2 = "A1_2"
    A1_3 = "A1_3"
    A2_1 = "A2_1"
    A2_2 = "A2_2"
    A2_3 = "A2_3"
    A3_1 = "A3_1"
    A3_2 = "A3_2"
    A3_3 = "A3_3"
    B1_1 = "B1_1"
    B1_2 = "B1_2"
    B1_3 = "B1_3"
    B2_1 = "B2_1"
    B2_2 = "B2_2"
    B2_3 = "B2_3"
    C1_1 = "C1_1"
    C1_2 = "C1_2"
    C1_3 = "C1_3"
    C2_1 = "C2_1"
    C2_2 = "C2_2"
    C2_3 = "C2_3"

    def __str__(self) -> str:
        return self.value


LEVEL_ORDER: Tuple[CEFRLevel, ...] = tuple(CEFRLevel)
MIN_LEVEL: CEFRLevel = LEVEL_ORDER[0]
MAX_LEVEL: CEFRLevel = LEVEL_ORDER[-1]

_INDEX = {lvl: idx for idx, lvl in enumerate(LEVEL_ORDER)}


def index_of(level: CEFRLevel) -> int:
    return _INDEX[parse_level(level)]


def next_level(level: CEFRLevel) -> Optional[CEFRLevel]:
    idx = index_of(level)
    if idx >= len(LEVEL_ORDER) - 1:
        return None
    return LEVEL_ORDER[idx + 1]


def previous_level(level: CEFRLevel) -> Optional[CEFRLevel]:
    idx = index_of(level)
    if idx <= 0:
        return None
    return LEVEL_ORDER[idx - 1]


def is_max_level(level: CEFRLevel) -> bool:
    return parse_level(level) is MAX_LEVEL


def is_min_level(level: CEFRLevel) -> bool:
    return parse_level(level) is MIN_LEVEL


def shift_level(level: CEFRLevel, steps: int) -> CEFRLevel:
    """Move ``steps`` positions along the ladder, clamped at both ends."""

    idx = index_of(level) + int(steps)
    idx = max(0, min(len(LEVEL_ORDER) - 1, idx))
    return LEVEL_ORDER[idx]


def parse_level(value: object) -> CEFRLevel:
    """Return the ladder member named by ``value``.

    Accepts a ``CEFRLevel`` or its name ("B1_2", "b1-2"). Anything else is a
    contract error and raises ``InvalidLevelError``; values are never clamped.
    """

    if isinstance(value, CEFRLevel):
        return value
    if isinstance(value, str):
        key = value.strip().upper().replace("-", "_")
        try:
            return CEFRLevel(key)
        except ValueError:
            pass
    raise InvalidLevelError(value)


def band_of(level: CEFRLevel) -> str:
    return parse_level(level).value.split("_", 1)[0]
