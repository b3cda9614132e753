#Purpose: Ranking model for the pending queue (the "who goes first" layer).
#Maps a declared urgency class onto an integer weight and defines the total order
#used everywhere pending rides are compared:
#higher priority_score first
#equal scores -> earlier request_time first
#That order is a hard contract; only the data structure holding it is free to change.

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple, Union


class PriorityClass(str, Enum):
    NORMAL = "normal"
    EXAM = "exam"
    EMERGENCY = "emergency"

    @classmethod
    def parse(cls, value: Union[str, "PriorityClass", None]) -> "PriorityClass":
        """Lenient parse: anything unrecognised is treated as NORMAL."""
        if isinstance(value, PriorityClass):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.NORMAL


PRIORITY_WEIGHTS: Dict[PriorityClass, int] = {
    PriorityClass.EMERGENCY: 100,
    PriorityClass.EXAM: 60,
    PriorityClass.NORMAL: 20,
}

DEFAULT_PRIORITY_SCORE = PRIORITY_WEIGHTS[PriorityClass.NORMAL]


def priority_score(priority_class: Union[str, PriorityClass, None]) -> int:
    """emergency -> 100, exam -> 60, normal (or anything else) -> 20"""
    return PRIORITY_WEIGHTS.get(PriorityClass.parse(priority_class), DEFAULT_PRIORITY_SCORE)


def rank_key(ride: Any) -> Tuple[int, datetime]:
    """Sort key for pending rides: (-priority_score, request_time)."""
    return (-ride.priority_score, ride.request_time)


def precedes(a: Any, b: Any) -> bool:
    """True iff ride `a` must be offered before ride `b`."""
    return rank_key(a) < rank_key(b)
