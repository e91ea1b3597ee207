"""Lifelines: One-shot assistance actions available once per session."""

import logging
from enum import Enum
from typing import Dict, List, Sequence

from .errors import LifelineMisuseError

logger = logging.getLogger(__name__)

REMOVED = "[REMOVED]"
EXTRA_TIME_BONUS = 10


class Lifeline(Enum):
    FIFTY_FIFTY = (5, "50/50")
    SKIP = (6, "Skip Question")
    REPLACE = (7, "Replace Question")
    EXTRA_TIME = (8, "Extra Time")

    def __init__(self, key: int, label: str):
        self.key = key
        self.label = label

    @classmethod
    def from_key(cls, key: int) -> "Lifeline":
        for lifeline in cls:
            if lifeline.key == key:
                return lifeline
        raise ValueError(f"Not a lifeline key: {key}")


class LifelineSet:
    """Availability flags for the four lifelines of one session."""

    def __init__(self, extra_time_bonus: int = EXTRA_TIME_BONUS):
        self.extra_time_bonus = extra_time_bonus
        self._available: Dict[Lifeline, bool] = {}
        self.reset()

    def reset(self):
        self._available = {lifeline: True for lifeline in Lifeline}

    def is_available(self, lifeline: Lifeline) -> bool:
        return self._available[lifeline]

    def availability(self) -> Dict[Lifeline, bool]:
        return dict(self._available)

    def use(self, lifeline: Lifeline):
        """Spend *lifeline*; raises LifelineMisuseError if it is already spent."""
        if not self._available[lifeline]:
            logger.info(f"Lifeline {lifeline.label} requested but already used")
            raise LifelineMisuseError(lifeline)
        self._available[lifeline] = False
        logger.info(f"Lifeline used: {lifeline.label}")

    def fifty_fifty(self, options: Sequence[str], correct_index: int) -> List[str]:
        """Return *options* with the first two wrong answers replaced by the removed marker."""
        self.use(Lifeline.FIFTY_FIFTY)
        remaining = list(options)
        removed = 0
        for i in range(len(remaining)):
            if removed == 2:
                break
            if i != correct_index:
                remaining[i] = REMOVED
                removed += 1
        return remaining

    def skip(self):
        self.use(Lifeline.SKIP)

    def replace(self):
        self.use(Lifeline.REPLACE)

    def extra_time(self, remaining: float) -> float:
        """Return the time budget after adding the extra-time bonus."""
        self.use(Lifeline.EXTRA_TIME)
        return remaining + self.extra_time_bonus
