"""Question Picker: Randomized, non-repeating question order for a session."""

import logging
import random
from typing import Callable, List, Optional, Set

from .errors import ExhaustedPoolError

logger = logging.getLogger(__name__)

RELEASE = "release"
RETIRE = "retire"


def fisher_yates(items: list, rng: random.Random) -> list:
    """Shuffle *items* in place: swap each position from the end with a random earlier one."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


class SessionPlan:
    """Shuffled slot order for one session plus the set of consumed slots."""

    def __init__(self, band: range, order: List[int], quota: int):
        self.band = band
        self.order = order
        self.quota = quota
        self.used: Set[int] = set()
        self.discarded: List[int] = []
        self.cursor = 0

    def mark_used(self, index: int):
        self.used.add(index)

    def is_used(self, index: int) -> bool:
        return index in self.used

    @property
    def consumed(self) -> int:
        return len(self.used)

    def remaining(self, is_valid: Callable[[int], bool]) -> int:
        return sum(1 for i in self.band if i not in self.used and is_valid(i))


class QuestionPicker:
    """Builds session plans and finds replacement questions.

    With the ``retire`` policy, questions discarded through the Replace
    lifeline are left out of every later plan built by this picker.
    """

    def __init__(self, rng: Optional[random.Random] = None, replaced_policy: str = RELEASE):
        if replaced_policy not in (RELEASE, RETIRE):
            raise ValueError(f"Unknown replaced question policy: {replaced_policy}")
        self.rng = rng or random.Random()
        self.replaced_policy = replaced_policy
        self.retired: Set[int] = set()

    def new_plan(self, band: range, quota: int) -> SessionPlan:
        order = fisher_yates(list(band), self.rng)
        plan = SessionPlan(band, order, quota)
        if self.replaced_policy == RETIRE:
            for index in self.retired:
                if index in band:
                    plan.mark_used(index)
        logger.debug(f"New plan over slots {band.start}-{band.stop - 1}, quota {quota}")
        return plan

    def next_index(self, plan: SessionPlan, is_valid: Callable[[int], bool]) -> Optional[int]:
        """Return the next unused, valid slot in shuffled order and mark it used."""
        while plan.cursor < len(plan.order):
            index = plan.order[plan.cursor]
            plan.cursor += 1
            if plan.is_used(index) or not is_valid(index):
                continue
            plan.mark_used(index)
            return index
        return None

    def substitute(self, plan: SessionPlan, is_valid: Callable[[int], bool] = lambda i: True) -> Optional[int]:
        """Return the first unused slot in band order, marking it used, or None."""
        for index in plan.band:
            if plan.is_used(index) or not is_valid(index):
                continue
            plan.mark_used(index)
            return index
        return None

    def replace(self, plan: SessionPlan, current: int, is_valid: Callable[[int], bool]) -> int:
        """Swap out *current* for a substitute; raises ExhaustedPoolError when none is left."""
        index = self.substitute(plan, is_valid)
        if index is None:
            raise ExhaustedPoolError("No unused question left to replace this one.")
        plan.discarded.append(current)
        if self.replaced_policy == RETIRE:
            self.retired.add(current)
        logger.info(f"Replaced question slot {current} with slot {index}")
        return index
