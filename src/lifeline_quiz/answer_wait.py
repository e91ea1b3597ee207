"""Answer Wait: Countdown that races against player input."""

import logging
import math
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TICK_INTERVAL = 0.1


class WaitResult:
    """Outcome of one wait: the raw input, or a timeout."""

    def __init__(self, raw: Optional[str], elapsed: float):
        self.raw = raw
        self.elapsed = elapsed

    @property
    def answered(self) -> bool:
        return self.raw is not None

    @property
    def timed_out(self) -> bool:
        return self.raw is None

    def __repr__(self):
        state = f"answered={self.raw!r}" if self.answered else "timed out"
        return f"WaitResult({state}, elapsed={self.elapsed:.2f})"


class AnswerWait:
    """
    Waits for a choice from the sink while pushing the remaining time to it.

    Each tick blocks on ``sink.read_choice(timeout)``, which returns as soon
    as input is available. No tick is emitted once input has arrived; on
    expiry any buffered input is discarded so it cannot leak into the next
    question.
    """

    def __init__(self, sink, clock: Callable[[], float] = time.monotonic,
                 tick_interval: float = TICK_INTERVAL):
        self.sink = sink
        self.clock = clock
        self.tick_interval = tick_interval

    def await_answer(self, time_limit: float) -> WaitResult:
        start = self.clock()
        deadline = start + time_limit
        while True:
            now = self.clock()
            remaining = deadline - now
            if remaining <= 0:
                self.sink.discard_pending()
                logger.debug(f"Timed out after {now - start:.2f}s")
                return WaitResult(None, now - start)

            self.sink.tick(math.ceil(remaining))

            raw = self.sink.read_choice(min(self.tick_interval, remaining))
            if raw is not None:
                elapsed = self.clock() - start
                logger.debug(f"Input {raw!r} after {elapsed:.2f}s")
                return WaitResult(raw, elapsed)
