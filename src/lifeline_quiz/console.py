"""Console Sink: Terminal presentation and non-blocking line input."""

import logging
import queue
import sys
import threading
from typing import Dict, Optional, Sequence

from .lifelines import Lifeline

try:
    import termios
except ImportError:  # Windows
    termios = None

logger = logging.getLogger(__name__)

TIMER_COLUMN = 60


class ConsoleSink:
    """
    Interaction sink for a terminal.

    A daemon thread reads stdin line by line into a queue, so waiting for a
    choice is a ``queue.get`` with a timeout: it returns the moment a line is
    entered and never busy-polls the keyboard.
    """

    def __init__(self, narrator=None, show_timer: bool = True,
                 stdin=None, stdout=None):
        self.narrator = narrator
        self.show_timer = show_timer
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self._lines: "queue.Queue[str]" = queue.Queue()
        self._closed = threading.Event()
        self._reader: Optional[threading.Thread] = None
        self._last_tick: Optional[int] = None

    # -- input -----------------------------------------------------------

    def _start_reader(self):
        if self._reader is None:
            self._reader = threading.Thread(target=self._read_loop, name="stdin-reader", daemon=True)
            self._reader.start()

    def _read_loop(self):
        for line in self.stdin:
            self._lines.put(line.rstrip("\r\n"))
        logger.debug("stdin closed")
        self._closed.set()

    def read_choice(self, timeout: float) -> Optional[str]:
        self._start_reader()
        try:
            line = self._lines.get(timeout=timeout)
        except queue.Empty:
            return None
        self._last_tick = None
        return line.strip()

    def discard_pending(self):
        dropped = 0
        while True:
            try:
                self._lines.get_nowait()
                dropped += 1
            except queue.Empty:
                break
        if termios is not None and self.stdin.isatty():
            try:
                termios.tcflush(self.stdin.fileno(), termios.TCIFLUSH)
            except (termios.error, OSError, ValueError) as e:
                logger.debug(f"Could not flush terminal input: {e}")
        if dropped:
            logger.debug(f"Discarded {dropped} buffered input line(s)")

    def prompt(self, text: str) -> str:
        """Blocking read of one line; raises EOFError once stdin is closed."""
        self._write(text)
        self._start_reader()
        while True:
            try:
                return self._lines.get(timeout=0.5).strip()
            except queue.Empty:
                if self._closed.is_set() and self._lines.empty():
                    raise EOFError("input closed")

    def wait_for_enter(self, text: str = "Press Enter to continue..."):
        self.prompt(f"\n{text}")

    # -- output ----------------------------------------------------------

    def _write(self, text: str):
        self.stdout.write(text)
        self.stdout.flush()

    def _say(self, text: str):
        if self.narrator is not None:
            self.narrator.speak(text)

    def clear(self):
        self._write("\x1b[2J\x1b[H")

    def show_message(self, text: str):
        self._write(f"\n{text}\n")
        self._say(text)

    def present_question(self, heading: str, prompt: str, options: Sequence[str],
                         availability: Dict[Lifeline, bool]):
        self.clear()
        self._write(f"{heading}\n\n{prompt}\n\n")
        for i, option in enumerate(options, start=1):
            self._write(f"{i}) {option}\n")
        self._write("\n--- Lifelines Available ---\n")
        for lifeline in Lifeline:
            state = "[AVAILABLE]" if availability.get(lifeline) else "[USED]"
            self._write(f"{lifeline.key}) {lifeline.label} {state}\n")
        self._say(prompt)
        self._write("\nYour answer (1-4) or lifeline (5-8): ")
        self._last_tick = None

    def present_options(self, options: Sequence[str]):
        self._write("\n")
        for i, option in enumerate(options, start=1):
            self._write(f"{i}) {option}\n")
        self._write("\nNow answer (1-4): ")

    def present_review(self, heading: str, prompt: str, options: Sequence[str],
                       correct_position: int):
        self.clear()
        self._write(f"{heading}\n\n{prompt}\n\n")
        for i, option in enumerate(options, start=1):
            self._write(f"{i}) {option}\n")
        self._write(f"\n** Correct Answer: {options[correct_position]} **\n")

    def tick(self, remaining: int):
        if not self.show_timer or remaining == self._last_tick:
            return
        self._last_tick = remaining
        # Save cursor, draw in the top row, restore cursor.
        self._write(f"\x1b7\x1b[1;{TIMER_COLUMN}HTime: {remaining}s \x1b8")
