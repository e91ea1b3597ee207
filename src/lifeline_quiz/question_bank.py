"""Question Bank: Loads pipe-delimited question files and slices them into difficulty bands."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import LoadError, RecordParseError

logger = logging.getLogger(__name__)

DELIMITER = "|"
OPTION_COUNT = 4
BAND_SIZE = 50
MAX_RECORDS = 150


class Difficulty(Enum):
    """Difficulty level: band position and negative mark."""

    EASY = (1, "Easy", 2)
    MEDIUM = (2, "Medium", 3)
    HARD = (3, "Hard", 5)

    def __init__(self, level: int, label: str, penalty: int):
        self.level = level
        self.label = label
        self.penalty = penalty

    @classmethod
    def from_level(cls, level: int) -> "Difficulty":
        for d in cls:
            if d.level == level:
                return d
        raise ValueError(f"Unknown difficulty level: {level}")


@dataclass(frozen=True)
class QuestionRecord:
    prompt: str
    options: Tuple[str, str, str, str]
    correct_index: int

    def __post_init__(self):
        if len(self.options) != OPTION_COUNT:
            raise ValueError(f"expected {OPTION_COUNT} options, got {len(self.options)}")
        if not 0 <= self.correct_index < OPTION_COUNT:
            raise ValueError(f"correct index {self.correct_index} out of range")

    @property
    def correct_text(self) -> str:
        return self.options[self.correct_index]


def parse_record(line: str, line_no: int = 0) -> QuestionRecord:
    """Parse ``prompt|opt1|opt2|opt3|opt4|correct`` where *correct* is 1-based."""
    fields = [f.strip() for f in line.rstrip("\r\n").split(DELIMITER)]
    if len(fields) < 2 + OPTION_COUNT:
        raise RecordParseError(line_no, f"expected {2 + OPTION_COUNT} fields, got {len(fields)}")
    prompt = fields[0]
    options = tuple(fields[1:1 + OPTION_COUNT])
    correct_str = fields[1 + OPTION_COUNT]
    if not prompt:
        raise RecordParseError(line_no, "empty question text")
    if not correct_str:
        raise RecordParseError(line_no, "missing correct answer number")
    try:
        correct = int(correct_str)
    except ValueError:
        raise RecordParseError(line_no, f"correct answer is not a number: {correct_str!r}")
    if not 1 <= correct <= OPTION_COUNT:
        raise RecordParseError(line_no, f"correct answer {correct} not in 1-{OPTION_COUNT}")
    return QuestionRecord(prompt=prompt, options=options, correct_index=correct - 1)


class QuestionBank:
    """Holds the record slots of one category file.

    Slots keep their line position so that difficulty bands stay fixed:
    band *n* covers slots ``(n - 1) * band_size`` up to ``n * band_size``.
    A slot is ``None`` when the line was blank, malformed or beyond the end
    of the file; such slots are never offered to the picker.
    """

    def __init__(self, questions_dir: str, categories: Dict[str, str],
                 band_size: int = BAND_SIZE, max_records: int = MAX_RECORDS):
        self.questions_dir = Path(questions_dir)
        self.categories = categories
        self.band_size = band_size
        self.max_records = max_records
        self.category_key: Optional[str] = None
        self._slots: List[Optional[QuestionRecord]] = []
        self.errors: List[RecordParseError] = []

    def fetch_records(self, category_key: str) -> List[str]:
        """Return the raw lines of a category file, in file order."""
        filename = self.categories.get(category_key)
        if filename is None:
            raise LoadError(f"Unknown category: {category_key}")
        path = self.questions_dir / filename
        try:
            with open(path, "r", encoding="utf-8") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"Failed to load questions from {path}: {e}")
        return lines[:self.max_records]

    def load(self, category_key: str) -> List[Optional[QuestionRecord]]:
        lines = self.fetch_records(category_key)
        slots: List[Optional[QuestionRecord]] = []
        errors: List[RecordParseError] = []
        for line_no, line in enumerate(lines, start=1):
            if not line.strip():
                slots.append(None)
                continue
            try:
                slots.append(parse_record(line, line_no))
            except RecordParseError as e:
                logger.warning(f"Skipping invalid record in {category_key}: {e}")
                errors.append(e)
                slots.append(None)

        if not any(slots):
            raise LoadError(f"No valid questions found for category {category_key}")

        self.category_key = category_key
        self._slots = slots
        self.errors = errors
        logger.info(
            f"Loaded {self.valid_count()} questions for {category_key} "
            f"({len(errors)} invalid records skipped)"
        )
        return list(slots)

    def band(self, difficulty: Difficulty) -> range:
        start = (difficulty.level - 1) * self.band_size
        return range(start, start + self.band_size)

    def is_valid(self, index: int) -> bool:
        return 0 <= index < len(self._slots) and self._slots[index] is not None

    def get(self, index: int) -> QuestionRecord:
        if not self.is_valid(index):
            raise IndexError(f"No question in slot {index}")
        return self._slots[index]

    def valid_count(self, difficulty: Optional[Difficulty] = None) -> int:
        indices = self.band(difficulty) if difficulty else range(len(self._slots))
        return sum(1 for i in indices if self.is_valid(i))
