"""Scoring Engine: Points, streak bonuses and negative marking."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .question_bank import Difficulty

logger = logging.getLogger(__name__)

POINTS_PER_CORRECT = 1
STREAK_BONUSES = {3: 5, 5: 15}
STREAK_RESET_AT = 5


class OutcomeKind(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    TIMED_OUT = "timed_out"
    SKIPPED = "skipped"


class RoundOutcome:
    """Result of one question attempt, with the options as they were displayed."""

    def __init__(self, kind: OutcomeKind, prompt: str, options: Sequence[str],
                 correct_position: int, chosen_index: Optional[int] = None):
        self.kind = kind
        self.prompt = prompt
        self.options = list(options)
        self.correct_position = correct_position
        self.chosen_index = chosen_index

    @property
    def correct_text(self) -> str:
        return self.options[self.correct_position]

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "prompt": self.prompt,
            "options": list(self.options),
            "correct_position": self.correct_position,
            "chosen_index": self.chosen_index,
        }


@dataclass(frozen=True)
class IncorrectRecord:
    prompt: str
    options: tuple
    correct_position: int

    @property
    def correct_text(self) -> str:
        return self.options[self.correct_position]


@dataclass
class SessionStats:
    score: int = 0
    streak: int = 0
    correct_count: int = 0
    wrong_count: int = 0
    skipped_count: int = 0
    incorrect: List[IncorrectRecord] = field(default_factory=list)

    @property
    def answered(self) -> int:
        return self.correct_count + self.wrong_count + self.skipped_count

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "streak": self.streak,
            "correct": self.correct_count,
            "wrong": self.wrong_count,
            "skipped": self.skipped_count,
            "incorrect": len(self.incorrect),
        }


class ScoreDelta:
    """Change applied to the stats by one outcome."""

    def __init__(self, points: int = 0, bonus: int = 0, penalty: int = 0):
        self.points = points
        self.bonus = bonus
        self.penalty = penalty

    @property
    def total(self) -> int:
        return self.points + self.bonus - self.penalty

    def __repr__(self):
        return f"ScoreDelta(points={self.points}, bonus={self.bonus}, penalty={self.penalty})"


class ScoringEngine:
    """Applies outcomes to a SessionStats owned by the caller."""

    def __init__(self, stats: SessionStats):
        self.stats = stats

    def resolve(self, outcome: RoundOutcome, difficulty: Difficulty) -> ScoreDelta:
        stats = self.stats
        if outcome.kind is OutcomeKind.SKIPPED:
            stats.skipped_count += 1
            delta = ScoreDelta()

        elif outcome.kind is OutcomeKind.CORRECT:
            stats.correct_count += 1
            stats.streak += 1
            bonus = STREAK_BONUSES.get(stats.streak, 0)
            if stats.streak == STREAK_RESET_AT:
                stats.streak = 0
            delta = ScoreDelta(points=POINTS_PER_CORRECT, bonus=bonus)

        else:
            stats.wrong_count += 1
            stats.streak = 0
            stats.incorrect.append(IncorrectRecord(
                prompt=outcome.prompt,
                options=tuple(outcome.options),
                correct_position=outcome.correct_position,
            ))
            delta = ScoreDelta(penalty=difficulty.penalty)

        stats.score += delta.total
        logger.info(
            f"Outcome {outcome.kind.value}: {delta}, score={stats.score}, streak={stats.streak}"
        )
        return delta
