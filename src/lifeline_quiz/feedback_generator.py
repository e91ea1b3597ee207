"""Feedback Generator: Player-facing text for verdicts, lifelines and summaries."""

import logging
import random
from typing import Optional

from .lifelines import Lifeline
from .scoring import OutcomeKind, RoundOutcome, ScoreDelta, SessionStats

logger = logging.getLogger(__name__)

CORRECT_TEMPLATES = [
    "Correct! {reinforcement}",
    "That's right! {reinforcement}",
    "Well done, correct! {reinforcement}",
]

REINFORCEMENTS = [
    "Keep it up!",
    "Nice one!",
    "You're on a roll!",
    "",
]

WRONG_TEMPLATES = [
    "Wrong! Correct answer: {answer}",
    "Not quite. Correct answer: {answer}",
]

TIMEOUT_TEMPLATES = [
    "You didn't answer in time! Correct answer: {answer}",
    "Time's up! Correct answer: {answer}",
]

LIFELINE_NOTICES = {
    Lifeline.FIFTY_FIFTY: "[LIFELINE USED: 50/50] Removing 2 wrong answers...",
    Lifeline.SKIP: "[LIFELINE USED: Skip Question] Question skipped without penalty!",
    Lifeline.REPLACE: "[LIFELINE USED: Replace Question] Finding a new question...",
    Lifeline.EXTRA_TIME: "[LIFELINE USED: Extra Time] +{bonus} seconds added! New time: {seconds}s",
}


class FeedbackGenerator:
    """Builds the messages shown to the player; holds no game state."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate(self, outcome: RoundOutcome, delta: ScoreDelta, score: int) -> str:
        """Verdict text for a resolved question, including bonus and penalty lines."""
        lines = []
        if outcome.kind is OutcomeKind.CORRECT:
            template = self.rng.choice(CORRECT_TEMPLATES)
            reinforcement = self.rng.choice(REINFORCEMENTS)
            lines.append(template.format(reinforcement=reinforcement).strip())
            if delta.bonus:
                lines.append(f"Streak Bonus +{delta.bonus} points!")
        elif outcome.kind is OutcomeKind.SKIPPED:
            lines.append("Question skipped.")
        else:
            templates = TIMEOUT_TEMPLATES if outcome.kind is OutcomeKind.TIMED_OUT else WRONG_TEMPLATES
            lines.append(self.rng.choice(templates).format(answer=outcome.correct_text))
            lines.append(f"Negative Mark: -{delta.penalty} points")
        lines.append(f"Current Score: {score}")
        return "\n".join(lines)

    def generate_intro(self, question_num: int, total: int) -> str:
        return f"Question {question_num} of {total}"

    def lifeline_notice(self, lifeline: Lifeline, seconds: Optional[float] = None,
                        bonus: Optional[int] = None) -> str:
        notice = LIFELINE_NOTICES[lifeline]
        if lifeline is Lifeline.EXTRA_TIME:
            return notice.format(bonus=bonus, seconds=round(seconds))
        return notice

    def generate_session_summary(self, stats: SessionStats, total: int) -> str:
        """End-of-session summary with a performance remark."""
        pct = (stats.correct_count / total * 100) if total > 0 else 0
        summary = (
            f"Quiz complete! Final score: {stats.score}. "
            f"Correct: {stats.correct_count}, Wrong: {stats.wrong_count}, "
            f"Skipped: {stats.skipped_count} (of {total}). "
        )
        if pct >= 80:
            summary += "Outstanding performance!"
        elif pct >= 50:
            summary += "Good work! Keep practicing."
        else:
            summary += "Keep studying, you'll improve with practice!"
        return summary

    def review_heading(self, count: int) -> str:
        if count == 0:
            return "Great job! You didn't answer any questions incorrectly!"
        return f"You answered {count} question(s) incorrectly."
