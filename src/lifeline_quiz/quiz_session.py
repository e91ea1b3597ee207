"""Question Session: Runs one timed, ten-question quiz with lifelines and scoring."""

import logging
import random
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .answer_wait import AnswerWait, TICK_INTERVAL
from .errors import ExhaustedPoolError, LifelineMisuseError, LoadError
from .feedback_generator import FeedbackGenerator
from .lifelines import EXTRA_TIME_BONUS, Lifeline, LifelineSet
from .question_bank import Difficulty, QuestionBank, QuestionRecord
from .question_picker import QuestionPicker, SessionPlan, fisher_yates
from .scoring import OutcomeKind, RoundOutcome, ScoringEngine, SessionStats

logger = logging.getLogger(__name__)

SESSION_QUESTIONS = 10
TIME_LIMIT = 15


class Phase(Enum):
    IDLE = "idle"
    SELECTING = "selecting_question"
    PRESENTING = "presenting"
    AWAITING = "awaiting_answer"
    LIFELINE = "lifeline_invoked"
    RESOLVED = "resolved"
    COMPLETE = "session_complete"


class SessionState:
    """All mutable state of one session; replaced wholesale by ``new_session``."""

    def __init__(self, player: str = "", category_key: str = "",
                 difficulty: Difficulty = Difficulty.EASY,
                 extra_time_bonus: int = EXTRA_TIME_BONUS):
        self.player = player
        self.category_key = category_key
        self.difficulty = difficulty
        self.stats = SessionStats()
        self.lifelines = LifelineSet(extra_time_bonus=extra_time_bonus)
        self.plan: Optional[SessionPlan] = None
        self.total = 0
        self.outcomes: List[RoundOutcome] = []
        self.started_at = time.time()
        self.ended_at: Optional[float] = None


class QuestionSession:
    """
    Drives a session through the interaction sink.

    Each counted question goes SELECTING -> PRESENTING -> AWAITING and ends
    RESOLVED. 50/50, Extra Time and spent or failed lifelines loop back to
    AWAITING on the same question with whatever time is left. A successful
    Replace returns to SELECTING for the same question number. After the
    quota is reached the session is COMPLETE and the stats are recorded.
    """

    def __init__(self, bank: QuestionBank, picker: QuestionPicker, sink,
                 recorder=None, feedback: Optional[FeedbackGenerator] = None,
                 quota: int = SESSION_QUESTIONS, time_limit: float = TIME_LIMIT,
                 extra_time_bonus: int = EXTRA_TIME_BONUS,
                 tick_interval: float = TICK_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 rng: Optional[random.Random] = None):
        self.bank = bank
        self.picker = picker
        self.sink = sink
        self.recorder = recorder
        self.feedback = feedback or FeedbackGenerator()
        self.quota = quota
        self.time_limit = time_limit
        self.extra_time_bonus = extra_time_bonus
        self.clock = clock
        self.rng = rng or random.Random()
        self.waiter = AnswerWait(sink, clock=clock, tick_interval=tick_interval)
        self.phase = Phase.IDLE
        self.state = SessionState(extra_time_bonus=extra_time_bonus)
        self.scoring = ScoringEngine(self.state.stats)

    def _enter(self, phase: Phase):
        logger.debug(f"{self.phase.value} -> {phase.value}")
        self.phase = phase

    @property
    def stats(self) -> SessionStats:
        return self.state.stats

    def new_session(self, player: Optional[str] = None, category_key: Optional[str] = None,
                    difficulty: Optional[Difficulty] = None):
        """Reset lifelines, streak and stats; unspecified settings carry over."""
        previous = self.state
        self.state = SessionState(
            player=player if player is not None else previous.player,
            category_key=category_key if category_key is not None else previous.category_key,
            difficulty=difficulty if difficulty is not None else previous.difficulty,
            extra_time_bonus=self.extra_time_bonus,
        )
        self.scoring = ScoringEngine(self.state.stats)
        self.phase = Phase.IDLE

    def run_session(self, player: str, category_key: str, difficulty: Difficulty) -> SessionStats:
        """Play a full session and return its stats; raises LoadError before any play."""
        self.bank.load(category_key)
        available = self.bank.valid_count(difficulty)
        if available == 0:
            raise LoadError(f"No {difficulty.label} questions available for {category_key}")

        self.new_session(player, category_key, difficulty)
        state = self.state
        state.plan = self.picker.new_plan(self.bank.band(difficulty), self.quota)
        available = state.plan.remaining(self.bank.is_valid)
        state.total = min(self.quota, available)
        if state.total < self.quota:
            logger.warning(
                f"Only {available} valid {difficulty.label} questions for {category_key}; "
                f"session reduced to {state.total}"
            )
            self.sink.show_message(
                f"Note: only {state.total} questions are available for this quiz."
            )

        logger.info(
            f"Session started: player={player}, category={category_key}, "
            f"difficulty={difficulty.label}, questions={state.total}"
        )
        counted = 0
        while counted < state.total:
            self._enter(Phase.SELECTING)
            index = self.picker.next_index(state.plan, self.bank.is_valid)
            while index is not None:
                outcome, replacement = self.ask_question(index, counted + 1, state.total)
                if outcome is not None:
                    break
                index = replacement
            if index is None:
                logger.warning(f"Question pool exhausted after {counted} questions")
                self.sink.show_message("No more questions available. Ending quiz early.")
                break
            self.resolve(outcome)
            counted += 1

        return self.finish()

    def shuffle_options(self, record: QuestionRecord) -> Tuple[List[str], int]:
        """Return the display order of the options and the correct answer's new position."""
        order = list(range(len(record.options)))
        fisher_yates(order, self.rng)
        options = [record.options[i] for i in order]
        return options, order.index(record.correct_index)

    def ask_question(self, index: int, number: int,
                     total: int) -> Tuple[Optional[RoundOutcome], Optional[int]]:
        """
        Present one question and wait for a choice.

        Returns ``(outcome, None)`` when the question is settled, or
        ``(None, new_index)`` when the Replace lifeline swapped it out.
        """
        state = self.state
        record = self.bank.get(index)
        options, correct = self.shuffle_options(record)

        self._enter(Phase.PRESENTING)
        self.sink.present_question(
            self.feedback.generate_intro(number, total),
            record.prompt, options, state.lifelines.availability(),
        )
        remaining = float(self.time_limit)

        def settle(kind: OutcomeKind, chosen: Optional[int] = None):
            return RoundOutcome(kind, record.prompt, options, correct, chosen), None

        while True:
            self._enter(Phase.AWAITING)
            result = self.waiter.await_answer(remaining)
            if result.timed_out:
                return settle(OutcomeKind.TIMED_OUT)
            # The clock only runs inside await_answer; notices and narration are free.
            remaining -= result.elapsed

            choice = self._parse_choice(result.raw)
            if choice is None:
                self.sink.show_message(f"Invalid choice: {result.raw!r}. Enter 1-4 or 5-8.")
                continue
            if choice <= len(options):
                chosen = choice - 1
                return settle(OutcomeKind.CORRECT if chosen == correct else OutcomeKind.INCORRECT, chosen)

            self._enter(Phase.LIFELINE)
            lifeline = Lifeline.from_key(choice)
            try:
                if lifeline is Lifeline.FIFTY_FIFTY:
                    options = state.lifelines.fifty_fifty(options, correct)
                    self.sink.show_message(self.feedback.lifeline_notice(lifeline))
                    self.sink.present_options(options)

                elif lifeline is Lifeline.SKIP:
                    state.lifelines.skip()
                    self.sink.show_message(self.feedback.lifeline_notice(lifeline))
                    return settle(OutcomeKind.SKIPPED)

                elif lifeline is Lifeline.REPLACE:
                    state.lifelines.replace()
                    self.sink.show_message(self.feedback.lifeline_notice(lifeline))
                    try:
                        return None, self.picker.replace(state.plan, index, self.bank.is_valid)
                    except ExhaustedPoolError as e:
                        logger.info(f"Replace failed: {e}")
                        self.sink.show_message(f"[!] {e} Keeping the current question.")
                        self.sink.present_options(options)

                elif lifeline is Lifeline.EXTRA_TIME:
                    remaining = state.lifelines.extra_time(max(0.0, remaining))
                    self.sink.show_message(self.feedback.lifeline_notice(
                        lifeline, seconds=remaining, bonus=self.extra_time_bonus))
                    self.sink.present_options(options)

            except LifelineMisuseError as e:
                self.sink.show_message(f"[!] {e}")

    @staticmethod
    def _parse_choice(raw: str) -> Optional[int]:
        try:
            choice = int(raw)
        except (TypeError, ValueError):
            return None
        if 1 <= choice <= 4 + len(Lifeline):
            return choice
        return None

    def resolve(self, outcome: RoundOutcome):
        self._enter(Phase.RESOLVED)
        self.state.outcomes.append(outcome)
        delta = self.scoring.resolve(outcome, self.state.difficulty)
        self.sink.show_message(self.feedback.generate(outcome, delta, self.stats.score))
        self.sink.wait_for_enter()
        return delta

    def finish(self) -> SessionStats:
        state = self.state
        state.ended_at = time.time()
        self._enter(Phase.COMPLETE)
        logger.info(f"Session complete: {state.stats.to_dict()}")
        if self.recorder is not None:
            self.recorder.append_log(self.summary())
            self.recorder.append_high_score(
                state.player, state.stats.score, state.category_key, state.difficulty.label
            )
        return state.stats

    def summary(self) -> dict:
        state = self.state
        return {
            "player": state.player,
            "category": state.category_key,
            "difficulty": state.difficulty.label,
            "total_questions": state.total,
            "correct": state.stats.correct_count,
            "wrong": state.stats.wrong_count,
            "skipped": state.stats.skipped_count,
            "score": state.stats.score,
            "start_time": state.started_at,
            "end_time": state.ended_at,
        }

    def review_incorrect(self):
        """Walk the incorrectly answered questions: no shuffle, no timer, no lifelines."""
        records = self.stats.incorrect
        self.sink.show_message(self.feedback.review_heading(len(records)))
        for i, record in enumerate(records, start=1):
            self.sink.present_review(
                f"Review Question {i} of {len(records)}",
                record.prompt, list(record.options), record.correct_position,
            )
            self.sink.wait_for_enter()
