"""Tests for the QuestionSession state machine."""
import random
import pytest
from unittest.mock import MagicMock
from lifeline_quiz.errors import LoadError
from lifeline_quiz.lifelines import REMOVED, Lifeline
from lifeline_quiz.question_bank import Difficulty, QuestionBank
from lifeline_quiz.question_picker import QuestionPicker
from lifeline_quiz.quiz_session import Phase, QuestionSession


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def RIGHT(sink):
    return str(next(i for i, o in enumerate(sink.options) if o.startswith("Right")) + 1)


def WRONG(sink):
    return str(next(i for i, o in enumerate(sink.options)
                    if not o.startswith("Right") and o != REMOVED) + 1)


class ScriptedSink:
    """
    Interaction sink driven by a list of steps.

    A step is a raw string or callable (answered at once), a ``(step, delay)``
    pair (answered after *delay* seconds of waiting) or ``None`` (never
    answered, so the wait times out).
    """

    def __init__(self, clock, steps):
        self.clock = clock
        self.steps = list(steps)
        self.waited = 0.0
        self.presented = []
        self.options = []
        self.messages = []
        self.reviews = []
        self.ticks = 0
        self.discards = 0

    def present_question(self, heading, prompt, options, availability):
        self.presented.append((heading, prompt, list(options), dict(availability)))
        self.options = list(options)
        self.waited = 0.0

    def present_options(self, options):
        self.options = list(options)

    def present_review(self, heading, prompt, options, correct_position):
        self.reviews.append((heading, prompt, list(options), correct_position))

    def show_message(self, text):
        self.messages.append(text)

    def wait_for_enter(self, text=""):
        pass

    def tick(self, remaining):
        self.ticks += 1

    def read_choice(self, timeout):
        step = self.steps[0] if self.steps else None
        delay = 0.0
        if isinstance(step, tuple):
            step, delay = step
        if step is None or self.waited + timeout < delay:
            self.clock.advance(timeout)
            self.waited += timeout
            return None
        self.clock.advance(max(0.0, delay - self.waited))
        self.steps.pop(0)
        self.waited = 0.0
        return step(self) if callable(step) else step

    def discard_pending(self):
        self.discards += 1
        self.waited = 0.0
        if self.steps and (self.steps[0] is None or isinstance(self.steps[0], tuple)):
            self.steps.pop(0)

    @property
    def prompts(self):
        return [p[1] for p in self.presented]


class TalkingSink(ScriptedSink):
    """Sink whose messages take three seconds to read aloud."""

    def show_message(self, text):
        super().show_message(text)
        self.clock.advance(3.0)

    def present_options(self, options):
        super().present_options(options)
        self.clock.advance(1.0)


def write_bank_file(tmp_path, per_band=50):
    lines = []
    for band in ("Easy", "Medium", "Hard"):
        for i in range(50):
            if i < per_band:
                lines.append(f"{band} question {i}?|Wrong A{i}|Right {i}|Wrong B{i}|Wrong C{i}|2")
            else:
                lines.append("")
    (tmp_path / "science.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.fixture
def clock():
    return FakeClock()


def make_session(tmp_path, clock, steps, per_band=50, quota=10, band_size=50,
                 recorder=None, policy="release", sink_cls=ScriptedSink):
    write_bank_file(tmp_path, per_band)
    bank = QuestionBank(str(tmp_path), {"Science": "science.txt"}, band_size=band_size)
    sink = sink_cls(clock, steps)
    session = QuestionSession(
        bank=bank,
        picker=QuestionPicker(rng=random.Random(7), replaced_policy=policy),
        sink=sink,
        recorder=recorder,
        quota=quota,
        time_limit=15,
        clock=clock,
        rng=random.Random(11),
    )
    return session, sink


def test_scripted_session_is_deterministic(tmp_path, clock):
    steps = [RIGHT, RIGHT, RIGHT, None, "6"] + [RIGHT] * 5
    session, sink = make_session(tmp_path, clock, steps)
    stats = session.run_session("Ada", "Science", Difficulty.MEDIUM)
    assert stats.score == 30
    assert (stats.correct_count, stats.wrong_count, stats.skipped_count) == (8, 1, 1)
    assert stats.correct_count + stats.wrong_count + stats.skipped_count == 10
    assert len(stats.incorrect) == 1
    assert session.phase is Phase.COMPLETE
    assert all(p.startswith("Medium") for p in sink.prompts)


def test_no_question_presented_twice(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [WRONG] * 10)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert len(sink.prompts) == 10
    assert len(set(sink.prompts)) == 10
    assert stats.score == -20
    assert len(stats.incorrect) == 10


def test_options_are_shuffled_and_correct_position_tracked(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [WRONG] * 10)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    for record in stats.incorrect:
        assert record.correct_text.startswith("Right")
    positions = {p[2].index(next(o for o in p[2] if o.startswith("Right"))) for p in sink.presented}
    assert len(positions) > 1


def test_shuffle_options_keeps_every_option(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [])
    session.bank.load("Science")
    record = session.bank.get(0)
    for _ in range(20):
        options, correct = session.shuffle_options(record)
        assert sorted(options) == sorted(record.options)
        assert options[correct] == record.options[record.correct_index]


def test_timeout_penalty_and_review_record(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [None] + [RIGHT] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.HARD)
    assert stats.wrong_count == 1
    assert stats.incorrect[0].prompt == sink.prompts[0]
    assert sink.discards >= 1
    # 9 correct: +9, +5 at 3, +15 at 5, +5 at 8; -5 for the timeout.
    assert stats.score == 9 + 5 + 15 + 5 - 5


def test_fifty_fifty_then_timeout_counts_as_timeout(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, ["5", None] + [RIGHT] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.wrong_count == 1
    record = stats.incorrect[0]
    assert list(record.options).count(REMOVED) == 2
    assert record.correct_text.startswith("Right")
    assert any("50/50" in m for m in sink.messages)


def test_fifty_fifty_then_correct_answer(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, ["5", RIGHT] + [WRONG] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.correct_count == 1
    assert stats.wrong_count == 9
    assert not sink.presented[1][3][Lifeline.FIFTY_FIFTY]


def test_choosing_removed_option_is_incorrect(tmp_path, clock):
    def removed(sink):
        return str(sink.options.index(REMOVED) + 1)

    session, sink = make_session(tmp_path, clock, ["5", removed] + [RIGHT] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.wrong_count == 1


def test_lifeline_time_is_not_refunded(tmp_path, clock):
    # 50/50 at 10s leaves 5s; an answer 6s later is too late.
    session, sink = make_session(tmp_path, clock, [("5", 10.0), (RIGHT, 6.0)] + [RIGHT] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.wrong_count == 1
    assert stats.correct_count == 9


def test_narrated_notices_do_not_use_answer_time(tmp_path, clock):
    # 50/50 at 10s leaves 5s; reading the notice aloud takes 4s of wall time.
    session, sink = make_session(tmp_path, clock, [("5", 10.0), (RIGHT, 4.5)] + [RIGHT] * 9,
                                 sink_cls=TalkingSink)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.correct_count == 10
    assert stats.wrong_count == 0


def test_narrated_invalid_input_notice_does_not_use_answer_time(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [("x", 12.0), (RIGHT, 2.5)] + [RIGHT] * 9,
                                 sink_cls=TalkingSink)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.correct_count == 10


def test_extra_time_extends_remaining_budget(tmp_path, clock):
    # Extra time at 5s leaves 10s + 10s; answering 18s later still counts.
    session, sink = make_session(tmp_path, clock, [("8", 5.0), (RIGHT, 18.0)] + [RIGHT] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.correct_count == 10
    assert stats.wrong_count == 0
    assert any("+10 seconds" in m for m in sink.messages)


def test_timeout_after_extra_time_is_penalized(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, ["8", None] + [RIGHT] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.MEDIUM)
    assert stats.wrong_count == 1
    assert len(stats.incorrect) == 1


def test_skip_does_not_reset_streak(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [RIGHT, RIGHT, "6", RIGHT] + [WRONG] * 6)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.skipped_count == 1
    # The third correct answer in a row still earns the streak bonus.
    assert stats.score == 3 + 5 - 6 * 2


def test_replace_swaps_question_without_counting_it(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, ["7"] + [RIGHT] * 10)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert len(sink.presented) == 11
    discarded = sink.prompts[0]
    assert discarded not in sink.prompts[1:]
    assert sink.presented[1][0] == sink.presented[0][0] == "Question 1 of 10"
    assert stats.correct_count == 10
    assert stats.answered == 10
    assert session.state.plan.discarded


def test_replace_with_exhausted_band_keeps_question(tmp_path, clock):
    # Three questions in the band: by the third one every slot is used.
    steps = [RIGHT, RIGHT, "7", RIGHT]
    session, sink = make_session(tmp_path, clock, steps, per_band=3, quota=3)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert len(sink.presented) == 3
    assert stats.correct_count == 3
    assert not session.state.lifelines.is_available(Lifeline.REPLACE)
    assert any("No unused question" in m for m in sink.messages)


def test_spent_lifeline_is_reported_and_changes_nothing(tmp_path, clock):
    steps = ["6", "6", RIGHT] + [RIGHT] * 8
    session, sink = make_session(tmp_path, clock, steps)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.skipped_count == 1
    assert stats.correct_count == 9
    assert any("already used" in m for m in sink.messages)


def test_invalid_input_keeps_waiting(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, ["banana", "9", RIGHT] + [RIGHT] * 9)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.correct_count == 10
    assert sum("Invalid choice" in m for m in sink.messages) == 2


def test_small_pool_shortens_session(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [RIGHT] * 4, per_band=4)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    assert stats.correct_count == 4
    assert session.state.total == 4
    assert any("only 4 questions" in m for m in sink.messages)


def test_load_error_starts_no_session(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [])
    before = session.state
    with pytest.raises(LoadError):
        session.run_session("Ada", "History", Difficulty.EASY)
    assert session.state is before
    assert sink.presented == []


def test_empty_band_is_a_load_error(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [], per_band=0)
    (tmp_path / "science.txt").write_text("Q?|a|b|c|d|1\n", encoding="utf-8")
    with pytest.raises(LoadError):
        session.run_session("Ada", "Science", Difficulty.HARD)


def test_new_session_resets_state(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, ["5", WRONG] + [RIGHT] * 9)
    session.run_session("Ada", "Science", Difficulty.EASY)
    session.new_session()
    assert session.stats.score == 0
    assert session.stats.streak == 0
    assert session.stats.incorrect == []
    assert all(session.state.lifelines.availability().values())
    assert session.state.player == "Ada"
    assert session.state.difficulty is Difficulty.EASY


def test_replay_runs_fresh_session(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, ["6"] + [RIGHT] * 9 + ["6"] + [RIGHT] * 9)
    first = session.run_session("Ada", "Science", Difficulty.EASY)
    second = session.run_session("Ada", "Science", Difficulty.EASY)
    assert first is not second
    assert second.skipped_count == 1
    assert second.correct_count == 9


def test_recorder_receives_summary_and_high_score(tmp_path, clock):
    recorder = MagicMock()
    session, sink = make_session(tmp_path, clock, [RIGHT] * 10, recorder=recorder)
    stats = session.run_session("Ada", "Science", Difficulty.HARD)
    recorder.append_log.assert_called_once()
    summary = recorder.append_log.call_args[0][0]
    assert summary["player"] == "Ada"
    assert summary["difficulty"] == "Hard"
    assert summary["correct"] == 10
    assert summary["score"] == stats.score
    recorder.append_high_score.assert_called_once_with("Ada", stats.score, "Science", "Hard")


def test_review_shows_records_unshuffled(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [WRONG, WRONG] + [RIGHT] * 8)
    stats = session.run_session("Ada", "Science", Difficulty.EASY)
    session.review_incorrect()
    assert len(sink.reviews) == 2
    for (heading, prompt, options, correct), record in zip(sink.reviews, stats.incorrect):
        assert options == list(record.options)
        assert options[correct].startswith("Right")
    assert sink.reviews[0][0] == "Review Question 1 of 2"


def test_review_with_no_mistakes(tmp_path, clock):
    session, sink = make_session(tmp_path, clock, [RIGHT] * 10)
    session.run_session("Ada", "Science", Difficulty.EASY)
    session.review_incorrect()
    assert sink.reviews == []
    assert "didn't answer any questions incorrectly" in sink.messages[-1]
