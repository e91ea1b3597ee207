"""Lifeline Quiz entry point: menus and wiring."""

import argparse
import logging
import random
from typing import List, Optional

from .config import load_config
from .console import ConsoleSink
from .errors import LoadError
from .feedback_generator import FeedbackGenerator
from .question_bank import Difficulty, QuestionBank
from .question_picker import QuestionPicker
from .quiz_session import QuestionSession
from .session_manager import SessionRecorder
from .tts_module import Narrator, SilentNarrator

logger = logging.getLogger(__name__)


class QuizApp:
    """Main menu, post-quiz menu and leaderboard around a QuestionSession."""

    def __init__(self, session: QuestionSession, recorder: SessionRecorder, sink,
                 categories: List[str]):
        self.session = session
        self.recorder = recorder
        self.sink = sink
        self.categories = categories

    def _choose(self, title: str, items: List[str]) -> Optional[int]:
        lines = [f"=== {title} ==="] + [f"{i}. {item}" for i, item in enumerate(items, start=1)]
        raw = self.sink.prompt("\n".join(lines) + "\nEnter choice: ")
        try:
            choice = int(raw)
        except ValueError:
            return None
        return choice if 1 <= choice <= len(items) else None

    def start_quiz(self):
        player = self.sink.prompt("Enter your name: ") or "Player"
        category = self._choose("SELECT CATEGORY", self.categories)
        if category is None:
            self.sink.show_message("Invalid!")
            return
        level = self._choose("SELECT DIFFICULTY", [d.label for d in Difficulty])
        if level is None:
            self.sink.show_message("Invalid!")
            return
        self.play(player, self.categories[category - 1], Difficulty.from_level(level))

    def play(self, player: str, category_key: str, difficulty: Difficulty):
        while True:
            try:
                stats = self.session.run_session(player, category_key, difficulty)
            except LoadError as e:
                logger.error(f"Could not start session: {e}")
                self.sink.show_message(f"Failed to load questions: {e}")
                return
            self.sink.show_message(
                self.session.feedback.generate_session_summary(stats, self.session.state.total)
            )
            if not self.post_quiz_menu():
                return

    def post_quiz_menu(self) -> bool:
        """Returns True when the player asks for a replay."""
        while True:
            choice = self._choose("QUIZ COMPLETE", [
                "Review Incorrect Questions",
                "Replay Quiz (New Questions)",
                "Return to Main Menu",
            ])
            if choice == 1:
                self.session.review_incorrect()
            elif choice == 2:
                self.session.new_session()
                return True
            elif choice == 3:
                return False
            else:
                self.sink.show_message("Invalid choice.")

    def show_high_scores(self):
        rows = self.recorder.high_scores()
        if not rows:
            self.sink.show_message("No high scores found!")
            return
        lines = ["=== HIGH SCORES ===", f"{'Player':<16}{'Score':>6}  {'Category':<10}Difficulty"]
        for row in rows:
            lines.append(f"{row['player']:<16}{row['score']:>6}  {row['category']:<10}{row['difficulty']}")
        self.sink.show_message("\n".join(lines))

    def run(self):
        while True:
            choice = self._choose("LIFELINE QUIZ", ["Start New Quiz", "View High Scores", "Exit"])
            if choice == 1:
                self.start_quiz()
            elif choice == 2:
                self.show_high_scores()
            elif choice == 3:
                break
            else:
                self.sink.show_message("Invalid choice.")
        self.sink.show_message("Thank you for playing!")


def build_app(config: dict) -> QuizApp:
    quiz_cfg = config["quiz"]
    questions_cfg = config["questions"]
    narration_cfg = config["narration"]

    if narration_cfg.get("enabled"):
        narrator = Narrator(
            rate=narration_cfg.get("rate", 170),
            volume=narration_cfg.get("volume", 1.0),
            voice_index=narration_cfg.get("voice_index", 0),
        )
    else:
        narrator = SilentNarrator()

    sink = ConsoleSink(narrator=narrator, show_timer=quiz_cfg.get("show_timer", True))
    bank = QuestionBank(
        questions_dir=questions_cfg["directory"],
        categories=questions_cfg["categories"],
        band_size=quiz_cfg["band_size"],
        max_records=quiz_cfg["max_records"],
    )
    rng = random.Random()
    picker = QuestionPicker(rng=rng, replaced_policy=quiz_cfg["replaced_questions"])
    recorder = SessionRecorder(db_path=config["session"]["db_path"])
    session = QuestionSession(
        bank=bank,
        picker=picker,
        sink=sink,
        recorder=recorder,
        feedback=FeedbackGenerator(rng=rng),
        quota=quiz_cfg["questions_per_session"],
        time_limit=quiz_cfg["time_limit"],
        extra_time_bonus=quiz_cfg["extra_time_bonus"],
        tick_interval=quiz_cfg["tick_interval"],
        rng=rng,
    )
    return QuizApp(session, recorder, sink, list(questions_cfg["categories"]))


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Timed multiple-choice quiz with lifelines")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--questions-dir", default=None, help="Directory holding the question files")
    parser.add_argument("--time-limit", type=int, default=None, help="Seconds per question")
    parser.add_argument("--narrate", action="store_true", help="Read questions aloud")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.questions_dir:
        config["questions"]["directory"] = args.questions_dir
    if args.time_limit:
        config["quiz"]["time_limit"] = args.time_limit
    if args.narrate:
        config["narration"]["enabled"] = True

    # Log to a file so messages do not interleave with the quiz screen.
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        filename=config["logging"].get("file"),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    app = build_app(config)
    try:
        app.run()
    except (EOFError, KeyboardInterrupt):
        logger.info("Input closed; exiting.")
    return 0


if __name__ == "__main__":
    main()
