"""Session Recorder: Stores quiz logs and the high-score leaderboard in SQLite."""

import sqlite3
import time
import uuid
import logging
from typing import List, Dict

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Append-only store for session summaries and high scores."""

    def __init__(self, db_path: str = "quiz_sessions.db"):
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        """Initialize the SQLite database."""
        conn = sqlite3.connect(self.db_path)
        c = conn.cursor()
        c.execute("""
            CREATE TABLE IF NOT EXISTS quiz_logs (
                session_id TEXT PRIMARY KEY,
                player TEXT,
                category TEXT,
                difficulty TEXT,
                total_questions INTEGER,
                correct INTEGER,
                wrong INTEGER,
                skipped INTEGER,
                score INTEGER,
                start_time REAL,
                end_time REAL
            )
        """)
        c.execute("""
            CREATE TABLE IF NOT EXISTS high_scores (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                player TEXT,
                score INTEGER,
                category TEXT,
                difficulty TEXT,
                timestamp REAL
            )
        """)
        conn.commit()
        conn.close()
        logger.info(f"Session DB initialized at {self.db_path}")

    def append_log(self, summary: dict):
        """Record one finished session. Failures are logged, never raised."""
        try:
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute("""
                    INSERT INTO quiz_logs
                    (session_id, player, category, difficulty, total_questions,
                     correct, wrong, skipped, score, start_time, end_time)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    str(uuid.uuid4()), summary.get("player", ""), summary.get("category", ""),
                    summary.get("difficulty", ""), summary.get("total_questions", 0),
                    summary.get("correct", 0), summary.get("wrong", 0), summary.get("skipped", 0),
                    summary.get("score", 0), summary.get("start_time"),
                    summary.get("end_time") or time.time(),
                ))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to save quiz log: {e}")

    def append_high_score(self, player: str, score: int, category: str, difficulty: str):
        try:
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute("""
                    INSERT INTO high_scores (player, score, category, difficulty, timestamp)
                    VALUES (?, ?, ?, ?, ?)
                """, (player, score, category, difficulty, time.time()))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to save high score: {e}")

    def high_scores(self, limit: int = 100) -> List[Dict]:
        """Leaderboard rows, best score first. An unreadable store reads as empty."""
        try:
            conn = sqlite3.connect(self.db_path)
            try:
                conn.row_factory = sqlite3.Row
                rows = conn.execute("""
                    SELECT player, score, category, difficulty FROM high_scores
                    ORDER BY score DESC, id ASC LIMIT ?
                """, (limit,)).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to read high scores: {e}")
            return []
        return [dict(r) for r in rows]

    def get_logs(self, player: str = None) -> List[Dict]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            if player is None:
                rows = conn.execute("SELECT * FROM quiz_logs ORDER BY start_time").fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM quiz_logs WHERE player = ? ORDER BY start_time", (player,)
                ).fetchall()
        finally:
            conn.close()
        return [dict(r) for r in rows]
