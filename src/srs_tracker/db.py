"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from srs_tracker.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS review_queue (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id INTEGER NOT NULL,
    item_kind TEXT NOT NULL CHECK (item_kind IN ('Kanji', 'Vocabulary', 'Grammar', 'Kana')),
    item_id INTEGER NOT NULL,
    scheduled_at TEXT NOT NULL,
    completed_at TEXT,
    priority INTEGER NOT NULL DEFAULT 0,
    mastery_level INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_review_queue_learner
    ON review_queue (learner_id, completed_at, scheduled_at);

CREATE TABLE IF NOT EXISTS item_progress (
    learner_id INTEGER NOT NULL,
    item_kind TEXT NOT NULL,
    item_id INTEGER NOT NULL,
    mastery_level INTEGER NOT NULL DEFAULT 0,
    next_review_at TEXT NOT NULL,
    correct_count INTEGER NOT NULL DEFAULT 0,
    incorrect_count INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT,
    PRIMARY KEY (learner_id, item_kind, item_id)
);

CREATE TABLE IF NOT EXISTS review_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id INTEGER NOT NULL,
    started_at TEXT NOT NULL,
    ended_at TEXT,
    items_reviewed INTEGER NOT NULL DEFAULT 0,
    correct_answers INTEGER NOT NULL DEFAULT 0,
    incorrect_answers INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS review_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL REFERENCES review_sessions(id),
    entry_id INTEGER NOT NULL REFERENCES review_queue(id),
    is_correct INTEGER NOT NULL,
    response_time_ms INTEGER NOT NULL DEFAULT 0,
    user_answer TEXT DEFAULT '',
    correct_answer TEXT DEFAULT '',
    difficulty INTEGER NOT NULL DEFAULT 1,
    reviewed_at TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
