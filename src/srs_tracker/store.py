"""SQLite persistence for queue entries, item progress and review sessions."""
import sqlite3
from datetime import datetime
from typing import Optional

from srs_tracker.db import get_connection
from srs_tracker.models import (
    ItemKind, Priority, ReviewDifficulty, ReviewQueueEntry, ReviewResult,
    ReviewSession, StudyItemProgress, as_utc,
)


def _ts(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return as_utc(datetime.fromisoformat(value)) if value else None


def _entry_from_row(row: sqlite3.Row) -> ReviewQueueEntry:
    return ReviewQueueEntry(
        id=row["id"],
        learner_id=row["learner_id"],
        kind=ItemKind(row["item_kind"]),
        item_id=row["item_id"],
        scheduled_at=_parse_ts(row["scheduled_at"]),
        completed_at=_parse_ts(row["completed_at"]),
        priority=Priority(row["priority"]),
        mastery_level=row["mastery_level"],
    )


def _progress_from_row(row: sqlite3.Row) -> StudyItemProgress:
    return StudyItemProgress(
        learner_id=row["learner_id"],
        kind=ItemKind(row["item_kind"]),
        item_id=row["item_id"],
        mastery_level=row["mastery_level"],
        next_review_at=_parse_ts(row["next_review_at"]),
        correct_count=row["correct_count"],
        incorrect_count=row["incorrect_count"],
        last_reviewed_at=_parse_ts(row["last_reviewed_at"]),
    )


def _session_from_row(row: sqlite3.Row) -> ReviewSession:
    return ReviewSession(
        id=row["id"],
        learner_id=row["learner_id"],
        started_at=_parse_ts(row["started_at"]),
        ended_at=_parse_ts(row["ended_at"]),
        items_reviewed=row["items_reviewed"],
        correct_answers=row["correct_answers"],
        incorrect_answers=row["incorrect_answers"],
    )


def _result_from_row(row: sqlite3.Row) -> ReviewResult:
    return ReviewResult(
        id=row["id"],
        session_id=row["session_id"],
        entry_id=row["entry_id"],
        is_correct=bool(row["is_correct"]),
        response_time_ms=row["response_time_ms"],
        user_answer=row["user_answer"] or "",
        correct_answer=row["correct_answer"] or "",
        difficulty=ReviewDifficulty(row["difficulty"]),
        reviewed_at=_parse_ts(row["reviewed_at"]),
    )


def _write_entry(conn: sqlite3.Connection, entry: ReviewQueueEntry) -> ReviewQueueEntry:
    values = (
        entry.learner_id, entry.kind.value, entry.item_id, _ts(entry.scheduled_at),
        _ts(entry.completed_at), int(entry.priority), entry.mastery_level,
    )
    if entry.id is None:
        cursor = conn.execute(
            """INSERT INTO review_queue
            (learner_id, item_kind, item_id, scheduled_at, completed_at, priority, mastery_level)
            VALUES (?, ?, ?, ?, ?, ?, ?)""",
            values,
        )
        entry.id = cursor.lastrowid
    else:
        conn.execute(
            """UPDATE review_queue SET learner_id=?, item_kind=?, item_id=?, scheduled_at=?,
            completed_at=?, priority=?, mastery_level=? WHERE id=?""",
            values + (entry.id,),
        )
    return entry


def _write_progress(conn: sqlite3.Connection, progress: StudyItemProgress) -> None:
    conn.execute(
        """INSERT INTO item_progress
        (learner_id, item_kind, item_id, mastery_level, next_review_at,
         correct_count, incorrect_count, last_reviewed_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(learner_id, item_kind, item_id) DO UPDATE SET
            mastery_level=excluded.mastery_level,
            next_review_at=excluded.next_review_at,
            correct_count=excluded.correct_count,
            incorrect_count=excluded.incorrect_count,
            last_reviewed_at=excluded.last_reviewed_at""",
        (
            progress.learner_id, progress.kind.value, progress.item_id,
            progress.mastery_level, _ts(progress.next_review_at),
            progress.correct_count, progress.incorrect_count,
            _ts(progress.last_reviewed_at),
        ),
    )


class SQLiteStore:
    """Load/save access to the tracker tables.

    Every call opens its own connection and commits before returning, so a
    store can be shared between threads.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    # Queue entries

    def load_entries(self, learner_id: int, include_completed: bool = False) -> list[ReviewQueueEntry]:
        conn = get_connection(self.db_path)
        query = "SELECT * FROM review_queue WHERE learner_id = ?"
        if not include_completed:
            query += " AND completed_at IS NULL"
        rows = conn.execute(query + " ORDER BY id", (learner_id,)).fetchall()
        conn.close()
        return [_entry_from_row(r) for r in rows]

    def get_entry(self, entry_id: int) -> Optional[ReviewQueueEntry]:
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT * FROM review_queue WHERE id = ?", (entry_id,)).fetchone()
        conn.close()
        return _entry_from_row(row) if row else None

    def find_open_entry(self, learner_id: int, kind: ItemKind, item_id: int) -> Optional[ReviewQueueEntry]:
        conn = get_connection(self.db_path)
        row = conn.execute(
            """SELECT * FROM review_queue
            WHERE learner_id = ? AND item_kind = ? AND item_id = ? AND completed_at IS NULL
            ORDER BY id LIMIT 1""",
            (learner_id, kind.value, item_id),
        ).fetchone()
        conn.close()
        return _entry_from_row(row) if row else None

    def save_entry(self, entry: ReviewQueueEntry) -> ReviewQueueEntry:
        """Insert `entry` (assigning its id) or update it in place."""
        conn = get_connection(self.db_path)
        _write_entry(conn, entry)
        conn.commit()
        conn.close()
        return entry

    def save_completion(
        self,
        entry: ReviewQueueEntry,
        progress: StudyItemProgress,
        successor: Optional[ReviewQueueEntry] = None,
    ) -> None:
        """Persist a completed entry, its item progress and successor in one transaction."""
        conn = get_connection(self.db_path)
        try:
            with conn:
                _write_entry(conn, entry)
                _write_progress(conn, progress)
                if successor is not None:
                    _write_entry(conn, successor)
        finally:
            conn.close()

    def save_reschedule(self, entry: ReviewQueueEntry, progress: StudyItemProgress) -> None:
        """Persist a moved open entry together with its item's next review time."""
        conn = get_connection(self.db_path)
        try:
            with conn:
                _write_entry(conn, entry)
                _write_progress(conn, progress)
        finally:
            conn.close()

    # Item progress

    def load_progress(self, learner_id: int, kind: ItemKind, item_id: int) -> Optional[StudyItemProgress]:
        conn = get_connection(self.db_path)
        row = conn.execute(
            "SELECT * FROM item_progress WHERE learner_id = ? AND item_kind = ? AND item_id = ?",
            (learner_id, kind.value, item_id),
        ).fetchone()
        conn.close()
        return _progress_from_row(row) if row else None

    def load_all_progress(self, learner_id: int) -> list[StudyItemProgress]:
        conn = get_connection(self.db_path)
        rows = conn.execute(
            "SELECT * FROM item_progress WHERE learner_id = ? ORDER BY item_kind, item_id",
            (learner_id,),
        ).fetchall()
        conn.close()
        return [_progress_from_row(r) for r in rows]

    def save_progress(self, progress: StudyItemProgress) -> None:
        conn = get_connection(self.db_path)
        _write_progress(conn, progress)
        conn.commit()
        conn.close()

    # Sessions

    def get_session(self, session_id: int) -> Optional[ReviewSession]:
        conn = get_connection(self.db_path)
        row = conn.execute("SELECT * FROM review_sessions WHERE id = ?", (session_id,)).fetchone()
        conn.close()
        return _session_from_row(row) if row else None

    def save_session(self, session: ReviewSession) -> ReviewSession:
        conn = get_connection(self.db_path)
        values = (
            session.learner_id, _ts(session.started_at), _ts(session.ended_at),
            session.items_reviewed, session.correct_answers, session.incorrect_answers,
        )
        if session.id is None:
            cursor = conn.execute(
                """INSERT INTO review_sessions
                (learner_id, started_at, ended_at, items_reviewed, correct_answers, incorrect_answers)
                VALUES (?, ?, ?, ?, ?, ?)""",
                values,
            )
            session.id = cursor.lastrowid
        else:
            conn.execute(
                """UPDATE review_sessions SET learner_id=?, started_at=?, ended_at=?,
                items_reviewed=?, correct_answers=?, incorrect_answers=? WHERE id=?""",
                values + (session.id,),
            )
        conn.commit()
        conn.close()
        return session

    def save_result(self, result: ReviewResult) -> ReviewResult:
        """Insert a graded result and bump its session's counters in one transaction."""
        conn = get_connection(self.db_path)
        try:
            with conn:
                cursor = conn.execute(
                    """INSERT INTO review_results
                    (session_id, entry_id, is_correct, response_time_ms, user_answer,
                     correct_answer, difficulty, reviewed_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        result.session_id, result.entry_id, int(result.is_correct),
                        result.response_time_ms, result.user_answer, result.correct_answer,
                        int(result.difficulty), _ts(result.reviewed_at),
                    ),
                )
                conn.execute(
                    """UPDATE review_sessions SET
                        items_reviewed = items_reviewed + 1,
                        correct_answers = correct_answers + ?,
                        incorrect_answers = incorrect_answers + ?
                    WHERE id = ?""",
                    (int(result.is_correct), int(not result.is_correct), result.session_id),
                )
                result.id = cursor.lastrowid
        finally:
            conn.close()
        return result

    def load_results(self, session_id: int) -> list[ReviewResult]:
        conn = get_connection(self.db_path)
        rows = conn.execute(
            "SELECT * FROM review_results WHERE session_id = ? ORDER BY id", (session_id,)
        ).fetchall()
        conn.close()
        return [_result_from_row(r) for r in rows]
