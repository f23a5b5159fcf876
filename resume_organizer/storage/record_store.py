from __future__ import annotations

import logging
import os
import secrets
import sqlite3
import threading
from datetime import datetime
from typing import Any

from resume_organizer.errors import PersistenceFailure
from resume_organizer.schemas.resume import ResumeRecord

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = """
    r.id, r.name, r.email, r.phone, r.stored_file_name, r.original_file_name,
    r.file_type, r.uploaded_at, r.created_at, r.updated_at
"""


class ResumeStore:
    """sqlite-backed collection of resume records.

    Tags live in a child table so exact-tag filtering and distinct listing stay
    in SQL; ``position`` keeps the caller's tag order.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self.db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            try:
                conn = sqlite3.connect(
                    self.db_path,
                    check_same_thread=False,
                    timeout=5,
                    isolation_level=None,
                )
                conn.execute("PRAGMA journal_mode=WAL;")
                conn.execute("PRAGMA synchronous=NORMAL;")
                conn.execute("PRAGMA busy_timeout=5000;")
                conn.execute("PRAGMA foreign_keys=ON;")
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS resumes (
                        id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        email TEXT NOT NULL,
                        phone TEXT NOT NULL DEFAULT '',
                        stored_file_name TEXT NOT NULL,
                        original_file_name TEXT NOT NULL,
                        file_type TEXT NOT NULL,
                        uploaded_at TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS resume_tags (
                        resume_id TEXT NOT NULL REFERENCES resumes (id) ON DELETE CASCADE,
                        position INTEGER NOT NULL,
                        tag TEXT NOT NULL,
                        PRIMARY KEY (resume_id, position)
                    );
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_resumes_uploaded_at
                    ON resumes (uploaded_at);
                    """
                )
                conn.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_resume_tags_tag
                    ON resume_tags (tag);
                    """
                )
            except sqlite3.Error as exc:
                raise PersistenceFailure(f"Unable to open resume database '{self.db_path}': {exc}") from exc
            self._conn = conn
            return conn

    def init(self) -> None:
        self._get_connection()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def insert(self, record: ResumeRecord) -> str:
        conn = self._get_connection()
        resume_id = record.id or secrets.token_hex(12)
        created_at = (record.created_at or record.uploaded_at).isoformat()
        updated_at = (record.updated_at or record.uploaded_at).isoformat()

        with self._lock:
            try:
                conn.execute("BEGIN IMMEDIATE")
                conn.execute(
                    """
                    INSERT INTO resumes (
                        id, name, email, phone, stored_file_name, original_file_name,
                        file_type, uploaded_at, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        resume_id,
                        record.name,
                        record.email,
                        record.phone,
                        record.stored_file_name,
                        record.original_file_name,
                        record.file_type,
                        record.uploaded_at.isoformat(),
                        created_at,
                        updated_at,
                    ),
                )
                conn.executemany(
                    "INSERT INTO resume_tags (resume_id, position, tag) VALUES (?, ?, ?)",
                    [(resume_id, index, tag) for index, tag in enumerate(record.tags)],
                )
                conn.execute("COMMIT")
            except sqlite3.Error as exc:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise PersistenceFailure(f"Failed to insert resume record: {exc}") from exc
        return resume_id

    def _tags_for(self, conn: sqlite3.Connection, resume_ids: list[str]) -> dict[str, list[str]]:
        if not resume_ids:
            return {}
        placeholders = ", ".join("?" for _ in resume_ids)
        cur = conn.execute(
            f"""
            SELECT resume_id, tag FROM resume_tags
            WHERE resume_id IN ({placeholders})
            ORDER BY resume_id, position
            """,
            resume_ids,
        )
        tags: dict[str, list[str]] = {resume_id: [] for resume_id in resume_ids}
        for resume_id, tag in cur.fetchall():
            tags[resume_id].append(tag)
        return tags

    @staticmethod
    def _row_to_record(row: tuple[Any, ...], tags: list[str]) -> ResumeRecord:
        return ResumeRecord(
            id=row[0],
            name=row[1],
            email=row[2],
            phone=row[3],
            tags=tags,
            stored_file_name=row[4],
            original_file_name=row[5],
            file_type=row[6],
            uploaded_at=datetime.fromisoformat(row[7]),
            created_at=datetime.fromisoformat(row[8]),
            updated_at=datetime.fromisoformat(row[9]),
        )

    def find_by_id(self, resume_id: str) -> ResumeRecord | None:
        conn = self._get_connection()
        with self._lock:
            try:
                row = conn.execute(
                    f"SELECT {_SELECT_COLUMNS} FROM resumes r WHERE r.id = ?",
                    (resume_id,),
                ).fetchone()
                if not row:
                    return None
                tags = self._tags_for(conn, [row[0]])
            except sqlite3.Error as exc:
                raise PersistenceFailure(
                    f"Failed to load resume record: {exc}", public_message="Error fetching resume"
                ) from exc
        return self._row_to_record(row, tags.get(row[0], []))

    def find_all(self, search: str | None = None, tag: str | None = None) -> list[ResumeRecord]:
        """Records newest first, optionally filtered by text search and/or one tag.

        A record matches ``search`` when any whitespace-separated term occurs
        (case-insensitively) in its name, email or one of its tags.
        """
        clauses: list[str] = []
        params: list[Any] = []

        terms = [term.lower() for term in (search or "").split() if term]
        if terms:
            term_clauses: list[str] = []
            for term in terms:
                pattern = f"%{_escape_like(term)}%"
                term_clauses.append(
                    """(
                        lower(r.name) LIKE ? ESCAPE '\\'
                        OR lower(r.email) LIKE ? ESCAPE '\\'
                        OR EXISTS (
                            SELECT 1 FROM resume_tags st
                            WHERE st.resume_id = r.id AND lower(st.tag) LIKE ? ESCAPE '\\'
                        )
                    )"""
                )
                params.extend([pattern, pattern, pattern])
            clauses.append("(" + " OR ".join(term_clauses) + ")")

        tag_value = (tag or "").strip()
        if tag_value:
            clauses.append("EXISTS (SELECT 1 FROM resume_tags ft WHERE ft.resume_id = r.id AND ft.tag = ?)")
            params.append(tag_value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = f"SELECT {_SELECT_COLUMNS} FROM resumes r {where} ORDER BY r.uploaded_at DESC, r.rowid DESC"

        conn = self._get_connection()
        with self._lock:
            try:
                rows = conn.execute(sql, params).fetchall()
                tags = self._tags_for(conn, [row[0] for row in rows])
            except sqlite3.Error as exc:
                raise PersistenceFailure(
                    f"Failed to list resume records: {exc}", public_message="Error fetching resumes"
                ) from exc
        return [self._row_to_record(row, tags.get(row[0], [])) for row in rows]

    def delete_by_id(self, resume_id: str) -> bool:
        conn = self._get_connection()
        with self._lock:
            try:
                cur = conn.execute("DELETE FROM resumes WHERE id = ?", (resume_id,))
            except sqlite3.Error as exc:
                raise PersistenceFailure(
                    f"Failed to delete resume record: {exc}", public_message="Error deleting resume"
                ) from exc
        return cur.rowcount > 0

    def distinct_tags(self) -> list[str]:
        conn = self._get_connection()
        with self._lock:
            try:
                rows = conn.execute(
                    "SELECT DISTINCT tag FROM resume_tags WHERE trim(tag) != '' ORDER BY tag"
                ).fetchall()
            except sqlite3.Error as exc:
                raise PersistenceFailure(f"Failed to list tags: {exc}", public_message="Error fetching tags") from exc
        return [row[0] for row in rows]


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
