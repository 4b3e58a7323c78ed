from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from models import ExternalSession, SessionArtifact


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        # SQLite datetime('now') defaults are naive UTC
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SessionsRepo:
    """Persisted automation sessions; the artifact list is stored as a JSON blob."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def save(self, session: ExternalSession) -> None:
        """Insert or replace the single session row for session.session_key."""
        artifacts_json = json.dumps(
            [a.model_dump(by_alias=True) for a in session.artifacts], ensure_ascii=False
        )
        sql = (
            "INSERT INTO external_sessions (session_key, artifacts_json, expires_at, last_used_at, created_at) "
            "VALUES (?, ?, ?, ?, COALESCE(?, datetime('now'))) "
            "ON CONFLICT(session_key) DO UPDATE SET "
            " artifacts_json = excluded.artifacts_json, "
            " expires_at = excluded.expires_at, "
            " last_used_at = excluded.last_used_at, "
            " created_at = excluded.created_at;"
        )
        self.conn.execute(sql, (
            session.session_key,
            artifacts_json,
            _to_iso(session.expires_at),
            _to_iso(session.last_used_at),
            _to_iso(session.created_at),
        ))
        self.conn.commit()

    def get(self, session_key: str) -> Optional[ExternalSession]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT session_key, artifacts_json, expires_at, last_used_at, created_at "
            "FROM external_sessions WHERE session_key = ?",
            (session_key,),
        )
        row = cur.fetchone()
        if not row:
            return None
        key, artifacts_json, expires_at, last_used_at, created_at = row
        raw_artifacts = json.loads(artifacts_json or "[]")
        return ExternalSession(
            session_key=key,
            artifacts=[SessionArtifact.model_validate(a) for a in raw_artifacts],
            expires_at=_from_iso(expires_at),
            last_used_at=_from_iso(last_used_at),
            created_at=_from_iso(created_at),
        )

    def delete(self, session_key: str) -> None:
        self.conn.execute("DELETE FROM external_sessions WHERE session_key = ?;", (session_key,))
        self.conn.commit()

    def touch(self, session_key: str, when: datetime) -> None:
        """Stamp last_used_at; a no-op when no row exists."""
        self.conn.execute(
            "UPDATE external_sessions SET last_used_at = ? WHERE session_key = ?;",
            (_to_iso(when), session_key),
        )
        self.conn.commit()
