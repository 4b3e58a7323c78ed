from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from models import CanonicalContact
from services.mapping import merge


_COLUMNS: List[str] = list(CanonicalContact.model_fields)


def _row_to_contact(row: Tuple[Any, ...]) -> Tuple[int, CanonicalContact]:
    lead_id = int(row[0])
    values: Dict[str, Any] = {col: row[i + 1] for i, col in enumerate(_COLUMNS)}
    # Bookkeeping columns are NOT NULL; drop NULL content so model defaults apply
    values = {k: v for k, v in values.items() if v is not None}
    return lead_id, CanonicalContact.model_validate(values)


class LeadsRepo:
    """Lead storage collaborator: create/update/query canonical contacts."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _select(self, where_sql: str, params: Tuple[Any, ...]) -> List[Tuple[int, CanonicalContact]]:
        sql = f"SELECT id, {', '.join(_COLUMNS)} FROM leads {where_sql}"
        cur = self.conn.cursor()
        cur.execute(sql, params)
        return [_row_to_contact(r) for r in cur.fetchall()]

    def create(self, contact: CanonicalContact, source_name: Optional[str] = None) -> int:
        """Insert a new lead; returns its id."""
        data = contact.model_dump()
        cols = _COLUMNS + ["source_name"]
        placeholders = ", ".join(["?"] * len(cols))
        sql = f"INSERT INTO leads ({', '.join(cols)}) VALUES ({placeholders}) RETURNING id;"
        cur = self.conn.cursor()
        cur.execute(sql, tuple(data[c] for c in _COLUMNS) + (source_name,))
        row = cur.fetchone()
        self.conn.commit()
        return int(row[0])

    def update(self, lead_id: int, contact: CanonicalContact) -> None:
        """Overwrite every column of a lead with the given (already merged) record."""
        data = contact.model_dump()
        assignments = ", ".join(f"{c} = ?" for c in _COLUMNS)
        sql = f"UPDATE leads SET {assignments}, updated_at = datetime('now') WHERE id = ?;"
        self.conn.execute(sql, tuple(data[c] for c in _COLUMNS) + (lead_id,))
        self.conn.commit()

    def get(self, lead_id: int) -> Optional[CanonicalContact]:
        rows = self._select("WHERE id = ?", (lead_id,))
        return rows[0][1] if rows else None

    def find_by_linkedin_url(self, linkedin_url: str) -> Optional[Tuple[int, CanonicalContact]]:
        rows = self._select("WHERE linkedin_url = ?", (linkedin_url,))
        return rows[0] if rows else None

    def find_by_email(self, email: str) -> Optional[Tuple[int, CanonicalContact]]:
        rows = self._select("WHERE lower(email) = lower(?) ORDER BY id LIMIT 1", (email,))
        return rows[0] if rows else None

    def list_recent(self, limit: int = 20, status: Optional[str] = None) -> List[Tuple[int, CanonicalContact]]:
        if status:
            return self._select("WHERE status = ? ORDER BY id DESC LIMIT ?", (status, limit))
        return self._select("ORDER BY id DESC LIMIT ?", (limit,))

    def upsert_contact(self, contact: CanonicalContact, source_name: Optional[str] = None) -> Tuple[int, bool]:
        """Create or merge a contact keyed by LinkedIn URL, then email.

        Returns (lead_id, created). Existing data is never replaced by empty values.
        """
        existing: Optional[Tuple[int, CanonicalContact]] = None
        if contact.linkedin_url:
            existing = self.find_by_linkedin_url(contact.linkedin_url)
        if existing is None and contact.email:
            existing = self.find_by_email(contact.email)
        if existing is None:
            return self.create(merge(None, contact), source_name=source_name), True
        lead_id, current = existing
        self.update(lead_id, merge(current, contact))
        return lead_id, False
