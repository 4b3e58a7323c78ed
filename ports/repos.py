from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from models import CanonicalContact, ExternalSession


class SessionStorePort(Protocol):
    def save(self, session: ExternalSession) -> None:
        ...

    def get(self, session_key: str) -> Optional[ExternalSession]:
        ...

    def delete(self, session_key: str) -> None:
        ...

    def touch(self, session_key: str, when: datetime) -> None:
        ...


class LeadsRepoPort(Protocol):
    def create(self, contact: CanonicalContact, source_name: Optional[str] = None) -> int:
        ...

    def update(self, lead_id: int, contact: CanonicalContact) -> None:
        ...

    def get(self, lead_id: int) -> Optional[CanonicalContact]:
        ...

    def find_by_linkedin_url(self, linkedin_url: str) -> Optional[tuple[int, CanonicalContact]]:
        ...

    def list_recent(self, limit: int = 20) -> List[tuple[int, CanonicalContact]]:
        ...

    def upsert_contact(self, contact: CanonicalContact, source_name: Optional[str] = None) -> tuple[int, bool]:
        ...
