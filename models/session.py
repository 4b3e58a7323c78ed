from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SessionState(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    AUTHENTICATING = "AUTHENTICATING"
    AUTHENTICATED = "AUTHENTICATED"
    EXPIRED = "EXPIRED"
    INVALIDATED = "INVALIDATED"


class SessionArtifact(BaseModel):
    """One opaque session fragment (a browser cookie)."""

    name: str
    value: str
    domain: str | None = None
    path: str | None = "/"
    expires: float | None = None
    http_only: bool = Field(default=False, alias="httpOnly")
    secure: bool = False

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ExternalSession(BaseModel):
    """Stored authenticated automation session, one per session key."""

    session_key: str
    artifacts: list[SessionArtifact] = Field(default_factory=list)
    expires_at: datetime
    last_used_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(extra="ignore")

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at and bool(self.artifacts)

    def artifact(self, name: str) -> Optional[SessionArtifact]:
        for item in self.artifacts:
            if item.name == name:
                return item
        return None


class SessionStatus(BaseModel):
    connected: bool
    expires_at: datetime | None = None
    last_used_at: datetime | None = None

    def to_json(self) -> Dict[str, Any]:
        """Render the status endpoint body: {connected, expiresAt?, lastUsedAt?}."""
        body: Dict[str, Any] = {"connected": self.connected}
        if self.connected and self.expires_at is not None:
            body["expiresAt"] = self.expires_at.isoformat()
        if self.connected and self.last_used_at is not None:
            body["lastUsedAt"] = self.last_used_at.isoformat()
        return body


class AcquireResult(BaseModel):
    success: bool
    message: str
    state: SessionState
    error: Optional[Exception] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)
