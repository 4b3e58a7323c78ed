from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set

from config.settings import Settings, get_settings
from models import AcquireResult, ExternalSession, SessionArtifact, SessionState, SessionStatus
from ports import AutomationSurfacePort, SessionStorePort, SurfaceFactory
from services.browser import playwright_surface
from services.errors import (
    LoginTimeoutError,
    OperationCancelled,
    SessionBusyError,
    SessionInvalid,
    ValidationError,
)


logger = logging.getLogger(__name__)

# The one cookie subsequent authenticated requests depend on
LOAD_BEARING_ARTIFACT = "li_at"
SITE_ROOT = "https://www.linkedin.com/"
ARTIFACT_DOMAIN = ".linkedin.com"


def is_logged_in_url(url: str, markers: Sequence[str]) -> bool:
    if not url or "/login" in url:
        return False
    return any(m in url for m in markers) or url == SITE_ROOT


class SessionManager:
    """Lifecycle of the authenticated automation session, one per session key.

    UNAUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED -> (EXPIRED | INVALIDATED)

    acquire() runs the interactive browser login; the browser is opened as a
    scoped resource and closed on every exit path. Concurrent acquisitions for
    the same key are rejected with SessionBusyError.
    """

    def __init__(
        self,
        store: SessionStorePort,
        settings: Optional[Settings] = None,
        surface_factory: Optional[SurfaceFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
        monotonic: Optional[Callable[[], float]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.surface_factory: SurfaceFactory = surface_factory or (lambda: playwright_surface(self.settings))
        self._now = clock or (lambda: datetime.now(timezone.utc))
        self._monotonic = monotonic or time.monotonic
        self._lock = threading.Lock()
        self._acquiring: Set[str] = set()
        self._states: Dict[str, SessionState] = {}

    def _key(self, session_key: Optional[str]) -> str:
        return session_key or self.settings.default_session_key

    def _set_state(self, key: str, state: SessionState) -> None:
        with self._lock:
            self._states[key] = state
        logger.debug("Session state -> %s", state.value, extra={"session_key": key, "status": state.value})

    @contextmanager
    def _acquisition_slot(self, key: str) -> Iterator[None]:
        with self._lock:
            if key in self._acquiring:
                raise SessionBusyError(f"Session acquisition already in progress for key {key!r}")
            self._acquiring.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._acquiring.discard(key)

    def state(self, session_key: Optional[str] = None) -> SessionState:
        key = self._key(session_key)
        with self._lock:
            if key in self._acquiring:
                return SessionState.AUTHENTICATING
            known = self._states.get(key)
        session = self.store.get(key)
        if session is not None:
            return SessionState.AUTHENTICATED if session.is_valid(self._now()) else SessionState.EXPIRED
        if known is SessionState.INVALIDATED:
            return known
        return SessionState.UNAUTHENTICATED

    def acquire(self, session_key: Optional[str] = None, cancel: Optional[threading.Event] = None) -> AcquireResult:
        """Run the interactive login and persist the captured artifacts.

        Blocks up to settings.login_wait_seconds. Returns a failed AcquireResult
        (typed `error`) on timeout, cancellation or any other failure.
        """
        key = self._key(session_key)
        with self._acquisition_slot(key):
            self._set_state(key, SessionState.AUTHENTICATING)
            try:
                with self.surface_factory() as surface:
                    logger.info("Navigating to login page", extra={"step": "session.acquire", "session_key": key})
                    surface.open(self.settings.linkedin_login_url)
                    logger.info("Waiting for user to log in", extra={"step": "session.acquire", "session_key": key})
                    self._wait_for_login(surface, cancel)
                    logger.info("Login detected at %s", surface.current_url(), extra={"step": "session.acquire", "session_key": key})
                    raw_cookies = surface.cookies()
                artifacts = [SessionArtifact.model_validate(c) for c in raw_cookies]
                self._persist(key, artifacts)
            except LoginTimeoutError as e:
                logger.warning("Login timeout", extra={"step": "session.acquire", "status": "timeout", "session_key": key})
                return self._failed(key, str(e), e)
            except OperationCancelled as e:
                logger.info("Login cancelled", extra={"step": "session.acquire", "status": "cancelled", "session_key": key})
                return self._failed(key, str(e), e)
            except Exception as e:
                logger.exception("Authentication failed", extra={"step": "session.acquire", "status": "error", "session_key": key, "error": str(e)})
                return self._failed(key, f"Authentication failed: {e}", e)

            self._set_state(key, SessionState.AUTHENTICATED)
            logger.info("Session saved (%d artifacts)", len(artifacts), extra={"step": "session.acquire", "status": "ok", "session_key": key})
            return AcquireResult(
                success=True,
                message="LinkedIn account connected successfully!",
                state=SessionState.AUTHENTICATED,
            )

    def authenticate_with_artifact(self, value: str, session_key: Optional[str] = None) -> AcquireResult:
        """Store a manually supplied session cookie (no browser involved)."""
        key = self._key(session_key)
        text = (value or "").strip()
        if text.startswith(f"{LOAD_BEARING_ARTIFACT}="):
            text = text[len(LOAD_BEARING_ARTIFACT) + 1:].strip()
        if not text:
            raise ValidationError("Cookie is required")
        with self._acquisition_slot(key):
            artifact = SessionArtifact(
                name=LOAD_BEARING_ARTIFACT,
                value=text,
                domain=ARTIFACT_DOMAIN,
                path="/",
                http_only=True,
                secure=True,
            )
            self._persist(key, [artifact])
            self._set_state(key, SessionState.AUTHENTICATED)
        logger.info("Session cookie stored", extra={"step": "session.store_cookie", "status": "ok", "session_key": key})
        return AcquireResult(success=True, message="LinkedIn session cookie saved", state=SessionState.AUTHENTICATED)

    def _wait_for_login(self, surface: AutomationSurfacePort, cancel: Optional[threading.Event]) -> None:
        budget = self.settings.login_wait_seconds
        deadline = self._monotonic() + budget
        markers = self.settings.logged_in_url_markers

        def _predicate(url: str) -> bool:
            return is_logged_in_url(url, markers)

        while True:
            if cancel is not None and cancel.is_set():
                raise OperationCancelled("Login wait cancelled")
            remaining = deadline - self._monotonic()
            if remaining <= 0:
                raise LoginTimeoutError(budget)
            if surface.wait_for_url(_predicate, min(self.settings.login_poll_slice_seconds, remaining)):
                return

    def _persist(self, key: str, artifacts: List[SessionArtifact]) -> None:
        if not any(a.name == LOAD_BEARING_ARTIFACT and a.value for a in artifacts):
            raise SessionInvalid(f"Failed to capture LinkedIn session cookie ({LOAD_BEARING_ARTIFACT})")
        now = self._now()
        self.store.save(ExternalSession(
            session_key=key,
            artifacts=artifacts,
            expires_at=now + timedelta(days=self.settings.session_ttl_days),
            last_used_at=now,
            created_at=now,
        ))

    def _failed(self, key: str, message: str, error: Exception) -> AcquireResult:
        self._set_state(key, SessionState.UNAUTHENTICATED)
        return AcquireResult(success=False, message=message, state=SessionState.UNAUTHENTICATED, error=error)

    def status(self, session_key: Optional[str] = None) -> SessionStatus:
        """Pure read: never extends expiry, never touches the browser."""
        key = self._key(session_key)
        session = self.store.get(key)
        if session is None or not session.is_valid(self._now()):
            return SessionStatus(connected=False)
        return SessionStatus(connected=True, expires_at=session.expires_at, last_used_at=session.last_used_at)

    def invalidate(self, session_key: Optional[str] = None) -> None:
        key = self._key(session_key)
        self.store.delete(key)
        self._set_state(key, SessionState.INVALIDATED)
        logger.info("Session cleared", extra={"step": "session.invalidate", "session_key": key})

    def cookies_for_use(self, session_key: Optional[str] = None) -> Optional[List[SessionArtifact]]:
        """Stored artifacts for automation-dependent callers, or None.

        Expiry is NOT checked here; call status() first (or use require_cookies).
        """
        key = self._key(session_key)
        session = self.store.get(key)
        if session is None or not session.artifacts:
            return None
        self.store.touch(key, self._now())
        return list(session.artifacts)

    def require_cookies(self, session_key: Optional[str] = None) -> List[SessionArtifact]:
        key = self._key(session_key)
        if not self.status(key).connected:
            raise SessionInvalid(f"No valid LinkedIn session for key {key!r}; log in first")
        cookies = self.cookies_for_use(key)
        if not cookies:
            raise SessionInvalid(f"No valid LinkedIn session for key {key!r}; log in first")
        return cookies
