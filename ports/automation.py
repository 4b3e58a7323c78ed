from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Callable, Dict, List, Protocol


class AutomationSurfacePort(Protocol):
    """A controllable browser page used for the interactive login flow."""

    def open(self, url: str) -> None:
        ...

    def current_url(self) -> str:
        ...

    def wait_for_url(self, predicate: Callable[[str], bool], timeout_seconds: float) -> bool:
        """Block until predicate(url) holds; False when the timeout elapses first."""
        ...

    def cookies(self) -> List[Dict[str, Any]]:
        ...


# Opening a surface must be scoped: leaving the context closes the browser.
SurfaceFactory = Callable[[], AbstractContextManager[AutomationSurfacePort]]
