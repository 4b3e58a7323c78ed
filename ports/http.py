from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class HttpResponsePort(Protocol):
    status_code: int
    text: str

    def json(self) -> Any:
        ...


class HttpSessionPort(Protocol):
    """Subset of requests.Session used by the provider clients."""

    def get(self, url: str, *, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> HttpResponsePort:
        ...

    def post(self, url: str, *, json: Any = None, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> HttpResponsePort:
        ...
