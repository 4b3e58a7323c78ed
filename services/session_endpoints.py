from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from services.errors import SessionBusyError, ValidationError
from services.session_manager import SessionManager


logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, Any]]


def login(manager: SessionManager, session_key: Optional[str] = None, cookie: Optional[str] = None) -> Response:
    """Interactive browser login, or a pasted session cookie when `cookie` is given.

    An explicitly supplied but blank cookie is rejected without opening a browser.
    """
    try:
        if cookie is not None:
            result = manager.authenticate_with_artifact(cookie, session_key)
        else:
            result = manager.acquire(session_key)
    except ValidationError as e:
        return 400, {"success": False, "message": str(e)}
    except SessionBusyError as e:
        return 409, {"success": False, "message": str(e)}

    if result.success:
        return 200, {"success": True, "message": result.message}
    return 400, {"success": False, "message": result.message}


def status(manager: SessionManager, session_key: Optional[str] = None) -> Response:
    return 200, manager.status(session_key).to_json()


def logout(manager: SessionManager, session_key: Optional[str] = None) -> Response:
    manager.invalidate(session_key)
    return 200, {"success": True, "message": "LinkedIn session cleared"}
