from __future__ import annotations

from datetime import datetime
from typing import Callable, NoReturn, Optional

import structlog

from ..core.enums import Role
from ..core.exceptions import AuthExpired
from .session import SessionStore
from .tokens import is_token_expired

logger = structlog.get_logger(__name__)

_ENTRY_POINTS = {
    Role.ADMIN: "/admin/login",
    Role.VIEWER: "/viewer/login",
}
DEFAULT_ENTRY_POINT = "/login"


def entry_point_for(role: Optional[Role]) -> str:
    return _ENTRY_POINTS.get(role, DEFAULT_ENTRY_POINT) if role else DEFAULT_ENTRY_POINT


class AuthGuard:
    """Checks the local token before each request and hands off on expiry.

    ``on_expired`` is the external redirect collaborator; it receives the
    role-appropriate login entry point and is called once per session.
    """

    def __init__(
        self,
        store: SessionStore,
        on_expired: Optional[Callable[[str], None]] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._on_expired = on_expired
        self._clock = clock

    @property
    def store(self) -> SessionStore:
        return self._store

    def ensure_valid(self) -> str:
        session = self._store.get()
        now = self._clock() if self._clock else None
        if session is None or is_token_expired(session.access_token, now=now):
            self.expire("Session expired. Please login again.")
        return session.access_token

    def expire(self, reason: str) -> NoReturn:
        previous = self._store.clear()
        if previous is not None:
            entry_point = entry_point_for(previous.role)
            logger.warning("session_expired", reason=reason, role=getattr(previous.role, "value", None), redirect=entry_point)
            if self._on_expired is not None:
                self._on_expired(entry_point)
        raise AuthExpired(reason)
