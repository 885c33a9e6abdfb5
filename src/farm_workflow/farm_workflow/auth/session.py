from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class ClientSession:
    """What the client keeps after login."""

    access_token: str
    role: Optional[Role] = None
    user_id: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None


class SessionStore:
    """Holds the current session; shared by the UI thread and the poller."""

    def __init__(self, session: Optional[ClientSession] = None):
        self._lock = threading.Lock()
        self._session = session

    def get(self) -> Optional[ClientSession]:
        with self._lock:
            return self._session

    def set(self, session: ClientSession) -> None:
        with self._lock:
            self._session = session

    def clear(self) -> Optional[ClientSession]:
        """Drop the session and return what was there (None if already cleared)."""

        with self._lock:
            previous, self._session = self._session, None
            return previous
