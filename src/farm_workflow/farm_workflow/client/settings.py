from __future__ import annotations

import importlib
from dataclasses import dataclass

from config import get_settings_module

from ..core.constants import ATTENDANCE_POLL_SECONDS, DEFAULT_HTTP_TIMEOUT_SECONDS


@dataclass(frozen=True)
class ClientSettings:
    api_base_url: str = "http://localhost:5000/api"
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    attendance_poll_seconds: float = ATTENDANCE_POLL_SECONDS

    @classmethod
    def load(cls) -> "ClientSettings":
        """Read client settings from the active settings module (APP_ENV)."""

        settings = importlib.import_module(get_settings_module())
        return cls(
            api_base_url=str(getattr(settings, "API_BASE_URL", cls.api_base_url)),
            http_timeout_seconds=float(getattr(settings, "HTTP_TIMEOUT_SECONDS", cls.http_timeout_seconds)),
            attendance_poll_seconds=float(getattr(settings, "ATTENDANCE_POLL_SECONDS", cls.attendance_poll_seconds)),
        )
