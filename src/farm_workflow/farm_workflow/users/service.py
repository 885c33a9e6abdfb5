from __future__ import annotations

from dataclasses import dataclass

import structlog
from werkzeug.security import check_password_hash

from ..auth.tokens import decode_access_token, issue_access_token
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_ACCESS_TOKEN_MINUTES
from ..core.exceptions import AuthenticationError, AuthExpired, AuthorizationError
from .model import SessionUser, User
from .repository import UserRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    user: SessionUser


def _session_user(user: User) -> SessionUser:
    return SessionUser(
        user_id=user.user_id,
        full_name=user.full_name,
        email=user.email,
        role=user.role,
        farm_id=user.farm_id,
    )


class AuthService:
    """Use case: log in and resolve bearer tokens to users."""

    def __init__(self, users: UserRepository, *, jwt_secret: str, ttl_minutes: int = DEFAULT_ACCESS_TOKEN_MINUTES):
        self._users = users
        self._jwt_secret = jwt_secret
        self._ttl_minutes = int(ttl_minutes)

    def authenticate(self, email: str, password: str) -> LoginResult:
        email = require_non_empty(email, "Email").lower()
        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except (TypeError, ValueError):
            # e.g. placeholder or corrupted hashes
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password")

        token = issue_access_token(
            user_id=user.user_id,
            email=user.email,
            role=user.role.value,
            secret=self._jwt_secret,
            ttl_minutes=self._ttl_minutes,
        )
        logger.info("login", user_id=user.user_id, role=user.role.value)
        return LoginResult(access_token=token, user=_session_user(user))

    def resolve_token(self, token: str) -> SessionUser:
        claims = decode_access_token(token, secret=self._jwt_secret)
        user = self._users.get_by_id(str(claims.get("userId", "")))
        if not user:
            raise AuthExpired("User not found")
        if not user.is_active:
            raise AuthorizationError("Account is deactivated")
        return _session_user(user)
