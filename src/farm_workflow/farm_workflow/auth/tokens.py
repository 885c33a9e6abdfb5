from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from ..core.constants import DEFAULT_ACCESS_TOKEN_MINUTES
from ..core.exceptions import AuthExpired

ALGORITHM = "HS256"


def issue_access_token(
    *,
    user_id: str,
    email: str,
    role: str,
    secret: str,
    ttl_minutes: int = DEFAULT_ACCESS_TOKEN_MINUTES,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=int(ttl_minutes)),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_access_token(token: str, *, secret: str) -> dict[str, Any]:
    """Verify signature and expiry; any failure is a 401 for the caller."""

    try:
        return jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthExpired("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthExpired("Invalid token") from e


def read_expiry(token: str) -> Optional[datetime]:
    """Read the ``exp`` claim without verifying the signature (client side)."""

    try:
        payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.InvalidTokenError:
        return None
    exp = payload.get("exp")
    if exp is None:
        return None
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)


def is_token_expired(token: Optional[str], *, now: Optional[datetime] = None) -> bool:
    if not token:
        return True
    expiry = read_expiry(token)
    if expiry is None:
        return True
    return (now or datetime.now(timezone.utc)) >= expiry
