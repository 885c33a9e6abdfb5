from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import g, request

from ..core.enums import Role
from ..core.exceptions import AuthExpired, AuthorizationError


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise AuthExpired("No token provided")
    token = header.split(" ", 1)[1].strip()
    if not token:
        raise AuthExpired("No token provided")
    return token


def make_token_required(container) -> Callable:
    """Build the ``token_required(*roles)`` decorator bound to a container.

    Missing/invalid/expired tokens raise ``AuthExpired`` (401); a role outside
    ``roles`` raises ``AuthorizationError`` (403). The resolved caller is put
    on ``flask.g.current_user``.
    """

    def token_required(*roles: Role):
        allowed = frozenset(roles)

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                user = container.auth_service.resolve_token(bearer_token())
                if allowed and user.role not in allowed:
                    raise AuthorizationError("Insufficient permissions")
                g.current_user = user
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return token_required
