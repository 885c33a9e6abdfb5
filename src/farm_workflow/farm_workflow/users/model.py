from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object; no database access in here.
    """

    user_id: str
    full_name: str
    email: str
    password_hash: str
    role: Role
    farm_id: Optional[str]
    is_active: bool = True


@dataclass(frozen=True)
class SessionUser:
    """The authenticated caller of an API request (decoded from the bearer token)."""

    user_id: str
    full_name: str
    email: str
    role: Role
    farm_id: Optional[str]

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role.value,
            "farm_id": self.farm_id,
        }
