"""
Identity records shared by the auth providers and the session coordinator.

Two providers produce identities:
  - the local fallback service (LocalUser / LocalSession, stored as text)
  - the primary database-backed client (PrimaryUser / PrimarySession, JWT)

Everything above the auth layer only sees Profile.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["employee", "manager", "admin"]
ROLES: tuple[str, ...] = ("employee", "manager", "admin")
DEFAULT_ROLE: Role = "employee"


def coerce_role(value: Any) -> Role:
    if isinstance(value, str) and value in ROLES:
        return value  # type: ignore[return-value]
    return DEFAULT_ROLE


class Profile(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    manager_id: Optional[str] = None
    department: Optional[str] = None

    class Config:
        from_attributes = True


class LocalUser(BaseModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    created_at: datetime

    def to_profile(self) -> Profile:
        return Profile(
            id=self.id,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            role=self.role,
        )


class LocalSession(BaseModel):
    user: LocalUser
    access_token: str
    expires_at: datetime

    def is_valid_at(self, now: datetime) -> bool:
        return now < self.expires_at


class PrimaryUser(BaseModel):
    id: str
    email: str
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class PrimarySession(BaseModel):
    user: PrimaryUser
    access_token: str
    expires_at: datetime
