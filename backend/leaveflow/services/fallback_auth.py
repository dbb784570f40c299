"""
Local fallback auth provider.

Users and the single active session are kept in a CredentialStore. This is
demo-grade auth: passwords are accepted but never stored or checked, and
tokens are unsigned strings. It exists so the app stays usable when the
primary backend is down.
"""

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from pydantic import BaseModel, ValidationError

from leaveflow.core.errors import AuthError, MalformedStoredData
from leaveflow.services.credential_store import (
    SESSION_KEY,
    USERS_KEY,
    CredentialStore,
    decode_record,
    encode_record,
)
from leaveflow.services.identity import LocalSession, LocalUser, coerce_role

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class LeavePolicy(BaseModel):
    annual_quota: int
    max_consecutive_days: int
    requires_approval: bool


LEAVE_POLICIES: dict[str, LeavePolicy] = {
    "sick": LeavePolicy(annual_quota=10, max_consecutive_days=5, requires_approval=False),
    "vacation": LeavePolicy(annual_quota=20, max_consecutive_days=14, requires_approval=True),
    "family_emergency": LeavePolicy(annual_quota=5, max_consecutive_days=3, requires_approval=True),
    "personal": LeavePolicy(annual_quota=5, max_consecutive_days=2, requires_approval=True),
    "other": LeavePolicy(annual_quota=0, max_consecutive_days=1, requires_approval=True),
}

DEMO_PASSWORD = "demo123"

DEMO_ACCOUNTS = [
    {"email": "admin@demo.com", "first_name": "Admin", "last_name": "User", "role": "admin"},
    {"email": "manager@demo.com", "first_name": "Manager", "last_name": "User", "role": "manager"},
    {"email": "employee@demo.com", "first_name": "Employee", "last_name": "User", "role": "employee"},
]


class SignUpResult(BaseModel):
    user: Optional[LocalUser] = None
    error: Optional[AuthError] = None


class SignInResult(BaseModel):
    user: Optional[LocalUser] = None
    session: Optional[LocalSession] = None
    error: Optional[AuthError] = None


class FallbackAuthService:
    def __init__(
        self,
        store: CredentialStore,
        *,
        session_ttl: timedelta = timedelta(hours=24),
        clock: Clock = utc_now,
    ):
        self.store = store
        self.session_ttl = session_ttl
        self.clock = clock

    # ---------- storage ----------

    def _load_users(self) -> list[LocalUser]:
        raw = self.store.get(USERS_KEY)
        if raw is None:
            return []
        try:
            data = decode_record(USERS_KEY, raw)
            if not isinstance(data, list):
                raise MalformedStoredData(USERS_KEY, "expected a list of users")
            return [LocalUser.model_validate(u) for u in data]
        except (MalformedStoredData, ValidationError) as e:
            logger.warning("Stored users unreadable, treating as empty: %s", e)
            return []

    def _save_users(self, users: list[LocalUser]) -> None:
        self.store.set(USERS_KEY, encode_record([u.model_dump(mode="json") for u in users]))

    def _load_session(self) -> Optional[LocalSession]:
        raw = self.store.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            return LocalSession.model_validate(decode_record(SESSION_KEY, raw))
        except (MalformedStoredData, ValidationError) as e:
            logger.warning("Stored session unreadable, discarding it: %s", e)
            self.store.delete(SESSION_KEY)
            return None

    def _save_session(self, session: Optional[LocalSession]) -> None:
        if session:
            self.store.set(SESSION_KEY, encode_record(session.model_dump(mode="json")))
        else:
            self.store.delete(SESSION_KEY)

    def _new_user_id(self) -> str:
        return f"local_{int(time.time() * 1000)}_{secrets.token_hex(5)}"

    # ---------- operations ----------

    def sign_up(
        self,
        email: str,
        password: str,
        *,
        first_name: str,
        last_name: str,
        role: Optional[str] = None,
    ) -> SignUpResult:
        users = self._load_users()

        if any(u.email == email for u in users):
            return SignUpResult(error=AuthError.user_already_exists())

        user = LocalUser(
            id=self._new_user_id(),
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=coerce_role(role),
            created_at=self.clock(),
        )

        users.append(user)
        self._save_users(users)

        logger.info("Local user created: %s (%s)", user.email, user.role)
        return SignUpResult(user=user)

    def sign_in(self, email: str, password: str) -> SignInResult:
        # password is intentionally not checked: demo accounts only
        user = next((u for u in self._load_users() if u.email == email), None)
        if user is None:
            return SignInResult(error=AuthError.invalid_credentials())

        now = self.clock()
        session = LocalSession(
            user=user,
            access_token=f"local_token_{int(now.timestamp() * 1000)}_{secrets.token_hex(8)}",
            expires_at=now + self.session_ttl,
        )
        self._save_session(session)

        logger.info("Local user signed in: %s", user.email)
        return SignInResult(user=user, session=session)

    def sign_out(self) -> None:
        self._save_session(None)
        logger.info("Local user signed out")

    def get_session(self) -> Optional[LocalSession]:
        session = self._load_session()

        if session and not session.is_valid_at(self.clock()):
            logger.info("Local session for %s expired", session.user.email)
            self._save_session(None)
            return None

        return session

    def get_leave_policy(self, leave_type: str) -> LeavePolicy:
        return LEAVE_POLICIES.get(leave_type, LEAVE_POLICIES["other"])

    def ensure_demo_accounts(self) -> int:
        existing = {u.email for u in self._load_users()}
        created = 0

        for demo in DEMO_ACCOUNTS:
            if demo["email"] in existing:
                continue
            try:
                self.sign_up(
                    demo["email"],
                    DEMO_PASSWORD,
                    first_name=demo["first_name"],
                    last_name=demo["last_name"],
                    role=demo["role"],
                )
            except OSError as e:
                logger.warning("Demo account %s not created: %s", demo["email"], e)
                continue
            created += 1

        logger.info("Demo accounts verified (%d created)", created)
        return created
