"""
Primary auth provider backed by the application database.

Users live in auth_users (pbkdf2 password hashes), their role-bearing rows in
profiles. A signed-in client holds one PrimarySession whose access token is a
JWT. Subscribers registered with on_session_change() are called synchronously
after every sign-in and sign-out.

Database failures surface as RemoteUnavailable so callers can degrade to the
local fallback provider.
"""

import logging
import threading
from datetime import timedelta
from typing import Callable, Optional, Protocol

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from leaveflow.core.errors import AuthError, RemoteUnavailable
from leaveflow.core.security import create_access_token, decode_token, hash_password, verify_password
from leaveflow.models.profile import Profile as ProfileModel
from leaveflow.models.user import AuthUser
from leaveflow.services.identity import PrimarySession, PrimaryUser, Profile, coerce_role

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

SessionChangeCallback = Callable[[str, Optional[PrimarySession]], None]


class PrimarySignInResult(BaseModel):
    user: Optional[PrimaryUser] = None
    session: Optional[PrimarySession] = None
    error: Optional[AuthError] = None


class PrimarySignUpResult(BaseModel):
    user: Optional[PrimaryUser] = None
    error: Optional[AuthError] = None


class Subscription:
    def __init__(self, listeners: list[SessionChangeCallback], callback: SessionChangeCallback):
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


class PrimaryAuthClient(Protocol):
    def sign_in_with_password(self, email: str, password: str) -> PrimarySignInResult: ...

    def sign_out(self) -> None: ...

    def get_session(self) -> Optional[PrimarySession]: ...

    def on_session_change(self, callback: SessionChangeCallback) -> Subscription: ...

    def fetch_profile(self, user_id: str) -> Optional[Profile]: ...


def _to_primary_user(user: AuthUser) -> PrimaryUser:
    return PrimaryUser(id=user.id, email=user.email, user_metadata=dict(user.user_metadata or {}))


class DatabaseAuthClient:
    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        secret_key: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(hours=24),
    ):
        self.session_factory = session_factory
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.token_ttl = token_ttl

        self._session: Optional[PrimarySession] = None
        self._listeners: list[SessionChangeCallback] = []
        self._lock = threading.Lock()

    # ---------- notifications ----------

    def on_session_change(self, callback: SessionChangeCallback) -> Subscription:
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    def _notify(self, event: str, session: Optional[PrimarySession]) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, session)
            except Exception:
                logger.exception("Session change listener failed on %s", event)

    # ---------- auth ----------

    def create_user(
        self,
        email: str,
        password: str,
        *,
        first_name: str = "",
        last_name: str = "",
        role: Optional[str] = None,
        manager_id: Optional[str] = None,
        department: Optional[str] = None,
    ) -> PrimarySignUpResult:
        email = email.strip()
        metadata = {"first_name": first_name, "last_name": last_name, "role": coerce_role(role)}

        try:
            with self.session_factory() as db:
                if db.query(AuthUser).filter(AuthUser.email == email).first():
                    return PrimarySignUpResult(error=AuthError.user_already_exists())

                user = AuthUser(email=email, password_hash=hash_password(password), user_metadata=metadata)
                db.add(user)
                db.flush()

                # every auth user gets a profile row seeded from its metadata
                db.add(
                    ProfileModel(
                        id=user.id,
                        email=email,
                        first_name=first_name or "",
                        last_name=last_name or "",
                        role=metadata["role"],
                        manager_id=manager_id,
                        department=department,
                    )
                )
                db.commit()
                db.refresh(user)
                created = _to_primary_user(user)
        except SQLAlchemyError as e:
            raise RemoteUnavailable(str(e)) from e

        logger.info("Primary user created: %s (%s)", created.email, metadata["role"])
        return PrimarySignUpResult(user=created)

    def sign_in_with_password(self, email: str, password: str) -> PrimarySignInResult:
        try:
            with self.session_factory() as db:
                user = db.query(AuthUser).filter(AuthUser.email == email.strip()).first()
                if not user or not verify_password(password, user.password_hash):
                    return PrimarySignInResult(error=AuthError.invalid_credentials())
                primary_user = _to_primary_user(user)
        except SQLAlchemyError as e:
            raise RemoteUnavailable(str(e)) from e

        token, expire = create_access_token(
            {"sub": primary_user.id, "email": primary_user.email},
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expires_delta=self.token_ttl,
        )
        session = PrimarySession(user=primary_user, access_token=token, expires_at=expire)

        with self._lock:
            self._session = session

        logger.info("Primary user signed in: %s", primary_user.email)
        self._notify(SIGNED_IN, session)
        return PrimarySignInResult(user=primary_user, session=session)

    def sign_out(self) -> None:
        with self._lock:
            self._session = None

        logger.info("Primary user signed out")
        self._notify(SIGNED_OUT, None)

    def get_session(self) -> Optional[PrimarySession]:
        with self._lock:
            session = self._session
            if session is None:
                return None

            try:
                decode_token(session.access_token, secret_key=self.secret_key, algorithm=self.algorithm)
            except ValueError:
                logger.info("Primary session for %s no longer valid", session.user.email)
                self._session = None
                return None

            return session

    # ---------- profiles ----------

    def fetch_profile(self, user_id: str) -> Optional[Profile]:
        try:
            with self.session_factory() as db:
                row = db.get(ProfileModel, user_id)
                return Profile.model_validate(row) if row else None
        except SQLAlchemyError as e:
            raise RemoteUnavailable(str(e)) from e
