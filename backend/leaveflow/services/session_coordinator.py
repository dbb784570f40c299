"""
Session coordinator: decides which auth provider owns the current identity.

State is a tagged value:

    Uninitialized -> Initializing -> Authenticated(provider, ...) | Anonymous

Exactly one provider drives the state at a time. While the local fallback
provider is active, session-change notifications from the primary client
are ignored. Every transition runs under one re-entrant lock; the primary
client calls back into the coordinator from inside sign-in/sign-out.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from leaveflow.core.errors import AuthError, RemoteUnavailable
from leaveflow.services.fallback_auth import FallbackAuthService
from leaveflow.services.identity import LocalSession, LocalUser, PrimarySession, PrimaryUser, Profile
from leaveflow.services.primary_auth import PrimaryAuthClient, Subscription
from leaveflow.services.profile_resolver import resolve_profile

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    FALLBACK = "fallback"
    PRIMARY = "primary"


@dataclass(frozen=True)
class Uninitialized:
    pass


@dataclass(frozen=True)
class Initializing:
    pass


@dataclass(frozen=True)
class Anonymous:
    pass


@dataclass(frozen=True)
class Authenticated:
    provider: ProviderKind
    user: Union[LocalUser, PrimaryUser]
    session: Union[LocalSession, PrimarySession]
    profile: Profile


AuthState = Union[Uninitialized, Initializing, Anonymous, Authenticated]


class SessionCoordinator:
    def __init__(self, fallback: FallbackAuthService, primary: PrimaryAuthClient):
        self.fallback = fallback
        self.primary = primary

        self._state: AuthState = Uninitialized()
        self._lock = threading.RLock()
        self._subscription: Optional[Subscription] = None

    # ---------- read side ----------

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def provider(self) -> Optional[ProviderKind]:
        state = self._state
        return state.provider if isinstance(state, Authenticated) else None

    @property
    def profile(self) -> Optional[Profile]:
        state = self._state
        return state.profile if isinstance(state, Authenticated) else None

    @property
    def user(self) -> Optional[Union[LocalUser, PrimaryUser]]:
        state = self._state
        return state.user if isinstance(state, Authenticated) else None

    @property
    def session(self) -> Optional[Union[LocalSession, PrimarySession]]:
        state = self._state
        return state.session if isinstance(state, Authenticated) else None

    @property
    def is_fallback_mode(self) -> bool:
        return self.provider is ProviderKind.FALLBACK

    @property
    def is_loading(self) -> bool:
        return isinstance(self._state, (Uninitialized, Initializing))

    # ---------- transitions ----------

    def _enter_fallback(self, user: LocalUser, session: LocalSession) -> None:
        if self.provider is ProviderKind.PRIMARY:
            self.primary.sign_out()
        self._state = Authenticated(ProviderKind.FALLBACK, user, session, user.to_profile())
        logger.info("Using local fallback authentication for %s", user.email)

    def _enter_primary(self, session: PrimarySession) -> None:
        current = self._state
        if (
            isinstance(current, Authenticated)
            and current.provider is ProviderKind.PRIMARY
            and current.session.access_token == session.access_token
        ):
            return

        profile = resolve_profile(self.primary, session.user)
        self._state = Authenticated(ProviderKind.PRIMARY, session.user, session, profile)
        logger.info("Using primary authentication for %s (%s)", session.user.email, profile.role)

    def _on_primary_session_change(self, event: str, session: Optional[PrimarySession]) -> None:
        with self._lock:
            if self.is_fallback_mode:
                logger.debug("Ignoring primary %s while fallback auth is active", event)
                return

            if session is None:
                self._state = Anonymous()
            else:
                self._enter_primary(session)

    def initialize(self) -> AuthState:
        with self._lock:
            self._state = Initializing()
            if self._subscription is None:
                self._subscription = self.primary.on_session_change(self._on_primary_session_change)

            try:
                self.fallback.ensure_demo_accounts()

                local = self.fallback.get_session()
                if local:
                    self._enter_fallback(local.user, local)
                    return self._state

                try:
                    remote = self.primary.get_session()
                except RemoteUnavailable as e:
                    logger.error("Primary session check failed: %s", e)
                    remote = None

                if remote:
                    self._enter_primary(remote)
                else:
                    self._state = Anonymous()
            except Exception:
                logger.exception("Auth initialization error")
                self._state = Anonymous()

            return self._state

    def active_profile(self) -> Optional[Profile]:
        """Current profile, dropping to Anonymous once the provider's session is gone."""
        with self._lock:
            provider = self.provider
            if provider is ProviderKind.FALLBACK:
                stored = self.fallback.get_session()
                if stored is None:
                    self._state = Anonymous()
                elif stored.access_token != self.session.access_token:
                    # the slot was overwritten by another sign-in on the same store
                    self._enter_fallback(stored.user, stored)
            elif provider is ProviderKind.PRIMARY:
                try:
                    if self.primary.get_session() is None:
                        self._state = Anonymous()
                except RemoteUnavailable as e:
                    logger.warning("Primary session check failed, keeping current identity: %s", e)
            return self.profile

    def sign_in(self, email: str, password: str) -> Optional[AuthError]:
        with self._lock:
            try:
                result = self.primary.sign_in_with_password(email, password)
            except RemoteUnavailable as e:
                logger.warning("Primary sign-in unavailable: %s", e)
                primary_error = AuthError.remote_unavailable(str(e))
            else:
                if result.session:
                    if self.is_fallback_mode:
                        self.fallback.sign_out()
                        self._state = Anonymous()
                    self._enter_primary(result.session)
                    return None
                primary_error = result.error or AuthError.invalid_credentials()

            logger.info("Primary sign-in failed (%s), trying local fallback", primary_error.code.value)
            local = self.fallback.sign_in(email, password)
            if local.user and local.session:
                self._enter_fallback(local.user, local.session)
                return None

            return local.error or primary_error

    def sign_up(
        self,
        email: str,
        password: str,
        *,
        first_name: str,
        last_name: str,
        role: Optional[str] = None,
    ) -> Optional[AuthError]:
        with self._lock:
            created = self.fallback.sign_up(
                email, password, first_name=first_name, last_name=last_name, role=role
            )
            if created.error:
                return created.error

            local = self.fallback.sign_in(email, password)
            if local.user and local.session:
                self._enter_fallback(local.user, local.session)
                return None

            return local.error

    def sign_out(self) -> None:
        with self._lock:
            provider = self.provider
            if provider is ProviderKind.FALLBACK:
                self.fallback.sign_out()
                self._state = Anonymous()
            elif provider is ProviderKind.PRIMARY:
                # the primary's SIGNED_OUT notification moves us to Anonymous
                self.primary.sign_out()

    def close(self) -> None:
        with self._lock:
            if self._subscription is not None:
                self._subscription.unsubscribe()
                self._subscription = None
