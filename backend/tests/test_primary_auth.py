from datetime import timedelta

import pytest

from leaveflow.core.database import Base
from leaveflow.core.errors import AuthErrorCode, RemoteUnavailable
from leaveflow.core.security import decode_token
from leaveflow.models.user import AuthUser
from leaveflow.services.primary_auth import SIGNED_IN, SIGNED_OUT, DatabaseAuthClient


pytestmark = pytest.mark.unit


def _create(primary, email="pat@corp.test", password="s3cret", **kwargs):
    kwargs.setdefault("first_name", "Pat")
    kwargs.setdefault("last_name", "Jones")
    return primary.create_user(email, password, **kwargs)


class TestCreateUser:
    def test_creates_profile_from_metadata(self, primary):
        user = _create(primary, role="manager", department="Finance").user

        profile = primary.fetch_profile(user.id)

        assert profile.email == "pat@corp.test"
        assert profile.first_name == "Pat"
        assert profile.role == "manager"
        assert profile.department == "Finance"
        assert user.user_metadata["role"] == "manager"

    def test_unknown_role_becomes_employee(self, primary):
        user = _create(primary, role="overlord").user

        assert primary.fetch_profile(user.id).role == "employee"

    def test_password_is_hashed(self, primary, db):
        user = _create(primary).user

        row = db.get(AuthUser, user.id)
        assert row.password_hash != "s3cret"
        assert row.password_hash.startswith("$pbkdf2-sha256$")

    def test_duplicate_email(self, primary):
        _create(primary)

        result = _create(primary)

        assert result.error.code == AuthErrorCode.USER_ALREADY_EXISTS


class TestSignIn:
    def test_correct_password(self, primary):
        user = _create(primary).user

        result = primary.sign_in_with_password("pat@corp.test", "s3cret")

        assert result.error is None
        assert result.user.id == user.id
        claims = decode_token(result.session.access_token, secret_key="test-secret", algorithm="HS256")
        assert claims["sub"] == user.id
        assert primary.get_session() == result.session

    def test_wrong_password(self, primary):
        _create(primary)

        result = primary.sign_in_with_password("pat@corp.test", "nope")

        assert result.error.code == AuthErrorCode.INVALID_CREDENTIALS
        assert primary.get_session() is None

    def test_unknown_email(self, primary):
        assert primary.sign_in_with_password("ghost@corp.test", "x").error.code == AuthErrorCode.INVALID_CREDENTIALS

    def test_sign_out_clears_session(self, primary):
        _create(primary)
        primary.sign_in_with_password("pat@corp.test", "s3cret")

        primary.sign_out()

        assert primary.get_session() is None

    def test_expired_token_drops_session(self, session_factory):
        client = DatabaseAuthClient(session_factory, secret_key="test-secret", token_ttl=timedelta(seconds=-5))
        _create(client)
        client.sign_in_with_password("pat@corp.test", "s3cret")

        assert client.get_session() is None

    def test_database_failure_is_remote_unavailable(self, primary, engine):
        Base.metadata.drop_all(bind=engine)

        with pytest.raises(RemoteUnavailable):
            primary.sign_in_with_password("pat@corp.test", "s3cret")


class TestNotifications:
    def test_sign_in_and_out_are_broadcast(self, primary):
        events = []
        primary.on_session_change(lambda event, session: events.append((event, session)))
        _create(primary)

        result = primary.sign_in_with_password("pat@corp.test", "s3cret")
        primary.sign_out()

        assert events == [(SIGNED_IN, result.session), (SIGNED_OUT, None)]

    def test_failed_sign_in_is_silent(self, primary):
        events = []
        primary.on_session_change(lambda event, session: events.append(event))

        primary.sign_in_with_password("ghost@corp.test", "x")

        assert events == []

    def test_unsubscribe(self, primary):
        events = []
        subscription = primary.on_session_change(lambda event, session: events.append(event))

        subscription.unsubscribe()
        subscription.unsubscribe()
        primary.sign_out()

        assert events == []

    def test_failing_listener_does_not_break_sign_in(self, primary):
        def broken(event, session):
            raise RuntimeError("boom")

        seen = []
        primary.on_session_change(broken)
        primary.on_session_change(lambda event, session: seen.append(event))
        _create(primary)

        result = primary.sign_in_with_password("pat@corp.test", "s3cret")

        assert result.session is not None
        assert seen == [SIGNED_IN]


class TestFetchProfile:
    def test_missing_row(self, primary):
        assert primary.fetch_profile("does-not-exist") is None

    def test_database_failure(self, primary, engine):
        user = _create(primary).user
        Base.metadata.drop_all(bind=engine)

        with pytest.raises(RemoteUnavailable):
            primary.fetch_profile(user.id)
