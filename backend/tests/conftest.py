from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from leaveflow.core.config import Settings
from leaveflow.core.database import create_tables, make_engine, make_session_factory
from leaveflow.main import create_app
from leaveflow.services.credential_store import InMemoryCredentialStore
from leaveflow.services.fallback_auth import FallbackAuthService
from leaveflow.services.primary_auth import DatabaseAuthClient
from leaveflow.services.session_coordinator import SessionCoordinator

TEST_SECRET = "test-secret"


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryCredentialStore()


@pytest.fixture
def fallback(store, clock):
    return FallbackAuthService(store, clock=clock)


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def primary(session_factory):
    return DatabaseAuthClient(session_factory, secret_key=TEST_SECRET)


@pytest.fixture
def coordinator(fallback, primary):
    coordinator = SessionCoordinator(fallback, primary)
    yield coordinator
    coordinator.close()


@pytest.fixture
def people(primary):
    """Primary users: an admin, a manager, a direct report and an unrelated employee."""
    admin = primary.create_user("ada@corp.test", "pw-admin", first_name="Ada", last_name="Admin", role="admin").user
    manager = primary.create_user(
        "max@corp.test", "pw-manager", first_name="Max", last_name="Manager", role="manager"
    ).user
    report = primary.create_user(
        "rita@corp.test",
        "pw-rita",
        first_name="Rita",
        last_name="Report",
        role="employee",
        manager_id=manager.id,
    ).user
    other = primary.create_user("olaf@corp.test", "pw-olaf", first_name="Olaf", last_name="Other").user

    return {
        "admin": primary.fetch_profile(admin.id),
        "manager": primary.fetch_profile(manager.id),
        "report": primary.fetch_profile(report.id),
        "other": primary.fetch_profile(other.id),
    }


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        jwt_secret_key=TEST_SECRET,
        fallback_store_path=str(tmp_path / "credentials.json"),
        log_level="DEBUG",
    )


@pytest.fixture
def client(settings, store, clock):
    app = create_app(settings, fallback=FallbackAuthService(store, clock=clock))
    with TestClient(app) as c:
        yield c
