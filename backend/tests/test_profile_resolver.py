import pytest

from leaveflow.core.errors import RemoteUnavailable
from leaveflow.services.identity import PrimaryUser, Profile
from leaveflow.services.profile_resolver import default_profile, resolve_profile


pytestmark = pytest.mark.unit


class StubClient:
    def __init__(self, profile=None, error=None):
        self.profile = profile
        self.error = error
        self.calls = []

    def fetch_profile(self, user_id):
        self.calls.append(user_id)
        if self.error:
            raise self.error
        return self.profile


USER = PrimaryUser(
    id="u-1",
    email="kim@corp.test",
    user_metadata={"first_name": "Kim", "last_name": "Lee", "role": "manager"},
)


def test_returns_remote_profile_verbatim():
    stored = Profile(
        id="u-1",
        email="kim@corp.test",
        first_name="Kimberly",
        last_name="Lee",
        role="admin",
        manager_id="u-0",
        department="Ops",
    )
    client = StubClient(profile=stored)

    assert resolve_profile(client, USER) == stored
    assert client.calls == ["u-1"]


def test_remote_failure_uses_metadata():
    profile = resolve_profile(StubClient(error=RemoteUnavailable("down")), USER)

    assert profile == Profile(id="u-1", email="kim@corp.test", first_name="Kim", last_name="Lee", role="manager")


def test_missing_row_uses_metadata():
    assert resolve_profile(StubClient(), USER).role == "manager"


def test_defaults_without_metadata():
    profile = default_profile(PrimaryUser(id="u-2", email="", user_metadata={}))

    assert profile.first_name == "User"
    assert profile.last_name == "Name"
    assert profile.role == "employee"
    assert profile.manager_id is None
    assert profile.department is None


def test_unrecognized_metadata_role_defaults_to_employee():
    user = PrimaryUser(id="u-3", email="x@corp.test", user_metadata={"role": "root"})

    assert default_profile(user).role == "employee"
