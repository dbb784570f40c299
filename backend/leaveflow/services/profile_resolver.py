import logging

from pydantic import ValidationError

from leaveflow.core.errors import RemoteUnavailable
from leaveflow.services.identity import PrimaryUser, Profile, coerce_role
from leaveflow.services.primary_auth import PrimaryAuthClient

logger = logging.getLogger(__name__)


def default_profile(user: PrimaryUser) -> Profile:
    meta = user.user_metadata or {}
    return Profile(
        id=user.id,
        email=user.email or "",
        first_name=meta.get("first_name") or "User",
        last_name=meta.get("last_name") or "Name",
        role=coerce_role(meta.get("role")),
    )


def resolve_profile(client: PrimaryAuthClient, user: PrimaryUser) -> Profile:
    """Fetch the stored profile for user, or build one from its metadata.

    Never raises: a backend outage degrades to the metadata defaults so the
    app stays usable.
    """
    try:
        profile = client.fetch_profile(user.id)
    except (RemoteUnavailable, ValidationError) as e:
        logger.error("Profile fetch failed for %s, using metadata defaults: %s", user.id, e)
        return default_profile(user)

    if profile is None:
        logger.warning("No profile row for %s, using metadata defaults", user.id)
        return default_profile(user)

    return profile
