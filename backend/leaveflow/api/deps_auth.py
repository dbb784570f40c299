# backend/leaveflow/api/deps_auth.py

from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from leaveflow.services.fallback_auth import FallbackAuthService
from leaveflow.services.identity import Profile
from leaveflow.services.session_coordinator import SessionCoordinator


def get_db(request: Request):
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_coordinator(request: Request) -> SessionCoordinator:
    return request.app.state.coordinator


def get_fallback(coordinator: SessionCoordinator = Depends(get_coordinator)) -> FallbackAuthService:
    return coordinator.fallback


def get_current_profile(coordinator: SessionCoordinator = Depends(get_coordinator)) -> Profile:
    profile = coordinator.active_profile()
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return profile


def require_roles(*roles: str) -> Callable[..., Profile]:
    def dependency(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{' or '.join(r.capitalize() for r in roles)} role required",
            )
        return profile

    return dependency


require_reviewer = require_roles("manager", "admin")
require_admin = require_roles("admin")
