# backend/leaveflow/api/auth_routes.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from leaveflow.api.deps_auth import get_coordinator
from leaveflow.core.errors import AuthError, AuthErrorCode
from leaveflow.services.identity import Profile
from leaveflow.services.session_coordinator import SessionCoordinator

router = APIRouter()

ERROR_STATUS = {
    AuthErrorCode.USER_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    AuthErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.REMOTE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class SignInIn(BaseModel):
    email: str
    password: str


class SignUpIn(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    role: Optional[str] = None


class SessionOut(BaseModel):
    authenticated: bool
    provider: Optional[str] = None
    is_fallback_mode: bool = False
    loading: bool = False
    access_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    profile: Optional[Profile] = None


def session_out(coordinator: SessionCoordinator) -> SessionOut:
    session = coordinator.session
    provider = coordinator.provider
    return SessionOut(
        authenticated=coordinator.profile is not None,
        provider=provider.value if provider else None,
        is_fallback_mode=coordinator.is_fallback_mode,
        loading=coordinator.is_loading,
        access_token=session.access_token if session else None,
        expires_at=session.expires_at if session else None,
        profile=coordinator.profile,
    )


def raise_auth_error(error: AuthError):
    raise HTTPException(
        status_code=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail={"code": error.code.value, "message": error.message},
    )


@router.post("/sign-in", response_model=SessionOut)
def sign_in(payload: SignInIn, coordinator: SessionCoordinator = Depends(get_coordinator)):
    error = coordinator.sign_in(payload.email.strip(), payload.password)
    if error:
        raise_auth_error(error)
    return session_out(coordinator)


@router.post("/sign-up", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
def sign_up(payload: SignUpIn, coordinator: SessionCoordinator = Depends(get_coordinator)):
    error = coordinator.sign_up(
        payload.email.strip(),
        payload.password,
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        role=payload.role,
    )
    if error:
        raise_auth_error(error)
    return session_out(coordinator)


@router.post("/sign-out", response_model=SessionOut)
def sign_out(coordinator: SessionCoordinator = Depends(get_coordinator)):
    coordinator.sign_out()
    return session_out(coordinator)


@router.get("/session", response_model=SessionOut)
def current_session(coordinator: SessionCoordinator = Depends(get_coordinator)):
    coordinator.active_profile()
    return session_out(coordinator)
