# backend/leaveflow/core/errors.py

from enum import Enum

from pydantic import BaseModel


class AuthErrorCode(str, Enum):
    USER_ALREADY_EXISTS = "user_already_exists"
    INVALID_CREDENTIALS = "invalid_credentials"
    REMOTE_UNAVAILABLE = "remote_unavailable"


class AuthError(BaseModel):
    """Error value handed back by the auth providers instead of raising."""

    code: AuthErrorCode
    message: str

    @classmethod
    def user_already_exists(cls) -> "AuthError":
        return cls(code=AuthErrorCode.USER_ALREADY_EXISTS, message="User already registered")

    @classmethod
    def invalid_credentials(cls) -> "AuthError":
        return cls(code=AuthErrorCode.INVALID_CREDENTIALS, message="Invalid login credentials")

    @classmethod
    def remote_unavailable(cls, detail: str = "") -> "AuthError":
        message = "Authentication backend unavailable"
        if detail:
            message = f"{message}: {detail}"
        return cls(code=AuthErrorCode.REMOTE_UNAVAILABLE, message=message)


class RemoteUnavailable(Exception):
    """The primary auth backend or its profile table could not be reached."""


class MalformedStoredData(Exception):
    """A credential store value could not be parsed back into a record."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Malformed value for {key!r}: {reason}")
        self.key = key
        self.reason = reason


class LeaveRequestError(Exception):
    """A leave request operation broke a business rule."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
