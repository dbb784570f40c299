import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, JSON, String
from leaveflow.core.database import Base


class AuthUser(Base):
    __tablename__ = "auth_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    # first_name / last_name / role as given at sign-up
    user_metadata = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
