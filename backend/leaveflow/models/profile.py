from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, String
from leaveflow.core.database import Base


def _now():
    return datetime.now(timezone.utc)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("auth_users.id", ondelete="CASCADE"), primary_key=True)

    email = Column(String, unique=True, nullable=False)
    first_name = Column(String, nullable=False, default="")
    last_name = Column(String, nullable=False, default="")

    # "employee" | "manager" | "admin"
    role = Column(String, nullable=False, default="employee")

    manager_id = Column(String(36), ForeignKey("profiles.id"), nullable=True, index=True)
    department = Column(String, nullable=True)

    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
