import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    String,
    Text,
    CheckConstraint,
    Index,
)
from leaveflow.core.database import Base

LEAVE_TYPES = ("sick", "vacation", "family_emergency", "personal", "other")
LEAVE_STATUSES = ("pending", "approved", "rejected", "cancelled")


def _now():
    return datetime.now(timezone.utc)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_valid_date_range"),
        Index("ix_leave_requests_employee", "employee_id"),
        Index("ix_leave_requests_status", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # no FK: local fallback identities file requests too
    employee_id = Column(String, nullable=False)

    leave_type = Column(String, nullable=False)
    custom_reason = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    status = Column(String, nullable=False, default="pending")

    # review
    approved_by = Column(String, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # timestamps
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
