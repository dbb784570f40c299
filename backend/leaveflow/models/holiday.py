import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, String, Text
from leaveflow.core.database import Base


class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String, nullable=False)
    date = Column(Date, unique=True, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
