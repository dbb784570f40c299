from collections import Counter
from datetime import date
from typing import Iterable, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from leaveflow.models.leave_request import LeaveRequest as LeaveRequestModel
from leaveflow.models.profile import Profile as ProfileModel
from leaveflow.services.identity import Profile
from leaveflow.services.leave_requests import scoped_query

RECENT_LIMIT = 5


class RecentRequest(BaseModel):
    id: str
    leave_type: str
    start_date: date
    end_date: date
    status: str
    employee_name: Optional[str] = None


class DashboardStats(BaseModel):
    total_requests: int = 0
    pending_requests: int = 0
    approved_requests: int = 0
    rejected_requests: int = 0
    total_employees: Optional[int] = None


class Dashboard(BaseModel):
    role: str
    stats: DashboardStats
    recent_requests: list[RecentRequest]


def count_by_status(statuses: Iterable[str]) -> DashboardStats:
    counts = Counter(statuses)
    return DashboardStats(
        total_requests=sum(counts.values()),
        pending_requests=counts.get("pending", 0),
        approved_requests=counts.get("approved", 0),
        rejected_requests=counts.get("rejected", 0),
    )


def build_dashboard(db: Session, profile: Profile) -> Dashboard:
    q = scoped_query(db, profile)

    statuses = [row[0] for row in q.with_entities(LeaveRequestModel.status).all()]
    stats = count_by_status(statuses)

    if profile.role == "admin":
        stats.total_employees = db.query(ProfileModel).count()

    recent = q.order_by(LeaveRequestModel.created_at.desc()).limit(RECENT_LIMIT).all()

    names: dict[str, str] = {}
    if profile.role != "employee" and recent:
        ids = {r.employee_id for r in recent}
        for p in db.query(ProfileModel).filter(ProfileModel.id.in_(ids)).all():
            names[p.id] = f"{p.first_name} {p.last_name}".strip()

    recent_requests = [
        RecentRequest(
            id=r.id,
            leave_type=r.leave_type,
            start_date=r.start_date,
            end_date=r.end_date,
            status=r.status,
            employee_name=names.get(r.employee_id, "Unknown") if profile.role != "employee" else None,
        )
        for r in recent
    ]

    return Dashboard(role=profile.role, stats=stats, recent_requests=recent_requests)
