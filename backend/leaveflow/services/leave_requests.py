from datetime import date, datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from leaveflow.core.errors import LeaveRequestError
from leaveflow.models.leave_request import LeaveRequest as LeaveRequestModel
from leaveflow.models.profile import Profile as ProfileModel
from leaveflow.services.identity import Profile

LeaveType = Literal["sick", "vacation", "family_emergency", "personal", "other"]
LeaveStatus = Literal["pending", "approved", "rejected", "cancelled"]


class LeaveRequestCreate(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    custom_reason: Optional[str] = None
    description: Optional[str] = None


def team_member_ids(db: Session, manager_id: str) -> list[str]:
    rows = db.query(ProfileModel.id).filter(ProfileModel.manager_id == manager_id).all()
    return [r[0] for r in rows]


def scoped_query(db: Session, profile: Profile):
    """Leave requests visible to profile: own, own + direct reports, or all."""
    q = db.query(LeaveRequestModel)

    if profile.role == "admin":
        return q
    if profile.role == "manager":
        ids = team_member_ids(db, profile.id) + [profile.id]
        return q.filter(LeaveRequestModel.employee_id.in_(ids))
    return q.filter(LeaveRequestModel.employee_id == profile.id)


def create_leave_request(db: Session, profile: Profile, payload: LeaveRequestCreate) -> LeaveRequestModel:
    if payload.end_date < payload.start_date:
        raise LeaveRequestError("end_date must not be before start_date")

    custom_reason = (payload.custom_reason or "").strip() or None
    if payload.leave_type == "other" and not custom_reason:
        raise LeaveRequestError("custom_reason is required for leave type 'other'")

    req = LeaveRequestModel(
        employee_id=profile.id,
        leave_type=payload.leave_type,
        custom_reason=custom_reason,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status="pending",
    )
    db.add(req)
    db.commit()
    db.refresh(req)
    return req


def list_leave_requests(
    db: Session,
    profile: Profile,
    *,
    status: Optional[str] = None,
    limit: int = 50,
) -> list[LeaveRequestModel]:
    limit = max(1, min(limit, 200))

    q = scoped_query(db, profile)
    if status is not None:
        q = q.filter(LeaveRequestModel.status == status)

    return q.order_by(LeaveRequestModel.created_at.desc()).limit(limit).all()


def _get_visible(db: Session, request_id: str, profile: Profile) -> LeaveRequestModel:
    req = scoped_query(db, profile).filter(LeaveRequestModel.id == request_id).first()
    if not req:
        raise LeaveRequestError("Leave request not found", status_code=404)
    return req


def decide_leave_request(
    db: Session,
    request_id: str,
    reviewer: Profile,
    *,
    approve: bool,
    rejection_reason: Optional[str] = None,
) -> LeaveRequestModel:
    req = _get_visible(db, request_id, reviewer)

    if req.employee_id == reviewer.id:
        raise LeaveRequestError("You cannot review your own leave request", status_code=403)
    if req.status != "pending":
        raise LeaveRequestError(f"Leave request is already {req.status}", status_code=409)

    if approve:
        req.status = "approved"
        req.approved_by = reviewer.id
        req.approved_at = datetime.now(timezone.utc)
        req.rejection_reason = None
    else:
        req.status = "rejected"
        req.approved_by = reviewer.id
        req.approved_at = None
        req.rejection_reason = (rejection_reason or "").strip() or None

    db.commit()
    db.refresh(req)
    return req


def cancel_leave_request(db: Session, request_id: str, profile: Profile) -> LeaveRequestModel:
    req = _get_visible(db, request_id, profile)

    if req.employee_id != profile.id:
        raise LeaveRequestError("Only the requester can cancel a leave request", status_code=403)
    if req.status != "pending":
        raise LeaveRequestError(f"Leave request is already {req.status}", status_code=409)

    req.status = "cancelled"
    db.commit()
    db.refresh(req)
    return req
