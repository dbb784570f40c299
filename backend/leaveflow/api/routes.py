# backend/leaveflow/api/routes.py

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from leaveflow.api.deps_auth import get_current_profile, get_db, get_fallback, require_admin, require_reviewer
from leaveflow.core.errors import LeaveRequestError
from leaveflow.models.holiday import Holiday as HolidayModel
from leaveflow.services.dashboard import Dashboard, build_dashboard
from leaveflow.services.fallback_auth import LEAVE_POLICIES, FallbackAuthService, LeavePolicy
from leaveflow.services.identity import Profile
from leaveflow.services.leave_requests import (
    LeaveRequestCreate,
    LeaveStatus,
    cancel_leave_request,
    create_leave_request,
    decide_leave_request,
    list_leave_requests,
)

router = APIRouter()

# ---------- SCHEMAS ----------


class LeaveRequestOut(BaseModel):
    id: str
    employee_id: str
    leave_type: str
    custom_reason: Optional[str] = None
    description: Optional[str] = None
    start_date: date
    end_date: date
    status: str

    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RejectIn(BaseModel):
    rejection_reason: Optional[str] = None


class LeavePolicyOut(LeavePolicy):
    leave_type: str


class HolidayCreate(BaseModel):
    name: str
    date: date
    description: Optional[str] = None


class HolidayOut(BaseModel):
    id: str
    name: str
    date: date
    description: Optional[str] = None

    class Config:
        from_attributes = True


def _raise(e: LeaveRequestError):
    raise HTTPException(status_code=e.status_code, detail=e.message)


# ---------- LEAVE POLICIES (static reference table) ----------


@router.get("/leave-policies", response_model=List[LeavePolicyOut])
def list_leave_policies(fallback: FallbackAuthService = Depends(get_fallback)):
    return [
        LeavePolicyOut(leave_type=key, **fallback.get_leave_policy(key).model_dump())
        for key in LEAVE_POLICIES
    ]


@router.get("/leave-policies/{leave_type}", response_model=LeavePolicyOut)
def get_leave_policy(leave_type: str, fallback: FallbackAuthService = Depends(get_fallback)):
    return LeavePolicyOut(leave_type=leave_type, **fallback.get_leave_policy(leave_type).model_dump())


# ---------- LEAVE REQUESTS ----------


@router.get("/leave-requests", response_model=List[LeaveRequestOut])
def get_leave_requests(
    status: Optional[LeaveStatus] = None,
    limit: int = 50,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return list_leave_requests(db, profile, status=status, limit=limit)


@router.post("/leave-requests", response_model=LeaveRequestOut, status_code=201)
def submit_leave_request(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    try:
        return create_leave_request(db, profile, payload)
    except LeaveRequestError as e:
        _raise(e)


@router.post("/leave-requests/{request_id}/approve", response_model=LeaveRequestOut)
def approve_leave_request(
    request_id: str,
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_reviewer),
):
    try:
        return decide_leave_request(db, request_id, profile, approve=True)
    except LeaveRequestError as e:
        _raise(e)


@router.post("/leave-requests/{request_id}/reject", response_model=LeaveRequestOut)
def reject_leave_request(
    request_id: str,
    payload: RejectIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_reviewer),
):
    try:
        return decide_leave_request(
            db, request_id, profile, approve=False, rejection_reason=payload.rejection_reason
        )
    except LeaveRequestError as e:
        _raise(e)


@router.post("/leave-requests/{request_id}/cancel", response_model=LeaveRequestOut)
def cancel_request(
    request_id: str,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    try:
        return cancel_leave_request(db, request_id, profile)
    except LeaveRequestError as e:
        _raise(e)


# ---------- DASHBOARD ----------


@router.get("/dashboard", response_model=Dashboard)
def dashboard(
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    return build_dashboard(db, profile)


# ---------- HOLIDAYS (everyone reads, admin writes) ----------


@router.get("/holidays", response_model=List[HolidayOut])
def list_holidays(
    db: Session = Depends(get_db),
    _profile: Profile = Depends(get_current_profile),
):
    return db.query(HolidayModel).order_by(HolidayModel.date.asc()).all()


@router.post("/holidays", response_model=HolidayOut, status_code=201)
def create_holiday(
    payload: HolidayCreate,
    db: Session = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    if db.query(HolidayModel).filter(HolidayModel.date == payload.date).first():
        raise HTTPException(status_code=400, detail="A holiday already exists on that date")

    h = HolidayModel(name=payload.name.strip(), date=payload.date, description=payload.description)
    db.add(h)
    db.commit()
    db.refresh(h)
    return h
