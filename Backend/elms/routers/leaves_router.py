from datetime import datetime
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from elms.access import ADMIN_OR_HOD, Identity, authorize, get_current_identity, require_roles
from elms.database import get_db
from elms.enums import Department, LeaveStatus, Role
from elms.exceptions import ForbiddenError, NotFoundError, ValidationError
from elms.models.leave_model import LeaveRequest
from elms.models.user_model import User
from elms.schemas.leave_schema import LeaveCreate, LeaveReview
from elms.utils import success_resp

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/leaves", tags=["leaves"])

OPEN_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)


def _get_leave_or_404(db: Session, leave_id: int) -> LeaveRequest:
    leave = db.get(LeaveRequest, leave_id)
    if not leave:
        raise NotFoundError("Leave request not found")
    return leave


def _available(user: User, leave_type: str) -> int:
    return int((user.leave_balance or {}).get(leave_type, 0))


# ----------------------------
# APPLY
# ----------------------------
@router.post("/")
def apply_leave(body: LeaveCreate, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    if identity.is_admin:
        raise ForbiddenError("Administrators do not apply for leave")

    user = db.get(User, identity.user_id)
    leave_type = body.leave_type.value
    days = (body.end_date - body.start_date).days + 1

    overlap = (
        db.query(LeaveRequest.id)
        .filter(
            LeaveRequest.user_id == user.id,
            LeaveRequest.status.in_(OPEN_STATUSES),
            LeaveRequest.start_date <= body.end_date,
            LeaveRequest.end_date >= body.start_date,
        )
        .first()
    )
    if overlap:
        raise ValidationError("Leave dates overlap with an existing leave request")

    available = _available(user, leave_type)
    if days > available:
        raise ValidationError(f"Insufficient {leave_type.upper()} balance: requested {days}, available {available}")

    leave = LeaveRequest(
        user_id=user.id,
        department=user.department,
        leave_type=leave_type,
        start_date=body.start_date,
        end_date=body.end_date,
        days=days,
        reason=body.reason,
        status=LeaveStatus.PENDING.value,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)
    logger.info("Leave %s applied by %s (%s, %d days)", leave.id, user.email, leave_type, days)
    return success_resp("Leave applied successfully", {"leave": leave.as_dict()}, status_code=status.HTTP_201_CREATED)


# ----------------------------
# LIST
# ----------------------------
@router.get("/my")
def get_my_leaves(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    leaves = (
        db.query(LeaveRequest)
        .filter(LeaveRequest.user_id == identity.user_id)
        .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        .all()
    )
    return success_resp("Leaves fetched successfully", {"leaves": [l.as_dict() for l in leaves], "count": len(leaves)})


@router.get("/")
def get_leaves(
    identity: Identity = Depends(require_roles(ADMIN_OR_HOD)),
    db: Session = Depends(get_db),
    leave_status: Optional[LeaveStatus] = Query(default=None, alias="status"),
    department: Optional[str] = Query(default=None),
):
    q = db.query(LeaveRequest)
    if identity.role == Role.HOD:
        q = q.filter(LeaveRequest.department == identity.department)
    elif department:
        dept = Department.parse(department)
        if dept is None:
            raise ValidationError(f"Unknown department: {department}")
        q = q.filter(LeaveRequest.department == dept.value)
    if leave_status:
        q = q.filter(LeaveRequest.status == leave_status.value)

    leaves = q.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()
    return success_resp("Leaves fetched successfully", {"leaves": [l.as_dict() for l in leaves], "count": len(leaves)})


@router.get("/{leave_id}")
def get_leave(leave_id: int, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    leave = _get_leave_or_404(db, leave_id)
    if leave.user_id != identity.user_id:
        authorize(identity, ADMIN_OR_HOD, resource_department=leave.department)
    return success_resp("Leave fetched successfully", {"leave": leave.as_dict()})


# ----------------------------
# REVIEW / CANCEL
# ----------------------------
@router.put("/{leave_id}/status")
def review_leave(leave_id: int, body: LeaveReview, identity: Identity = Depends(require_roles(ADMIN_OR_HOD)), db: Session = Depends(get_db)):
    leave = _get_leave_or_404(db, leave_id)
    authorize(identity, ADMIN_OR_HOD, resource_department=leave.department)

    if leave.user_id == identity.user_id:
        raise ForbiddenError("You cannot review your own leave request")
    if leave.status != LeaveStatus.PENDING.value:
        raise ValidationError(f"Leave request is already {leave.status}")

    if body.status == LeaveStatus.APPROVED:
        applicant = db.get(User, leave.user_id)
        available = _available(applicant, leave.leave_type)
        if leave.days > available:
            raise ValidationError(
                f"Insufficient {leave.leave_type.upper()} balance: requested {leave.days}, available {available}"
            )
        balance = dict(applicant.leave_balance or {})
        balance[leave.leave_type] = available - leave.days
        applicant.leave_balance = balance

    leave.status = body.status.value
    leave.review_comment = body.comment
    leave.reviewed_by = identity.user_id
    leave.reviewed_at = datetime.utcnow()
    db.commit()
    db.refresh(leave)
    logger.info("Leave %s %s by %s", leave.id, leave.status, identity.email)
    return success_resp(f"Leave {leave.status} successfully", {"leave": leave.as_dict()})


@router.put("/{leave_id}/cancel")
def cancel_leave(leave_id: int, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    leave = _get_leave_or_404(db, leave_id)
    if leave.user_id != identity.user_id:
        raise ForbiddenError("You can only cancel your own leave requests")
    if leave.status != LeaveStatus.PENDING.value:
        raise ValidationError("Only pending leave requests can be cancelled")
    leave.status = LeaveStatus.CANCELLED.value
    db.commit()
    db.refresh(leave)
    return success_resp("Leave cancelled successfully", {"leave": leave.as_dict()})
