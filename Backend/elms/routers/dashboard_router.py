from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from elms.access import ADMIN_ONLY, ANY_ROLE, Identity, require_roles
from elms.database import get_db
from elms.enums import Department, LeaveStatus, Role
from elms.models.leave_model import LeaveRequest
from elms.models.user_model import User
from elms.routers.departments_router import department_stats
from elms.utils import success_resp

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

RECENT_LIMIT = 5

HOD_ONLY = frozenset({Role.HOD})


def _recent_leaves(query):
    rows = query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).limit(RECENT_LIMIT).all()
    return [row.as_dict() for row in rows]


@router.get("/admin")
def admin_dashboard(identity: Identity = Depends(require_roles(ADMIN_ONLY)), db: Session = Depends(get_db)):
    role_counts = dict(
        db.query(User.role, func.count(User.id)).filter(User.is_active.is_(True)).group_by(User.role).all()
    )
    status_counts = dict(
        db.query(LeaveRequest.status, func.count(LeaveRequest.id)).group_by(LeaveRequest.status).all()
    )
    dept_counts = dict(
        db.query(User.department, func.count(User.id)).filter(User.is_active.is_(True)).group_by(User.department).all()
    )
    inactive = db.query(func.count(User.id)).filter(User.is_active.is_(False)).scalar() or 0

    data = {
        "totalEmployees": sum(role_counts.values()),
        "inactiveEmployees": inactive,
        "byRole": {role.value: role_counts.get(role.value, 0) for role in Role},
        "leaves": {s.value: status_counts.get(s.value, 0) for s in LeaveStatus},
        "departments": [
            {"code": dept.code, "name": dept.value, "employeeCount": dept_counts.get(dept.value, 0)}
            for dept in Department
        ],
        "recentLeaves": _recent_leaves(db.query(LeaveRequest)),
    }
    return success_resp("Admin dashboard", data)


@router.get("/hod")
def hod_dashboard(identity: Identity = Depends(require_roles(HOD_ONLY)), db: Session = Depends(get_db)):
    data = department_stats(db, identity.department)
    data["pendingApprovals"] = _recent_leaves(
        db.query(LeaveRequest).filter(
            LeaveRequest.department == identity.department,
            LeaveRequest.status == LeaveStatus.PENDING.value,
        )
    )
    return success_resp("Department dashboard", data)


@router.get("/employee")
def employee_dashboard(identity: Identity = Depends(require_roles(ANY_ROLE)), db: Session = Depends(get_db)):
    user = db.get(User, identity.user_id)
    status_counts = dict(
        db.query(LeaveRequest.status, func.count(LeaveRequest.id))
        .filter(LeaveRequest.user_id == user.id)
        .group_by(LeaveRequest.status)
        .all()
    )
    days_taken = (
        db.query(func.coalesce(func.sum(LeaveRequest.days), 0))
        .filter(LeaveRequest.user_id == user.id, LeaveRequest.status == LeaveStatus.APPROVED.value)
        .scalar()
    )
    data = {
        "leaveBalance": user.leave_balance,
        "leaves": {s.value: status_counts.get(s.value, 0) for s in LeaveStatus},
        "daysTaken": int(days_taken or 0),
        "recentLeaves": _recent_leaves(db.query(LeaveRequest).filter(LeaveRequest.user_id == user.id)),
    }
    return success_resp("Employee dashboard", data)
