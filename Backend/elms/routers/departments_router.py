from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from elms.access import ADMIN_OR_HOD, ANY_ROLE, Identity, authorize, require_roles
from elms.database import get_db
from elms.enums import Department, LeaveStatus, Role
from elms.exceptions import NotFoundError
from elms.models.leave_model import LeaveRequest
from elms.models.user_model import User
from elms.utils import success_resp

router = APIRouter(prefix="/api/departments", tags=["departments"])


def _department_or_404(code: str) -> Department:
    dept = Department.parse(code)
    if dept is None:
        raise NotFoundError(f"Department '{code}' not found")
    return dept


def department_stats(db: Session, department: str) -> dict:
    """Headcount by role plus leave counts by status for one department."""
    role_counts = dict(
        db.query(User.role, func.count(User.id))
        .filter(User.department == department, User.is_active.is_(True))
        .group_by(User.role)
        .all()
    )
    leave_counts = dict(
        db.query(LeaveRequest.status, func.count(LeaveRequest.id))
        .filter(LeaveRequest.department == department)
        .group_by(LeaveRequest.status)
        .all()
    )
    return {
        "department": department,
        "totalEmployees": sum(role_counts.values()),
        "byRole": {role.value: role_counts.get(role.value, 0) for role in Role},
        "leaves": {s.value: leave_counts.get(s.value, 0) for s in LeaveStatus},
    }


@router.get("/")
def list_departments(identity: Identity = Depends(require_roles(ANY_ROLE)), db: Session = Depends(get_db)):
    counts = dict(
        db.query(User.department, func.count(User.id))
        .filter(User.is_active.is_(True))
        .group_by(User.department)
        .all()
    )
    departments = [
        {"code": dept.code, "name": dept.value, "employeeCount": counts.get(dept.value, 0)}
        for dept in Department
    ]
    return success_resp("Departments fetched successfully", {"departments": departments})


@router.get("/{code}/employees")
def department_employees(code: str, identity: Identity = Depends(require_roles(ADMIN_OR_HOD)), db: Session = Depends(get_db)):
    dept = _department_or_404(code)
    authorize(identity, ADMIN_OR_HOD, resource_department=dept.value)
    users = db.query(User).filter(User.department == dept.value).order_by(User.name).all()
    return success_resp(
        "Department employees fetched successfully",
        {"department": dept.value, "users": [u.as_dict() for u in users], "count": len(users)},
    )


@router.get("/{code}/stats")
def department_statistics(code: str, identity: Identity = Depends(require_roles(ADMIN_OR_HOD)), db: Session = Depends(get_db)):
    dept = _department_or_404(code)
    authorize(identity, ADMIN_OR_HOD, resource_department=dept.value)
    return success_resp("Department statistics fetched successfully", department_stats(db, dept.value))
