from datetime import datetime
from io import BytesIO
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from elms.access import ADMIN_ONLY, ADMIN_OR_HOD, Identity, authorize, get_current_identity, require_roles
from elms.database import get_db
from elms.enums import Department, Role
from elms.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from elms.models.leave_model import LeaveRequest
from elms.models.user_model import User
from elms.schemas.user_schema import SELF_EDITABLE_FIELDS, LeaveBalanceUpdate, UserStatusUpdate, UserUpdate
from elms.utils import success_resp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def _authorize_view(identity: Identity, user: User):
    if identity.user_id == user.id:
        return
    authorize(identity, ADMIN_OR_HOD, resource_department=user.department)


@router.get("/")
def get_all_users(
    identity: Identity = Depends(require_roles(ADMIN_OR_HOD)),
    db: Session = Depends(get_db),
    department: Optional[str] = Query(default=None),
    role: Optional[Role] = Query(default=None),
    search: Optional[str] = Query(default=None),
    active: Optional[bool] = Query(default=None),
):
    """List users; department heads only see their own department"""
    q = db.query(User)

    if identity.role == Role.HOD:
        q = q.filter(User.department == identity.department)
    elif department:
        dept = Department.parse(department)
        if dept is None:
            raise ValidationError(f"Unknown department: {department}")
        q = q.filter(User.department == dept.value)

    if role:
        q = q.filter(User.role == role.value)
    if active is not None:
        q = q.filter(User.is_active == active)
    if search:
        like = f"%{search.strip()}%"
        q = q.filter(or_(User.name.ilike(like), User.email.ilike(like), User.employee_id.ilike(like)))

    users = q.order_by(User.name).all()
    return success_resp("Users fetched successfully", {"users": [u.as_dict() for u in users], "count": len(users)})


@router.get("/export-to-excel")
def export_users_to_excel(identity: Identity = Depends(require_roles(ADMIN_ONLY)), db: Session = Depends(get_db)):
    """Export all users to Excel file"""
    users = db.query(User).order_by(User.employee_id).all()

    # Create workbook
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Users"

    # Header row with styling
    headers = ["Employee ID", "Name", "Email", "Role", "Department", "Designation", "Qualification",
               "Mobile Number", "Date of Birth", "Date of Joining", "Active", "Last Login"]
    ws.append(headers)

    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")

    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    for user in users:
        ws.append([
            user.employee_id,
            user.name,
            user.email,
            user.role,
            user.department,
            user.designation,
            user.qualification,
            user.mobile_no,
            user.date_of_birth,
            user.date_of_joining,
            "Yes" if user.is_active else "No",
            user.last_login,
        ])

    column_widths = [16, 25, 30, 12, 40, 22, 25, 15, 15, 15, 8, 20]
    for i, width in enumerate(column_widths, 1):
        ws.column_dimensions[openpyxl.utils.get_column_letter(i)].width = width

    for row in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=1, max_col=len(headers)):
        for cell in row:
            cell.alignment = Alignment(horizontal="left", vertical="center", wrap_text=True)

    output = BytesIO()
    wb.save(output)
    output.seek(0)

    filename = f"users_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    logger.info("Exported %d users for %s", len(users), identity.email)
    return StreamingResponse(
        output,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/{user_id}")
def get_user(user_id: int, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    """Get user by id"""
    user = _get_user_or_404(db, user_id)
    _authorize_view(identity, user)
    return success_resp("User fetched successfully", {"user": user.as_dict()})


@router.put("/{user_id}")
def update_user(user_id: int, user_data: UserUpdate, identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    """Update user; admins may change any field, others only parts of their own profile"""
    user = _get_user_or_404(db, user_id)
    changes = user_data.model_dump(exclude_unset=True, exclude_none=True)

    if not identity.is_admin:
        if identity.user_id != user.id:
            authorize(identity, ADMIN_ONLY)
        blocked = sorted(set(changes) - SELF_EDITABLE_FIELDS)
        if blocked:
            raise ForbiddenError(f"You cannot change: {', '.join(blocked)}")

    if not changes:
        raise ValidationError("No fields to update")

    if "email" in changes:
        changes["email"] = changes["email"].lower()
        clash = db.query(User.id).filter(User.email == changes["email"], User.id != user.id).first()
        if clash:
            raise ConflictError("User with this email already exists")
    if "employee_id" in changes:
        clash = db.query(User.id).filter(User.employee_id == changes["employee_id"], User.id != user.id).first()
        if clash:
            raise ConflictError("Employee ID already exists")

    for key, value in changes.items():
        if isinstance(value, (Role, Department)):
            value = value.value
        setattr(user, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email or employee ID already exists")
    db.refresh(user)
    logger.info("User %s updated by %s (%s)", user.id, identity.email, ", ".join(sorted(changes)))
    return success_resp("User updated successfully", {"user": user.as_dict()})


@router.put("/{user_id}/status")
def update_user_status(user_id: int, body: UserStatusUpdate, identity: Identity = Depends(require_roles(ADMIN_ONLY)), db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    if user.id == identity.user_id and not body.is_active:
        raise ValidationError("You cannot deactivate your own account")
    user.is_active = body.is_active
    db.commit()
    db.refresh(user)
    state = "activated" if user.is_active else "deactivated"
    return success_resp(f"User {state} successfully", {"user": user.as_dict()})


@router.put("/{user_id}/leave-balance")
def update_leave_balance(user_id: int, body: LeaveBalanceUpdate, identity: Identity = Depends(require_roles(ADMIN_ONLY)), db: Session = Depends(get_db)):
    user = _get_user_or_404(db, user_id)
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise ValidationError("No leave balance fields to update")
    # reassign so the JSON column is marked dirty
    balance = dict(user.leave_balance or {})
    balance.update(changes)
    user.leave_balance = balance
    db.commit()
    db.refresh(user)
    logger.info("Leave balance of user %s set to %s by %s", user.id, balance, identity.email)
    return success_resp("Leave balance updated successfully", {"user": user.as_dict()})


@router.delete("/{user_id}")
def delete_user(user_id: int, identity: Identity = Depends(require_roles(ADMIN_ONLY)), db: Session = Depends(get_db)):
    """Delete user by id"""
    user = _get_user_or_404(db, user_id)
    if user.id == identity.user_id:
        raise ValidationError("You cannot delete your own account")

    name, employee_id = user.name, user.employee_id
    db.query(LeaveRequest).filter(LeaveRequest.user_id == user.id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()
    logger.info("User %s (%s) deleted by %s", name, employee_id, identity.email)
    return success_resp(f"User '{name}' (employee id: {employee_id}) deleted successfully")
