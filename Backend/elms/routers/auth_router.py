# auth_router.py
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from elms.access import ADMIN_ONLY, Identity, get_current_user, require_roles
from elms.database import get_db
from elms.enums import default_leave_balance
from elms.exceptions import ConflictError, ValidationError
from elms.models.user_model import User, generate_employee_code
from elms.schemas.user_schema import ChangePasswordRequest, LoginRequest, RegisterRequest
from elms.security import authenticate, hash_password, set_password, token_for_user, verify_password
from elms.utils import success_resp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register")
def register_user(body: RegisterRequest, admin: Identity = Depends(require_roles(ADMIN_ONLY)), db: Session = Depends(get_db)):
    email = body.email.lower()
    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    employee_id = body.employee_id or None
    if employee_id and db.query(User.id).filter(User.employee_id == employee_id).first():
        raise ConflictError("Employee ID already exists")

    pwd_hash, salt = hash_password(body.password)
    user = User(
        employee_id=employee_id,
        name=body.name,
        email=email,
        password_hash=pwd_hash,
        password_salt=salt,
        role=body.role.value,
        department=body.department.value,
        designation=body.designation,
        qualification=body.qualification,
        mobile_no=body.mobile_no,
        date_of_birth=body.date_of_birth,
        date_of_joining=body.date_of_joining or datetime.utcnow().date(),
        is_active=True,
        leave_balance=default_leave_balance(),
    )
    try:
        db.add(user)
        db.flush()
        if not user.employee_id:
            user.employee_id = generate_employee_code(user.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User with this email or employee ID already exists")
    db.refresh(user)

    logger.info("User %s registered by admin %s", user.email, admin.email)
    return success_resp(
        "User registered successfully",
        {"user": user.summary_dict(), "token": token_for_user(user)},
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login")
def login_user(body: LoginRequest, db: Session = Depends(get_db)):
    """
    - unknown email or wrong password -> 401 "Invalid credentials"
    - deactivated account -> 401 with its own message
    - success -> token and user summary including leaveBalance
    """
    user = authenticate(db, body.email, body.password)
    token = token_for_user(user)
    logger.info("Login successful for %s", user.email)
    return success_resp("Login successful", {"user": user.summary_dict(), "token": token})


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return success_resp("Current user", {"user": user.as_dict()})


@router.put("/change-password")
def change_password(body: ChangePasswordRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not verify_password(body.current_password, user.password_hash, user.password_salt):
        raise ValidationError("Current password is incorrect")
    set_password(user, body.new_password)
    db.commit()
    logger.info("Password changed for %s", user.email)
    return success_resp("Password changed successfully")


@router.post("/logout")
def logout_user(user: User = Depends(get_current_user)):
    # tokens are stateless; the client discards its copy
    return success_resp("Logged out successfully")
