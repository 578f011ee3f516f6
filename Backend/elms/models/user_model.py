from datetime import datetime

from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, JSON, func

from elms.database import Base
from elms.enums import Role, default_leave_balance


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Business employee code, e.g. MIC20250001; generated from id when not supplied
    employee_id = Column(String(50), unique=True, nullable=True, index=True)

    name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)

    # Stored credentials
    password_hash = Column(String(255), nullable=False)
    password_salt = Column(String(64), nullable=False)

    role = Column(String(20), nullable=False, default=Role.EMPLOYEE.value, index=True)
    department = Column(String(120), nullable=False, index=True)
    designation = Column(String(100), nullable=False)
    qualification = Column(String(200), nullable=False)
    mobile_no = Column(String(10), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    date_of_joining = Column(Date, nullable=False, default=lambda: datetime.utcnow().date())

    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    leave_balance = Column(JSON, nullable=False, default=default_leave_balance)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def summary_dict(self):
        """Short form used in login/register payloads."""
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "leaveBalance": self.leave_balance,
        }

    def as_dict(self):
        """Convert to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "designation": self.designation,
            "qualification": self.qualification,
            "mobileNo": self.mobile_no,
            "dateOfBirth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "dateOfJoining": self.date_of_joining.isoformat() if self.date_of_joining else None,
            "isActive": bool(self.is_active),
            "lastLogin": self.last_login.isoformat() if self.last_login else None,
            "leaveBalance": self.leave_balance,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


def generate_employee_code(user_id: int, year: int = None) -> str:
    year = year or datetime.utcnow().year
    return f"MIC{year}{user_id:04d}"
