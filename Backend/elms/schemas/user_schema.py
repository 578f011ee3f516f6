from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from elms.enums import Department, Role

MOBILE_PATTERN = r"^[0-9]{10}$"


# ---------------------------------------------------------
# AUTH
# ---------------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, description="Password is required")


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ---------------------------------------------------------
# CREATE SCHEMA — admin registers an employee
# ---------------------------------------------------------
class RegisterRequest(BaseModel):
    employee_id: Optional[str] = Field(None, min_length=5, max_length=50)
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    department: Department
    role: Role
    designation: str = Field(..., min_length=2, max_length=100)
    qualification: str = Field(..., min_length=2, max_length=200)
    mobile_no: str = Field(..., pattern=MOBILE_PATTERN)
    date_of_birth: date
    date_of_joining: Optional[date] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "employeeId": "MIC20250001",
                "name": "John Doe",
                "email": "john.doe@mic.edu",
                "password": "employee123",
                "department": "Computer Science & Engineering (CSE)",
                "role": "employee",
                "designation": "Assistant Professor",
                "qualification": "M.Tech",
                "mobileNo": "9876543210",
                "dateOfBirth": "1990-01-15",
                "dateOfJoining": "2022-06-01",
            }
        }


# ---------------------------------------------------------
# UPDATE SCHEMAS
# ---------------------------------------------------------
class UserUpdate(BaseModel):
    employee_id: Optional[str] = Field(None, min_length=5, max_length=50)
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    department: Optional[Department] = None
    role: Optional[Role] = None
    designation: Optional[str] = Field(None, min_length=2, max_length=100)
    qualification: Optional[str] = Field(None, min_length=2, max_length=200)
    mobile_no: Optional[str] = Field(None, pattern=MOBILE_PATTERN)
    date_of_birth: Optional[date] = None
    date_of_joining: Optional[date] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True


# fields an employee may change on their own record
SELF_EDITABLE_FIELDS = {"name", "designation", "qualification", "mobile_no"}


class UserStatusUpdate(BaseModel):
    is_active: bool

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LeaveBalanceUpdate(BaseModel):
    cl: Optional[int] = Field(None, ge=0)
    scl: Optional[int] = Field(None, ge=0)
    el: Optional[int] = Field(None, ge=0)
    hpl: Optional[int] = Field(None, ge=0)
    ccl: Optional[int] = Field(None, ge=0)


# ---------------------------------------------------------
# EXCEL UPLOAD
# ---------------------------------------------------------
class ExcelUploadRequest(BaseModel):
    file_data: str = Field(..., min_length=1, description="Base64 encoded .xlsx content")
    file_name: str = Field(..., min_length=1)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
