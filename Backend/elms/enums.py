import enum
import re
from typing import Optional


class Role(str, enum.Enum):
    ADMIN = "admin"
    HOD = "hod"
    EMPLOYEE = "employee"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Case-insensitive lookup; returns None for unknown values."""
        if value is None:
            return None
        text = str(value).strip().lower()
        for role in cls:
            if role.value == text:
                return role
        return None


class Department(str, enum.Enum):
    BED = "Bachelor of Education (BED)"
    CIVIL = "Civil Engineering (CIVIL)"
    CSE = "Computer Science & Engineering (CSE)"
    AIDS_ML = "Artificial Intelligence Data Science & Machine Learning (AIDS & ML)"
    IT_MCA = "Information Technology & Master of Computer Applications (IT & MCA)"
    ECE = "Electronics & Communication Engineering (ECE)"
    EEE = "Electrical & Electronics Engineering (EEE)"
    MECH = "Mechanical Engineering (MECH)"

    @property
    def code(self) -> str:
        # short form inside the trailing parentheses, e.g. "CSE"
        match = re.search(r"\(([^()]+)\)\s*$", self.value)
        return match.group(1) if match else self.name

    @classmethod
    def parse(cls, value) -> Optional["Department"]:
        """Match a full department name or its short code, ignoring case."""
        if value is None:
            return None
        text = str(value).strip().lower()
        if not text:
            return None
        for dept in cls:
            if dept.value.lower() == text or dept.code.lower() == text:
                return dept
        return None


class LeaveType(str, enum.Enum):
    CL = "cl"     # casual leave
    SCL = "scl"   # special casual leave
    EL = "el"     # earned leave
    HPL = "hpl"   # half pay leave
    CCL = "ccl"   # child care leave


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


DEFAULT_LEAVE_BALANCE = {
    LeaveType.CL.value: 12,
    LeaveType.SCL.value: 8,
    LeaveType.EL.value: 15,
    LeaveType.HPL.value: 10,
    LeaveType.CCL.value: 7,
}


def default_leave_balance() -> dict:
    return dict(DEFAULT_LEAVE_BALANCE)
