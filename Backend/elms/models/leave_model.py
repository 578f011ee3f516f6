from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, func
from sqlalchemy.orm import relationship

from elms.database import Base
from elms.enums import LeaveStatus
from elms.models.user_model import User


class LeaveRequest(Base):
    """Model for leave_requests table - one application by one employee"""
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # copied from the applicant so department heads can filter without a join
    department = Column(String(120), nullable=False, index=True)

    leave_type = Column(String(10), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)

    status = Column(String(20), nullable=False, default=LeaveStatus.PENDING.value, index=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    review_comment = Column(Text, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    applicant = relationship(User, foreign_keys=[user_id], lazy="joined")

    def as_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "employeeName": self.applicant.name if self.applicant else None,
            "employeeId": self.applicant.employee_id if self.applicant else None,
            "department": self.department,
            "leaveType": self.leave_type,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "days": self.days,
            "reason": self.reason,
            "status": self.status,
            "reviewedBy": self.reviewed_by,
            "reviewComment": self.review_comment,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
