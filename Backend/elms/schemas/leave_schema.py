from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from elms.enums import LeaveStatus, LeaveType


class LeaveCreate(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=5, max_length=500)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        str_strip_whitespace = True

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self


class LeaveReview(BaseModel):
    status: LeaveStatus
    comment: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_decision(self):
        if self.status not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            raise ValueError("Status must be 'approved' or 'rejected'")
        return self
