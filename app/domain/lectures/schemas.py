"""Lecture domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_time_hhmm
from .attendance import Attendance, PostponedBy


class PostponeRequest(BaseModel):
    """Schema for postponing a lecture"""

    new_date: date
    new_time: Optional[str] = None
    postponed_by: PostponedBy
    reason: Optional[str] = Field(None, max_length=500)
    force: bool = False

    @field_validator("new_time")
    @classmethod
    def validate_new_time(cls, v):
        return validate_time_hhmm(v)


class CheckConflictsRequest(BaseModel):
    """Schema for previewing conflicts of a postponement"""

    new_date: date
    new_time: Optional[str] = None

    @field_validator("new_time")
    @classmethod
    def validate_new_time(cls, v):
        return validate_time_hhmm(v)


class RecordAttendanceRequest(BaseModel):
    """Schema for recording what happened at a lecture"""

    attendance: Attendance
    notes: Optional[str] = Field(None, max_length=1000)


class LectureResponse(BaseModel):
    """Schema for lecture response"""

    id: int
    course_id: int
    lecture_number: int
    date: date
    time: Optional[str]
    attendance: str
    is_makeup: bool
    makeup_for: Optional[int]
    notes: Optional[str]
    postponed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LectureDetailResponse(LectureResponse):
    """Lecture plus both ends of its makeup link"""

    original_lecture: Optional[LectureResponse] = None
    makeup_lecture: Optional[LectureResponse] = None


class OperationResponse(BaseModel):
    """Envelope shared by every scheduling operation"""

    success: bool
    code: str
    message: str
    data: dict[str, Any] = {}


class PostponementStats(BaseModel):
    total_postponements: int
    makeup_lectures_created: int
    max_allowed: int
    remaining: int
    can_postpone: bool
