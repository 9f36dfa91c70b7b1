"""Pydantic schemas for workforce scheduling."""
from pydantic import AliasChoices, Field, model_validator

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Annotated, List, Optional
from datetime import date, datetime
import uuid


SHIFT_PATTERN = "^(morning|afternoon|night)$"


# ==================== STAFF SCHEMAS ====================

class StaffCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    role: str = Field(..., min_length=1)
    shift: str = Field("morning", pattern=SHIFT_PATTERN)
    hourly_rate: float = Field(0, ge=0)
    productivity: int = Field(0, ge=0, le=100)


class StaffStatusUpdate(BaseUpdateSchema):
    status: str = Field(..., pattern="^(active|break|offline)$")


class StaffResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    role: str
    shift: str
    status: str
    productivity: int
    hourly_rate: float
    version: int


# ==================== SCHEDULE SCHEMAS ====================

class ScheduleCreate(BaseCreateSchema):
    date: date
    shift: str = Field(..., pattern=SHIFT_PATTERN)
    required_staff: int = Field(..., gt=0)


class AssignStaffRequest(BaseUpdateSchema):
    staff_ids: List[uuid.UUID]


class ScheduleResponse(BaseResponseSchema):
    id: uuid.UUID
    date: Annotated[date, Field(validation_alias=AliasChoices("schedule_date", "date"))]
    shift: str
    staff_assigned: List[str]
    required_staff: int
    status: str
    version: int


# ==================== ATTENDANCE SCHEMAS ====================

class AttendanceCreate(BaseCreateSchema):
    staff_id: uuid.UUID
    date: date
    check_in: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    check_out: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    status: str = Field("present", pattern="^(present|late|absent)$")


class AttendanceResponse(BaseResponseSchema):
    id: uuid.UUID
    staff_id: Annotated[uuid.UUID, Field(validation_alias=AliasChoices("staff_ref", "staffId", "staff_id"))]
    staff_name: str
    date: Annotated[date, Field(validation_alias=AliasChoices("attendance_date", "date"))]
    check_in: Optional[str] = None
    check_out: Optional[str] = None
    hours_worked: float
    status: str


class PerformanceResponse(BaseResponseSchema):
    """Trailing-window productivity of one staff member."""
    staff_id: uuid.UUID
    staff_name: str
    role: str
    weekly_target: int
    weekly_actual: int
    achievement: int
    hours_worked: float
    avg_speed: float = Field(..., description="Units per hour")
    days_present: int
    productivity: int

# ==================== LEAVE SCHEMAS ====================

class LeaveRequestCreate(BaseCreateSchema):
    """days is computed server-side from the date span."""
    staff_id: uuid.UUID
    leave_type: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    reason: Optional[str] = None

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate cannot be before startDate")
        return self


class LeaveStatusUpdate(BaseUpdateSchema):
    status: str = Field(..., pattern="^(approved|rejected)$")


class LeaveRequestResponse(BaseResponseSchema):
    id: uuid.UUID
    staff_id: Annotated[uuid.UUID, Field(validation_alias=AliasChoices("staff_ref", "staffId", "staff_id"))]
    staff_name: str
    leave_type: str
    start_date: date
    end_date: date
    days: int
    reason: Optional[str] = None
    status: str
    decided_by: Optional[str] = None
    created_at: datetime
    version: int


# ==================== TRAINING SCHEMAS ====================

class TrainingCreate(BaseCreateSchema):
    title: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    date: date
    duration: str = Field(..., min_length=1)
    instructor: str = Field(..., min_length=1)
    capacity: int = Field(..., gt=0)


class TrainingResponse(BaseResponseSchema):
    id: uuid.UUID
    title: str
    type: Annotated[str, Field(validation_alias=AliasChoices("training_type", "type"))]
    date: Annotated[date, Field(validation_alias=AliasChoices("training_date", "date"))]
    duration: str
    instructor: str
    capacity: int
    enrolled: int
    version: int
