"""Workforce models: staff, shift schedules, attendance, leave and training."""
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import String, Integer, Date, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, JSONType
from app.core.derivations import shift_status, hours_worked
from app.services.state_machine import LeaveStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Shift:
    MORNING = "morning"
    AFTERNOON = "afternoon"
    NIGHT = "night"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.MORNING, cls.AFTERNOON, cls.NIGHT]


class StaffStatus:
    ACTIVE = "active"
    BREAK = "break"
    OFFLINE = "offline"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.ACTIVE, cls.BREAK, cls.OFFLINE]


class Staff(Base):
    """Warehouse staff member. Never hard-deleted."""
    __tablename__ = "staff"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(100), nullable=False)
    shift: Mapped[str] = mapped_column(String(20), nullable=False, default=Shift.MORNING)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=StaffStatus.ACTIVE)
    productivity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="Percent")
    hourly_rate: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class ShiftSchedule(Base):
    """Roster for one shift on one date. status is derived from the assignment count."""
    __tablename__ = "shift_schedules"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    schedule_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    shift: Mapped[str] = mapped_column(String(20), nullable=False)
    staff_assigned: Mapped[list] = mapped_column(JSONType, nullable=False, default=list,
                                                 comment="Staff ids as strings")
    required_staff: Mapped[int] = mapped_column(Integer, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def status(self) -> str:
        return shift_status(len(self.staff_assigned or []), self.required_staff)


class Attendance(Base):
    __tablename__ = "attendance"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    staff_ref: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True
    )
    staff_name: Mapped[str] = mapped_column(String(100), nullable=False)
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    check_in: Mapped[Optional[str]] = mapped_column(String(5), nullable=True, comment="HH:MM")
    check_out: Mapped[Optional[str]] = mapped_column(String(5), nullable=True, comment="HH:MM")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="present")

    @property
    def hours_worked(self) -> float:
        return hours_worked(self.check_in, self.check_out)


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    staff_ref: Mapped[uuid.UUID] = mapped_column(
        UUIDType, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True
    )
    staff_name: Mapped[str] = mapped_column(String(100), nullable=False)
    leave_type: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days: Mapped[int] = mapped_column(Integer, nullable=False, comment="Inclusive span, set server-side")
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=LeaveStatus.PENDING, index=True)
    decided_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Training(Base):
    __tablename__ = "trainings"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    training_type: Mapped[str] = mapped_column(String(50), nullable=False)
    training_date: Mapped[date] = mapped_column(Date, nullable=False)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)
    instructor: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    enrolled: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}
