"""Service for staff rosters, shift schedules, attendance, performance, leave and training."""
import logging
from datetime import date, timedelta
from typing import List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.derivations import leave_days, target_achievement, units_per_hour
from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models.outbound import PicklistOrder
from app.models.workforce import Staff, ShiftSchedule, Attendance, LeaveRequest, Training
from app.services.audit_service import AuditService
from app.services.common import check_version, get_or_404, parse_uuid, utcnow
from app.services.state_machine import LeaveStatus, PicklistStatus, validate_transition


logger = logging.getLogger(__name__)


class WorkforceService:
    """Workforce scheduler."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # ==================== STAFF ====================

    async def get_staff(
        self,
        shift: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Staff]:
        stmt = select(Staff).order_by(Staff.name)
        if shift:
            stmt = stmt.where(Staff.shift == shift)
        if status:
            stmt = stmt.where(Staff.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_staff_member(self, staff_id: uuid.UUID) -> Staff:
        return await get_or_404(self.db, Staff, staff_id, "Staff")

    async def add_staff(
        self,
        name: str,
        role: str,
        actor: str,
        shift: str = "morning",
        hourly_rate: float = 0,
        productivity: int = 0,
    ) -> Staff:
        staff = Staff(
            name=name,
            role=role,
            shift=shift,
            hourly_rate=hourly_rate,
            productivity=productivity,
        )
        self.db.add(staff)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="STAFF", entity_id=staff.id,
            new_values={"name": name, "role": role, "shift": shift},
        )

        await self.db.commit()
        await self.db.refresh(staff)
        return staff

    async def update_staff_status(
        self,
        staff_id: uuid.UUID,
        status: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> Staff:
        staff = await self.get_staff_member(staff_id)
        check_version(staff, expected_version, "Staff")

        old_status = staff.status
        staff.status = status
        await self.audit.log_transition(actor, "STAFF", staff.id, old_status, status)

        await self.db.commit()
        await self.db.refresh(staff)
        return staff

    # ==================== SCHEDULES ====================

    async def get_schedules(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[ShiftSchedule]:
        stmt = select(ShiftSchedule).order_by(ShiftSchedule.schedule_date, ShiftSchedule.shift)
        if date_from:
            stmt = stmt.where(ShiftSchedule.schedule_date >= date_from)
        if date_to:
            stmt = stmt.where(ShiftSchedule.schedule_date <= date_to)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_schedule(
        self,
        schedule_date: date,
        shift: str,
        required_staff: int,
        actor: str,
    ) -> ShiftSchedule:
        existing = await self.db.execute(
            select(ShiftSchedule).where(
                ShiftSchedule.schedule_date == schedule_date,
                ShiftSchedule.shift == shift,
            )
        )
        if existing.scalar_one_or_none():
            raise ValidationError(
                f"A {shift} shift is already scheduled on {schedule_date.isoformat()}",
                {"date": schedule_date.isoformat(), "shift": shift},
            )

        schedule = ShiftSchedule(
            schedule_date=schedule_date,
            shift=shift,
            required_staff=required_staff,
            staff_assigned=[],
        )
        self.db.add(schedule)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="SCHEDULE", entity_id=schedule.id,
            new_values={"date": schedule_date.isoformat(), "shift": shift, "requiredStaff": required_staff},
        )

        await self.db.commit()
        await self.db.refresh(schedule)
        return schedule

    async def assign_staff(
        self,
        schedule_id: uuid.UUID,
        staff_ids: List[uuid.UUID],
        actor: str,
        expected_version: Optional[int] = None,
    ) -> ShiftSchedule:
        """Replace the schedule's assignment set. Duplicates collapse, unknown ids fail."""
        schedule = await get_or_404(self.db, ShiftSchedule, schedule_id, "Schedule")
        check_version(schedule, expected_version, "Schedule")

        unique_ids = list(dict.fromkeys(staff_ids))
        if unique_ids:
            found = await self.db.execute(select(Staff.id).where(Staff.id.in_(unique_ids)))
            known = set(found.scalars().all())
            missing = [str(i) for i in unique_ids if i not in known]
            if missing:
                raise NotFoundError(f"Staff not found: {', '.join(missing)}", {"entity": "Staff", "ids": missing})

        old_assigned = list(schedule.staff_assigned or [])
        old_status = schedule.status
        # Reassign rather than mutate so the JSON column is flagged dirty
        schedule.staff_assigned = [str(i) for i in unique_ids]

        await self.audit.log(
            actor=actor, action="ASSIGN", entity_type="SCHEDULE", entity_id=schedule.id,
            old_values={"staffAssigned": old_assigned, "status": old_status},
            new_values={"staffAssigned": schedule.staff_assigned, "status": schedule.status},
        )

        await self.db.commit()
        await self.db.refresh(schedule)
        logger.info(f"Schedule {schedule.id}: {len(schedule.staff_assigned)}/{schedule.required_staff} ({schedule.status})")
        return schedule

    # ==================== ATTENDANCE ====================

    async def get_attendance(
        self,
        attendance_date: Optional[date] = None,
        staff_id: Optional[uuid.UUID] = None,
    ) -> List[Attendance]:
        stmt = select(Attendance).order_by(Attendance.attendance_date.desc(), Attendance.staff_name)
        if attendance_date:
            stmt = stmt.where(Attendance.attendance_date == attendance_date)
        if staff_id:
            stmt = stmt.where(Attendance.staff_ref == parse_uuid(staff_id, "Staff"))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def log_attendance(
        self,
        staff_id: uuid.UUID,
        attendance_date: date,
        actor: str,
        check_in: Optional[str] = None,
        check_out: Optional[str] = None,
        status: str = "present",
    ) -> Attendance:
        staff = await self.get_staff_member(staff_id)
        record = Attendance(
            staff_ref=staff.id,
            staff_name=staff.name,
            attendance_date=attendance_date,
            check_in=check_in,
            check_out=check_out,
            status=status,
        )
        self.db.add(record)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="ATTENDANCE", entity_id=staff.id,
            new_values={"date": attendance_date.isoformat(), "status": status},
        )

        await self.db.commit()
        await self.db.refresh(record)
        return record

    # ==================== PERFORMANCE ====================

    async def get_performance(self, as_of: Optional[date] = None) -> List[dict]:
        """
        Per-staff productivity over the trailing window.

        weekly_actual is the units of completed picklists the staff member
        picked (matched by picker name); speed is those units over the hours
        attended in the same window.
        """
        end = as_of or utcnow().date()
        start = end - timedelta(days=settings.PERFORMANCE_WINDOW_DAYS - 1)
        target = settings.WEEKLY_PICK_TARGET_UNITS

        staff = await self.get_staff()

        stmt = select(Attendance).where(Attendance.attendance_date.between(start, end))
        attendance = list((await self.db.execute(stmt)).scalars().all())

        stmt = select(PicklistOrder).where(
            PicklistOrder.status == PicklistStatus.COMPLETED,
            PicklistOrder.completed_at.is_not(None),
            PicklistOrder.picker.in_([s.name for s in staff]),
        )
        picked = [
            p for p in (await self.db.execute(stmt)).scalars().all()
            if start <= p.completed_at.date() <= end
        ]

        rows = []
        for member in staff:
            records = [a for a in attendance if a.staff_ref == member.id]
            hours = round(sum(a.hours_worked for a in records), 2)
            units = sum(p.items for p in picked if p.picker == member.name)
            rows.append({
                "staff_id": member.id,
                "staff_name": member.name,
                "role": member.role,
                "weekly_target": target,
                "weekly_actual": units,
                "achievement": target_achievement(units, target),
                "hours_worked": hours,
                "avg_speed": units_per_hour(units, hours),
                "days_present": sum(1 for a in records if a.status == "present"),
                "productivity": member.productivity,
            })
        return rows

    # ==================== LEAVE ====================

    async def get_leave_requests(self, status: Optional[str] = None) -> List[LeaveRequest]:
        stmt = select(LeaveRequest).order_by(LeaveRequest.created_at.desc())
        if status:
            stmt = stmt.where(LeaveRequest.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_leave_request(
        self,
        staff_id: uuid.UUID,
        leave_type: str,
        start_date: date,
        end_date: date,
        actor: str,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        """days is computed here from the inclusive date span."""
        if end_date < start_date:
            raise ValidationError("endDate cannot be before startDate")

        staff = await self.get_staff_member(staff_id)
        request = LeaveRequest(
            staff_ref=staff.id,
            staff_name=staff.name,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days=leave_days(start_date, end_date),
            reason=reason,
            status=LeaveStatus.PENDING,
        )
        self.db.add(request)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="LEAVE_REQUEST", entity_id=request.id,
            new_values={"staff": staff.name, "days": request.days},
        )

        await self.db.commit()
        await self.db.refresh(request)
        return request

    async def update_leave_status(
        self,
        request_id: uuid.UUID,
        status: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> LeaveRequest:
        request = await get_or_404(self.db, LeaveRequest, request_id, "Leave request")
        check_version(request, expected_version, "Leave request")

        old_status = request.status
        validate_transition("leave", old_status, status)
        request.status = status
        request.decided_by = actor
        await self.audit.log_transition(actor, "LEAVE_REQUEST", request.id, old_status, status)

        await self.db.commit()
        await self.db.refresh(request)
        logger.info(f"Leave request {request.id} for {request.staff_name}: {old_status} -> {status}")
        return request

    # ==================== TRAINING ====================

    async def get_trainings(self) -> List[Training]:
        result = await self.db.execute(select(Training).order_by(Training.training_date))
        return list(result.scalars().all())

    async def add_training(
        self,
        title: str,
        training_type: str,
        training_date: date,
        duration: str,
        instructor: str,
        capacity: int,
        actor: str,
    ) -> Training:
        training = Training(
            title=title,
            training_type=training_type,
            training_date=training_date,
            duration=duration,
            instructor=instructor,
            capacity=capacity,
            enrolled=0,
        )
        self.db.add(training)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="TRAINING", entity_id=training.id)

        await self.db.commit()
        await self.db.refresh(training)
        return training

    async def enroll_staff(
        self,
        training_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> Training:
        training = await get_or_404(self.db, Training, training_id, "Training", for_update=True)
        check_version(training, expected_version, "Training")

        if training.enrolled >= training.capacity:
            raise InvalidTransitionError(
                f"Training '{training.title}' is full ({training.enrolled}/{training.capacity})"
            )
        training.enrolled += 1
        await self.audit.log(
            actor=actor, action="ENROLL", entity_type="TRAINING", entity_id=training.id,
            new_values={"enrolled": training.enrolled},
        )

        await self.db.commit()
        await self.db.refresh(training)
        return training
