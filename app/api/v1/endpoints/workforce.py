"""Workforce API endpoints: staff, shift schedules, attendance, performance, leave and training."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, status

from app.api.deps import DB, CurrentActor, ExpectedVersion
from app.schemas.base import ApiResponse
from app.schemas.workforce import (
    StaffCreate,
    StaffStatusUpdate,
    StaffResponse,
    ScheduleCreate,
    AssignStaffRequest,
    ScheduleResponse,
    AttendanceCreate,
    AttendanceResponse,
    PerformanceResponse,
    LeaveRequestCreate,
    LeaveStatusUpdate,
    LeaveRequestResponse,
    TrainingCreate,
    TrainingResponse,
)
from app.services.workforce_service import WorkforceService

router = APIRouter()


# ==================== STAFF ====================

@router.get("/staff", response_model=ApiResponse[List[StaffResponse]])
async def list_staff(db: DB, shift: Optional[str] = None, status: Optional[str] = None):
    staff = await WorkforceService(db).get_staff(shift=shift, status=status)
    return ApiResponse(data=[StaffResponse.model_validate(s) for s in staff])


@router.post("/staff", response_model=ApiResponse[StaffResponse], status_code=status.HTTP_201_CREATED)
async def add_staff(data: StaffCreate, db: DB, actor: CurrentActor):
    staff = await WorkforceService(db).add_staff(
        name=data.name,
        role=data.role,
        actor=actor,
        shift=data.shift,
        hourly_rate=data.hourly_rate,
        productivity=data.productivity,
    )
    return ApiResponse(data=StaffResponse.model_validate(staff))


@router.get("/staff/{staff_id}", response_model=ApiResponse[StaffResponse])
async def get_staff_member(staff_id: str, db: DB):
    staff = await WorkforceService(db).get_staff_member(staff_id)
    return ApiResponse(data=StaffResponse.model_validate(staff))


@router.put("/staff/{staff_id}", response_model=ApiResponse[StaffResponse])
async def update_staff_status(
    staff_id: str,
    data: StaffStatusUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    staff = await WorkforceService(db).update_staff_status(
        staff_id, status=data.status, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=StaffResponse.model_validate(staff))


# ==================== SCHEDULES ====================

@router.get("/schedule", response_model=ApiResponse[List[ScheduleResponse]])
async def list_schedules(db: DB, date_from: Optional[date] = None, date_to: Optional[date] = None):
    schedules = await WorkforceService(db).get_schedules(date_from=date_from, date_to=date_to)
    return ApiResponse(data=[ScheduleResponse.model_validate(s) for s in schedules])


@router.post("/schedule", response_model=ApiResponse[ScheduleResponse], status_code=status.HTTP_201_CREATED)
async def create_schedule(data: ScheduleCreate, db: DB, actor: CurrentActor):
    schedule = await WorkforceService(db).create_schedule(
        schedule_date=data.date, shift=data.shift, required_staff=data.required_staff, actor=actor
    )
    return ApiResponse(data=ScheduleResponse.model_validate(schedule))


@router.put("/schedule/{schedule_id}/assign", response_model=ApiResponse[ScheduleResponse])
async def assign_staff(
    schedule_id: str,
    data: AssignStaffRequest,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """Replace the shift's assignment set; status follows from the count."""
    schedule = await WorkforceService(db).assign_staff(
        schedule_id, staff_ids=data.staff_ids, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=ScheduleResponse.model_validate(schedule))


# ==================== ATTENDANCE ====================

@router.get("/attendance", response_model=ApiResponse[List[AttendanceResponse]])
async def list_attendance(db: DB, date: Optional[date] = None, staff_id: Optional[str] = None):
    records = await WorkforceService(db).get_attendance(attendance_date=date, staff_id=staff_id)
    return ApiResponse(data=[AttendanceResponse.model_validate(r) for r in records])


@router.post("/attendance", response_model=ApiResponse[AttendanceResponse], status_code=status.HTTP_201_CREATED)
async def log_attendance(data: AttendanceCreate, db: DB, actor: CurrentActor):
    record = await WorkforceService(db).log_attendance(
        staff_id=data.staff_id,
        attendance_date=data.date,
        actor=actor,
        check_in=data.check_in,
        check_out=data.check_out,
        status=data.status,
    )
    return ApiResponse(data=AttendanceResponse.model_validate(record))


@router.get("/performance", response_model=ApiResponse[List[PerformanceResponse]])
async def list_performance(db: DB, as_of: Optional[date] = None):
    """Units picked against the weekly target, per staff member."""
    rows = await WorkforceService(db).get_performance(as_of=as_of)
    return ApiResponse(data=[PerformanceResponse.model_validate(r) for r in rows])


# ==================== LEAVE ====================

@router.get("/leave-requests", response_model=ApiResponse[List[LeaveRequestResponse]])
async def list_leave_requests(db: DB, status: Optional[str] = None):
    requests = await WorkforceService(db).get_leave_requests(status=status)
    return ApiResponse(data=[LeaveRequestResponse.model_validate(r) for r in requests])


@router.post(
    "/leave-requests",
    response_model=ApiResponse[LeaveRequestResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_leave_request(data: LeaveRequestCreate, db: DB, actor: CurrentActor):
    request = await WorkforceService(db).create_leave_request(
        staff_id=data.staff_id,
        leave_type=data.leave_type,
        start_date=data.start_date,
        end_date=data.end_date,
        actor=actor,
        reason=data.reason,
    )
    return ApiResponse(data=LeaveRequestResponse.model_validate(request))


@router.put("/leave-requests/{request_id}/status", response_model=ApiResponse[LeaveRequestResponse])
async def update_leave_status(
    request_id: str,
    data: LeaveStatusUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """pending -> approved | rejected"""
    request = await WorkforceService(db).update_leave_status(
        request_id, status=data.status, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=LeaveRequestResponse.model_validate(request))


# ==================== TRAINING ====================

@router.get("/training", response_model=ApiResponse[List[TrainingResponse]])
async def list_trainings(db: DB):
    trainings = await WorkforceService(db).get_trainings()
    return ApiResponse(data=[TrainingResponse.model_validate(t) for t in trainings])


@router.post("/training", response_model=ApiResponse[TrainingResponse], status_code=status.HTTP_201_CREATED)
async def add_training(data: TrainingCreate, db: DB, actor: CurrentActor):
    training = await WorkforceService(db).add_training(
        title=data.title,
        training_type=data.type,
        training_date=data.date,
        duration=data.duration,
        instructor=data.instructor,
        capacity=data.capacity,
        actor=actor,
    )
    return ApiResponse(data=TrainingResponse.model_validate(training))


@router.post("/training/{training_id}/enroll", response_model=ApiResponse[TrainingResponse])
async def enroll_staff(training_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    training = await WorkforceService(db).enroll_staff(training_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=TrainingResponse.model_validate(training))
