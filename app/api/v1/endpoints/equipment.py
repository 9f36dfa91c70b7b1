"""Equipment API endpoints: handheld devices and machinery."""
from typing import List, Optional

from fastapi import APIRouter, Response, status

from app.api.deps import DB, CurrentActor, ExpectedVersion
from app.schemas.base import ApiResponse
from app.schemas.equipment import (
    DeviceCreate,
    DeviceResponse,
    MachineCreate,
    IssueReport,
    MachineResponse,
)
from app.services.equipment_service import EquipmentService

router = APIRouter()


# ==================== DEVICES ====================

@router.get("/devices", response_model=ApiResponse[List[DeviceResponse]])
async def list_devices(db: DB, status: Optional[str] = None):
    devices = await EquipmentService(db).get_devices(status=status)
    return ApiResponse(data=[DeviceResponse.model_validate(d) for d in devices])


@router.post("/devices", response_model=ApiResponse[DeviceResponse], status_code=status.HTTP_201_CREATED)
async def register_device(data: DeviceCreate, db: DB, actor: CurrentActor):
    device = await EquipmentService(db).register_device(
        name=data.name,
        device_type=data.type,
        actor=actor,
        serial_number=data.serial_number,
        assigned_to=data.assigned_to,
        battery=data.battery,
    )
    return ApiResponse(data=DeviceResponse.model_validate(device))


@router.get("/devices/{device_id}", response_model=ApiResponse[DeviceResponse])
async def get_device(device_id: str, db: DB):
    device = await EquipmentService(db).get_device(device_id)
    return ApiResponse(data=DeviceResponse.model_validate(device))


# ==================== MACHINERY ====================

@router.get("/machinery", response_model=ApiResponse[List[MachineResponse]])
async def list_machinery(db: DB, status: Optional[str] = None, type: Optional[str] = None):
    machines = await EquipmentService(db).get_machinery(status=status, machine_type=type)
    return ApiResponse(data=[MachineResponse.model_validate(m) for m in machines])


@router.post("/machinery", response_model=ApiResponse[MachineResponse], status_code=status.HTTP_201_CREATED)
async def add_machinery(data: MachineCreate, db: DB, actor: CurrentActor):
    machine = await EquipmentService(db).add_machinery(
        name=data.name,
        machine_type=data.type,
        actor=actor,
        zone=data.zone,
        operator=data.operator,
    )
    return ApiResponse(data=MachineResponse.model_validate(machine))


@router.get("/export")
async def export_machinery(db: DB):
    content = await EquipmentService(db).export_csv()
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=machinery.csv"},
    )


@router.get("/machinery/{machine_id}", response_model=ApiResponse[MachineResponse])
async def get_machine(machine_id: str, db: DB):
    machine = await EquipmentService(db).get_machine(machine_id)
    return ApiResponse(data=MachineResponse.model_validate(machine))


@router.post("/machinery/{machine_id}/issue", response_model=ApiResponse[MachineResponse])
async def report_issue(
    machine_id: str,
    data: IssueReport,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """Take a machine out of service: -> maintenance."""
    machine = await EquipmentService(db).report_issue(
        machine_id, issue=data.issue, severity=data.severity, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=MachineResponse.model_validate(machine))


@router.post("/machinery/{machine_id}/resolve", response_model=ApiResponse[MachineResponse])
async def resolve_issue(machine_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    machine = await EquipmentService(db).resolve_issue(machine_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=MachineResponse.model_validate(machine))
