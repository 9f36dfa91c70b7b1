"""Service for handheld devices and machinery."""
import csv
import io
import logging
from typing import List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidTransitionError, ValidationError
from app.models.equipment import Device, Machine
from app.services.audit_service import AuditService
from app.services.common import check_version, get_or_404, utcnow
from app.services.state_machine import MachineStatus, validate_transition


logger = logging.getLogger(__name__)

MACHINERY_EXPORT_HEADER = ["Name", "Type", "Zone", "Operator", "Status", "Issue", "Last Maintenance"]


class EquipmentService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # ==================== DEVICES ====================

    async def get_devices(self, status: Optional[str] = None) -> List[Device]:
        stmt = select(Device).order_by(Device.name)
        if status:
            stmt = stmt.where(Device.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_device(self, device_id: uuid.UUID) -> Device:
        return await get_or_404(self.db, Device, device_id, "Device")

    async def register_device(
        self,
        name: str,
        device_type: str,
        actor: str,
        serial_number: Optional[str] = None,
        assigned_to: Optional[str] = None,
        battery: Optional[int] = None,
    ) -> Device:
        if serial_number:
            existing = await self.db.execute(select(Device).where(Device.serial_number == serial_number))
            if existing.scalar_one_or_none():
                raise ValidationError(f"Device {serial_number} is already registered", {"serialNumber": serial_number})

        device = Device(
            name=name,
            device_type=device_type,
            serial_number=serial_number,
            assigned_to=assigned_to,
            battery=battery,
            status="online",
        )
        self.db.add(device)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="DEVICE", entity_id=device.id, details=name)

        await self.db.commit()
        await self.db.refresh(device)
        return device

    # ==================== MACHINERY ====================

    async def get_machinery(
        self,
        status: Optional[str] = None,
        machine_type: Optional[str] = None,
    ) -> List[Machine]:
        stmt = select(Machine).order_by(Machine.name)
        if status:
            stmt = stmt.where(Machine.status == status)
        if machine_type:
            stmt = stmt.where(Machine.machine_type == machine_type)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_machine(self, machine_id: uuid.UUID) -> Machine:
        return await get_or_404(self.db, Machine, machine_id, "Machine")

    async def add_machinery(
        self,
        name: str,
        machine_type: str,
        actor: str,
        zone: Optional[str] = None,
        operator: Optional[str] = None,
    ) -> Machine:
        machine = Machine(
            name=name,
            machine_type=machine_type,
            zone=zone,
            operator=operator,
            status=MachineStatus.OPERATIONAL if operator else MachineStatus.IDLE,
        )
        self.db.add(machine)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="MACHINE", entity_id=machine.id,
            new_values={"name": name, "type": machine_type},
        )

        await self.db.commit()
        await self.db.refresh(machine)
        return machine

    async def report_issue(
        self,
        machine_id: uuid.UUID,
        issue: str,
        severity: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> Machine:
        machine = await get_or_404(self.db, Machine, machine_id, "Machine")
        check_version(machine, expected_version, "Machine")

        old_status = machine.status
        validate_transition("machine", old_status, MachineStatus.MAINTENANCE)
        machine.status = MachineStatus.MAINTENANCE
        machine.issue = issue
        machine.issue_severity = severity
        await self.audit.log(
            actor=actor, action="TRANSITION", entity_type="MACHINE", entity_id=machine.id,
            old_values={"status": old_status},
            new_values={"status": machine.status, "issue": issue, "severity": severity},
        )

        await self.db.commit()
        await self.db.refresh(machine)
        logger.warning(f"Machine {machine.name} down for maintenance ({severity}): {issue}")
        return machine

    async def resolve_issue(
        self,
        machine_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> Machine:
        """maintenance -> operational when an operator is assigned, else idle."""
        machine = await get_or_404(self.db, Machine, machine_id, "Machine")
        check_version(machine, expected_version, "Machine")

        if machine.status != MachineStatus.MAINTENANCE:
            raise InvalidTransitionError(f"Machine {machine.name} is '{machine.status}', not in maintenance")

        new_status = MachineStatus.OPERATIONAL if machine.operator else MachineStatus.IDLE
        validate_transition("machine", machine.status, new_status)
        machine.status = new_status
        machine.issue = None
        machine.issue_severity = None
        machine.last_maintenance = utcnow()
        await self.audit.log_transition(actor, "MACHINE", machine.id, MachineStatus.MAINTENANCE, new_status)

        await self.db.commit()
        await self.db.refresh(machine)
        logger.info(f"Machine {machine.name} back in service ({new_status})")
        return machine

    async def export_csv(self) -> str:
        machines = await self.get_machinery()

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(MACHINERY_EXPORT_HEADER)
        for m in machines:
            writer.writerow([
                m.name,
                m.machine_type,
                m.zone or "",
                m.operator or "",
                m.status,
                m.issue or "",
                m.last_maintenance.isoformat() if m.last_maintenance else "",
            ])
        return output.getvalue()
