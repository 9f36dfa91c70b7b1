"""Handheld devices and material-handling machinery."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType
from app.services.state_machine import MachineStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Device(Base):
    """Scanner, printer or tablet registered to the site."""
    __tablename__ = "devices"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    device_type: Mapped[str] = mapped_column(String(50), nullable=False)
    serial_number: Mapped[Optional[str]] = mapped_column(String(100), unique=True, nullable=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="online")
    battery: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Percent")
    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Machine(Base):
    __tablename__ = "machinery"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    machine_type: Mapped[str] = mapped_column(String(20), nullable=False)
    zone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    operator: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=MachineStatus.IDLE)

    issue: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    issue_severity: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    last_maintenance: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}
