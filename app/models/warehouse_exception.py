"""Operational exception raised against any warehouse area."""
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType
from app.services.state_machine import ExceptionStatus


class ExceptionCategory:
    INBOUND = "inbound"
    INVENTORY = "inventory"
    OUTBOUND = "outbound"
    QC = "qc"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.INBOUND, cls.INVENTORY, cls.OUTBOUND, cls.QC]


class ExceptionPriority:
    CRITICAL = "critical"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.CRITICAL, cls.MEDIUM, cls.LOW]


class WarehouseException(Base):
    __tablename__ = "warehouse_exceptions"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ExceptionStatus.OPEN, index=True)

    # Resolution: "investigated", "shipment-rejected" or "partial-accepted"
    resolution: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    accepted_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reported_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<WarehouseException(title='{self.title}', status='{self.status}')>"
