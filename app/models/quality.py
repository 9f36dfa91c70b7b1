"""Quality and compliance models."""
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, Boolean, Date, DateTime, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType
from app.core.derivations import (
    inspection_score,
    inspection_status,
    temperature_status,
    compliance_doc_status,
)
from app.services.state_machine import SampleResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QCInspection(Base):
    """Batch inspection. score and status are derived on every read."""
    __tablename__ = "qc_inspections"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    items_inspected: Mapped[int] = mapped_column(Integer, nullable=False)
    defects_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    inspector: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    @property
    def score(self) -> int:
        return inspection_score(self.items_inspected, self.defects_found)

    @property
    def status(self) -> str:
        return inspection_status(self.items_inspected, self.defects_found)


class TemperatureLog(Base):
    __tablename__ = "temperature_logs"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    zone: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    temperature: Mapped[float] = mapped_column(Numeric(6, 2), nullable=False, comment="Celsius")
    humidity: Mapped[float] = mapped_column(Numeric(6, 2), nullable=False, comment="Percent")
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    @property
    def status(self) -> str:
        return temperature_status(float(self.temperature), float(self.humidity))


class SampleTest(Base):
    __tablename__ = "sample_tests"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    sample_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    batch_id: Mapped[str] = mapped_column(String(50), nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    test_type: Mapped[str] = mapped_column(String(100), nullable=False)
    result: Mapped[str] = mapped_column(String(20), nullable=False, default=SampleResult.PENDING)
    tested_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class QCRejection(Base):
    __tablename__ = "qc_rejections"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    items: Mapped[int] = mapped_column(Integer, nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, comment="critical, high, medium")
    logged_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class ComplianceCheck(Base):
    """Checklist entry toggled from the dashboard."""
    __tablename__ = "compliance_checks"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __mapper_args__ = {"version_id_col": version}


class ComplianceDoc(Base):
    """Certificate or licence with an expiry date."""
    __tablename__ = "compliance_docs"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    doc_type: Mapped[str] = mapped_column(String(100), nullable=False)
    issued_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    @property
    def status(self) -> str:
        return compliance_doc_status(self.expiry_date)
