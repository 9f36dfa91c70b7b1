"""Receiving models: goods receipt notes and dock slots."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType
from app.core.derivations import putaway_pallets
from app.services.state_machine import GRNStatus, DockStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoodsReceiptNote(Base):
    """
    Inbound shipment record.

    Lifecycle: pending -> in-progress -> completed | discrepancy.
    """
    __tablename__ = "goods_receipt_notes"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    po_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    vendor: Mapped[str] = mapped_column(String(200), nullable=False)
    items: Mapped[int] = mapped_column(Integer, nullable=False, comment="Item count on the note")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=GRNStatus.PENDING, index=True)

    # Discrepancy
    discrepancy_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    discrepancy_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    received_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def putaway_pallets(self) -> int:
        if self.status != GRNStatus.COMPLETED:
            return 0
        return putaway_pallets(self.items)

    def __repr__(self) -> str:
        return f"<GoodsReceiptNote(po='{self.po_number}', status='{self.status}')>"


class DockSlot(Base):
    """Receiving dock door. Not linked to a GRN beyond display."""
    __tablename__ = "dock_slots"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=DockStatus.EMPTY)

    truck: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    vendor: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    eta: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<DockSlot(name='{self.name}', status='{self.status}')>"
