"""Inventory ledger models: items, bins, adjustments, cycle counts, internal transfers."""
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import String, Integer, Date, DateTime, Numeric, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType
from app.core.derivations import StockAlert, derive_stock_alerts
from app.services.state_machine import CycleCountStatus, InternalTransferStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryItem(Base):
    """
    Stock level of one SKU.

    current_stock only changes through a StockAdjustment or a completed
    transfer. Items are never deleted, only zeroed.
    """
    __tablename__ = "inventory_items"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    current_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    location: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    value: Mapped[float] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def alerts(self) -> List[StockAlert]:
        """Alerts for this item, derived from the current thresholds on every read."""
        return derive_stock_alerts(
            sku=self.sku,
            product_name=self.product_name,
            current_stock=self.current_stock,
            min_stock=self.min_stock,
            max_stock=self.max_stock,
            expiry_date=self.expiry_date,
        )

    def __repr__(self) -> str:
        return f"<InventoryItem(sku='{self.sku}', stock={self.current_stock})>"


class StorageLocation(Base):
    """A rack bin. Holds at most one SKU."""
    __tablename__ = "storage_locations"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True,
                                      comment="Bin code e.g. A-01")
    aisle: Mapped[str] = mapped_column(String(20), nullable=False)
    rack: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    zone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="empty",
                                        comment="occupied, empty, restricted")
    sku: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<StorageLocation(code='{self.code}', sku='{self.sku}', qty={self.quantity})>"


class StockAdjustment(Base):
    """Append-only ledger row. One row is one atomic stock delta."""
    __tablename__ = "stock_adjustments"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    adjustment_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Manual")
    sku: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    change: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_before: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user: Mapped[str] = mapped_column(String(100), nullable=False)
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(100), unique=True, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<StockAdjustment(sku='{self.sku}', change={self.change})>"


class CycleCount(Base):
    """Scheduled partial physical audit of a zone."""
    __tablename__ = "cycle_counts"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    count_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True,
                                          comment="CC-YYYYMMDD-XXXX")
    zone: Mapped[str] = mapped_column(String(50), nullable=False)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CycleCountStatus.SCHEDULED, index=True)

    items_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    items_counted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    discrepancies: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_fully_counted(self) -> bool:
        return self.items_counted >= self.items_total

    def __repr__(self) -> str:
        return f"<CycleCount(count_id='{self.count_id}', status='{self.status}')>"


class InternalTransfer(Base):
    """Bin-to-bin move inside the warehouse."""
    __tablename__ = "internal_transfers"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    transfer_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    from_location: Mapped[str] = mapped_column(String(50), nullable=False)
    to_location: Mapped[str] = mapped_column(String(50), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InternalTransferStatus.PENDING, index=True)
    initiated_by: Mapped[str] = mapped_column(String(100), nullable=False)

    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<InternalTransfer({self.from_location} -> {self.to_location}, {self.sku} x{self.quantity})>"


class ReorderRequest(Base):
    """Informational reorder note. Fulfilment happens elsewhere; stock is untouched."""
    __tablename__ = "reorder_requests"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    requested_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_reorder_requests_sku_created", "sku", "created_at"),
    )
