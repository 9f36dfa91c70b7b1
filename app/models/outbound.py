"""Picking and fulfillment models."""
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import String, Integer, Boolean, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, JSONType
from app.core.derivations import multi_order_pick_status, picker_status
from app.services.state_machine import PicklistStatus, BatchStatus, RouteStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PicklistOrigin:
    AUTO = "auto"
    MANUAL = "manual"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.AUTO, cls.MANUAL]


class PicklistPriority:
    URGENT = "urgent"
    HIGH = "high"
    STANDARD = "standard"

    @classmethod
    def all(cls) -> List[str]:
        return [cls.URGENT, cls.HIGH, cls.STANDARD]


class Picker(Base):
    """Warehouse picker. Status is derived from on_break and active_orders."""
    __tablename__ = "pickers"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    picker_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True,
                                           comment="PKR-0001")
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    zone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    on_break: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_today: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pick_rate: Mapped[float] = mapped_column(Numeric(8, 2), nullable=False, default=0,
                                             comment="Units per hour")

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def status(self) -> str:
        return picker_status(self.on_break, self.active_orders)

    def __repr__(self) -> str:
        return f"<Picker(name='{self.name}', active={self.active_orders})>"


class PicklistOrder(Base):
    """
    One order's pick list.

    origin is fixed at creation: "auto" picklists come from an external
    wave generator, "manual" ones from a supervisor.
    """
    __tablename__ = "picklist_orders"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    customer: Mapped[str] = mapped_column(String(200), nullable=False)
    items: Mapped[int] = mapped_column(Integer, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=PicklistPriority.STANDARD)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PicklistStatus.PENDING, index=True)
    origin: Mapped[str] = mapped_column(String(20), nullable=False, default=PicklistOrigin.MANUAL, index=True)
    zone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)

    picker: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, comment="Picker name")
    picker_ref: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType, ForeignKey("pickers.id", ondelete="SET NULL"), nullable=True
    )
    batch_ref: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType, ForeignKey("batch_orders.id", ondelete="SET NULL"), nullable=True
    )

    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<PicklistOrder(order_id='{self.order_id}', status='{self.status}')>"


class BatchOrder(Base):
    """Orders of one zone grouped into a single retrieval run."""
    __tablename__ = "batch_orders"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    batch_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    zone: Mapped[str] = mapped_column(String(50), nullable=False)
    order_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    picker: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=BatchStatus.PREPARING, index=True)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="0-100")

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class MultiOrderPick(Base):
    """One location visit serving several orders. Status is never stored."""
    __tablename__ = "multi_order_picks"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    pick_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    orders: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    total_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    picked_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def status(self) -> str:
        return multi_order_pick_status(self.picked_qty, self.total_qty)


class RouteOptimization(Base):
    __tablename__ = "route_optimizations"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    route_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    picker: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    stops: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    distance: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False, default=0, comment="Metres")
    estimated_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="Minutes")
    efficiency: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="0-100")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=RouteStatus.PLANNED, index=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}
