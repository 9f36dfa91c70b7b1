"""Inter-warehouse transfer model."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Integer, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType
from app.services.state_machine import WarehouseTransferStatus


class WarehouseTransfer(Base):
    """
    Shipment to another site.

    Lifecycle: pending -> loading -> en-route -> completed, adjacent steps only.
    distance, eta and progress are telemetry from the tracking feed.
    """
    __tablename__ = "warehouse_transfers"

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)
    transfer_id: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True,
                                             comment="TRF-YYYYMMDD-XXXX")
    destination: Mapped[str] = mapped_column(String(200), nullable=False)
    items: Mapped[int] = mapped_column(Integer, nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(100), nullable=True,
                                               comment="Decremented by items on completion")
    vehicle: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=WarehouseTransferStatus.PENDING, index=True)

    # Telemetry
    distance: Mapped[Optional[float]] = mapped_column(Numeric(10, 2), nullable=True, comment="Kilometres")
    eta: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<WarehouseTransfer(transfer_id='{self.transfer_id}', status='{self.status}')>"
