"""Pydantic schemas for inter-warehouse transfers."""
from pydantic import Field

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Optional
from datetime import datetime
import uuid


class WarehouseTransferCreate(BaseCreateSchema):
    destination: str = Field(..., min_length=1, max_length=200)
    items: int = Field(..., gt=0)
    sku: Optional[str] = None
    vehicle: Optional[str] = None


class TelemetryUpdate(BaseUpdateSchema):
    """Tracking feed reading for an en-route transfer."""
    distance: Optional[float] = Field(None, ge=0)
    eta: Optional[str] = None
    progress: int = Field(..., ge=0, le=100)


class WarehouseTransferResponse(BaseResponseSchema):
    id: uuid.UUID
    transfer_id: str
    destination: str
    items: int
    sku: Optional[str] = None
    vehicle: Optional[str] = None
    status: str
    distance: Optional[float] = None
    eta: Optional[str] = None
    progress: int
    created_by: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    version: int
