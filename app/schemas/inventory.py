"""Pydantic schemas for the inventory ledger."""
from pydantic import AliasChoices, Field, field_validator

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Annotated, Optional, List
from datetime import date, datetime
import uuid


# ==================== ITEM SCHEMAS ====================

class StockAlertResponse(BaseResponseSchema):
    """Derived alert; never stored."""
    id: str
    type: str
    sku: str
    product_name: str
    current_level: int
    threshold: int
    priority: str


class InventoryItemResponse(BaseResponseSchema):
    id: uuid.UUID
    sku: str
    product_name: str
    category: Optional[str] = None
    current_stock: int
    min_stock: int
    max_stock: int
    location: Optional[str] = None
    value: float
    expiry_date: Optional[date] = None
    alerts: List[StockAlertResponse] = []
    version: int
    last_updated: datetime


class InventorySummary(BaseResponseSchema):
    total_items: int
    total_units: int
    total_value: float
    low_stock: int
    out_of_stock: int
    overstock: int
    expiring: int
    health: int


class StorageLocationCreate(BaseCreateSchema):
    code: str = Field(..., min_length=1, max_length=50)
    aisle: str = Field(..., min_length=1)
    rack: int = Field(1, ge=1)
    zone: Optional[str] = None
    sku: Optional[str] = None
    quantity: int = Field(0, ge=0)
    restricted: bool = False


class StorageLocationResponse(BaseResponseSchema):
    id: uuid.UUID
    code: str
    aisle: str
    rack: int
    zone: Optional[str] = None
    status: str
    sku: Optional[str] = None
    quantity: int
    version: int


# ==================== ADJUSTMENT SCHEMAS ====================

class AdjustmentCreate(BaseCreateSchema):
    """
    Stock adjustment request.

    change is a signed whole number; floats, NaN and infinities are rejected.
    """
    sku: str
    change: int = Field(..., strict=True)
    reason: Optional[str] = None
    type: str = "Manual"
    product_name: Optional[str] = None

    @field_validator("sku")
    @classmethod
    def sku_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("sku is required")
        return v.strip()

    @field_validator("change")
    @classmethod
    def change_not_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("change must be non-zero")
        return v


class AdjustmentResponse(BaseResponseSchema):
    id: uuid.UUID
    type: Annotated[str, Field(validation_alias=AliasChoices("adjustment_type", "type"))]
    sku: str
    product_name: Optional[str] = None
    change: int
    stock_before: int
    stock_after: int
    reason: Optional[str] = None
    user: str
    timestamp: datetime


# ==================== CYCLE COUNT SCHEMAS ====================

class CycleCountCreate(BaseCreateSchema):
    zone: str = Field(..., min_length=1)
    assigned_to: Optional[str] = None
    scheduled_date: date
    items_total: int = Field(..., ge=0)


class CycleCountProgress(BaseUpdateSchema):
    items_counted: int = Field(..., ge=0)
    discrepancies: int = Field(..., ge=0)


class CycleCountResponse(BaseResponseSchema):
    id: uuid.UUID
    count_id: str
    zone: str
    assigned_to: Optional[str] = None
    scheduled_date: date
    items_total: int
    items_counted: int
    discrepancies: int
    status: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int


# ==================== INTERNAL TRANSFER SCHEMAS ====================

class InternalTransferCreate(BaseCreateSchema):
    from_location: str = Field(..., min_length=1)
    to_location: str = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)


class InternalTransferResponse(BaseResponseSchema):
    id: uuid.UUID
    transfer_id: str
    from_location: str
    to_location: str
    sku: str
    product_name: Optional[str] = None
    quantity: int
    status: str
    initiated_by: str
    timestamp: datetime
    completed_at: Optional[datetime] = None
    version: int


# ==================== REORDER SCHEMAS ====================

class ReorderCreate(BaseCreateSchema):
    sku: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    priority: str = Field("medium", pattern="^(high|medium|low)$")
    notes: Optional[str] = None


class ReorderResponse(BaseResponseSchema):
    id: uuid.UUID
    sku: str
    quantity: int
    priority: str
    notes: Optional[str] = None
    requested_by: str
    created_at: datetime


class SkuImportResult(BaseResponseSchema):
    imported: int
    skipped: int
    errors: List[str] = []


class BinReassignmentRequest(BaseCreateSchema):
    from_zone: str = Field(..., min_length=1)
    to_zone: str = Field(..., min_length=1)
    sku_filter: Optional[str] = None


class BinReassignmentResult(BaseResponseSchema):
    from_zone: str
    to_zone: str
    bins_moved: int
    units_moved: int
    transfer_ids: List[str] = []
