"""Pydantic schemas for picking and fulfillment."""
from pydantic import Field

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Dict, Optional, List
from datetime import datetime
import uuid


# ==================== PICKLIST SCHEMAS ====================

class PicklistCreate(BaseCreateSchema):
    order_id: str = Field(..., min_length=1, max_length=50)
    customer: str = Field(..., min_length=1)
    items: int = Field(..., gt=0)
    priority: str = Field("standard", pattern="^(urgent|high|standard)$")
    zone: Optional[str] = None
    origin: str = Field("manual", pattern="^(auto|manual)$")


class PicklistAssignRequest(BaseCreateSchema):
    """Assign a picker by name."""
    picker_name: str = Field(..., min_length=1)


class PicklistResponse(BaseResponseSchema):
    id: uuid.UUID
    order_id: str
    customer: str
    items: int
    priority: str
    status: str
    origin: str
    picker: Optional[str] = None
    zone: Optional[str] = None
    batch_ref: Optional[uuid.UUID] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    version: int


class OrderFlowResponse(BaseResponseSchema):
    counts: Dict[str, int]
    orders: List[PicklistResponse] = []

# ==================== PICKER SCHEMAS ====================

class PickerCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=100)
    zone: Optional[str] = None
    pick_rate: float = Field(0, ge=0)


class PickerBreakRequest(BaseUpdateSchema):
    on_break: bool


class PickerResponse(BaseResponseSchema):
    id: uuid.UUID
    picker_id: str
    name: str
    status: str
    active_orders: int
    completed_today: int
    pick_rate: float
    zone: Optional[str] = None
    version: int


# ==================== BATCH SCHEMAS ====================

class BatchCreate(BaseCreateSchema):
    zone: str = Field(..., min_length=1)
    picker: Optional[str] = None


class BatchProgressUpdate(BaseUpdateSchema):
    progress: int = Field(..., ge=0, le=100)


class BatchResponse(BaseResponseSchema):
    id: uuid.UUID
    batch_id: str
    zone: str
    order_count: int
    total_items: int
    picker: Optional[str] = None
    status: str
    progress: int
    created_at: datetime
    version: int


# ==================== MULTI-ORDER PICK SCHEMAS ====================

class MultiOrderPickCreate(BaseCreateSchema):
    orders: List[str] = Field(..., min_length=1)
    sku: str = Field(..., min_length=1)
    product_name: Optional[str] = None
    location: Optional[str] = None
    total_qty: int = Field(..., gt=0)


class PickedQtyUpdate(BaseUpdateSchema):
    picked_qty: int = Field(..., ge=0)


class MultiOrderPickResponse(BaseResponseSchema):
    id: uuid.UUID
    pick_id: str
    orders: List[str]
    sku: str
    product_name: Optional[str] = None
    location: Optional[str] = None
    total_qty: int
    picked_qty: int
    status: str
    version: int


# ==================== ROUTE SCHEMAS ====================

class RouteCreate(BaseCreateSchema):
    picker: Optional[str] = None
    stops: int = Field(..., ge=0)
    distance: float = Field(0, ge=0)
    estimated_time: int = Field(0, ge=0)


class RouteResponse(BaseResponseSchema):
    id: uuid.UUID
    route_id: str
    picker: Optional[str] = None
    stops: int
    distance: float
    estimated_time: int
    efficiency: int
    status: str
    created_at: datetime
    version: int
