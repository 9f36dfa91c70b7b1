"""Pydantic schemas for goods receipt notes and docks."""
from pydantic import Field, field_validator

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Dict, Optional
from datetime import datetime
import uuid


class GRNCreate(BaseCreateSchema):
    po_number: str = Field(..., min_length=1, max_length=50)
    vendor: str = Field(..., min_length=1, max_length=200)
    items: int = Field(..., gt=0)


class DiscrepancyCreate(BaseCreateSchema):
    type: str = Field(..., min_length=1)
    notes: str

    @field_validator("notes")
    @classmethod
    def notes_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("notes are required when logging a discrepancy")
        return v.strip()


class GRNResponse(BaseResponseSchema):
    id: uuid.UUID
    po_number: str
    vendor: str
    items: int
    status: str
    discrepancy_type: Optional[str] = None
    discrepancy_notes: Optional[str] = None
    received_by: Optional[str] = None
    putaway_pallets: int
    timestamp: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int


class DockCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1, max_length=50)


class DockUpdate(BaseUpdateSchema):
    status: str
    truck: Optional[str] = None
    vendor: Optional[str] = None
    eta: Optional[str] = None


class DockResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    status: str
    truck: Optional[str] = None
    vendor: Optional[str] = None
    eta: Optional[str] = None
    version: int


class InboundSummary(BaseResponseSchema):
    total: int
    by_status: Dict[str, int]
    putaway_pallets: int
    active_docks: int
