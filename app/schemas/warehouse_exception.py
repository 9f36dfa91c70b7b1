"""Pydantic schemas for warehouse exceptions."""
from pydantic import Field

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Optional
from datetime import datetime
import uuid


class ExceptionCreate(BaseCreateSchema):
    priority: str = Field(..., pattern="^(critical|medium|low)$")
    category: str = Field(..., pattern="^(inbound|inventory|outbound|qc)$")
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class AcceptPartialRequest(BaseUpdateSchema):
    accepted_quantity: int = Field(..., ge=0)


class ExceptionResponse(BaseResponseSchema):
    id: uuid.UUID
    priority: str
    category: str
    title: str
    description: Optional[str] = None
    status: str
    resolution: Optional[str] = None
    accepted_quantity: Optional[int] = None
    reported_by: Optional[str] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    timestamp: datetime
    version: int
