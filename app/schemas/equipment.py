"""Pydantic schemas for devices and machinery."""
from pydantic import AliasChoices, Field

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Annotated, Optional
from datetime import datetime
import uuid


class DeviceCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    serial_number: Optional[str] = None
    assigned_to: Optional[str] = None
    battery: Optional[int] = Field(None, ge=0, le=100)


class DeviceResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    type: Annotated[str, Field(validation_alias=AliasChoices("device_type", "type"))]
    serial_number: Optional[str] = None
    assigned_to: Optional[str] = None
    status: str
    battery: Optional[int] = None
    last_seen: datetime


class MachineCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1)
    type: str = Field(..., pattern="^(forklift|pallet-jack|crane)$")
    zone: Optional[str] = None
    operator: Optional[str] = None


class IssueReport(BaseUpdateSchema):
    issue: str = Field(..., min_length=1)
    severity: str = Field("medium", pattern="^(critical|high|medium|low)$")


class MachineResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    type: Annotated[str, Field(validation_alias=AliasChoices("machine_type", "type"))]
    zone: Optional[str] = None
    operator: Optional[str] = None
    status: str
    issue: Optional[str] = None
    issue_severity: Optional[str] = None
    last_maintenance: Optional[datetime] = None
    version: int
