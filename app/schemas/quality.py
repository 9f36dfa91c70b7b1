"""Pydantic schemas for quality control and compliance."""
from pydantic import AliasChoices, Field, model_validator

from app.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from typing import Annotated, Optional
from datetime import date, datetime
import uuid


# ==================== INSPECTION SCHEMAS ====================

class InspectionCreate(BaseCreateSchema):
    batch_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    items_inspected: int = Field(..., ge=0)
    defects_found: int = Field(0, ge=0)

    @model_validator(mode="after")
    def defects_within_inspected(self):
        if self.defects_found > self.items_inspected:
            raise ValueError("defectsFound cannot exceed itemsInspected")
        return self


class InspectionResponse(BaseResponseSchema):
    id: uuid.UUID
    batch_id: str
    product_name: str
    items_inspected: int
    defects_found: int
    score: int
    status: str
    inspector: Optional[str] = None
    timestamp: datetime


# ==================== TEMPERATURE SCHEMAS ====================

class TemperatureLogCreate(BaseCreateSchema):
    zone: str = Field(..., min_length=1)
    temperature: float
    humidity: float = Field(..., ge=0, le=100)


class TemperatureLogResponse(BaseResponseSchema):
    id: uuid.UUID
    zone: str
    temperature: float
    humidity: float
    status: str
    timestamp: datetime


# ==================== SAMPLE SCHEMAS ====================

class SampleCreate(BaseCreateSchema):
    batch_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    test_type: str = Field(..., min_length=1)


class SampleResultUpdate(BaseUpdateSchema):
    result: str = Field(..., pattern="^(pass|fail)$")


class SampleResponse(BaseResponseSchema):
    id: uuid.UUID
    sample_id: str
    batch_id: str
    product_name: str
    test_type: str
    result: str
    tested_by: Optional[str] = None
    timestamp: datetime
    version: int


# ==================== REJECTION SCHEMAS ====================

class RejectionCreate(BaseCreateSchema):
    batch_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    items: int = Field(..., gt=0)
    severity: str = Field(..., pattern="^(critical|high|medium)$")


class RejectionResponse(BaseResponseSchema):
    id: uuid.UUID
    batch_id: str
    product_name: str
    reason: str
    items: int
    severity: str
    logged_by: Optional[str] = None
    timestamp: datetime


# ==================== COMPLIANCE SCHEMAS ====================

class ComplianceCheckCreate(BaseCreateSchema):
    title: str = Field(..., min_length=1)
    category: Optional[str] = None


class ComplianceToggle(BaseUpdateSchema):
    completed: bool


class ComplianceCheckResponse(BaseResponseSchema):
    id: uuid.UUID
    title: str
    category: Optional[str] = None
    completed: bool
    completed_by: Optional[str] = None
    updated_at: datetime
    version: int


class ComplianceDocCreate(BaseCreateSchema):
    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    issued_date: Optional[date] = None
    expiry_date: date


class ComplianceDocResponse(BaseResponseSchema):
    id: uuid.UUID
    name: str
    type: Annotated[str, Field(validation_alias=AliasChoices("doc_type", "type"))]
    issued_date: Optional[date] = None
    expiry_date: date
    status: str
