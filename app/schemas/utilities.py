"""Pydantic schemas for utilities and the overview screen."""
from app.schemas.base import BaseResponseSchema
from typing import Optional
from datetime import datetime
import uuid


class AccessLogResponse(BaseResponseSchema):
    id: uuid.UUID
    actor: str
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[str] = None
    timestamp: datetime


class WarehouseMetrics(BaseResponseSchema):
    inbound_queue: int
    outbound_queue: int
    inventory_health: int
    critical_alerts: int
    active_transfers: int
    open_exceptions: int
