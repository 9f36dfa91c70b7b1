"""
Shared schema bases.

The dashboard speaks camelCase; operator scripts may send snake_case. Every
ORM-backed response inherits BaseResponseSchema so both directions agree.
"""

from typing import Generic, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class BaseResponseSchema(BaseModel):
    """
    Read model built from an ORM row, serialized with camelCase keys
    (current_stock -> currentStock).

    Usage:
        class GRNResponse(BaseResponseSchema):
            id: UUID
            po_number: str
    """
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class BaseCreateSchema(BaseModel):
    """Request body. Unknown keys are dropped rather than rejected."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )


class BaseUpdateSchema(BaseCreateSchema):
    """Partial update; subclasses declare every field Optional."""


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {"success": true, "data": ...}."""
    success: bool = True
    data: T


class StatusUpdate(BaseUpdateSchema):
    """Requested target status for a state-machine entity."""
    status: str
