"""Helpers shared by the warehouse services."""
from datetime import datetime, timezone
from typing import Any, Optional, Type, TypeVar
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationError


ModelT = TypeVar("ModelT")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def generate_number(db: AsyncSession, column: Any, code: str) -> str:
    """Generate a unique business number: CODE-YYYYMMDD-XXXX"""
    today = utcnow().strftime("%Y%m%d")
    prefix = f"{code}-{today}-"

    stmt = select(func.count()).where(column.like(f"{prefix}%"))
    count = (await db.execute(stmt)).scalar() or 0

    return f"{prefix}{(count + 1):04d}"


def parse_uuid(value: Any, entity: str) -> uuid.UUID:
    """Path ids arrive as strings; anything that is not a UUID cannot exist."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFoundError.for_entity(entity, value)


async def get_or_404(
    db: AsyncSession,
    model: Type[ModelT],
    entity_id: Any,
    entity: str,
    for_update: bool = False,
) -> ModelT:
    stmt = select(model).where(model.id == parse_uuid(entity_id, entity))
    if for_update:
        stmt = stmt.with_for_update()
    obj = (await db.execute(stmt)).scalar_one_or_none()
    if obj is None:
        raise NotFoundError.for_entity(entity, entity_id)
    return obj


def check_version(obj: Any, expected_version: Optional[int], entity: str) -> None:
    """
    Optimistic concurrency check for If-Match.

    None means the caller did not send a version and accepts last-write-wins.
    """
    if expected_version is None:
        return
    if obj.version != expected_version:
        raise ConflictError(
            f"{entity} was modified by someone else (version {obj.version}, expected {expected_version})",
            {"entity": entity, "currentVersion": obj.version, "expectedVersion": expected_version},
        )


def require_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required", {"field": field})
    return str(value).strip()
