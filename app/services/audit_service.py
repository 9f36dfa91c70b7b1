from typing import Optional, Dict, Any, List, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AccessLog


class AuditService:
    """
    Audit service for logging every mutating warehouse action.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        actor: str,
        action: str,
        entity_type: str,
        entity_id: Optional[Any] = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        details: Optional[str] = None,
    ) -> AccessLog:
        """
        Create an access log entry.

        Args:
            actor: Name of the user performing the action
            action: The action performed (CREATE, TRANSITION, ADJUST, etc.)
            entity_type: Type of entity (GRN, PICKLIST, TRANSFER, etc.)
            entity_id: ID or business number of the affected entity
            old_values: Previous values (for updates)
            new_values: New values (for creates/updates)
            details: Human-readable description

        Returns:
            The created AccessLog entry. The caller's commit persists it
            together with the change it describes.
        """
        entry = AccessLog(
            actor=actor,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            old_values=old_values,
            new_values=new_values,
            details=details,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def log_transition(
        self,
        actor: str,
        entity_type: str,
        entity_id: Any,
        old_status: str,
        new_status: str,
    ) -> AccessLog:
        """Log a status transition."""
        return await self.log(
            actor=actor,
            action="TRANSITION",
            entity_type=entity_type,
            entity_id=entity_id,
            old_values={"status": old_status},
            new_values={"status": new_status},
            details=f"{entity_type} {entity_id}: {old_status} -> {new_status}",
        )

    async def get_logs(
        self,
        entity_type: Optional[str] = None,
        actor: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[AccessLog], int]:
        """Get access logs with optional filters, newest first."""
        stmt = select(AccessLog)
        count_stmt = select(func.count(AccessLog.id))

        if entity_type:
            stmt = stmt.where(AccessLog.entity_type == entity_type)
            count_stmt = count_stmt.where(AccessLog.entity_type == entity_type)
        if actor:
            stmt = stmt.where(AccessLog.actor == actor)
            count_stmt = count_stmt.where(AccessLog.actor == actor)

        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = stmt.order_by(AccessLog.timestamp.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total
