"""Service for operational exceptions across inbound, inventory, outbound and QC."""
import csv
import io
import logging
from typing import List, Optional
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidTransitionError
from app.models.warehouse_exception import WarehouseException, ExceptionCategory
from app.services.audit_service import AuditService
from app.services.common import check_version, get_or_404, utcnow
from app.services.state_machine import ExceptionStatus, validate_transition


logger = logging.getLogger(__name__)

EXCEPTION_EXPORT_HEADER = ["Priority", "Category", "Title", "Status", "Resolution", "Timestamp"]
PRIORITY_RANK = {"critical": 0, "medium": 1, "low": 2}


class ExceptionService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def get_exceptions(
        self,
        status: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> List[WarehouseException]:
        stmt = select(WarehouseException).order_by(WarehouseException.timestamp.desc())
        if status:
            stmt = stmt.where(WarehouseException.status == status)
        if category:
            stmt = stmt.where(WarehouseException.category == category)
        if priority:
            stmt = stmt.where(WarehouseException.priority == priority)
        result = await self.db.execute(stmt)
        return sorted(result.scalars().all(), key=lambda e: PRIORITY_RANK.get(e.priority, 3))

    async def get_exception(self, exception_id: uuid.UUID) -> WarehouseException:
        return await get_or_404(self.db, WarehouseException, exception_id, "Exception")

    async def report_exception(
        self,
        priority: str,
        category: str,
        title: str,
        actor: str,
        description: Optional[str] = None,
    ) -> WarehouseException:
        exc = WarehouseException(
            priority=priority,
            category=category,
            title=title,
            description=description,
            status=ExceptionStatus.OPEN,
            reported_by=actor,
        )
        self.db.add(exc)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="EXCEPTION", entity_id=exc.id,
            new_values={"priority": priority, "category": category}, details=title,
        )

        await self.db.commit()
        await self.db.refresh(exc)
        if priority == "critical":
            logger.warning(f"Critical {category} exception reported: {title}")
        return exc

    async def update_status(
        self,
        exception_id: uuid.UUID,
        new_status: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> WarehouseException:
        """Adjacent forward steps only: open -> investigating -> resolved."""
        exc = await self.get_exception(exception_id)
        check_version(exc, expected_version, "Exception")
        validate_transition("exception", exc.status, new_status)
        resolution = "investigated" if new_status == ExceptionStatus.RESOLVED else None
        return await self._apply(exc, new_status, actor, resolution)

    async def reject_shipment(
        self,
        exception_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> WarehouseException:
        exc = await self._get_inbound_for_shortcut(exception_id, expected_version)
        return await self._apply(exc, ExceptionStatus.RESOLVED, actor, "shipment-rejected")

    async def accept_partial(
        self,
        exception_id: uuid.UUID,
        accepted_quantity: int,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> WarehouseException:
        exc = await self._get_inbound_for_shortcut(exception_id, expected_version)
        exc.accepted_quantity = accepted_quantity
        return await self._apply(exc, ExceptionStatus.RESOLVED, actor, "partial-accepted")

    async def export_csv(self, status: Optional[str] = None) -> str:
        exceptions = await self.get_exceptions(status=status)

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(EXCEPTION_EXPORT_HEADER)
        for e in exceptions:
            writer.writerow([e.priority, e.category, e.title, e.status, e.resolution or "", e.timestamp.isoformat()])
        return output.getvalue()

    async def _get_inbound_for_shortcut(
        self,
        exception_id: uuid.UUID,
        expected_version: Optional[int],
    ) -> WarehouseException:
        """rejectShipment / acceptPartial resolve inbound exceptions without investigation."""
        exc = await self.get_exception(exception_id)
        check_version(exc, expected_version, "Exception")
        if exc.category != ExceptionCategory.INBOUND:
            raise InvalidTransitionError(
                f"Only inbound exceptions can be resolved from the shipment (category is '{exc.category}')"
            )
        validate_transition("exception_shortcut", exc.status, ExceptionStatus.RESOLVED)
        return exc

    async def _apply(
        self,
        exc: WarehouseException,
        new_status: str,
        actor: str,
        resolution: Optional[str],
    ) -> WarehouseException:
        old_status = exc.status
        exc.status = new_status
        if new_status == ExceptionStatus.RESOLVED:
            exc.resolution = resolution
            exc.resolved_by = actor
            exc.resolved_at = utcnow()

        await self.audit.log_transition(actor, "EXCEPTION", exc.id, old_status, new_status)
        await self.db.commit()
        await self.db.refresh(exc)
        logger.info(f"Exception {exc.id}: {old_status} -> {new_status}" + (f" ({resolution})" if resolution else ""))
        return exc
