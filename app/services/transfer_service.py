"""Service for inter-warehouse transfers."""
import csv
import io
import logging
from typing import List, Optional, Tuple
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidTransitionError, NotFoundError
from app.models.transfer import WarehouseTransfer
from app.services.audit_service import AuditService
from app.services.common import check_version, generate_number, get_or_404, utcnow
from app.services.inventory_service import InventoryService
from app.services.state_machine import WarehouseTransferStatus, validate_transition


logger = logging.getLogger(__name__)

TRANSFER_EXPORT_HEADER = ["Transfer ID", "Destination", "Items", "Status", "Distance", "ETA", "Progress"]


class TransferService:
    """Transfer coordinator for shipments between sites."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def get_transfers(
        self,
        status: Optional[str] = None,
        destination: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[WarehouseTransfer], int]:
        """Get transfers with filters, newest first."""
        stmt = select(WarehouseTransfer)
        count_stmt = select(func.count(WarehouseTransfer.id))
        if status:
            stmt = stmt.where(WarehouseTransfer.status == status)
            count_stmt = count_stmt.where(WarehouseTransfer.status == status)
        if destination:
            stmt = stmt.where(WarehouseTransfer.destination.ilike(f"%{destination}%"))
            count_stmt = count_stmt.where(WarehouseTransfer.destination.ilike(f"%{destination}%"))

        total = (await self.db.execute(count_stmt)).scalar() or 0
        stmt = stmt.order_by(WarehouseTransfer.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def get_transfer(self, transfer_id: uuid.UUID) -> WarehouseTransfer:
        return await get_or_404(self.db, WarehouseTransfer, transfer_id, "Transfer")

    async def create_transfer(
        self,
        destination: str,
        items: int,
        actor: str,
        sku: Optional[str] = None,
        vehicle: Optional[str] = None,
    ) -> WarehouseTransfer:
        """Create a new transfer in pending status."""
        if sku:
            inventory = InventoryService(self.db)
            if await inventory.get_item_by_sku(sku) is None:
                raise NotFoundError.for_entity("Inventory item", sku)

        transfer = WarehouseTransfer(
            transfer_id=await self._generate_transfer_number(),
            destination=destination,
            items=items,
            sku=sku,
            vehicle=vehicle,
            status=WarehouseTransferStatus.PENDING,
            progress=0,
            created_by=actor,
        )
        self.db.add(transfer)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="TRANSFER", entity_id=transfer.transfer_id,
            new_values={"destination": destination, "items": items, "sku": sku},
        )

        await self.db.commit()
        await self.db.refresh(transfer)
        logger.info(f"Created transfer {transfer.transfer_id} to {destination}")
        return transfer

    async def update_status(
        self,
        transfer_id: uuid.UUID,
        new_status: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> WarehouseTransfer:
        """
        Move one step along pending -> loading -> en-route -> completed.

        Completing a transfer that names a SKU takes its items out of stock
        in the same transaction.
        """
        transfer = await get_or_404(self.db, WarehouseTransfer, transfer_id, "Transfer", for_update=True)
        check_version(transfer, expected_version, "Transfer")

        old_status = transfer.status
        try:
            validate_transition("warehouse_transfer", old_status, new_status)
        except InvalidTransitionError:
            logger.warning(f"Rejected transfer {transfer.transfer_id}: {old_status} -> {new_status}")
            raise

        if new_status == WarehouseTransferStatus.COMPLETED:
            transfer.progress = 100
            transfer.completed_at = utcnow()
            if transfer.sku:
                await InventoryService(self.db).apply_stock_delta(
                    sku=transfer.sku,
                    change=-transfer.items,
                    adjustment_type="Transfer Out",
                    actor=actor,
                    reason=f"Transfer {transfer.transfer_id} to {transfer.destination}",
                )

        transfer.status = new_status
        await self.audit.log_transition(actor, "TRANSFER", transfer.transfer_id, old_status, new_status)

        await self.db.commit()
        await self.db.refresh(transfer)
        logger.info(f"Transfer {transfer.transfer_id}: {old_status} -> {new_status}")
        return transfer

    async def record_telemetry(
        self,
        transfer_id: uuid.UUID,
        progress: int,
        distance: Optional[float] = None,
        eta: Optional[str] = None,
    ) -> WarehouseTransfer:
        """Store a tracking feed reading. Only en-route transfers are tracked."""
        transfer = await get_or_404(self.db, WarehouseTransfer, transfer_id, "Transfer")
        if transfer.status != WarehouseTransferStatus.EN_ROUTE:
            raise InvalidTransitionError(
                f"Transfer {transfer.transfer_id} is '{transfer.status}'; telemetry is only accepted en-route"
            )

        transfer.progress = progress
        if distance is not None:
            transfer.distance = distance
        if eta is not None:
            transfer.eta = eta

        await self.db.commit()
        await self.db.refresh(transfer)
        return transfer

    async def export_csv(self, status: Optional[str] = None) -> str:
        transfers, _ = await self.get_transfers(status=status, limit=10000)

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(TRANSFER_EXPORT_HEADER)
        for t in transfers:
            writer.writerow([
                t.transfer_id,
                t.destination,
                t.items,
                t.status,
                "" if t.distance is None else t.distance,
                t.eta or "",
                t.progress,
            ])
        return output.getvalue()

    async def _generate_transfer_number(self) -> str:
        """Generate unique transfer number: TRF-YYYYMMDD-XXXX"""
        return await generate_number(self.db, WarehouseTransfer.transfer_id, "TRF")
