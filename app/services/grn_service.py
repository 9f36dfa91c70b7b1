"""Service for goods receipt notes and receiving docks."""
import csv
import io
import logging
from typing import List, Optional, Tuple
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.derivations import putaway_pallets
from app.core.exceptions import ValidationError
from app.models.inbound import GoodsReceiptNote, DockSlot
from app.services.audit_service import AuditService
from app.services.common import check_version, get_or_404, require_text, utcnow
from app.services.state_machine import GRNStatus, DockStatus, validate_transition


logger = logging.getLogger(__name__)

GRN_EXPORT_HEADER = ["PO Number", "Vendor", "Status", "Items", "Timestamp"]


class GRNService:
    """Receiving pipeline: GRN lifecycle and dock occupancy."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # ==================== GRN QUERIES ====================

    async def get_grns(
        self,
        status: Optional[str] = None,
        vendor: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[GoodsReceiptNote], int]:
        stmt = select(GoodsReceiptNote)
        count_stmt = select(func.count(GoodsReceiptNote.id))
        if status:
            stmt = stmt.where(GoodsReceiptNote.status == status)
            count_stmt = count_stmt.where(GoodsReceiptNote.status == status)
        if vendor:
            stmt = stmt.where(GoodsReceiptNote.vendor.ilike(f"%{vendor}%"))
            count_stmt = count_stmt.where(GoodsReceiptNote.vendor.ilike(f"%{vendor}%"))

        total = (await self.db.execute(count_stmt)).scalar() or 0
        stmt = stmt.order_by(GoodsReceiptNote.timestamp.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def get_grn(self, grn_id: uuid.UUID) -> GoodsReceiptNote:
        return await get_or_404(self.db, GoodsReceiptNote, grn_id, "GRN")

    # ==================== GRN LIFECYCLE ====================

    async def create_grn(self, po_number: str, vendor: str, items: int, actor: str) -> GoodsReceiptNote:
        grn = GoodsReceiptNote(
            po_number=require_text(po_number, "poNumber"),
            vendor=require_text(vendor, "vendor"),
            items=items,
            status=GRNStatus.PENDING,
        )
        self.db.add(grn)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="GRN", entity_id=grn.id,
            new_values={"poNumber": grn.po_number, "vendor": grn.vendor, "items": items},
        )

        await self.db.commit()
        await self.db.refresh(grn)
        logger.info(f"Created GRN for {grn.po_number} ({items} items)")
        return grn

    async def _transition(self, grn: GoodsReceiptNote, new_status: str, actor: str) -> GoodsReceiptNote:
        old_status = grn.status
        validate_transition("grn", old_status, new_status)
        grn.status = new_status
        await self.audit.log_transition(actor, "GRN", grn.po_number, old_status, new_status)

        await self.db.commit()
        await self.db.refresh(grn)
        logger.info(f"GRN {grn.po_number}: {old_status} -> {new_status}")
        return grn

    async def start_grn(
        self,
        grn_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> GoodsReceiptNote:
        """Start counting: pending -> in-progress."""
        grn = await self.get_grn(grn_id)
        check_version(grn, expected_version, "GRN")
        validate_transition("grn", grn.status, GRNStatus.IN_PROGRESS)
        grn.started_at = utcnow()
        grn.received_by = actor
        return await self._transition(grn, GRNStatus.IN_PROGRESS, actor)

    async def complete_grn(
        self,
        grn_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> GoodsReceiptNote:
        """in-progress -> completed."""
        grn = await self.get_grn(grn_id)
        check_version(grn, expected_version, "GRN")
        validate_transition("grn", grn.status, GRNStatus.COMPLETED)
        grn.completed_at = utcnow()
        return await self._transition(grn, GRNStatus.COMPLETED, actor)

    async def log_discrepancy(
        self,
        grn_id: uuid.UUID,
        discrepancy_type: str,
        notes: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> GoodsReceiptNote:
        """in-progress -> discrepancy. Resolution happens outside this service."""
        if not notes or not notes.strip():
            logger.warning(f"Rejected discrepancy on GRN {grn_id}: notes missing")
            raise ValidationError("notes are required when logging a discrepancy", {"field": "notes"})

        grn = await self.get_grn(grn_id)
        check_version(grn, expected_version, "GRN")
        validate_transition("grn", grn.status, GRNStatus.DISCREPANCY)
        grn.discrepancy_type = require_text(discrepancy_type, "type")
        grn.discrepancy_notes = notes.strip()
        return await self._transition(grn, GRNStatus.DISCREPANCY, actor)

    # ==================== SUMMARY & EXPORT ====================

    async def get_summary(self) -> dict:
        stmt = select(GoodsReceiptNote.status, func.count(GoodsReceiptNote.id)).group_by(GoodsReceiptNote.status)
        by_status = {s: 0 for s in GRNStatus.all()}
        for status, count in (await self.db.execute(stmt)).all():
            by_status[status] = count

        completed_items = await self.db.execute(
            select(GoodsReceiptNote.items).where(GoodsReceiptNote.status == GRNStatus.COMPLETED)
        )
        pallets = sum(putaway_pallets(items) for items in completed_items.scalars().all())

        active_docks = (await self.db.execute(
            select(func.count(DockSlot.id)).where(DockSlot.status == DockStatus.ACTIVE)
        )).scalar() or 0

        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "putaway_pallets": pallets,
            "active_docks": active_docks,
        }

    async def export_csv(self, status: Optional[str] = None) -> str:
        grns, _ = await self.get_grns(status=status, limit=10000)

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(GRN_EXPORT_HEADER)
        for grn in grns:
            writer.writerow([grn.po_number, grn.vendor, grn.status, grn.items, grn.timestamp.isoformat()])
        return output.getvalue()

    # ==================== DOCKS ====================

    async def get_docks(self) -> List[DockSlot]:
        result = await self.db.execute(select(DockSlot).order_by(DockSlot.name))
        return list(result.scalars().all())

    async def create_dock(self, name: str, actor: str) -> DockSlot:
        existing = await self.db.execute(select(DockSlot).where(DockSlot.name == name))
        if existing.scalar_one_or_none():
            raise ValidationError(f"Dock '{name}' already exists", {"name": name})

        dock = DockSlot(name=require_text(name, "name"), status=DockStatus.EMPTY)
        self.db.add(dock)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="DOCK", entity_id=name)

        await self.db.commit()
        await self.db.refresh(dock)
        return dock

    async def update_dock(
        self,
        dock_id: uuid.UUID,
        new_status: str,
        actor: str,
        truck: Optional[str] = None,
        vendor: Optional[str] = None,
        eta: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> DockSlot:
        """
        Move a dock along empty <-> active <-> offline.

        Occupancy fields only describe an active dock and are cleared when it
        is emptied.
        """
        dock = await get_or_404(self.db, DockSlot, dock_id, "Dock")
        check_version(dock, expected_version, "Dock")

        old_status = dock.status
        validate_transition("dock", old_status, new_status)

        if new_status == DockStatus.EMPTY:
            dock.truck = dock.vendor = dock.eta = None
        elif new_status == DockStatus.ACTIVE:
            dock.truck = truck if truck is not None else dock.truck
            dock.vendor = vendor if vendor is not None else dock.vendor
            dock.eta = eta if eta is not None else dock.eta

        dock.status = new_status
        await self.audit.log_transition(actor, "DOCK", dock.name, old_status, new_status)

        await self.db.commit()
        await self.db.refresh(dock)
        logger.info(f"Dock {dock.name}: {old_status} -> {new_status}")
        return dock
