"""
Inventory ledger service.

current_stock is only ever changed by apply_stock_delta(), which writes the
matching StockAdjustment row in the same transaction.
"""
import csv
import io
import logging
from typing import List, Optional, Tuple
from datetime import date
import uuid

from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.derivations import StockAlert, inventory_health
from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models.inventory import (
    InventoryItem,
    StorageLocation,
    StockAdjustment,
    CycleCount,
    InternalTransfer,
    ReorderRequest,
)
from app.services.audit_service import AuditService
from app.services.common import check_version, generate_number, get_or_404, utcnow
from app.services.state_machine import (
    CycleCountStatus,
    InternalTransferStatus,
    validate_transition,
)


logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
INVENTORY_EXPORT_HEADER = ["SKU", "Product", "Category", "Stock", "Min", "Max", "Location", "Value"]


class InventoryService:
    """Service for stock levels, the adjustment ledger, cycle counts and bin moves."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # ==================== ITEMS ====================

    async def get_items(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
    ) -> List[InventoryItem]:
        stmt = select(InventoryItem).order_by(InventoryItem.sku)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(
                InventoryItem.sku.ilike(pattern),
                InventoryItem.product_name.ilike(pattern),
            ))
        if category:
            stmt = stmt.where(InventoryItem.category == category)
        if location:
            stmt = stmt.where(InventoryItem.location == location)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_item_by_sku(self, sku: str, for_update: bool = False) -> Optional[InventoryItem]:
        stmt = select(InventoryItem).where(InventoryItem.sku == sku)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get_item(self, sku: str) -> InventoryItem:
        item = await self.get_item_by_sku(sku)
        if item is None:
            raise NotFoundError.for_entity("Inventory item", sku)
        return item

    async def get_summary(self) -> dict:
        items = await self.get_items()
        alerts = [alert for item in items for alert in item.alerts]
        by_type = {t: 0 for t in ("low-stock", "out-of-stock", "overstock", "expiring")}
        for alert in alerts:
            by_type[alert.type] += 1

        return {
            "total_items": len(items),
            "total_units": sum(item.current_stock for item in items),
            "total_value": float(sum((item.value or 0) for item in items)),
            "low_stock": by_type["low-stock"],
            "out_of_stock": by_type["out-of-stock"],
            "overstock": by_type["overstock"],
            "expiring": by_type["expiring"],
            "health": inventory_health(len(items), sum(1 for item in items if item.alerts)),
        }

    # ==================== ALERTS ====================

    async def get_stock_alerts(
        self,
        alert_type: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> List[StockAlert]:
        """
        Alerts recomputed from the current items on every call.

        Nothing is stored, so an alert disappears exactly when the item no
        longer breaches its threshold.
        """
        alerts = [alert for item in await self.get_items() for alert in item.alerts]
        if alert_type:
            alerts = [a for a in alerts if a.type == alert_type]
        if priority:
            alerts = [a for a in alerts if a.priority == priority]
        return sorted(alerts, key=lambda a: (PRIORITY_ORDER.get(a.priority, 3), a.sku, a.type))

    # ==================== LEDGER ====================

    async def get_adjustments(
        self,
        sku: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[StockAdjustment], int]:
        stmt = select(StockAdjustment)
        count_stmt = select(func.count(StockAdjustment.id))
        if sku:
            stmt = stmt.where(StockAdjustment.sku == sku)
            count_stmt = count_stmt.where(StockAdjustment.sku == sku)

        total = (await self.db.execute(count_stmt)).scalar() or 0
        stmt = stmt.order_by(StockAdjustment.timestamp.desc()).offset(skip).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total

    async def apply_stock_delta(
        self,
        sku: str,
        change: int,
        adjustment_type: str,
        actor: str,
        reason: Optional[str] = None,
        product_name: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> StockAdjustment:
        """
        Apply one signed delta to one item and append the ledger row.

        Creates the item on its first stock event. Does not commit.
        """
        item = await self.get_item_by_sku(sku, for_update=True)
        if item is None:
            if expected_version is not None:
                raise NotFoundError.for_entity("Inventory item", sku)
            item = InventoryItem(sku=sku, product_name=product_name or sku, current_stock=0)
            self.db.add(item)
            logger.info(f"Created inventory item {sku} on first stock event")
        else:
            check_version(item, expected_version, "Inventory item")

        before = item.current_stock
        after = before + change
        if after < 0:
            logger.warning(f"Rejected adjustment on {sku}: {before} {change:+d} would go negative")
            raise ValidationError(
                f"Adjustment would make stock of {sku} negative ({before} {change:+d})",
                {"sku": sku, "currentStock": before, "change": change},
            )

        item.current_stock = after
        adjustment = StockAdjustment(
            adjustment_type=adjustment_type,
            sku=sku,
            product_name=item.product_name,
            change=change,
            stock_before=before,
            stock_after=after,
            reason=reason,
            user=actor,
            idempotency_key=idempotency_key,
        )
        self.db.add(adjustment)
        await self.db.flush()

        await self.audit.log(
            actor=actor,
            action="ADJUST",
            entity_type="INVENTORY_ITEM",
            entity_id=sku,
            old_values={"currentStock": before},
            new_values={"currentStock": after},
            details=f"{adjustment_type}: {change:+d} ({reason or 'no reason'})",
        )
        logger.info(f"Stock {sku}: {before} -> {after} ({adjustment_type})")
        return adjustment

    async def create_adjustment(
        self,
        sku: str,
        change: int,
        actor: str,
        reason: Optional[str] = None,
        adjustment_type: str = "Manual",
        product_name: Optional[str] = None,
        idempotency_key: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Tuple[StockAdjustment, bool]:
        """
        Record a manual adjustment.

        Returns (adjustment, created). A repeated idempotency key returns the
        original row with created=False and leaves stock untouched. When two
        requests race on the same key the loser's insert fails on the unique
        key; it rolls back and replays the winner's row.
        """
        if idempotency_key:
            existing = await self._find_adjustment_by_key(idempotency_key)
            if existing is not None:
                return self._replay(existing, idempotency_key, sku, change), False

        try:
            adjustment = await self.apply_stock_delta(
                sku=sku,
                change=change,
                adjustment_type=adjustment_type,
                actor=actor,
                reason=reason,
                product_name=product_name,
                idempotency_key=idempotency_key,
                expected_version=expected_version,
            )
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await self._find_adjustment_by_key(idempotency_key) if idempotency_key else None
            if existing is None:
                raise
            return self._replay(existing, idempotency_key, sku, change), False

        await self.db.refresh(adjustment)
        return adjustment, True

    async def _find_adjustment_by_key(self, idempotency_key: str) -> Optional[StockAdjustment]:
        stmt = select(StockAdjustment).where(StockAdjustment.idempotency_key == idempotency_key)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    def _replay(self, existing: StockAdjustment, idempotency_key: str, sku: str, change: int) -> StockAdjustment:
        if existing.sku != sku or existing.change != change:
            raise ValidationError(
                "Idempotency-Key was already used for a different adjustment",
                {"idempotencyKey": idempotency_key},
            )
        logger.info(f"Replayed adjustment for idempotency key {idempotency_key}")
        return existing

    # ==================== LOCATIONS ====================

    async def get_locations(
        self,
        zone: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[StorageLocation]:
        stmt = select(StorageLocation).order_by(StorageLocation.code)
        if zone:
            stmt = stmt.where(StorageLocation.zone == zone)
        if status:
            stmt = stmt.where(StorageLocation.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_location_by_code(self, code: str) -> Optional[StorageLocation]:
        stmt = select(StorageLocation).where(StorageLocation.code == code).with_for_update()
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def create_location(
        self,
        code: str,
        aisle: str,
        rack: int,
        actor: str,
        zone: Optional[str] = None,
        sku: Optional[str] = None,
        quantity: int = 0,
        restricted: bool = False,
    ) -> StorageLocation:
        """Register a bin. Its quantity counts towards the SKU, so the item must exist."""
        if await self.get_location_by_code(code):
            raise ValidationError(f"Location '{code}' already exists", {"code": code})
        if quantity and not sku:
            raise ValidationError("sku is required when quantity is set", {"field": "sku"})
        if sku and await self.get_item_by_sku(sku) is None:
            raise NotFoundError.for_entity("Inventory item", sku)

        if restricted:
            status = "restricted"
        else:
            status = "occupied" if quantity > 0 else "empty"

        location = StorageLocation(
            code=code,
            aisle=aisle,
            rack=rack,
            zone=zone,
            sku=sku if quantity > 0 else None,
            quantity=quantity,
            status=status,
        )
        self.db.add(location)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="LOCATION", entity_id=code)

        await self.db.commit()
        await self.db.refresh(location)
        return location

    # ==================== CYCLE COUNTS ====================

    async def get_cycle_counts(
        self,
        status: Optional[str] = None,
        zone: Optional[str] = None,
    ) -> List[CycleCount]:
        stmt = select(CycleCount).order_by(CycleCount.scheduled_date, CycleCount.count_id)
        if status:
            stmt = stmt.where(CycleCount.status == status)
        if zone:
            stmt = stmt.where(CycleCount.zone == zone)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_cycle_count(
        self,
        zone: str,
        scheduled_date: date,
        items_total: int,
        actor: str,
        assigned_to: Optional[str] = None,
    ) -> CycleCount:
        count = CycleCount(
            count_id=await generate_number(self.db, CycleCount.count_id, "CC"),
            zone=zone,
            assigned_to=assigned_to,
            scheduled_date=scheduled_date,
            items_total=items_total,
            status=CycleCountStatus.SCHEDULED,
        )
        self.db.add(count)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="CYCLE_COUNT", entity_id=count.count_id,
            new_values={"zone": zone, "itemsTotal": items_total},
        )

        await self.db.commit()
        await self.db.refresh(count)
        logger.info(f"Scheduled cycle count {count.count_id} for zone {zone}")
        return count

    async def _transition_cycle_count(
        self,
        count: CycleCount,
        new_status: str,
        actor: str,
    ) -> CycleCount:
        old_status = count.status
        validate_transition("cycle_count", old_status, new_status)
        count.status = new_status
        await self.audit.log_transition(actor, "CYCLE_COUNT", count.count_id, old_status, new_status)
        await self.db.commit()
        await self.db.refresh(count)
        logger.info(f"Cycle count {count.count_id}: {old_status} -> {new_status}")
        return count

    async def start_cycle_count(
        self,
        count_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> CycleCount:
        count = await get_or_404(self.db, CycleCount, count_id, "Cycle count")
        check_version(count, expected_version, "Cycle count")
        count.started_at = utcnow()
        return await self._transition_cycle_count(count, CycleCountStatus.IN_PROGRESS, actor)

    async def record_cycle_count_progress(
        self,
        count_id: uuid.UUID,
        items_counted: int,
        discrepancies: int,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> CycleCount:
        """Counters only move forward while the count is in progress."""
        count = await get_or_404(self.db, CycleCount, count_id, "Cycle count")
        check_version(count, expected_version, "Cycle count")

        if count.status != CycleCountStatus.IN_PROGRESS:
            raise InvalidTransitionError(
                f"Cycle count {count.count_id} is '{count.status}'; progress is only recorded while in-progress"
            )
        if items_counted > count.items_total:
            raise InvalidTransitionError(
                f"itemsCounted ({items_counted}) cannot exceed itemsTotal ({count.items_total})"
            )
        if items_counted < count.items_counted:
            raise InvalidTransitionError(
                f"itemsCounted cannot decrease ({count.items_counted} -> {items_counted})"
            )
        if discrepancies < count.discrepancies:
            raise InvalidTransitionError(
                f"discrepancies cannot decrease ({count.discrepancies} -> {discrepancies})"
            )

        old_values = {"itemsCounted": count.items_counted, "discrepancies": count.discrepancies}
        count.items_counted = items_counted
        count.discrepancies = discrepancies
        await self.audit.log(
            actor=actor, action="UPDATE", entity_type="CYCLE_COUNT", entity_id=count.count_id,
            old_values=old_values,
            new_values={"itemsCounted": items_counted, "discrepancies": discrepancies},
        )

        await self.db.commit()
        await self.db.refresh(count)
        return count

    async def complete_cycle_count(
        self,
        count_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
        require_full_count: Optional[bool] = None,
    ) -> CycleCount:
        count = await get_or_404(self.db, CycleCount, count_id, "Cycle count")
        check_version(count, expected_version, "Cycle count")

        require_full = settings.CYCLE_COUNT_REQUIRE_FULL_COUNT if require_full_count is None else require_full_count
        if (
            require_full
            and count.status == CycleCountStatus.IN_PROGRESS
            and not count.is_fully_counted
        ):
            logger.warning(
                f"Rejected completion of {count.count_id}: {count.items_counted}/{count.items_total} counted"
            )
            raise InvalidTransitionError(
                f"Cycle count {count.count_id} has only {count.items_counted} of {count.items_total} items counted",
                {"itemsCounted": count.items_counted, "itemsTotal": count.items_total},
            )

        count.completed_at = utcnow()
        return await self._transition_cycle_count(count, CycleCountStatus.COMPLETED, actor)

    # ==================== INTERNAL TRANSFERS ====================

    async def get_internal_transfers(self, status: Optional[str] = None) -> List[InternalTransfer]:
        stmt = select(InternalTransfer).order_by(InternalTransfer.timestamp.desc())
        if status:
            stmt = stmt.where(InternalTransfer.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_internal_transfer(
        self,
        from_location: str,
        to_location: str,
        sku: str,
        quantity: int,
        actor: str,
    ) -> InternalTransfer:
        if from_location == to_location:
            raise ValidationError("fromLocation and toLocation must differ")

        item = await self.get_item(sku)
        source = await self.get_location_by_code(from_location)
        if source is not None and (source.sku != sku or source.quantity < quantity):
            raise ValidationError(
                f"Location {from_location} does not hold {quantity} x {sku}",
                {"location": from_location, "sku": source.sku, "quantity": source.quantity},
            )

        transfer = InternalTransfer(
            transfer_id=await generate_number(self.db, InternalTransfer.transfer_id, "IT"),
            from_location=from_location,
            to_location=to_location,
            sku=sku,
            product_name=item.product_name,
            quantity=quantity,
            status=InternalTransferStatus.PENDING,
            initiated_by=actor,
        )
        self.db.add(transfer)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="INTERNAL_TRANSFER", entity_id=transfer.transfer_id,
            new_values={"from": from_location, "to": to_location, "sku": sku, "quantity": quantity},
        )

        await self.db.commit()
        await self.db.refresh(transfer)
        return transfer

    async def update_internal_transfer_status(
        self,
        transfer_id: uuid.UUID,
        new_status: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> InternalTransfer:
        transfer = await get_or_404(self.db, InternalTransfer, transfer_id, "Internal transfer", for_update=True)
        check_version(transfer, expected_version, "Internal transfer")

        old_status = transfer.status
        validate_transition("internal_transfer", old_status, new_status)

        if new_status == InternalTransferStatus.COMPLETED:
            await self._move_between_bins(transfer)
            transfer.completed_at = utcnow()

        transfer.status = new_status
        await self.audit.log_transition(actor, "INTERNAL_TRANSFER", transfer.transfer_id, old_status, new_status)

        await self.db.commit()
        await self.db.refresh(transfer)
        logger.info(f"Internal transfer {transfer.transfer_id}: {old_status} -> {new_status}")
        return transfer

    async def _move_between_bins(self, transfer: InternalTransfer) -> None:
        """
        Move the quantity from the source bin to the destination bin.

        The SKU total is unchanged; only bin quantities and the item's
        primary location move.
        """
        item = await self.get_item_by_sku(transfer.sku, for_update=True)
        if item is None:
            raise NotFoundError.for_entity("Inventory item", transfer.sku)

        source = await self.get_location_by_code(transfer.from_location)
        source_emptied = source is None
        if source is not None:
            if source.sku != transfer.sku or source.quantity < transfer.quantity:
                raise InvalidTransitionError(
                    f"Location {source.code} no longer holds {transfer.quantity} x {transfer.sku}"
                )
            source.quantity -= transfer.quantity
            if source.quantity == 0:
                source.sku = None
                source.status = "empty"
                source_emptied = True

        destination = await self.get_location_by_code(transfer.to_location)
        if destination is None:
            destination = StorageLocation(
                code=transfer.to_location,
                aisle=transfer.to_location.split("-")[0],
                rack=1,
                zone=source.zone if source is not None else None,
                quantity=0,
                status="empty",
            )
            self.db.add(destination)
        if destination.status == "restricted":
            raise InvalidTransitionError(f"Location {destination.code} is restricted")
        if destination.sku not in (None, transfer.sku) and destination.quantity > 0:
            raise InvalidTransitionError(
                f"Location {destination.code} already holds {destination.sku}"
            )
        destination.sku = transfer.sku
        destination.quantity += transfer.quantity
        destination.status = "occupied"

        if source_emptied and item.location in (None, transfer.from_location):
            item.location = transfer.to_location
        await self.db.flush()

    async def reassign_bins(
        self,
        from_zone: str,
        to_zone: str,
        actor: str,
        sku_filter: Optional[str] = None,
    ) -> dict:
        """
        Move every stocked bin of one zone into bins of another zone.

        Each source bin goes to a to-zone bin already holding the same SKU,
        otherwise to the next empty one. All moves are planned before any
        stock moves: if a single bin has nowhere to go nothing is moved.
        Every move is recorded as a completed internal transfer.
        """
        from_zone = from_zone.strip()
        to_zone = to_zone.strip()
        if from_zone == to_zone:
            raise ValidationError("fromZone and toZone must differ", {"zone": from_zone})

        stmt = (
            select(StorageLocation)
            .where(
                StorageLocation.zone == from_zone,
                StorageLocation.quantity > 0,
                StorageLocation.sku.is_not(None),
                StorageLocation.status != "restricted",
            )
            .order_by(StorageLocation.code)
        )
        if sku_filter:
            stmt = stmt.where(StorageLocation.sku.ilike(f"%{sku_filter.strip()}%"))
        sources = list((await self.db.execute(stmt)).scalars().all())
        if not sources:
            raise ValidationError(
                f"No stocked bins in zone {from_zone} match",
                {"fromZone": from_zone, "skuFilter": sku_filter},
            )

        stmt = (
            select(StorageLocation)
            .where(StorageLocation.zone == to_zone, StorageLocation.status != "restricted")
            .order_by(StorageLocation.code)
        )
        targets = list((await self.db.execute(stmt)).scalars().all())
        by_sku = {t.sku: t for t in targets if t.sku and t.quantity > 0}
        empty = [t for t in targets if t.quantity == 0]

        plan: List[Tuple[StorageLocation, StorageLocation]] = []
        unplaced: List[str] = []
        for source in sources:
            destination = by_sku.get(source.sku)
            if destination is None and empty:
                destination = empty.pop(0)
                by_sku[source.sku] = destination
            if destination is None:
                unplaced.append(source.code)
            else:
                plan.append((source, destination))
        if unplaced:
            raise ValidationError(
                f"Zone {to_zone} has no free bin for {len(unplaced)} source bin(s)",
                {"toZone": to_zone, "unplaced": unplaced},
            )

        transfer_ids = []
        units = 0
        for source, destination in plan:
            item = await self.get_item(source.sku)
            transfer = InternalTransfer(
                transfer_id=await generate_number(self.db, InternalTransfer.transfer_id, "IT"),
                from_location=source.code,
                to_location=destination.code,
                sku=source.sku,
                product_name=item.product_name,
                quantity=source.quantity,
                status=InternalTransferStatus.COMPLETED,
                initiated_by=actor,
                completed_at=utcnow(),
            )
            self.db.add(transfer)
            units += source.quantity
            await self._move_between_bins(transfer)
            transfer_ids.append(transfer.transfer_id)

        await self.audit.log(
            actor=actor,
            action="REASSIGN",
            entity_type="LOCATION",
            entity_id=f"{from_zone}->{to_zone}",
            new_values={"bins": len(plan), "units": units, "skuFilter": sku_filter},
            details=f"Bin reassignment {from_zone} -> {to_zone}: {len(plan)} bins, {units} units",
        )
        await self.db.commit()
        logger.info(f"Reassigned {len(plan)} bins from zone {from_zone} to {to_zone} ({units} units)")
        return {
            "from_zone": from_zone,
            "to_zone": to_zone,
            "bins_moved": len(plan),
            "units_moved": units,
            "transfer_ids": transfer_ids,
        }

    # ==================== REORDERS ====================

    async def get_reorders(self, sku: Optional[str] = None) -> List[ReorderRequest]:
        stmt = select(ReorderRequest).order_by(ReorderRequest.created_at.desc())
        if sku:
            stmt = stmt.where(ReorderRequest.sku == sku)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_reorder(
        self,
        sku: str,
        quantity: int,
        actor: str,
        priority: str = "medium",
        notes: Optional[str] = None,
    ) -> ReorderRequest:
        """Record a reorder request. Stock and alerts are left as they are."""
        await self.get_item(sku)
        reorder = ReorderRequest(
            sku=sku,
            quantity=quantity,
            priority=priority,
            notes=notes,
            requested_by=actor,
        )
        self.db.add(reorder)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="REORDER", entity_id=sku,
            new_values={"quantity": quantity, "priority": priority},
        )

        await self.db.commit()
        await self.db.refresh(reorder)
        return reorder

    # ==================== EXPORT ====================

    async def export_csv(self, category: Optional[str] = None) -> str:
        items = await self.get_items(category=category)

        output = io.StringIO()
        writer = csv.writer(output, lineterminator="\n")
        writer.writerow(INVENTORY_EXPORT_HEADER)
        for item in items:
            writer.writerow([
                item.sku,
                item.product_name,
                item.category or "",
                item.current_stock,
                item.min_stock,
                item.max_stock,
                item.location or "",
                item.value,
            ])
        return output.getvalue()
