"""Zones, access logs, bulk SKU import and the overview metrics."""
import csv
import io
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.derivations import distinct_sorted, inventory_health
from app.core.exceptions import ValidationError
from app.models.inbound import GoodsReceiptNote
from app.models.inventory import InventoryItem, StorageLocation, CycleCount
from app.models.outbound import PicklistOrder
from app.models.transfer import WarehouseTransfer
from app.models.warehouse_exception import WarehouseException, ExceptionPriority
from app.services.audit_service import AuditService
from app.services.inventory_service import InventoryService
from app.services.state_machine import (
    ExceptionStatus,
    GRNStatus,
    PicklistStatus,
    WarehouseTransferStatus,
)


logger = logging.getLogger(__name__)

SKU_IMPORT_COLUMNS = ["sku", "productName", "category", "currentStock", "minStock", "maxStock", "location", "value"]


class SkuImportRowError(Exception):
    """A single CSV row that cannot be imported."""
    pass


class UtilitiesService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def list_zones(self) -> List[str]:
        """Distinct zones known to bins, cycle counts and picklists."""
        zones: List[Optional[str]] = []
        for column in (StorageLocation.zone, CycleCount.zone, PicklistOrder.zone):
            result = await self.db.execute(select(column).distinct())
            zones.extend(result.scalars().all())
        return distinct_sorted(zones)

    async def get_access_logs(
        self,
        entity_type: Optional[str] = None,
        actor: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ):
        return await self.audit.get_logs(entity_type=entity_type, actor=actor, skip=skip, limit=limit)

    # ==================== SKU IMPORT ====================

    async def upload_skus(self, content: str, actor: str) -> Dict:
        """
        Create or update inventory items from a CSV export.

        Stock differences are written to the ledger as "Bulk Import"
        adjustments. Rows with a blank sku are skipped; malformed rows are
        skipped and reported in errors.
        """
        inventory = InventoryService(self.db)
        reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
        headers = [h.strip() for h in (reader.fieldnames or [])]
        if "sku" not in headers:
            raise ValidationError("CSV must have a 'sku' column", {"columns": SKU_IMPORT_COLUMNS})

        stats = {"imported": 0, "skipped": 0, "errors": []}

        for row_num, raw in enumerate(reader, start=2):
            row = {(k or "").strip(): (v or "").strip() for k, v in raw.items() if k}
            sku = row.get("sku", "")
            if not sku:
                stats["skipped"] += 1
                continue

            try:
                parsed = self._parse_row(row)
            except SkuImportRowError as e:
                stats["skipped"] += 1
                stats["errors"].append(f"Row {row_num} ({sku}): {e}")
                continue

            item = await inventory.get_item_by_sku(sku, for_update=True)
            target_stock = parsed.pop("current_stock")
            if item is None:
                item = InventoryItem(sku=sku, product_name=parsed.get("product_name") or sku, current_stock=0)
                self.db.add(item)
                await self.db.flush()

            for field, value in parsed.items():
                if value is not None:
                    setattr(item, field, value)

            if target_stock is not None and target_stock != item.current_stock:
                await inventory.apply_stock_delta(
                    sku=sku,
                    change=target_stock - item.current_stock,
                    adjustment_type="Bulk Import",
                    actor=actor,
                    reason="SKU upload",
                )
            stats["imported"] += 1

        await self.audit.log(
            actor=actor, action="IMPORT", entity_type="INVENTORY_ITEM",
            new_values={"imported": stats["imported"], "skipped": stats["skipped"]},
            details=f"SKU upload: {stats['imported']} imported, {stats['skipped']} skipped",
        )
        await self.db.commit()

        if stats["errors"]:
            logger.warning(f"SKU upload skipped {len(stats['errors'])} malformed rows")
        logger.info(f"SKU upload by {actor}: {stats['imported']} imported, {stats['skipped']} skipped")
        return stats

    def _parse_row(self, row: Dict[str, str]) -> Dict:
        def _int(key: str) -> Optional[int]:
            value = row.get(key, "")
            if value == "":
                return None
            try:
                number = int(value)
            except ValueError:
                raise SkuImportRowError(f"{key} must be a whole number, got '{value}'")
            if number < 0:
                raise SkuImportRowError(f"{key} cannot be negative")
            return number

        value: Optional[Decimal] = None
        if row.get("value"):
            try:
                value = Decimal(row["value"])
            except InvalidOperation:
                raise SkuImportRowError(f"value must be a number, got '{row['value']}'")

        return {
            "product_name": row.get("productName") or None,
            "category": row.get("category") or None,
            "current_stock": _int("currentStock"),
            "min_stock": _int("minStock"),
            "max_stock": _int("maxStock"),
            "location": row.get("location") or None,
            "value": value,
        }

    # ==================== OVERVIEW ====================

    async def warehouse_metrics(self) -> Dict[str, int]:
        async def _count(model, *criteria) -> int:
            stmt = select(func.count(model.id)).where(*criteria)
            return (await self.db.execute(stmt)).scalar() or 0

        inbound_queue = await _count(
            GoodsReceiptNote, GoodsReceiptNote.status.in_([GRNStatus.PENDING, GRNStatus.IN_PROGRESS])
        )
        outbound_queue = await _count(PicklistOrder, PicklistOrder.status != PicklistStatus.COMPLETED)
        active_transfers = await _count(
            WarehouseTransfer, WarehouseTransfer.status != WarehouseTransferStatus.COMPLETED
        )
        open_exceptions = await _count(WarehouseException, WarehouseException.status != ExceptionStatus.RESOLVED)
        critical_exceptions = await _count(
            WarehouseException,
            WarehouseException.status != ExceptionStatus.RESOLVED,
            WarehouseException.priority == ExceptionPriority.CRITICAL,
        )

        items = list((await self.db.execute(select(InventoryItem))).scalars().all())
        alerts = [alert for item in items for alert in item.alerts]
        high_alerts = sum(1 for alert in alerts if alert.priority == "high")

        return {
            "inbound_queue": inbound_queue,
            "outbound_queue": outbound_queue,
            "inventory_health": inventory_health(len(items), sum(1 for item in items if item.alerts)),
            "critical_alerts": high_alerts + critical_exceptions,
            "active_transfers": active_transfers,
            "open_exceptions": open_exceptions,
        }
