"""Inventory API endpoints: items, alerts, the adjustment ledger, bins, cycle counts and bin moves."""
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from app.api.deps import DB, CurrentActor, ExpectedVersion, IdempotencyKey
from app.schemas.base import ApiResponse, StatusUpdate
from app.schemas.inventory import (
    InventoryItemResponse,
    InventorySummary,
    StockAlertResponse,
    StorageLocationCreate,
    StorageLocationResponse,
    AdjustmentCreate,
    AdjustmentResponse,
    CycleCountCreate,
    CycleCountProgress,
    CycleCountResponse,
    InternalTransferCreate,
    InternalTransferResponse,
    ReorderCreate,
    ReorderResponse,
)
from app.services.inventory_service import InventoryService

router = APIRouter()


# ==================== ITEMS ====================

@router.get("/summary", response_model=ApiResponse[InventorySummary])
async def inventory_summary(db: DB):
    summary = await InventoryService(db).get_summary()
    return ApiResponse(data=InventorySummary.model_validate(summary))


@router.get("/items", response_model=ApiResponse[List[InventoryItemResponse]])
async def list_items(
    db: DB,
    search: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
):
    items = await InventoryService(db).get_items(search=search, category=category, location=location)
    return ApiResponse(data=[InventoryItemResponse.model_validate(i) for i in items])


@router.get("/items/{sku}", response_model=ApiResponse[InventoryItemResponse])
async def get_item(sku: str, db: DB):
    item = await InventoryService(db).get_item(sku)
    return ApiResponse(data=InventoryItemResponse.model_validate(item))


@router.get("/alerts", response_model=ApiResponse[List[StockAlertResponse]])
async def list_alerts(
    db: DB,
    type: Optional[str] = Query(None, pattern="^(low-stock|out-of-stock|overstock|expiring)$"),
    priority: Optional[str] = Query(None, pattern="^(high|medium|low)$"),
):
    """Alerts derived from current stock; never stored."""
    alerts = await InventoryService(db).get_stock_alerts(alert_type=type, priority=priority)
    return ApiResponse(data=[StockAlertResponse.model_validate(a) for a in alerts])


@router.get("/export")
async def export_inventory(db: DB, category: Optional[str] = None):
    content = await InventoryService(db).export_csv(category=category)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=inventory.csv"},
    )


# ==================== ADJUSTMENTS ====================

@router.get("/adjustments", response_model=ApiResponse[List[AdjustmentResponse]])
async def list_adjustments(
    db: DB,
    sku: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """Ledger rows, newest first."""
    adjustments, _ = await InventoryService(db).get_adjustments(sku=sku, skip=skip, limit=limit)
    return ApiResponse(data=[AdjustmentResponse.model_validate(a) for a in adjustments])


@router.post("/adjustments", response_model=ApiResponse[AdjustmentResponse], status_code=status.HTTP_201_CREATED)
async def create_adjustment(
    data: AdjustmentCreate,
    response: Response,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
    idempotency_key: IdempotencyKey,
):
    """
    Apply a signed stock change.

    A replayed Idempotency-Key answers 200 with the original ledger row.
    """
    adjustment, created = await InventoryService(db).create_adjustment(
        sku=data.sku,
        change=data.change,
        actor=actor,
        reason=data.reason,
        adjustment_type=data.type,
        product_name=data.product_name,
        idempotency_key=idempotency_key,
        expected_version=expected_version,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return ApiResponse(data=AdjustmentResponse.model_validate(adjustment))


# ==================== LOCATIONS ====================

@router.get("/locations", response_model=ApiResponse[List[StorageLocationResponse]])
async def list_locations(db: DB, zone: Optional[str] = None, status: Optional[str] = None):
    locations = await InventoryService(db).get_locations(zone=zone, status=status)
    return ApiResponse(data=[StorageLocationResponse.model_validate(loc) for loc in locations])


@router.post("/locations", response_model=ApiResponse[StorageLocationResponse], status_code=status.HTTP_201_CREATED)
async def create_location(data: StorageLocationCreate, db: DB, actor: CurrentActor):
    location = await InventoryService(db).create_location(
        code=data.code,
        aisle=data.aisle,
        rack=data.rack,
        actor=actor,
        zone=data.zone,
        sku=data.sku,
        quantity=data.quantity,
        restricted=data.restricted,
    )
    return ApiResponse(data=StorageLocationResponse.model_validate(location))


# ==================== CYCLE COUNTS ====================

@router.get("/cycle-counts", response_model=ApiResponse[List[CycleCountResponse]])
async def list_cycle_counts(db: DB, status: Optional[str] = None, zone: Optional[str] = None):
    counts = await InventoryService(db).get_cycle_counts(status=status, zone=zone)
    return ApiResponse(data=[CycleCountResponse.model_validate(c) for c in counts])


@router.post("/cycle-counts", response_model=ApiResponse[CycleCountResponse], status_code=status.HTTP_201_CREATED)
async def create_cycle_count(data: CycleCountCreate, db: DB, actor: CurrentActor):
    count = await InventoryService(db).create_cycle_count(
        zone=data.zone,
        scheduled_date=data.scheduled_date,
        items_total=data.items_total,
        actor=actor,
        assigned_to=data.assigned_to,
    )
    return ApiResponse(data=CycleCountResponse.model_validate(count))


@router.post("/cycle-counts/{count_id}/start", response_model=ApiResponse[CycleCountResponse])
async def start_cycle_count(count_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    count = await InventoryService(db).start_cycle_count(count_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=CycleCountResponse.model_validate(count))


@router.put("/cycle-counts/{count_id}/progress", response_model=ApiResponse[CycleCountResponse])
async def record_cycle_count_progress(
    count_id: str,
    data: CycleCountProgress,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    count = await InventoryService(db).record_cycle_count_progress(
        count_id,
        items_counted=data.items_counted,
        discrepancies=data.discrepancies,
        actor=actor,
        expected_version=expected_version,
    )
    return ApiResponse(data=CycleCountResponse.model_validate(count))


@router.post("/cycle-counts/{count_id}/complete", response_model=ApiResponse[CycleCountResponse])
async def complete_cycle_count(count_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    """in-progress -> completed; partial counts are rejected unless the policy allows them."""
    count = await InventoryService(db).complete_cycle_count(count_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=CycleCountResponse.model_validate(count))


# ==================== INTERNAL TRANSFERS ====================

@router.get("/transfers", response_model=ApiResponse[List[InternalTransferResponse]])
async def list_internal_transfers(db: DB, status: Optional[str] = None):
    transfers = await InventoryService(db).get_internal_transfers(status=status)
    return ApiResponse(data=[InternalTransferResponse.model_validate(t) for t in transfers])


@router.post("/transfers", response_model=ApiResponse[InternalTransferResponse], status_code=status.HTTP_201_CREATED)
async def create_internal_transfer(data: InternalTransferCreate, db: DB, actor: CurrentActor):
    transfer = await InventoryService(db).create_internal_transfer(
        from_location=data.from_location,
        to_location=data.to_location,
        sku=data.sku,
        quantity=data.quantity,
        actor=actor,
    )
    return ApiResponse(data=InternalTransferResponse.model_validate(transfer))


@router.put("/transfers/{transfer_id}/status", response_model=ApiResponse[InternalTransferResponse])
async def update_internal_transfer_status(
    transfer_id: str,
    data: StatusUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """pending -> in-transit -> completed; completion moves the bin quantities."""
    transfer = await InventoryService(db).update_internal_transfer_status(
        transfer_id, new_status=data.status, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=InternalTransferResponse.model_validate(transfer))


# ==================== REORDERS ====================

@router.get("/reorder", response_model=ApiResponse[List[ReorderResponse]])
async def list_reorders(db: DB, sku: Optional[str] = None):
    reorders = await InventoryService(db).get_reorders(sku=sku)
    return ApiResponse(data=[ReorderResponse.model_validate(r) for r in reorders])


@router.post("/reorder", response_model=ApiResponse[ReorderResponse], status_code=status.HTTP_201_CREATED)
async def create_reorder(data: ReorderCreate, db: DB, actor: CurrentActor):
    reorder = await InventoryService(db).create_reorder(
        sku=data.sku,
        quantity=data.quantity,
        actor=actor,
        priority=data.priority,
        notes=data.notes,
    )
    return ApiResponse(data=ReorderResponse.model_validate(reorder))
