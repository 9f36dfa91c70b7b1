"""Utilities and overview API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, File, Query, UploadFile

from app.api.deps import DB, CurrentActor
from app.core.exceptions import ValidationError
from app.schemas.base import ApiResponse
from app.schemas.inventory import BinReassignmentRequest, BinReassignmentResult, SkuImportResult
from app.schemas.utilities import AccessLogResponse, WarehouseMetrics
from app.services.inventory_service import InventoryService
from app.services.utilities_service import UtilitiesService

router = APIRouter()


@router.get("/metrics", response_model=ApiResponse[WarehouseMetrics])
async def warehouse_metrics(db: DB):
    """Headline numbers for the overview screen."""
    metrics = await UtilitiesService(db).warehouse_metrics()
    return ApiResponse(data=WarehouseMetrics.model_validate(metrics))


@router.get("/utilities/zones", response_model=ApiResponse[List[str]])
async def list_zones(db: DB):
    zones = await UtilitiesService(db).list_zones()
    return ApiResponse(data=zones)


@router.get("/utilities/logs", response_model=ApiResponse[List[AccessLogResponse]])
async def list_access_logs(
    db: DB,
    entity_type: Optional[str] = None,
    actor: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    logs, _ = await UtilitiesService(db).get_access_logs(
        entity_type=entity_type, actor=actor, skip=skip, limit=limit
    )
    return ApiResponse(data=[AccessLogResponse.model_validate(log) for log in logs])


@router.post("/utilities/upload-skus", response_model=ApiResponse[SkuImportResult])
async def upload_skus(
    db: DB,
    actor: CurrentActor,
    file: UploadFile = File(...),
):
    """
    Bulk create or update inventory items from CSV.

    Columns: sku, productName, category, currentStock, minStock, maxStock,
    location, value. Only sku is required.
    """
    filename = file.filename or ""
    if filename and not filename.lower().endswith(".csv"):
        raise ValidationError("Unsupported file format. Please upload a CSV file.", {"filename": filename})

    raw = await file.read()
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ValidationError("CSV must be UTF-8 encoded", {"filename": filename})

    result = await UtilitiesService(db).upload_skus(content, actor=actor)
    return ApiResponse(data=SkuImportResult.model_validate(result))


@router.post("/utilities/reassign-bins", response_model=ApiResponse[BinReassignmentResult])
async def reassign_bins(data: BinReassignmentRequest, db: DB, actor: CurrentActor):
    """Move a zone's stocked bins into another zone, optionally only SKUs matching sku_filter."""
    result = await InventoryService(db).reassign_bins(
        from_zone=data.from_zone,
        to_zone=data.to_zone,
        actor=actor,
        sku_filter=data.sku_filter,
    )
    return ApiResponse(data=BinReassignmentResult.model_validate(result))
