"""Inter-warehouse transfer API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from app.api.deps import DB, CurrentActor, ExpectedVersion
from app.schemas.base import ApiResponse, StatusUpdate
from app.schemas.transfer import (
    WarehouseTransferCreate,
    WarehouseTransferResponse,
    TelemetryUpdate,
)
from app.services.transfer_service import TransferService

router = APIRouter()


@router.get("", response_model=ApiResponse[List[WarehouseTransferResponse]])
async def list_transfers(
    db: DB,
    status: Optional[str] = None,
    destination: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    transfers, _ = await TransferService(db).get_transfers(
        status=status, destination=destination, skip=skip, limit=limit
    )
    return ApiResponse(data=[WarehouseTransferResponse.model_validate(t) for t in transfers])


@router.post("", response_model=ApiResponse[WarehouseTransferResponse], status_code=status.HTTP_201_CREATED)
async def create_transfer(data: WarehouseTransferCreate, db: DB, actor: CurrentActor):
    transfer = await TransferService(db).create_transfer(
        destination=data.destination,
        items=data.items,
        actor=actor,
        sku=data.sku,
        vehicle=data.vehicle,
    )
    return ApiResponse(data=WarehouseTransferResponse.model_validate(transfer))


@router.get("/export")
async def export_transfers(db: DB, status: Optional[str] = None):
    content = await TransferService(db).export_csv(status=status)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=transfers.csv"},
    )


@router.get("/{transfer_id}", response_model=ApiResponse[WarehouseTransferResponse])
async def get_transfer(transfer_id: str, db: DB):
    transfer = await TransferService(db).get_transfer(transfer_id)
    return ApiResponse(data=WarehouseTransferResponse.model_validate(transfer))


@router.put("/{transfer_id}/status", response_model=ApiResponse[WarehouseTransferResponse])
async def update_transfer_status(
    transfer_id: str,
    data: StatusUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """One step along pending -> loading -> en-route -> completed."""
    transfer = await TransferService(db).update_status(
        transfer_id, new_status=data.status, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=WarehouseTransferResponse.model_validate(transfer))


@router.post("/{transfer_id}/track", response_model=ApiResponse[WarehouseTransferResponse])
async def record_telemetry(transfer_id: str, data: TelemetryUpdate, db: DB):
    """Tracking feed reading for an en-route transfer."""
    transfer = await TransferService(db).record_telemetry(
        transfer_id, progress=data.progress, distance=data.distance, eta=data.eta
    )
    return ApiResponse(data=WarehouseTransferResponse.model_validate(transfer))
