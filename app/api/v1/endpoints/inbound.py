"""Inbound receiving API endpoints: goods receipt notes and dock slots."""
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from app.api.deps import DB, CurrentActor, ExpectedVersion
from app.schemas.base import ApiResponse
from app.schemas.inbound import (
    GRNCreate,
    GRNResponse,
    DiscrepancyCreate,
    DockCreate,
    DockUpdate,
    DockResponse,
    InboundSummary,
)
from app.services.grn_service import GRNService

router = APIRouter()


# ==================== GRNs ====================

@router.get("/grns", response_model=ApiResponse[List[GRNResponse]])
async def list_grns(
    db: DB,
    status: Optional[str] = None,
    vendor: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List GRNs, newest first."""
    service = GRNService(db)
    grns, _ = await service.get_grns(status=status, vendor=vendor, skip=skip, limit=limit)
    return ApiResponse(data=[GRNResponse.model_validate(g) for g in grns])


@router.post("/grns", response_model=ApiResponse[GRNResponse], status_code=status.HTTP_201_CREATED)
async def create_grn(data: GRNCreate, db: DB, actor: CurrentActor):
    service = GRNService(db)
    grn = await service.create_grn(po_number=data.po_number, vendor=data.vendor, items=data.items, actor=actor)
    return ApiResponse(data=GRNResponse.model_validate(grn))


@router.get("/grns/export")
async def export_grns(db: DB, status: Optional[str] = None):
    """Download GRNs as CSV."""
    content = await GRNService(db).export_csv(status=status)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=grns.csv"},
    )


@router.get("/summary", response_model=ApiResponse[InboundSummary])
async def inbound_summary(db: DB):
    summary = await GRNService(db).get_summary()
    return ApiResponse(data=InboundSummary.model_validate(summary))


@router.get("/grns/{grn_id}", response_model=ApiResponse[GRNResponse])
async def get_grn(grn_id: str, db: DB):
    grn = await GRNService(db).get_grn(grn_id)
    return ApiResponse(data=GRNResponse.model_validate(grn))


@router.post("/grns/{grn_id}/start", response_model=ApiResponse[GRNResponse])
async def start_grn(grn_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    """pending -> in-progress"""
    grn = await GRNService(db).start_grn(grn_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=GRNResponse.model_validate(grn))


@router.post("/grns/{grn_id}/complete", response_model=ApiResponse[GRNResponse])
async def complete_grn(grn_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    """in-progress -> completed"""
    grn = await GRNService(db).complete_grn(grn_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=GRNResponse.model_validate(grn))


@router.post("/grns/{grn_id}/discrepancy", response_model=ApiResponse[GRNResponse])
async def log_discrepancy(
    grn_id: str,
    data: DiscrepancyCreate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """in-progress -> discrepancy, with the discrepancy type and notes."""
    grn = await GRNService(db).log_discrepancy(
        grn_id,
        discrepancy_type=data.type,
        notes=data.notes,
        actor=actor,
        expected_version=expected_version,
    )
    return ApiResponse(data=GRNResponse.model_validate(grn))


# ==================== DOCKS ====================

@router.get("/docks", response_model=ApiResponse[List[DockResponse]])
async def list_docks(db: DB):
    docks = await GRNService(db).get_docks()
    return ApiResponse(data=[DockResponse.model_validate(d) for d in docks])


@router.post("/docks", response_model=ApiResponse[DockResponse], status_code=status.HTTP_201_CREATED)
async def create_dock(data: DockCreate, db: DB, actor: CurrentActor):
    dock = await GRNService(db).create_dock(name=data.name, actor=actor)
    return ApiResponse(data=DockResponse.model_validate(dock))


@router.put("/docks/{dock_id}", response_model=ApiResponse[DockResponse])
async def update_dock(
    dock_id: str,
    data: DockUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    dock = await GRNService(db).update_dock(
        dock_id,
        new_status=data.status,
        actor=actor,
        truck=data.truck,
        vendor=data.vendor,
        eta=data.eta,
        expected_version=expected_version,
    )
    return ApiResponse(data=DockResponse.model_validate(dock))
