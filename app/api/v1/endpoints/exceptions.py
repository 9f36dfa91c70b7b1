"""Warehouse exception API endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from app.api.deps import DB, CurrentActor, ExpectedVersion
from app.schemas.base import ApiResponse, StatusUpdate
from app.schemas.warehouse_exception import (
    ExceptionCreate,
    AcceptPartialRequest,
    ExceptionResponse,
)
from app.services.exception_service import ExceptionService

router = APIRouter()


@router.get("", response_model=ApiResponse[List[ExceptionResponse]])
async def list_exceptions(
    db: DB,
    status: Optional[str] = None,
    category: Optional[str] = Query(None, pattern="^(inbound|inventory|outbound|qc)$"),
    priority: Optional[str] = Query(None, pattern="^(critical|medium|low)$"),
):
    """Exceptions ordered critical first, then newest."""
    exceptions = await ExceptionService(db).get_exceptions(status=status, category=category, priority=priority)
    return ApiResponse(data=[ExceptionResponse.model_validate(e) for e in exceptions])


@router.post("", response_model=ApiResponse[ExceptionResponse], status_code=status.HTTP_201_CREATED)
async def report_exception(data: ExceptionCreate, db: DB, actor: CurrentActor):
    exc = await ExceptionService(db).report_exception(
        priority=data.priority,
        category=data.category,
        title=data.title,
        actor=actor,
        description=data.description,
    )
    return ApiResponse(data=ExceptionResponse.model_validate(exc))


@router.get("/export")
async def export_exceptions(db: DB, status: Optional[str] = None):
    content = await ExceptionService(db).export_csv(status=status)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=exceptions.csv"},
    )


@router.get("/{exception_id}", response_model=ApiResponse[ExceptionResponse])
async def get_exception(exception_id: str, db: DB):
    exc = await ExceptionService(db).get_exception(exception_id)
    return ApiResponse(data=ExceptionResponse.model_validate(exc))


@router.put("/{exception_id}/status", response_model=ApiResponse[ExceptionResponse])
async def update_exception_status(
    exception_id: str,
    data: StatusUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """open -> investigating -> resolved, one step at a time."""
    exc = await ExceptionService(db).update_status(
        exception_id, new_status=data.status, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=ExceptionResponse.model_validate(exc))


@router.post("/{exception_id}/reject-shipment", response_model=ApiResponse[ExceptionResponse])
async def reject_shipment(exception_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    """Resolve an inbound exception by rejecting the shipment."""
    exc = await ExceptionService(db).reject_shipment(exception_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=ExceptionResponse.model_validate(exc))


@router.post("/{exception_id}/accept-partial", response_model=ApiResponse[ExceptionResponse])
async def accept_partial(
    exception_id: str,
    data: AcceptPartialRequest,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """Resolve an inbound exception by accepting part of the shipment."""
    exc = await ExceptionService(db).accept_partial(
        exception_id,
        accepted_quantity=data.accepted_quantity,
        actor=actor,
        expected_version=expected_version,
    )
    return ApiResponse(data=ExceptionResponse.model_validate(exc))
