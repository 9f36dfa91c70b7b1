"""Outbound API endpoints: picklists, pickers, batch picking, consolidated picks and routes."""
from typing import List, Optional

from fastapi import APIRouter, Query, status

from app.api.deps import DB, CurrentActor, ExpectedVersion
from app.schemas.base import ApiResponse, StatusUpdate
from app.schemas.outbound import (
    PicklistCreate,
    PicklistAssignRequest,
    PicklistResponse,
    OrderFlowResponse,
    PickerCreate,
    PickerBreakRequest,
    PickerResponse,
    BatchCreate,
    BatchProgressUpdate,
    BatchResponse,
    MultiOrderPickCreate,
    PickedQtyUpdate,
    MultiOrderPickResponse,
    RouteCreate,
    RouteResponse,
)
from app.services.picking_service import PickingService
from app.services.state_machine import RouteStatus

router = APIRouter()


# ==================== PICKLISTS ====================

@router.get("/picklists", response_model=ApiResponse[List[PicklistResponse]])
async def list_picklists(
    db: DB,
    view: Optional[str] = Query(None, description="auto or manual dashboard tab"),
    origin: Optional[str] = Query(None, pattern="^(auto|manual)$"),
    status: Optional[str] = None,
    zone: Optional[str] = None,
):
    """List picklists ordered by priority, then age."""
    picklists = await PickingService(db).get_picklists(view=view, origin=origin, status=status, zone=zone)
    return ApiResponse(data=[PicklistResponse.model_validate(p) for p in picklists])


@router.post("/picklists", response_model=ApiResponse[PicklistResponse], status_code=status.HTTP_201_CREATED)
async def create_picklist(data: PicklistCreate, db: DB, actor: CurrentActor):
    picklist = await PickingService(db).create_picklist(
        order_id=data.order_id,
        customer=data.customer,
        items=data.items,
        actor=actor,
        priority=data.priority,
        zone=data.zone,
        origin=data.origin,
    )
    return ApiResponse(data=PicklistResponse.model_validate(picklist))


@router.get("/order-flow", response_model=ApiResponse[OrderFlowResponse])
async def order_flow(db: DB):
    flow = await PickingService(db).get_order_flow()
    return ApiResponse(data=OrderFlowResponse.model_validate(flow))


@router.get("/picklists/{picklist_id}", response_model=ApiResponse[PicklistResponse])
async def get_picklist(picklist_id: str, db: DB):
    """Look up by id or orderId."""
    picklist = await PickingService(db).get_picklist(picklist_id)
    return ApiResponse(data=PicklistResponse.model_validate(picklist))


@router.put("/picklists/{picklist_id}", response_model=ApiResponse[PicklistResponse])
async def update_picklist_status(
    picklist_id: str,
    data: StatusUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    picklist = await PickingService(db).update_picklist_status(
        picklist_id, new_status=data.status, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=PicklistResponse.model_validate(picklist))


@router.post("/picklists/{picklist_id}/assign", response_model=ApiResponse[PicklistResponse])
async def assign_picker(
    picklist_id: str,
    data: PicklistAssignRequest,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    """Assign a picker by name: pending -> assigned."""
    picklist = await PickingService(db).assign_picker(
        picklist_id, picker_name=data.picker_name, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=PicklistResponse.model_validate(picklist))


# ==================== PICKERS ====================

@router.get("/pickers", response_model=ApiResponse[List[PickerResponse]])
async def list_pickers(db: DB, zone: Optional[str] = None):
    pickers = await PickingService(db).get_pickers(zone=zone)
    return ApiResponse(data=[PickerResponse.model_validate(p) for p in pickers])


@router.post("/pickers", response_model=ApiResponse[PickerResponse], status_code=status.HTTP_201_CREATED)
async def create_picker(data: PickerCreate, db: DB, actor: CurrentActor):
    picker = await PickingService(db).create_picker(
        name=data.name, actor=actor, zone=data.zone, pick_rate=data.pick_rate
    )
    return ApiResponse(data=PickerResponse.model_validate(picker))


@router.get("/pickers/{picker_id}/orders", response_model=ApiResponse[List[PicklistResponse]])
async def list_picker_orders(picker_id: str, db: DB):
    """Open picklists held by a picker (by id, pickerId or name)."""
    picklists = await PickingService(db).get_picker_orders(picker_id)
    return ApiResponse(data=[PicklistResponse.model_validate(p) for p in picklists])


@router.put("/pickers/{picker_id}/break", response_model=ApiResponse[PickerResponse])
async def set_picker_break(
    picker_id: str,
    data: PickerBreakRequest,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    picker = await PickingService(db).set_picker_break(
        picker_id, on_break=data.on_break, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=PickerResponse.model_validate(picker))


# ==================== BATCHES ====================

@router.get("/batches", response_model=ApiResponse[List[BatchResponse]])
async def list_batches(db: DB, status: Optional[str] = None):
    batches = await PickingService(db).get_batches(status=status)
    return ApiResponse(data=[BatchResponse.model_validate(b) for b in batches])


@router.post("/batches", response_model=ApiResponse[BatchResponse], status_code=status.HTTP_201_CREATED)
async def create_batch(data: BatchCreate, db: DB, actor: CurrentActor):
    """Batch the pending picklists of a zone."""
    batch = await PickingService(db).create_batch(zone=data.zone, actor=actor, picker=data.picker)
    return ApiResponse(data=BatchResponse.model_validate(batch))


@router.put("/batches/{batch_id}", response_model=ApiResponse[BatchResponse])
async def update_batch_progress(
    batch_id: str,
    data: BatchProgressUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    batch = await PickingService(db).update_batch_progress(
        batch_id, progress=data.progress, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=BatchResponse.model_validate(batch))


# ==================== CONSOLIDATED PICKS ====================

@router.get("/consolidated-picks", response_model=ApiResponse[List[MultiOrderPickResponse]])
async def list_consolidated_picks(db: DB):
    picks = await PickingService(db).get_multi_order_picks()
    return ApiResponse(data=[MultiOrderPickResponse.model_validate(p) for p in picks])


@router.post(
    "/consolidated-picks",
    response_model=ApiResponse[MultiOrderPickResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_consolidated_pick(data: MultiOrderPickCreate, db: DB, actor: CurrentActor):
    pick = await PickingService(db).create_multi_order_pick(
        orders=data.orders,
        sku=data.sku,
        total_qty=data.total_qty,
        actor=actor,
        product_name=data.product_name,
        location=data.location,
    )
    return ApiResponse(data=MultiOrderPickResponse.model_validate(pick))


@router.put("/consolidated-picks/{pick_id}", response_model=ApiResponse[MultiOrderPickResponse])
async def update_picked_qty(
    pick_id: str,
    data: PickedQtyUpdate,
    db: DB,
    actor: CurrentActor,
    expected_version: ExpectedVersion,
):
    pick = await PickingService(db).update_picked_qty(
        pick_id, picked_qty=data.picked_qty, actor=actor, expected_version=expected_version
    )
    return ApiResponse(data=MultiOrderPickResponse.model_validate(pick))


# ==================== ROUTES ====================

@router.get("/routes", response_model=ApiResponse[List[RouteResponse]])
async def list_routes(db: DB, status: Optional[str] = None):
    routes = await PickingService(db).get_routes(status=status)
    return ApiResponse(data=[RouteResponse.model_validate(r) for r in routes])


@router.post("/routes", response_model=ApiResponse[RouteResponse], status_code=status.HTTP_201_CREATED)
async def create_route(data: RouteCreate, db: DB, actor: CurrentActor):
    route = await PickingService(db).create_route(
        stops=data.stops,
        actor=actor,
        picker=data.picker,
        distance=data.distance,
        estimated_time=data.estimated_time,
    )
    return ApiResponse(data=RouteResponse.model_validate(route))


@router.get("/routes/active/map", response_model=ApiResponse[List[RouteResponse]])
async def list_active_routes(db: DB):
    routes = await PickingService(db).get_routes(status=RouteStatus.ACTIVE)
    return ApiResponse(data=[RouteResponse.model_validate(r) for r in routes])


@router.post("/routes/{route_id}/map", response_model=ApiResponse[RouteResponse])
async def optimize_route(route_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    """Run the route optimizer and start the route: planned -> active."""
    route = await PickingService(db).optimize_route(route_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=RouteResponse.model_validate(route))


@router.post("/routes/{route_id}/complete", response_model=ApiResponse[RouteResponse])
async def complete_route(route_id: str, db: DB, actor: CurrentActor, expected_version: ExpectedVersion):
    route = await PickingService(db).complete_route(route_id, actor=actor, expected_version=expected_version)
    return ApiResponse(data=RouteResponse.model_validate(route))
