"""Service for picklists, pickers, batch picking, multi-order picks and routes."""
import logging
from typing import List, Optional
import uuid

from sqlalchemy import select, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models.outbound import (
    Picker,
    PicklistOrder,
    PicklistOrigin,
    BatchOrder,
    MultiOrderPick,
    RouteOptimization,
)
from app.services.audit_service import AuditService
from app.services.common import check_version, generate_number, get_or_404, utcnow
from app.services.route_optimizer import RoutePlan, get_route_optimizer
from app.services.state_machine import (
    PicklistStatus,
    BatchStatus,
    RouteStatus,
    validate_transition,
)


logger = logging.getLogger(__name__)

# Dashboard tab predicates; "queued" is a status some upstream feeds send
AUTO_VIEW_STATUSES = (PicklistStatus.PENDING, "queued")
MANUAL_VIEW_STATUSES = (PicklistStatus.ASSIGNED, PicklistStatus.PICKING)

PRIORITY_RANK = {"urgent": 0, "high": 1, "standard": 2}


class PickingService:
    """Picking & fulfillment engine."""

    def __init__(self, db: AsyncSession, route_optimizer=None):
        self.db = db
        self.audit = AuditService(db)
        self.route_optimizer = route_optimizer or get_route_optimizer()

    # ==================== PICKLISTS ====================

    async def get_picklists(
        self,
        view: Optional[str] = None,
        origin: Optional[str] = None,
        status: Optional[str] = None,
        zone: Optional[str] = None,
    ) -> List[PicklistOrder]:
        """
        List picklists.

        view applies the dashboard's auto/manual tab predicate; origin filters
        on the stored discriminator.
        """
        stmt = select(PicklistOrder)

        has_picker = and_(PicklistOrder.picker.is_not(None), PicklistOrder.picker != "")
        if view == "auto":
            stmt = stmt.where(and_(~has_picker, PicklistOrder.status.in_(AUTO_VIEW_STATUSES)))
        elif view == "manual":
            stmt = stmt.where(or_(has_picker, PicklistOrder.status.in_(MANUAL_VIEW_STATUSES)))
        elif view is not None:
            raise ValidationError(f"Unknown view '{view}'", {"allowed": ["auto", "manual"]})

        if origin:
            stmt = stmt.where(PicklistOrder.origin == origin)
        if status:
            stmt = stmt.where(PicklistOrder.status == status)
        if zone:
            stmt = stmt.where(PicklistOrder.zone == zone)

        result = await self.db.execute(stmt.order_by(PicklistOrder.created_at))
        picklists = list(result.scalars().all())
        return sorted(picklists, key=lambda p: PRIORITY_RANK.get(p.priority, 3))

    async def get_order_flow(self) -> dict:
        """
        Overview "live order flow": picklist counts per status plus the
        open picklists, most urgent first, capped at ORDER_FLOW_LIMIT.
        """
        stmt = select(PicklistOrder.status, func.count()).group_by(PicklistOrder.status)
        counts = {s: 0 for s in PicklistStatus.all()}
        for status, count in (await self.db.execute(stmt)).all():
            counts[status] = count

        stmt = (
            select(PicklistOrder)
            .where(PicklistOrder.status != PicklistStatus.COMPLETED)
            .order_by(PicklistOrder.created_at)
        )
        open_picklists = list((await self.db.execute(stmt)).scalars().all())
        open_picklists.sort(key=lambda p: PRIORITY_RANK.get(p.priority, 3))
        return {"counts": counts, "orders": open_picklists[:settings.ORDER_FLOW_LIMIT]}

    async def get_picklist(self, identifier: str) -> PicklistOrder:
        """Look a picklist up by id or by orderId."""
        try:
            picklist_id = uuid.UUID(str(identifier))
        except ValueError:
            stmt = select(PicklistOrder).where(PicklistOrder.order_id == identifier)
        else:
            stmt = select(PicklistOrder).where(PicklistOrder.id == picklist_id)

        picklist = (await self.db.execute(stmt)).scalar_one_or_none()
        if picklist is None:
            raise NotFoundError.for_entity("Picklist", identifier)
        return picklist

    async def create_picklist(
        self,
        order_id: str,
        customer: str,
        items: int,
        actor: str,
        priority: str = "standard",
        zone: Optional[str] = None,
        origin: str = PicklistOrigin.MANUAL,
    ) -> PicklistOrder:
        existing = await self.db.execute(select(PicklistOrder).where(PicklistOrder.order_id == order_id))
        if existing.scalar_one_or_none():
            raise ValidationError(f"Picklist for order '{order_id}' already exists", {"orderId": order_id})

        picklist = PicklistOrder(
            order_id=order_id,
            customer=customer,
            items=items,
            priority=priority,
            zone=zone,
            origin=origin,
            status=PicklistStatus.PENDING,
        )
        self.db.add(picklist)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="PICKLIST", entity_id=order_id,
            new_values={"origin": origin, "items": items, "priority": priority},
        )

        await self.db.commit()
        await self.db.refresh(picklist)
        logger.info(f"Created {origin} picklist for order {order_id}")
        return picklist

    async def assign_picker(
        self,
        identifier: str,
        picker_name: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> PicklistOrder:
        """Assign a picker: pending -> assigned, picker becomes busy."""
        picklist = await self.get_picklist(identifier)
        check_version(picklist, expected_version, "Picklist")
        picker = await self.get_picker_by_name(picker_name)

        if picker.on_break:
            logger.warning(f"Rejected assignment of {picklist.order_id}: {picker.name} is on break")
            raise InvalidTransitionError(f"Picker {picker.name} is on break and cannot take orders")

        old_status = picklist.status
        validate_transition("picklist", old_status, PicklistStatus.ASSIGNED)

        picklist.picker = picker.name
        picklist.picker_ref = picker.id
        picklist.status = PicklistStatus.ASSIGNED
        picker.active_orders += 1

        await self.audit.log(
            actor=actor, action="ASSIGN", entity_type="PICKLIST", entity_id=picklist.order_id,
            old_values={"status": old_status},
            new_values={"status": picklist.status, "picker": picker.name},
        )

        await self.db.commit()
        await self.db.refresh(picklist)
        logger.info(f"Picklist {picklist.order_id} assigned to {picker.name}")
        return picklist

    async def update_picklist_status(
        self,
        identifier: str,
        new_status: str,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> PicklistOrder:
        picklist = await self.get_picklist(identifier)
        check_version(picklist, expected_version, "Picklist")

        old_status = picklist.status
        validate_transition("picklist", old_status, new_status)
        if new_status == PicklistStatus.ASSIGNED:
            raise InvalidTransitionError("Picklists are assigned through the assign action, which names the picker")

        if new_status == PicklistStatus.COMPLETED:
            picklist.completed_at = utcnow()
            if picklist.picker_ref is not None:
                picker = await self.db.get(Picker, picklist.picker_ref)
                if picker is not None:
                    picker.active_orders = max(0, picker.active_orders - 1)
                    picker.completed_today += 1

        picklist.status = new_status
        await self.audit.log_transition(actor, "PICKLIST", picklist.order_id, old_status, new_status)

        await self.db.commit()
        await self.db.refresh(picklist)
        logger.info(f"Picklist {picklist.order_id}: {old_status} -> {new_status}")
        return picklist

    # ==================== PICKERS ====================

    async def get_pickers(self, zone: Optional[str] = None) -> List[Picker]:
        stmt = select(Picker).order_by(Picker.name)
        if zone:
            stmt = stmt.where(Picker.zone == zone)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_picker_by_name(self, name: str) -> Picker:
        """Pickers are addressed by name from the dashboard, or by pickerId."""
        stmt = select(Picker).where(or_(Picker.name == name, Picker.picker_id == name))
        picker = (await self.db.execute(stmt)).scalar_one_or_none()
        if picker is None:
            raise NotFoundError.for_entity("Picker", name)
        return picker

    async def get_picker_orders(self, identifier: str) -> List[PicklistOrder]:
        """Open picklists held by one picker."""
        try:
            picker = await get_or_404(self.db, Picker, uuid.UUID(str(identifier)), "Picker")
        except ValueError:
            picker = await self.get_picker_by_name(identifier)

        stmt = (
            select(PicklistOrder)
            .where(PicklistOrder.picker_ref == picker.id)
            .where(PicklistOrder.status != PicklistStatus.COMPLETED)
            .order_by(PicklistOrder.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_picker(
        self,
        name: str,
        actor: str,
        zone: Optional[str] = None,
        pick_rate: float = 0,
    ) -> Picker:
        existing = await self.db.execute(select(Picker).where(Picker.name == name))
        if existing.scalar_one_or_none():
            raise ValidationError(f"Picker '{name}' already exists", {"name": name})

        picker = Picker(
            picker_id=await generate_number(self.db, Picker.picker_id, "PKR"),
            name=name,
            zone=zone,
            pick_rate=pick_rate,
        )
        self.db.add(picker)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="PICKER", entity_id=picker.picker_id)

        await self.db.commit()
        await self.db.refresh(picker)
        return picker

    async def set_picker_break(
        self,
        picker_id: uuid.UUID,
        on_break: bool,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> Picker:
        picker = await get_or_404(self.db, Picker, picker_id, "Picker")
        check_version(picker, expected_version, "Picker")

        if picker.on_break == on_break:
            state = "on break" if on_break else "off break"
            raise InvalidTransitionError(f"Picker {picker.name} is already {state}")
        if on_break and picker.active_orders > 0:
            raise InvalidTransitionError(
                f"Picker {picker.name} has {picker.active_orders} active orders and cannot go on break"
            )

        old_status = picker.status
        picker.on_break = on_break
        await self.audit.log_transition(actor, "PICKER", picker.picker_id, old_status, picker.status)

        await self.db.commit()
        await self.db.refresh(picker)
        return picker

    # ==================== BATCHES ====================

    async def get_batches(self, status: Optional[str] = None) -> List[BatchOrder]:
        stmt = select(BatchOrder).order_by(BatchOrder.created_at.desc())
        if status:
            stmt = stmt.where(BatchOrder.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_batch(self, zone: str, actor: str, picker: Optional[str] = None) -> BatchOrder:
        """Group the zone's pending, unbatched picklists into a new batch."""
        stmt = select(PicklistOrder).where(
            PicklistOrder.zone == zone,
            PicklistOrder.status == PicklistStatus.PENDING,
            PicklistOrder.batch_ref.is_(None),
        )
        picklists = list((await self.db.execute(stmt)).scalars().all())
        if not picklists:
            raise ValidationError(f"No pending picklists to batch in zone {zone}", {"zone": zone})

        batch = BatchOrder(
            batch_id=await generate_number(self.db, BatchOrder.batch_id, "BATCH"),
            zone=zone,
            picker=picker,
            order_count=len(picklists),
            total_items=sum(p.items for p in picklists),
            status=BatchStatus.PREPARING,
            progress=0,
        )
        self.db.add(batch)
        await self.db.flush()
        for picklist in picklists:
            picklist.batch_ref = batch.id

        await self.audit.log(
            actor=actor, action="CREATE", entity_type="BATCH", entity_id=batch.batch_id,
            new_values={"zone": zone, "orders": [p.order_id for p in picklists]},
        )

        await self.db.commit()
        await self.db.refresh(batch)
        logger.info(f"Created batch {batch.batch_id} with {batch.order_count} orders")
        return batch

    async def update_batch_progress(
        self,
        batch_id: uuid.UUID,
        progress: int,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> BatchOrder:
        """Progress only increases; the first progress starts picking and 100 completes."""
        batch = await get_or_404(self.db, BatchOrder, batch_id, "Batch")
        check_version(batch, expected_version, "Batch")

        if batch.status == BatchStatus.COMPLETED:
            raise InvalidTransitionError(f"Batch {batch.batch_id} is already completed")
        if progress < batch.progress:
            raise InvalidTransitionError(
                f"Batch progress cannot decrease ({batch.progress} -> {progress})"
            )

        old_status = batch.status
        batch.progress = progress
        if progress >= 100:
            new_status = BatchStatus.COMPLETED
        elif progress > 0:
            new_status = BatchStatus.PICKING
        else:
            new_status = old_status

        if new_status != old_status:
            validate_transition("batch", old_status, new_status)
            batch.status = new_status
            await self.audit.log_transition(actor, "BATCH", batch.batch_id, old_status, new_status)
            logger.info(f"Batch {batch.batch_id}: {old_status} -> {new_status}")

        await self.db.commit()
        await self.db.refresh(batch)
        return batch

    # ==================== MULTI-ORDER PICKS ====================

    async def get_multi_order_picks(self) -> List[MultiOrderPick]:
        result = await self.db.execute(select(MultiOrderPick).order_by(MultiOrderPick.created_at.desc()))
        return list(result.scalars().all())

    async def create_multi_order_pick(
        self,
        orders: List[str],
        sku: str,
        total_qty: int,
        actor: str,
        product_name: Optional[str] = None,
        location: Optional[str] = None,
    ) -> MultiOrderPick:
        pick = MultiOrderPick(
            pick_id=await generate_number(self.db, MultiOrderPick.pick_id, "MOP"),
            orders=list(dict.fromkeys(orders)),
            sku=sku,
            product_name=product_name,
            location=location,
            total_qty=total_qty,
            picked_qty=0,
        )
        self.db.add(pick)
        await self.db.flush()
        await self.audit.log(
            actor=actor, action="CREATE", entity_type="MULTI_ORDER_PICK", entity_id=pick.pick_id,
            new_values={"orders": pick.orders, "sku": sku, "totalQty": total_qty},
        )

        await self.db.commit()
        await self.db.refresh(pick)
        return pick

    async def update_picked_qty(
        self,
        pick_id: uuid.UUID,
        picked_qty: int,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> MultiOrderPick:
        """Record picked quantity. status is re-derived from the new value."""
        pick = await get_or_404(self.db, MultiOrderPick, pick_id, "Multi-order pick")
        check_version(pick, expected_version, "Multi-order pick")

        if picked_qty < 0:
            raise ValidationError("pickedQty cannot be negative", {"field": "pickedQty"})
        if picked_qty < pick.picked_qty:
            raise InvalidTransitionError(
                f"pickedQty cannot decrease ({pick.picked_qty} -> {picked_qty})"
            )

        old_qty, old_status = pick.picked_qty, pick.status
        pick.picked_qty = picked_qty
        await self.audit.log(
            actor=actor, action="UPDATE", entity_type="MULTI_ORDER_PICK", entity_id=pick.pick_id,
            old_values={"pickedQty": old_qty, "status": old_status},
            new_values={"pickedQty": picked_qty, "status": pick.status},
        )

        await self.db.commit()
        await self.db.refresh(pick)
        return pick

    # ==================== ROUTES ====================

    async def get_routes(self, status: Optional[str] = None) -> List[RouteOptimization]:
        stmt = select(RouteOptimization).order_by(RouteOptimization.created_at.desc())
        if status:
            stmt = stmt.where(RouteOptimization.status == status)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_route(
        self,
        stops: int,
        actor: str,
        picker: Optional[str] = None,
        distance: float = 0,
        estimated_time: int = 0,
    ) -> RouteOptimization:
        route = RouteOptimization(
            route_id=await generate_number(self.db, RouteOptimization.route_id, "RT"),
            picker=picker,
            stops=stops,
            distance=distance,
            estimated_time=estimated_time,
            efficiency=0,
            status=RouteStatus.PLANNED,
        )
        self.db.add(route)
        await self.db.flush()
        await self.audit.log(actor=actor, action="CREATE", entity_type="ROUTE", entity_id=route.route_id)

        await self.db.commit()
        await self.db.refresh(route)
        return route

    async def optimize_route(
        self,
        route_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> RouteOptimization:
        """Run the configured optimizer and start the route: planned -> active."""
        route = await get_or_404(self.db, RouteOptimization, route_id, "Route")
        check_version(route, expected_version, "Route")
        validate_transition("route", route.status, RouteStatus.ACTIVE)

        plan = await self.route_optimizer.optimize(
            route.route_id,
            route.stops,
            RoutePlan(
                distance=float(route.distance),
                estimated_time=route.estimated_time,
                efficiency=route.efficiency,
            ),
        )
        route.distance = plan.distance
        route.estimated_time = plan.estimated_time
        route.efficiency = plan.efficiency

        old_status = route.status
        route.status = RouteStatus.ACTIVE
        await self.audit.log_transition(actor, "ROUTE", route.route_id, old_status, route.status)

        await self.db.commit()
        await self.db.refresh(route)
        logger.info(f"Route {route.route_id} optimized (efficiency {route.efficiency}%)")
        return route

    async def complete_route(
        self,
        route_id: uuid.UUID,
        actor: str,
        expected_version: Optional[int] = None,
    ) -> RouteOptimization:
        route = await get_or_404(self.db, RouteOptimization, route_id, "Route")
        check_version(route, expected_version, "Route")

        old_status = route.status
        validate_transition("route", old_status, RouteStatus.COMPLETED)
        route.status = RouteStatus.COMPLETED
        await self.audit.log_transition(actor, "ROUTE", route.route_id, old_status, route.status)

        await self.db.commit()
        await self.db.refresh(route)
        return route
