"""
Route optimizers for picking routes.

The optimizing algorithm lives outside this service. An optimizer takes the
current route figures and returns new distance, estimated time and
efficiency.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from app.config import settings
from app.core.exceptions import NetworkError


logger = logging.getLogger(__name__)


@dataclass
class RoutePlan:
    distance: float
    estimated_time: int
    efficiency: int


class IdentityRouteOptimizer:
    """Used when no optimizer endpoint is configured: the route is kept as planned."""

    async def optimize(self, route_id: str, stops: int, plan: RoutePlan) -> RoutePlan:
        return plan


class HttpRouteOptimizer:
    """
    Delegates to an external optimizer over HTTP.

    POSTs {"routeId", "stops", "distance", "estimatedTime"} and expects
    {"distance", "estimatedTime", "efficiency"}, bare or inside a
    {"data": ...} envelope.
    """

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def optimize(self, route_id: str, stops: int, plan: RoutePlan) -> RoutePlan:
        payload = {
            "routeId": route_id,
            "stops": stops,
            "distance": plan.distance,
            "estimatedTime": plan.estimated_time,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                body = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Route optimizer failed for {route_id}: {e}")
                raise NetworkError(f"Route optimizer unavailable for {route_id}")

        data = body.get("data", body) if isinstance(body, dict) else {}
        try:
            efficiency = int(data.get("efficiency", plan.efficiency))
            return RoutePlan(
                distance=float(data.get("distance", plan.distance)),
                estimated_time=int(data.get("estimatedTime", plan.estimated_time)),
                efficiency=max(0, min(100, efficiency)),
            )
        except (TypeError, ValueError):
            raise NetworkError(f"Route optimizer returned an unusable plan for {route_id}")


def get_route_optimizer(url: Optional[str] = None):
    """Optimizer configured by ROUTE_OPTIMIZER_URL."""
    url = url if url is not None else settings.ROUTE_OPTIMIZER_URL
    if url:
        return HttpRouteOptimizer(url, timeout=settings.ROUTE_OPTIMIZER_TIMEOUT)
    return IdentityRouteOptimizer()
