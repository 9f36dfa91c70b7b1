# Dashboard-side client: HTTP calls, caches, polling and action notifications
from app.client.api_client import WarehouseApiClient, unwrap_envelope
from app.client.cache import EntityCache, ComplianceChecklist
from app.client.notifications import ActionRunner, Notification
from app.client.poller import DashboardPoller, cache_loader

__all__ = [
    "WarehouseApiClient",
    "unwrap_envelope",
    "EntityCache",
    "ComplianceChecklist",
    "ActionRunner",
    "Notification",
    "DashboardPoller",
    "cache_loader",
]
