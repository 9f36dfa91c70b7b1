from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Receiving
    inbound,
    # Picking, batching, routes
    outbound,
    # Stock ledger, locations, cycle counts
    inventory,
    # Site-to-site transfers
    transfers,
    # Quality & compliance
    quality,
    # Staff, shifts, leave, training
    workforce,
    # Operational exceptions
    exceptions,
    # Devices & machinery
    equipment,
    # Zones, access logs, SKU upload, overview metrics
    utilities,
)

api_router = APIRouter(prefix="/api/v1")

# ==================== Inbound ====================
api_router.include_router(
    inbound.router,
    prefix="/warehouse/inbound",
    tags=["Inbound"]
)

# ==================== Outbound ====================
api_router.include_router(
    outbound.router,
    prefix="/warehouse/outbound",
    tags=["Outbound"]
)

# ==================== Inventory ====================
api_router.include_router(
    inventory.router,
    prefix="/warehouse/inventory",
    tags=["Inventory"]
)

# ==================== Transfers ====================
api_router.include_router(
    transfers.router,
    prefix="/warehouse/transfers",
    tags=["Transfers"]
)

# ==================== Quality Control ====================
api_router.include_router(
    quality.router,
    prefix="/warehouse/qc",
    tags=["Quality Control"]
)

# ==================== Workforce ====================
api_router.include_router(
    workforce.router,
    prefix="/warehouse/workforce",
    tags=["Workforce"]
)

# ==================== Exceptions ====================
api_router.include_router(
    exceptions.router,
    prefix="/warehouse/exceptions",
    tags=["Exceptions"]
)

# ==================== Equipment ====================
api_router.include_router(
    equipment.router,
    prefix="/warehouse/equipment",
    tags=["Equipment"]
)

# ==================== Utilities & Metrics ====================
api_router.include_router(
    utilities.router,
    prefix="/warehouse",
    tags=["Utilities"]
)
