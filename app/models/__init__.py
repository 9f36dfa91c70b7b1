# Models module: importing it registers every table on Base.metadata
from app.models.audit_log import AccessLog
from app.models.inventory import (
    InventoryItem,
    StorageLocation,
    StockAdjustment,
    CycleCount,
    InternalTransfer,
    ReorderRequest,
)
from app.models.inbound import GoodsReceiptNote, DockSlot
from app.models.outbound import (
    Picker,
    PicklistOrder,
    BatchOrder,
    MultiOrderPick,
    RouteOptimization,
)
from app.models.transfer import WarehouseTransfer
from app.models.quality import (
    QCInspection,
    TemperatureLog,
    SampleTest,
    QCRejection,
    ComplianceCheck,
    ComplianceDoc,
)
from app.models.workforce import Staff, ShiftSchedule, Attendance, LeaveRequest, Training
from app.models.warehouse_exception import WarehouseException
from app.models.equipment import Device, Machine

__all__ = [
    "AccessLog",
    # Inventory
    "InventoryItem",
    "StorageLocation",
    "StockAdjustment",
    "CycleCount",
    "InternalTransfer",
    "ReorderRequest",
    # Inbound
    "GoodsReceiptNote",
    "DockSlot",
    # Outbound
    "Picker",
    "PicklistOrder",
    "BatchOrder",
    "MultiOrderPick",
    "RouteOptimization",
    # Transfers
    "WarehouseTransfer",
    # Quality
    "QCInspection",
    "TemperatureLog",
    "SampleTest",
    "QCRejection",
    "ComplianceCheck",
    "ComplianceDoc",
    # Workforce
    "Staff",
    "ShiftSchedule",
    "Attendance",
    "LeaveRequest",
    "Training",
    # Cross-cutting
    "WarehouseException",
    "Device",
    "Machine",
]
