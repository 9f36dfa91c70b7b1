"""
Async HTTP client for the warehouse API.

One coroutine per operation. Responses are accepted either wrapped in the
{"success": ..., "data": ...} envelope or bare; errors come back as the same
domain exceptions the server raises.
"""
import logging
import math
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.core.exceptions import (
    ERRORS_BY_KIND,
    ERRORS_BY_STATUS,
    NetworkError,
    ValidationError,
    WarehouseError,
)


logger = logging.getLogger(__name__)


def unwrap_envelope(body: Any) -> Any:
    """Return the payload of an enveloped response, or the body itself when bare."""
    if isinstance(body, dict) and "data" in body and "success" in body:
        return body["data"]
    return body


def error_from_response(response: httpx.Response) -> WarehouseError:
    """Map a non-2xx response onto the domain error taxonomy."""
    try:
        body = response.json()
    except ValueError:
        body = {}

    message = None
    kind = None
    details = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("detail")
        kind = body.get("type")
        details = body.get("details")
    if not isinstance(message, str):
        message = f"HTTP {response.status_code}"

    error_cls = ERRORS_BY_KIND.get(kind) or ERRORS_BY_STATUS.get(response.status_code) or NetworkError
    return error_cls(message, details if isinstance(details, dict) else {"status": response.status_code})


def validate_adjustment(sku: Optional[str], change: Any) -> None:
    if sku is None or not str(sku).strip():
        raise ValidationError("sku is required", {"field": "sku"})
    if isinstance(change, bool) or not isinstance(change, (int, float)):
        raise ValidationError("change must be a whole number", {"field": "change"})
    if isinstance(change, float) and (not math.isfinite(change) or not change.is_integer()):
        raise ValidationError("change must be a whole number", {"field": "change"})
    if change == 0:
        raise ValidationError("change must be non-zero", {"field": "change"})


def validate_discrepancy(discrepancy_type: Optional[str], notes: Optional[str]) -> None:
    if discrepancy_type is None or not str(discrepancy_type).strip():
        raise ValidationError("discrepancy type is required", {"field": "type"})
    if notes is None or not str(notes).strip():
        raise ValidationError("notes are required when logging a discrepancy", {"field": "notes"})


def _clean(params: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in params.items() if v is not None}


class WarehouseApiClient:
    """
    Client for /api/v1/warehouse.

    Usage:
        async with WarehouseApiClient(token=token) as api:
            grn = await api.create_grn("PO-9001", "Acme", 40)
            await api.start_grn(grn["id"], version=grn["version"])
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token = token
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.API_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "WarehouseApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    def _headers(self, version: Optional[int] = None, idempotency_key: Optional[str] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if version is not None:
            headers["If-Match"] = str(version)
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        version: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=_clean(params or {}),
                files=files,
                headers=self._headers(version, idempotency_key),
            )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} did not reach the server: {e}")
            raise NetworkError(f"{method} {path} failed: server unreachable")

        if response.status_code >= 400:
            raise error_from_response(response)

        if response.headers.get("content-type", "").startswith("text/csv"):
            return response.text
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            raise NetworkError(f"{method} {path} returned a body that is not JSON")

        if isinstance(body, dict) and body.get("success") is False:
            raise ERRORS_BY_KIND.get(body.get("type"), NetworkError)(body.get("error") or "Request failed")
        return unwrap_envelope(body)

    # ==================== INBOUND ====================

    async def list_grns(self, status: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/inbound/grns", params={"status": status})

    async def get_grn(self, grn_id: str) -> Dict:
        return await self._request("GET", f"/warehouse/inbound/grns/{grn_id}")

    async def create_grn(self, po_number: str, vendor: str, items: int) -> Dict:
        return await self._request(
            "POST", "/warehouse/inbound/grns", json={"poNumber": po_number, "vendor": vendor, "items": items}
        )

    async def start_grn(self, grn_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/inbound/grns/{grn_id}/start", version=version)

    async def complete_grn(self, grn_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/inbound/grns/{grn_id}/complete", version=version)

    async def log_discrepancy(
        self, grn_id: str, discrepancy_type: str, notes: str, version: Optional[int] = None
    ) -> Dict:
        validate_discrepancy(discrepancy_type, notes)
        return await self._request(
            "POST",
            f"/warehouse/inbound/grns/{grn_id}/discrepancy",
            json={"type": discrepancy_type, "notes": notes},
            version=version,
        )

    async def inbound_summary(self) -> Dict:
        return await self._request("GET", "/warehouse/inbound/summary")

    async def export_grns(self) -> str:
        return await self._request("GET", "/warehouse/inbound/grns/export")

    async def list_docks(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/inbound/docks")

    async def create_dock(self, name: str) -> Dict:
        return await self._request("POST", "/warehouse/inbound/docks", json={"name": name})

    async def update_dock(
        self,
        dock_id: str,
        status: str,
        truck: Optional[str] = None,
        vendor: Optional[str] = None,
        eta: Optional[str] = None,
        version: Optional[int] = None,
    ) -> Dict:
        return await self._request(
            "PUT",
            f"/warehouse/inbound/docks/{dock_id}",
            json={"status": status, "truck": truck, "vendor": vendor, "eta": eta},
            version=version,
        )

    # ==================== INVENTORY ====================

    async def inventory_summary(self) -> Dict:
        return await self._request("GET", "/warehouse/inventory/summary")

    async def list_items(self, category: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/inventory/items", params={"category": category})

    async def get_item(self, sku: str) -> Dict:
        return await self._request("GET", f"/warehouse/inventory/items/{sku}")

    async def list_stock_alerts(self, alert_type: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/inventory/alerts", params={"type": alert_type})

    async def export_inventory(self) -> str:
        return await self._request("GET", "/warehouse/inventory/export")

    async def list_locations(self, zone: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/inventory/locations", params={"zone": zone})

    async def create_location(self, code: str, aisle: str, rack: int = 1, zone: Optional[str] = None) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/inventory/locations",
            json={"code": code, "aisle": aisle, "rack": rack, "zone": zone},
        )

    async def list_adjustments(self, sku: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/inventory/adjustments", params={"sku": sku})

    async def create_adjustment(
        self,
        sku: str,
        change: int,
        reason: Optional[str] = None,
        adjustment_type: str = "Manual",
        idempotency_key: Optional[str] = None,
        version: Optional[int] = None,
    ) -> Dict:
        """Validated locally first: a blank sku or a non-integer change never reaches the server."""
        validate_adjustment(sku, change)
        return await self._request(
            "POST",
            "/warehouse/inventory/adjustments",
            json={"sku": sku.strip(), "change": int(change), "reason": reason, "type": adjustment_type},
            idempotency_key=idempotency_key,
            version=version,
        )

    async def list_cycle_counts(self, status: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/inventory/cycle-counts", params={"status": status})

    async def create_cycle_count(
        self, zone: str, scheduled_date: str, items_total: int, assigned_to: Optional[str] = None
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/inventory/cycle-counts",
            json={
                "zone": zone,
                "scheduledDate": scheduled_date,
                "itemsTotal": items_total,
                "assignedTo": assigned_to,
            },
        )

    async def start_cycle_count(self, count_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/inventory/cycle-counts/{count_id}/start", version=version)

    async def record_cycle_count_progress(
        self, count_id: str, items_counted: int, discrepancies: int, version: Optional[int] = None
    ) -> Dict:
        return await self._request(
            "PUT",
            f"/warehouse/inventory/cycle-counts/{count_id}/progress",
            json={"itemsCounted": items_counted, "discrepancies": discrepancies},
            version=version,
        )

    async def complete_cycle_count(self, count_id: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "POST", f"/warehouse/inventory/cycle-counts/{count_id}/complete", version=version
        )

    async def list_internal_transfers(self, status: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/inventory/transfers", params={"status": status})

    async def create_internal_transfer(self, from_location: str, to_location: str, sku: str, quantity: int) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/inventory/transfers",
            json={"fromLocation": from_location, "toLocation": to_location, "sku": sku, "quantity": quantity},
        )

    async def update_internal_transfer_status(
        self, transfer_id: str, status: str, version: Optional[int] = None
    ) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/inventory/transfers/{transfer_id}/status", json={"status": status}, version=version
        )

    async def list_reorders(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/inventory/reorder")

    async def create_reorder(self, sku: str, quantity: int, priority: str = "medium") -> Dict:
        return await self._request(
            "POST", "/warehouse/inventory/reorder", json={"sku": sku, "quantity": quantity, "priority": priority}
        )

    # ==================== OUTBOUND ====================

    async def list_picklists(
        self, view: Optional[str] = None, origin: Optional[str] = None, status: Optional[str] = None
    ) -> List[Dict]:
        return await self._request(
            "GET", "/warehouse/outbound/picklists", params={"view": view, "origin": origin, "status": status}
        )

    async def order_flow(self) -> Dict:
        return await self._request("GET", "/warehouse/outbound/order-flow")

    async def create_picklist(
        self,
        order_id: str,
        customer: str,
        items: int,
        priority: str = "standard",
        zone: Optional[str] = None,
        origin: str = "manual",
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/outbound/picklists",
            json={
                "orderId": order_id,
                "customer": customer,
                "items": items,
                "priority": priority,
                "zone": zone,
                "origin": origin,
            },
        )

    async def update_picklist_status(self, picklist_id: str, status: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/outbound/picklists/{picklist_id}", json={"status": status}, version=version
        )

    async def assign_picker(self, picklist_id: str, picker_name: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "POST",
            f"/warehouse/outbound/picklists/{picklist_id}/assign",
            json={"pickerName": picker_name},
            version=version,
        )

    async def list_pickers(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/outbound/pickers")

    async def create_picker(self, name: str, zone: Optional[str] = None, pick_rate: float = 0) -> Dict:
        return await self._request(
            "POST", "/warehouse/outbound/pickers", json={"name": name, "zone": zone, "pickRate": pick_rate}
        )

    async def list_picker_orders(self, picker: str) -> List[Dict]:
        return await self._request("GET", f"/warehouse/outbound/pickers/{picker}/orders")

    async def set_picker_break(self, picker_id: str, on_break: bool, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/outbound/pickers/{picker_id}/break", json={"onBreak": on_break}, version=version
        )

    async def list_batches(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/outbound/batches")

    async def create_batch(self, zone: str, picker: Optional[str] = None) -> Dict:
        return await self._request("POST", "/warehouse/outbound/batches", json={"zone": zone, "picker": picker})

    async def update_batch_progress(self, batch_id: str, progress: int, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/outbound/batches/{batch_id}", json={"progress": progress}, version=version
        )

    async def list_multi_order_picks(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/outbound/consolidated-picks")

    async def create_multi_order_pick(
        self,
        orders: List[str],
        sku: str,
        total_qty: int,
        product_name: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/outbound/consolidated-picks",
            json={
                "orders": orders,
                "sku": sku,
                "totalQty": total_qty,
                "productName": product_name,
                "location": location,
            },
        )

    async def update_picked_qty(self, pick_id: str, picked_qty: int, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT",
            f"/warehouse/outbound/consolidated-picks/{pick_id}",
            json={"pickedQty": picked_qty},
            version=version,
        )

    async def list_routes(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/outbound/routes")

    async def list_active_routes(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/outbound/routes/active/map")

    async def create_route(
        self, stops: int, picker: Optional[str] = None, distance: float = 0, estimated_time: int = 0
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/outbound/routes",
            json={"stops": stops, "picker": picker, "distance": distance, "estimatedTime": estimated_time},
        )

    async def optimize_route(self, route_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/outbound/routes/{route_id}/map", version=version)

    async def complete_route(self, route_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/outbound/routes/{route_id}/complete", version=version)

    # ==================== TRANSFERS ====================

    async def list_transfers(self, status: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/transfers", params={"status": status})

    async def get_transfer(self, transfer_id: str) -> Dict:
        return await self._request("GET", f"/warehouse/transfers/{transfer_id}")

    async def create_transfer(
        self, destination: str, items: int, sku: Optional[str] = None, vehicle: Optional[str] = None
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/transfers",
            json={"destination": destination, "items": items, "sku": sku, "vehicle": vehicle},
        )

    async def update_transfer_status(self, transfer_id: str, status: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/transfers/{transfer_id}/status", json={"status": status}, version=version
        )

    async def record_telemetry(
        self, transfer_id: str, progress: int, distance: Optional[float] = None, eta: Optional[str] = None
    ) -> Dict:
        return await self._request(
            "POST",
            f"/warehouse/transfers/{transfer_id}/track",
            json={"progress": progress, "distance": distance, "eta": eta},
        )

    async def export_transfers(self) -> str:
        return await self._request("GET", "/warehouse/transfers/export")

    # ==================== QUALITY ====================

    async def list_inspections(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/qc/inspections")

    async def create_inspection(
        self, batch_id: str, product_name: str, items_inspected: int, defects_found: int
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/qc/inspections",
            json={
                "batchId": batch_id,
                "productName": product_name,
                "itemsInspected": items_inspected,
                "defectsFound": defects_found,
            },
        )

    async def list_temperature_logs(self, zone: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/qc/temperature-logs", params={"zone": zone})

    async def create_temperature_log(self, zone: str, temperature: float, humidity: float) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/qc/temperature-logs",
            json={"zone": zone, "temperature": temperature, "humidity": humidity},
        )

    async def list_samples(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/qc/samples")

    async def create_sample(self, batch_id: str, product_name: str, test_type: str) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/qc/samples",
            json={"batchId": batch_id, "productName": product_name, "testType": test_type},
        )

    async def update_sample_result(self, sample_id: str, result: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/qc/samples/{sample_id}/update", json={"result": result}, version=version
        )

    async def list_rejections(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/qc/rejections")

    async def log_rejection(
        self, batch_id: str, product_name: str, reason: str, items: int, severity: str
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/qc/rejections",
            json={
                "batchId": batch_id,
                "productName": product_name,
                "reason": reason,
                "items": items,
                "severity": severity,
            },
        )

    async def list_compliance_checks(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/qc/checks")

    async def create_compliance_check(self, title: str, category: Optional[str] = None) -> Dict:
        return await self._request("POST", "/warehouse/qc/checks", json={"title": title, "category": category})

    async def toggle_check(self, check_id: str, completed: bool) -> Dict:
        return await self._request("PUT", f"/warehouse/qc/checks/{check_id}", json={"completed": completed})

    async def list_compliance_docs(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/qc/compliance-docs")

    async def create_compliance_doc(
        self, name: str, doc_type: str, expiry_date: str, issued_date: Optional[str] = None
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/qc/compliance-docs",
            json={"name": name, "type": doc_type, "expiryDate": expiry_date, "issuedDate": issued_date},
        )

    # ==================== WORKFORCE ====================

    async def list_staff(self, shift: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/workforce/staff", params={"shift": shift})

    async def add_staff(
        self, name: str, role: str, shift: str = "morning", hourly_rate: float = 0, productivity: int = 0
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/workforce/staff",
            json={
                "name": name,
                "role": role,
                "shift": shift,
                "hourlyRate": hourly_rate,
                "productivity": productivity,
            },
        )

    async def update_staff_status(self, staff_id: str, status: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/workforce/staff/{staff_id}", json={"status": status}, version=version
        )

    async def list_schedules(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/workforce/schedule")

    async def create_schedule(self, schedule_date: str, shift: str, required_staff: int) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/workforce/schedule",
            json={"date": schedule_date, "shift": shift, "requiredStaff": required_staff},
        )

    async def assign_staff(self, schedule_id: str, staff_ids: List[str], version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT",
            f"/warehouse/workforce/schedule/{schedule_id}/assign",
            json={"staffIds": staff_ids},
            version=version,
        )

    async def list_attendance(self, attendance_date: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/workforce/attendance", params={"date": attendance_date})

    async def list_performance(self, as_of: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/workforce/performance", params={"as_of": as_of})

    async def log_attendance(
        self,
        staff_id: str,
        attendance_date: str,
        check_in: Optional[str] = None,
        check_out: Optional[str] = None,
        status: str = "present",
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/workforce/attendance",
            json={
                "staffId": staff_id,
                "date": attendance_date,
                "checkIn": check_in,
                "checkOut": check_out,
                "status": status,
            },
        )

    async def list_leave_requests(self, status: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/workforce/leave-requests", params={"status": status})

    async def create_leave_request(
        self, staff_id: str, leave_type: str, start_date: str, end_date: str, reason: Optional[str] = None
    ) -> Dict:
        """days is computed by the server from the date span."""
        return await self._request(
            "POST",
            "/warehouse/workforce/leave-requests",
            json={
                "staffId": staff_id,
                "leaveType": leave_type,
                "startDate": start_date,
                "endDate": end_date,
                "reason": reason,
            },
        )

    async def update_leave_status(self, request_id: str, status: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/workforce/leave-requests/{request_id}/status", json={"status": status}, version=version
        )

    async def list_trainings(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/workforce/training")

    async def add_training(
        self, title: str, training_type: str, training_date: str, duration: str, instructor: str, capacity: int
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/workforce/training",
            json={
                "title": title,
                "type": training_type,
                "date": training_date,
                "duration": duration,
                "instructor": instructor,
                "capacity": capacity,
            },
        )

    async def enroll_staff(self, training_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/workforce/training/{training_id}/enroll", version=version)

    # ==================== EXCEPTIONS ====================

    async def list_exceptions(self, status: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/exceptions", params={"status": status})

    async def report_exception(
        self, priority: str, category: str, title: str, description: Optional[str] = None
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/exceptions",
            json={"priority": priority, "category": category, "title": title, "description": description},
        )

    async def update_exception_status(self, exception_id: str, status: str, version: Optional[int] = None) -> Dict:
        return await self._request(
            "PUT", f"/warehouse/exceptions/{exception_id}/status", json={"status": status}, version=version
        )

    async def reject_shipment(self, exception_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/exceptions/{exception_id}/reject-shipment", version=version)

    async def accept_partial(self, exception_id: str, accepted_quantity: int, version: Optional[int] = None) -> Dict:
        return await self._request(
            "POST",
            f"/warehouse/exceptions/{exception_id}/accept-partial",
            json={"acceptedQuantity": accepted_quantity},
            version=version,
        )

    async def export_exceptions(self) -> str:
        return await self._request("GET", "/warehouse/exceptions/export")

    # ==================== EQUIPMENT ====================

    async def list_devices(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/equipment/devices")

    async def register_device(
        self, name: str, device_type: str, serial_number: Optional[str] = None, assigned_to: Optional[str] = None
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/equipment/devices",
            json={"name": name, "type": device_type, "serialNumber": serial_number, "assignedTo": assigned_to},
        )

    async def list_machinery(self) -> List[Dict]:
        return await self._request("GET", "/warehouse/equipment/machinery")

    async def add_machinery(
        self, name: str, machine_type: str, zone: Optional[str] = None, operator: Optional[str] = None
    ) -> Dict:
        return await self._request(
            "POST",
            "/warehouse/equipment/machinery",
            json={"name": name, "type": machine_type, "zone": zone, "operator": operator},
        )

    async def report_issue(
        self, machine_id: str, issue: str, severity: str = "medium", version: Optional[int] = None
    ) -> Dict:
        return await self._request(
            "POST",
            f"/warehouse/equipment/machinery/{machine_id}/issue",
            json={"issue": issue, "severity": severity},
            version=version,
        )

    async def resolve_issue(self, machine_id: str, version: Optional[int] = None) -> Dict:
        return await self._request("POST", f"/warehouse/equipment/machinery/{machine_id}/resolve", version=version)

    # ==================== UTILITIES ====================

    async def list_zones(self) -> List[str]:
        return await self._request("GET", "/warehouse/utilities/zones")

    async def list_access_logs(self, entity_type: Optional[str] = None) -> List[Dict]:
        return await self._request("GET", "/warehouse/utilities/logs", params={"entity_type": entity_type})

    async def upload_skus(self, content: bytes, filename: str = "skus.csv") -> Dict:
        return await self._request(
            "POST",
            "/warehouse/utilities/upload-skus",
            files={"file": (filename, content, "text/csv")},
        )

    async def warehouse_metrics(self) -> Dict:
        return await self._request("GET", "/warehouse/metrics")

    async def reassign_bins(self, from_zone: str, to_zone: str, sku_filter: Optional[str] = None) -> Dict:
        """Both zones are required; the request is not sent without them."""
        if not (from_zone or "").strip() or not (to_zone or "").strip():
            raise ValidationError("fromZone and toZone are required", {"fields": ["fromZone", "toZone"]})
        return await self._request(
            "POST",
            "/warehouse/utilities/reassign-bins",
            json={"fromZone": from_zone.strip(), "toZone": to_zone.strip(), "skuFilter": sku_filter or None},
        )
