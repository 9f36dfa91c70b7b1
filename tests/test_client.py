import json

import httpx
import pytest

from app.client import WarehouseApiClient, unwrap_envelope
from app.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NetworkError,
    NotFoundError,
    Unreachable,
    ValidationError,
)


def _client(handler, token=None):
    return WarehouseApiClient(
        base_url="http://warehouse.test/api/v1",
        token=token,
        transport=httpx.MockTransport(handler),
    )


def test_unwrap_envelope():
    assert unwrap_envelope({"success": True, "data": [1, 2]}) == [1, 2]
    assert unwrap_envelope([1, 2]) == [1, 2]
    assert unwrap_envelope({"data": "no success flag"}) == {"data": "no success flag"}


async def test_enveloped_and_bare_bodies():
    def handler(request):
        if request.url.path.endswith("/docks"):
            return httpx.Response(200, json=[{"id": "d1"}])
        return httpx.Response(200, json={"success": True, "data": [{"id": "g1"}]})

    async with _client(handler) as api:
        assert await api.list_grns() == [{"id": "g1"}]
        assert await api.list_docks() == [{"id": "d1"}]


async def test_request_headers_and_params():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"id": "a1"}})

    async with _client(handler, token="tok") as api:
        await api.create_adjustment("SKU-1", 5.0, reason="Found", idempotency_key="key-1", version=3)
        await api.list_grns(status="pending")
        await api.list_grns()

    adjustment = seen[0]
    assert adjustment.url.path == "/api/v1/warehouse/inventory/adjustments"
    assert adjustment.headers["Authorization"] == "Bearer tok"
    assert adjustment.headers["If-Match"] == "3"
    assert adjustment.headers["Idempotency-Key"] == "key-1"
    assert json.loads(adjustment.content) == {"sku": "SKU-1", "change": 5, "reason": "Found", "type": "Manual"}

    assert seen[1].url.params["status"] == "pending"
    assert "status" not in seen[2].url.params


@pytest.mark.parametrize(
    "status_code,body,expected",
    [
        (400, {"success": False, "error": "bad", "type": "ValidationError"}, ValidationError),
        (404, {"success": False, "error": "missing", "type": "NotFound"}, NotFoundError),
        (409, {"success": False, "error": "stale", "type": "Conflict"}, ConflictError),
        (422, {"success": False, "error": "nope", "type": "InvalidTransition"}, InvalidTransitionError),
        (409, {"detail": "no type"}, ConflictError),
        (400, {"success": False, "error": "odd", "type": "Conflict"}, ConflictError),
        (500, {"success": False, "error": "boom", "type": "InternalError"}, NetworkError),
        (503, {}, NetworkError),
    ],
)
async def test_error_mapping(status_code, body, expected):
    async with _client(lambda request: httpx.Response(status_code, json=body)) as api:
        with pytest.raises(expected):
            await api.list_grns()


async def test_error_keeps_message_and_details():
    body = {"success": False, "error": "stale", "type": "Conflict", "details": {"currentVersion": 4}}
    async with _client(lambda request: httpx.Response(409, json=body)) as api:
        with pytest.raises(ConflictError) as exc_info:
            await api.start_grn("g1", version=3)
    assert exc_info.value.message == "stale"
    assert exc_info.value.details == {"currentVersion": 4}


async def test_unreachable_server_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as api:
        with pytest.raises(Unreachable):
            await api.list_grns()


async def test_success_false_body_raises():
    body = {"success": False, "error": "rejected", "type": "ValidationError"}
    async with _client(lambda request: httpx.Response(200, json=body)) as api:
        with pytest.raises(ValidationError):
            await api.list_grns()


async def test_csv_export_returns_text():
    csv_text = "PO Number,Vendor,Status,Items,Timestamp\n"

    def handler(request):
        return httpx.Response(200, text=csv_text, headers={"content-type": "text/csv; charset=utf-8"})

    async with _client(handler) as api:
        assert await api.export_grns() == csv_text


@pytest.mark.parametrize("sku,change", [("", 5), ("SKU-1", 0), ("SKU-1", 1.5), ("SKU-1", "5"), ("SKU-1", True)])
async def test_invalid_adjustment_never_sent(sku, change):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={"success": True, "data": {}})

    async with _client(handler) as api:
        with pytest.raises(ValidationError):
            await api.create_adjustment(sku, change)
    assert calls == []


async def test_blank_discrepancy_notes_never_sent():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"success": True, "data": {}})

    async with _client(handler) as api:
        with pytest.raises(ValidationError):
            await api.log_discrepancy("g1", "Damaged", "   ")
    assert calls == []


async def test_bin_reassignment_without_zones_never_sent():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"success": True, "data": {}})

    async with _client(handler) as api:
        with pytest.raises(ValidationError):
            await api.reassign_bins("Z1", "  ")
        await api.reassign_bins(" Z1 ", "Z2", sku_filter="")
    assert len(calls) == 1
    assert json.loads(calls[0].content) == {"fromZone": "Z1", "toZone": "Z2", "skuFilter": None}


async def test_grn_conflict_against_app(api):
    grn = await api.create_grn("PO-1", "Acme", 8)
    started = await api.start_grn(grn["id"], version=grn["version"])
    assert started["status"] == "in-progress"

    with pytest.raises(ConflictError):
        await api.complete_grn(grn["id"], version=grn["version"])

    completed = await api.complete_grn(grn["id"], version=started["version"])
    assert completed["putawayPallets"] == 2


async def test_transfer_skip_against_app(api):
    transfer = await api.create_transfer("Site B", 4)
    await api.update_transfer_status(transfer["id"], "loading")
    with pytest.raises(InvalidTransitionError):
        await api.update_transfer_status(transfer["id"], "completed")

    with pytest.raises(NotFoundError):
        await api.get_transfer("missing")


async def test_upload_and_export_against_app(api):
    result = await api.upload_skus(b"sku,productName,currentStock\nSKU-9,Bolt,12\n")
    assert result["imported"] == 1

    item = await api.get_item("SKU-9")
    assert item["currentStock"] == 12

    export = await api.export_inventory()
    assert export.splitlines()[1].startswith("SKU-9,Bolt,")
