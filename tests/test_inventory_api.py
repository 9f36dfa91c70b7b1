from app.models.inventory import InternalTransfer
from app.services.common import utcnow
from app.services.inventory_service import InventoryService

INVENTORY = "/api/v1/warehouse/inventory"
ADJUSTMENTS = f"{INVENTORY}/adjustments"
UPLOAD = "/api/v1/warehouse/utilities/upload-skus"


async def _adjust(client, sku, change, headers=None, **extra):
    return await client.post(ADJUSTMENTS, json={"sku": sku, "change": change, **extra}, headers=headers or {})


async def _stock(client, sku):
    response = await client.get(f"{INVENTORY}/items/{sku}")
    assert response.status_code == 200
    return response.json()["data"]["currentStock"]


async def _upload(client, content):
    return await client.post(UPLOAD, files={"file": ("skus.csv", content.encode(), "text/csv")})


async def test_opposite_adjustments_cancel_out(client):
    response = await _adjust(client, "SKU-1", 10, productName="Widget", reason="Opening balance")
    assert response.status_code == 201
    first = response.json()["data"]
    assert first["stockBefore"] == 0
    assert first["stockAfter"] == 10
    assert first["type"] == "Manual"
    assert first["user"] == "anonymous"

    await _adjust(client, "SKU-1", 5)
    assert await _stock(client, "SKU-1") == 15
    await _adjust(client, "SKU-1", -5)
    assert await _stock(client, "SKU-1") == 10

    response = await client.get(ADJUSTMENTS, params={"sku": "SKU-1"})
    assert sorted(a["change"] for a in response.json()["data"]) == [-5, 5, 10]


async def test_adjustment_cannot_make_stock_negative(client):
    await _adjust(client, "SKU-1", 3)

    response = await _adjust(client, "SKU-1", -4)
    assert response.status_code == 400
    assert response.json()["type"] == "ValidationError"
    assert await _stock(client, "SKU-1") == 3

    response = await client.get(ADJUSTMENTS, params={"sku": "SKU-1"})
    assert len(response.json()["data"]) == 1


async def test_malformed_change_is_rejected(client):
    for change in (0, 1.5, "5", None, True):
        response = await _adjust(client, "SKU-1", change)
        assert response.status_code == 400, change

    response = await _adjust(client, "  ", 5)
    assert response.status_code == 400

    response = await client.get(f"{INVENTORY}/items/SKU-1")
    assert response.status_code == 404


async def test_idempotent_replay_returns_original_row(client):
    headers = {"Idempotency-Key": "scan-0001"}
    response = await _adjust(client, "SKU-1", 4, headers=headers)
    assert response.status_code == 201
    original = response.json()["data"]

    response = await _adjust(client, "SKU-1", 4, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["id"] == original["id"]
    assert await _stock(client, "SKU-1") == 4

    response = await _adjust(client, "SKU-1", 7, headers=headers)
    assert response.status_code == 400
    assert await _stock(client, "SKU-1") == 4


async def test_adjustment_with_stale_version_conflicts(client):
    await _adjust(client, "SKU-1", 10)
    item = (await client.get(f"{INVENTORY}/items/SKU-1")).json()["data"]
    version = item["version"]

    response = await _adjust(client, "SKU-1", 1, headers={"If-Match": str(version)})
    assert response.status_code == 201

    response = await _adjust(client, "SKU-1", 1, headers={"If-Match": str(version)})
    assert response.status_code == 409
    assert response.json()["type"] == "Conflict"
    assert await _stock(client, "SKU-1") == 11


async def test_versioned_adjustment_on_unknown_item_is_not_found(client):
    response = await _adjust(client, "SKU-404", 1, headers={"If-Match": "1"})
    assert response.status_code == 404


async def test_low_stock_alert_survives_reorder_until_restock(client):
    response = await _upload(client, "sku,productName,currentStock,minStock,maxStock\nSKU-7,Gasket,5,20,100\n")
    assert response.json()["data"]["imported"] == 1

    response = await client.get(f"{INVENTORY}/alerts")
    alerts = response.json()["data"]
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert["type"] == "low-stock"
    assert alert["sku"] == "SKU-7"
    assert alert["currentLevel"] == 5
    assert alert["threshold"] == 20
    assert alert["priority"] == "high"

    response = await client.post(f"{INVENTORY}/reorder", json={"sku": "SKU-7", "quantity": 50})
    assert response.status_code == 201
    response = await client.get(f"{INVENTORY}/alerts")
    assert [a["sku"] for a in response.json()["data"]] == ["SKU-7"]

    await _adjust(client, "SKU-7", 20, type="Restock")
    response = await client.get(f"{INVENTORY}/alerts")
    assert response.json()["data"] == []


async def test_alerts_sorted_and_filtered(client):
    await _upload(
        client,
        "sku,currentStock,minStock,maxStock\nA-1,15,20,100\nB-1,0,10,100\nC-1,500,10,100\n",
    )

    response = await client.get(f"{INVENTORY}/alerts")
    assert [(a["sku"], a["priority"]) for a in response.json()["data"]] == [
        ("B-1", "high"),
        ("A-1", "medium"),
        ("C-1", "low"),
    ]

    response = await client.get(f"{INVENTORY}/alerts", params={"type": "overstock"})
    assert [a["sku"] for a in response.json()["data"]] == ["C-1"]

    response = await client.get(f"{INVENTORY}/alerts", params={"type": "bogus"})
    assert response.status_code == 400

    item = (await client.get(f"{INVENTORY}/items/A-1")).json()["data"]
    assert [a["type"] for a in item["alerts"]] == ["low-stock"]


async def test_summary_and_export(client):
    await _upload(client, "sku,productName,category,currentStock,minStock,maxStock,value\nA-1,Bolt,hardware,0,5,50,12.50\n")
    await _adjust(client, "B-1", 8)

    summary = (await client.get(f"{INVENTORY}/summary")).json()["data"]
    assert summary["totalItems"] == 2
    assert summary["totalUnits"] == 8
    assert summary["outOfStock"] == 1
    assert summary["health"] == 50

    response = await client.get(f"{INVENTORY}/export")
    lines = response.text.strip().splitlines()
    assert lines[0] == "SKU,Product,Category,Stock,Min,Max,Location,Value"
    assert lines[1].startswith("A-1,Bolt,hardware,0,5,50,,")


async def test_internal_transfer_moves_bin_quantities(client):
    await _adjust(client, "SKU-2", 30)
    response = await client.post(
        f"{INVENTORY}/locations",
        json={"code": "A-01", "aisle": "A", "rack": 1, "zone": "Z1", "sku": "SKU-2", "quantity": 30},
    )
    assert response.status_code == 201
    assert response.json()["data"]["status"] == "occupied"

    response = await client.post(
        f"{INVENTORY}/transfers",
        json={"fromLocation": "A-01", "toLocation": "B-01", "sku": "SKU-2", "quantity": 10},
    )
    assert response.status_code == 201
    transfer = response.json()["data"]
    assert transfer["status"] == "pending"

    url = f"{INVENTORY}/transfers/{transfer['id']}/status"
    response = await client.put(url, json={"status": "completed"})
    assert response.status_code == 422

    assert (await client.put(url, json={"status": "in-transit"})).status_code == 200
    response = await client.put(url, json={"status": "completed"})
    assert response.json()["data"]["status"] == "completed"

    locations = {loc["code"]: loc for loc in (await client.get(f"{INVENTORY}/locations")).json()["data"]}
    assert locations["A-01"]["quantity"] == 20
    assert locations["B-01"]["quantity"] == 10
    assert locations["B-01"]["sku"] == "SKU-2"
    assert await _stock(client, "SKU-2") == 30


async def test_internal_transfer_needs_stock_in_source_bin(client):
    await _adjust(client, "SKU-2", 5)
    await client.post(
        f"{INVENTORY}/locations",
        json={"code": "A-01", "aisle": "A", "sku": "SKU-2", "quantity": 5},
    )

    response = await client.post(
        f"{INVENTORY}/transfers",
        json={"fromLocation": "A-01", "toLocation": "B-01", "sku": "SKU-2", "quantity": 6},
    )
    assert response.status_code == 400

    response = await client.post(
        f"{INVENTORY}/transfers",
        json={"fromLocation": "A-01", "toLocation": "A-01", "sku": "SKU-2", "quantity": 1},
    )
    assert response.status_code == 400


async def test_location_for_unknown_sku_is_not_found(client):
    response = await client.post(
        f"{INVENTORY}/locations",
        json={"code": "A-01", "aisle": "A", "sku": "NOPE", "quantity": 1},
    )
    assert response.status_code == 404


async def test_cycle_count_requires_full_count(client):
    response = await client.post(
        f"{INVENTORY}/cycle-counts",
        json={"zone": "Z1", "scheduledDate": "2026-10-20", "itemsTotal": 10, "assignedTo": "Sam"},
    )
    assert response.status_code == 201
    count = response.json()["data"]
    assert count["status"] == "scheduled"
    assert count["countId"].startswith("CC-")
    base = f"{INVENTORY}/cycle-counts/{count['id']}"

    response = await client.put(f"{base}/progress", json={"itemsCounted": 3, "discrepancies": 0})
    assert response.status_code == 422

    assert (await client.post(f"{base}/start")).status_code == 200
    response = await client.put(f"{base}/progress", json={"itemsCounted": 5, "discrepancies": 1})
    assert response.json()["data"]["itemsCounted"] == 5

    response = await client.post(f"{base}/complete")
    assert response.status_code == 422
    assert response.json()["details"] == {"itemsCounted": 5, "itemsTotal": 10}

    response = await client.put(f"{base}/progress", json={"itemsCounted": 4, "discrepancies": 1})
    assert response.status_code == 422
    response = await client.put(f"{base}/progress", json={"itemsCounted": 11, "discrepancies": 1})
    assert response.status_code == 422

    await client.put(f"{base}/progress", json={"itemsCounted": 10, "discrepancies": 2})
    response = await client.post(f"{base}/complete")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "completed"


async def test_reorder_for_unknown_sku_is_not_found(client):
    response = await client.post(f"{INVENTORY}/reorder", json={"sku": "NOPE", "quantity": 5})
    assert response.status_code == 404


REASSIGN = "/api/v1/warehouse/utilities/reassign-bins"


async def _bin(client, code, zone, sku=None, quantity=0):
    body = {"code": code, "aisle": code.split("-")[0], "rack": 1, "zone": zone}
    if sku:
        body.update(sku=sku, quantity=quantity)
    response = await client.post(f"{INVENTORY}/locations", json=body)
    assert response.status_code == 201


async def _bins(client):
    return {loc["code"]: loc for loc in (await client.get(f"{INVENTORY}/locations")).json()["data"]}


async def test_bin_reassignment_moves_zone_stock(client):
    await _adjust(client, "SKU-1", 30)
    await _adjust(client, "SKU-2", 10)
    await _bin(client, "A-01", "Z1", "SKU-1", 20)
    await _bin(client, "A-02", "Z1", "SKU-2", 10)
    await _bin(client, "A-03", "Z1", "SKU-1", 10)
    await _bin(client, "B-01", "Z2")
    await _bin(client, "B-02", "Z2")

    response = await client.post(REASSIGN, json={"fromZone": "Z1", "toZone": "Z2"})
    assert response.status_code == 200
    result = response.json()["data"]
    assert result["binsMoved"] == 3
    assert result["unitsMoved"] == 40
    assert len(result["transferIds"]) == 3

    bins = await _bins(client)
    assert [bins[c]["quantity"] for c in ("A-01", "A-02", "A-03")] == [0, 0, 0]
    assert bins["A-01"]["status"] == "empty"
    assert (bins["B-01"]["sku"], bins["B-01"]["quantity"]) == ("SKU-1", 30)
    assert (bins["B-02"]["sku"], bins["B-02"]["quantity"]) == ("SKU-2", 10)
    assert await _stock(client, "SKU-1") == 30

    transfers = (await client.get(f"{INVENTORY}/transfers")).json()["data"]
    assert {t["status"] for t in transfers} == {"completed"}


async def test_bin_reassignment_filter_and_no_partial_moves(client):
    await _adjust(client, "SKU-1", 20)
    await _adjust(client, "SKU-2", 10)
    await _bin(client, "A-01", "Z1", "SKU-1", 20)
    await _bin(client, "A-02", "Z1", "SKU-2", 10)
    await _bin(client, "B-01", "Z2")

    response = await client.post(REASSIGN, json={"fromZone": "Z1", "toZone": "Z2", "skuFilter": "sku-2"})
    assert response.json()["data"]["binsMoved"] == 1

    response = await client.post(REASSIGN, json={"fromZone": "Z1", "toZone": "Z2"})
    assert response.status_code == 400
    assert response.json()["details"]["unplaced"] == ["A-01"]
    assert (await _bins(client))["A-01"]["quantity"] == 20

    response = await client.post(REASSIGN, json={"fromZone": "Z1", "toZone": "Z1"})
    assert response.status_code == 400

    response = await client.post(REASSIGN, json={"fromZone": "Z9", "toZone": "Z2"})
    assert response.status_code == 400


async def test_racing_idempotency_key_replays_first_adjustment(session_factory, monkeypatch):
    async with session_factory() as db:
        first, created = await InventoryService(db).create_adjustment(
            "SKU-1", 4, actor="scanner-1", idempotency_key="scan-0007"
        )
    assert created

    real_lookup = InventoryService._find_adjustment_by_key
    lookups = []

    async def lookup_before_commit(self, key):
        # First lookup runs before the other request committed
        lookups.append(key)
        if len(lookups) == 1:
            return None
        return await real_lookup(self, key)

    monkeypatch.setattr(InventoryService, "_find_adjustment_by_key", lookup_before_commit)
    async with session_factory() as db:
        replayed, created = await InventoryService(db).create_adjustment(
            "SKU-1", 4, actor="scanner-2", idempotency_key="scan-0007"
        )
    assert not created
    assert replayed.id == first.id

    async with session_factory() as db:
        assert (await InventoryService(db).get_item("SKU-1")).current_stock == 4


async def test_duplicate_business_number_is_a_conflict(client, session_factory):
    await _adjust(client, "SKU-2", 30)
    async with session_factory() as db:
        # Numbering counts existing rows, so a lone "-0002" collides with the next number
        db.add(InternalTransfer(
            transfer_id=f"IT-{utcnow():%Y%m%d}-0002",
            from_location="A-09",
            to_location="B-09",
            sku="SKU-2",
            quantity=1,
            status="pending",
            initiated_by="other-desk",
        ))
        await db.commit()

    response = await client.post(
        f"{INVENTORY}/transfers",
        json={"fromLocation": "A-01", "toLocation": "B-01", "sku": "SKU-2", "quantity": 10},
    )
    assert response.status_code == 409
    assert response.json()["type"] == "Conflict"
