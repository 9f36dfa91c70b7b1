TRANSFERS = "/api/v1/warehouse/transfers"
INVENTORY = "/api/v1/warehouse/inventory"


async def _create(client, **body):
    response = await client.post(TRANSFERS, json={"destination": "Site B", "items": 5, **body})
    assert response.status_code == 201
    return response.json()["data"]


async def _set_status(client, transfer_id, status):
    return await client.put(f"{TRANSFERS}/{transfer_id}/status", json={"status": status})


async def test_skipping_en_route_is_rejected(client):
    transfer = await _create(client)
    assert transfer["status"] == "pending"
    assert transfer["transferId"].startswith("TRF-")

    assert (await _set_status(client, transfer["id"], "loading")).status_code == 200

    response = await _set_status(client, transfer["id"], "completed")
    assert response.status_code == 422
    assert response.json()["type"] == "InvalidTransition"

    response = await client.get(f"{TRANSFERS}/{transfer['id']}")
    assert response.json()["data"]["status"] == "loading"


async def test_telemetry_only_while_en_route(client):
    transfer = await _create(client)
    track = f"{TRANSFERS}/{transfer['id']}/track"

    response = await client.post(track, json={"progress": 10})
    assert response.status_code == 422

    await _set_status(client, transfer["id"], "loading")
    await _set_status(client, transfer["id"], "en-route")

    response = await client.post(track, json={"progress": 40, "distance": 12.5, "eta": "14:30"})
    data = response.json()["data"]
    assert data["progress"] == 40
    assert data["distance"] == 12.5
    assert data["eta"] == "14:30"

    response = await _set_status(client, transfer["id"], "completed")
    assert response.json()["data"]["progress"] == 100
    assert response.json()["data"]["completedAt"] is not None


async def test_completed_transfer_takes_stock_out(client):
    await client.post(f"{INVENTORY}/adjustments", json={"sku": "SKU-T", "change": 20})
    transfer = await _create(client, sku="SKU-T", items=8)

    for status in ("loading", "en-route"):
        await _set_status(client, transfer["id"], status)
    item = (await client.get(f"{INVENTORY}/items/SKU-T")).json()["data"]
    assert item["currentStock"] == 20

    await _set_status(client, transfer["id"], "completed")
    item = (await client.get(f"{INVENTORY}/items/SKU-T")).json()["data"]
    assert item["currentStock"] == 12

    response = await client.get(f"{INVENTORY}/adjustments", params={"sku": "SKU-T"})
    transfer_out = [a for a in response.json()["data"] if a["type"] == "Transfer Out"]
    assert len(transfer_out) == 1
    assert transfer_out[0]["change"] == -8


async def test_transfer_of_unknown_sku_is_not_found(client):
    response = await client.post(TRANSFERS, json={"destination": "Site B", "items": 1, "sku": "NOPE"})
    assert response.status_code == 404


async def test_list_filter_and_export(client):
    first = await _create(client, destination="Site B")
    await _create(client, destination="Site C")
    await _set_status(client, first["id"], "loading")

    response = await client.get(TRANSFERS, params={"status": "loading"})
    assert [t["destination"] for t in response.json()["data"]] == ["Site B"]

    response = await client.get(f"{TRANSFERS}/export")
    lines = response.text.strip().splitlines()
    assert lines[0] == "Transfer ID,Destination,Items,Status,Distance,ETA,Progress"
    assert len(lines) == 3
