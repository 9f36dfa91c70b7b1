OUTBOUND = "/api/v1/warehouse/outbound"


async def _picker(client, name="Alice", zone="A"):
    response = await client.post(f"{OUTBOUND}/pickers", json={"name": name, "zone": zone, "pickRate": 42.5})
    assert response.status_code == 201
    return response.json()["data"]


async def _picklist(client, order_id, items=3, zone="A", **extra):
    response = await client.post(
        f"{OUTBOUND}/picklists",
        json={"orderId": order_id, "customer": "Northwind", "items": items, "zone": zone, **extra},
    )
    assert response.status_code == 201
    return response.json()["data"]


async def _pickers_by_name(client):
    return {p["name"]: p for p in (await client.get(f"{OUTBOUND}/pickers")).json()["data"]}


async def test_picklist_lifecycle_tracks_picker_load(client):
    picker = await _picker(client)
    assert picker["status"] == "available"
    assert picker["pickerId"].startswith("PKR-")

    picklist = await _picklist(client, "ORD-1")
    assert picklist["status"] == "pending"
    assert picklist["origin"] == "manual"

    response = await client.post(f"{OUTBOUND}/picklists/ORD-1/assign", json={"pickerName": "Alice"})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "assigned"
    assert response.json()["data"]["picker"] == "Alice"

    alice = (await _pickers_by_name(client))["Alice"]
    assert alice["status"] == "busy"
    assert alice["activeOrders"] == 1

    response = await client.get(f"{OUTBOUND}/pickers/Alice/orders")
    assert [p["orderId"] for p in response.json()["data"]] == ["ORD-1"]

    url = f"{OUTBOUND}/picklists/{picklist['id']}"
    assert (await client.put(url, json={"status": "picking"})).status_code == 200
    response = await client.put(url, json={"status": "completed"})
    assert response.json()["data"]["status"] == "completed"
    assert response.json()["data"]["completedAt"] is not None

    alice = (await _pickers_by_name(client))["Alice"]
    assert alice["status"] == "available"
    assert alice["activeOrders"] == 0
    assert alice["completedToday"] == 1


async def test_assignment_goes_through_assign_action(client):
    picklist = await _picklist(client, "ORD-1")
    response = await client.put(f"{OUTBOUND}/picklists/{picklist['id']}", json={"status": "assigned"})
    assert response.status_code == 422

    response = await client.put(f"{OUTBOUND}/picklists/{picklist['id']}", json={"status": "picking"})
    assert response.status_code == 422


async def test_picker_on_break_cannot_take_orders(client):
    picker = await _picker(client)
    await _picklist(client, "ORD-1")

    response = await client.put(f"{OUTBOUND}/pickers/{picker['id']}/break", json={"onBreak": True})
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "break"

    response = await client.put(f"{OUTBOUND}/pickers/{picker['id']}/break", json={"onBreak": True})
    assert response.status_code == 422

    response = await client.post(f"{OUTBOUND}/picklists/ORD-1/assign", json={"pickerName": "Alice"})
    assert response.status_code == 422

    response = await client.get(f"{OUTBOUND}/picklists/ORD-1")
    assert response.json()["data"]["status"] == "pending"


async def test_busy_picker_cannot_go_on_break(client):
    picker = await _picker(client)
    await _picklist(client, "ORD-1")
    await client.post(f"{OUTBOUND}/picklists/ORD-1/assign", json={"pickerName": picker["pickerId"]})

    response = await client.put(f"{OUTBOUND}/pickers/{picker['id']}/break", json={"onBreak": True})
    assert response.status_code == 422


async def test_duplicate_order_is_rejected(client):
    await _picklist(client, "ORD-1")
    response = await client.post(
        f"{OUTBOUND}/picklists",
        json={"orderId": "ORD-1", "customer": "Northwind", "items": 1},
    )
    assert response.status_code == 400


async def test_views_and_origin(client):
    await _picker(client)
    await _picklist(client, "ORD-A", origin="auto", priority="urgent")
    await _picklist(client, "ORD-M")
    await client.post(f"{OUTBOUND}/picklists/ORD-M/assign", json={"pickerName": "Alice"})

    response = await client.get(f"{OUTBOUND}/picklists", params={"view": "auto"})
    assert [p["orderId"] for p in response.json()["data"]] == ["ORD-A"]

    response = await client.get(f"{OUTBOUND}/picklists", params={"view": "manual"})
    assert [p["orderId"] for p in response.json()["data"]] == ["ORD-M"]

    response = await client.get(f"{OUTBOUND}/picklists", params={"origin": "auto"})
    assert [p["orderId"] for p in response.json()["data"]] == ["ORD-A"]

    response = await client.get(f"{OUTBOUND}/picklists", params={"view": "everything"})
    assert response.status_code == 400


async def test_picklists_sorted_by_priority(client):
    await _picklist(client, "ORD-1", priority="standard")
    await _picklist(client, "ORD-2", priority="urgent")
    await _picklist(client, "ORD-3", priority="high")

    response = await client.get(f"{OUTBOUND}/picklists")
    assert [p["orderId"] for p in response.json()["data"]] == ["ORD-2", "ORD-3", "ORD-1"]


async def test_batch_groups_pending_zone_picklists(client):
    await _picklist(client, "ORD-1", items=2, zone="B")
    await _picklist(client, "ORD-2", items=5, zone="B")
    await _picklist(client, "ORD-3", items=1, zone="C")

    response = await client.post(f"{OUTBOUND}/batches", json={"zone": "B", "picker": "Alice"})
    assert response.status_code == 201
    batch = response.json()["data"]
    assert batch["orderCount"] == 2
    assert batch["totalItems"] == 7
    assert batch["status"] == "preparing"

    response = await client.post(f"{OUTBOUND}/batches", json={"zone": "B"})
    assert response.status_code == 400

    url = f"{OUTBOUND}/batches/{batch['id']}"
    response = await client.put(url, json={"progress": 50})
    assert response.json()["data"]["status"] == "picking"

    response = await client.put(url, json={"progress": 30})
    assert response.status_code == 422

    response = await client.put(url, json={"progress": 100})
    assert response.json()["data"]["status"] == "completed"

    response = await client.put(url, json={"progress": 100})
    assert response.status_code == 422


async def test_consolidated_pick_status_follows_quantity(client):
    response = await client.post(
        f"{OUTBOUND}/consolidated-picks",
        json={"orders": ["ORD-1", "ORD-2", "ORD-1"], "sku": "SKU-1", "totalQty": 10, "location": "A-01"},
    )
    assert response.status_code == 201
    pick = response.json()["data"]
    assert pick["orders"] == ["ORD-1", "ORD-2"]
    assert pick["status"] == "pending"

    url = f"{OUTBOUND}/consolidated-picks/{pick['id']}"
    response = await client.put(url, json={"pickedQty": 4})
    assert response.json()["data"]["status"] == "in-progress"

    response = await client.put(url, json={"pickedQty": 12})
    assert response.json()["data"]["status"] == "completed"

    response = await client.put(url, json={"pickedQty": 3})
    assert response.status_code == 422


async def test_route_optimize_and_complete(client):
    response = await client.post(
        f"{OUTBOUND}/routes",
        json={"picker": "Alice", "stops": 5, "distance": 120, "estimatedTime": 30},
    )
    route = response.json()["data"]
    assert route["status"] == "planned"

    response = await client.post(f"{OUTBOUND}/routes/{route['id']}/map")
    assert response.status_code == 200
    active = response.json()["data"]
    assert active["status"] == "active"
    assert active["distance"] == 120
    assert active["estimatedTime"] == 30

    response = await client.get(f"{OUTBOUND}/routes/active/map")
    assert [r["id"] for r in response.json()["data"]] == [route["id"]]

    assert (await client.post(f"{OUTBOUND}/routes/{route['id']}/complete")).status_code == 200
    assert (await client.post(f"{OUTBOUND}/routes/{route['id']}/complete")).status_code == 422
    assert (await client.get(f"{OUTBOUND}/routes/active/map")).json()["data"] == []


async def test_order_flow_counts_and_open_orders(client):
    await _picker(client)
    await _picklist(client, "ORD-1")
    await _picklist(client, "ORD-2", priority="urgent")
    done = await _picklist(client, "ORD-3")
    await client.post(f"{OUTBOUND}/picklists/ORD-3/assign", json={"pickerName": "Alice"})
    url = f"{OUTBOUND}/picklists/{done['id']}"
    await client.put(url, json={"status": "picking"})
    await client.put(url, json={"status": "completed"})

    response = await client.get(f"{OUTBOUND}/order-flow")
    assert response.status_code == 200
    flow = response.json()["data"]
    assert flow["counts"] == {"pending": 2, "assigned": 0, "picking": 0, "completed": 1}
    assert [p["orderId"] for p in flow["orders"]] == ["ORD-2", "ORD-1"]
