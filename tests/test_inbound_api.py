GRNS = "/api/v1/warehouse/inbound/grns"
DOCKS = "/api/v1/warehouse/inbound/docks"


async def _create_grn(client, po_number="PO-9001", vendor="Acme", items=40):
    response = await client.post(GRNS, json={"poNumber": po_number, "vendor": vendor, "items": items})
    assert response.status_code == 201
    return response.json()["data"]


async def test_grn_lifecycle_appears_in_export(client):
    grn = await _create_grn(client)
    assert grn["status"] == "pending"
    assert grn["putawayPallets"] == 0

    response = await client.post(f"{GRNS}/{grn['id']}/start")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "in-progress"
    assert response.json()["data"]["receivedBy"] == "anonymous"

    response = await client.post(f"{GRNS}/{grn['id']}/complete")
    completed = response.json()["data"]
    assert completed["status"] == "completed"
    assert completed["putawayPallets"] == 10

    response = await client.get(f"{GRNS}/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0] == "PO Number,Vendor,Status,Items,Timestamp"
    assert lines[1].startswith("PO-9001,Acme,completed,40,")


async def test_complete_requires_start(client):
    grn = await _create_grn(client)

    response = await client.post(f"{GRNS}/{grn['id']}/complete")
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["type"] == "InvalidTransition"
    assert body["details"]["allowed"] == ["in-progress"]

    response = await client.get(f"{GRNS}/{grn['id']}")
    assert response.json()["data"]["status"] == "pending"


async def test_discrepancy_requires_notes(client):
    grn = await _create_grn(client)
    await client.post(f"{GRNS}/{grn['id']}/start")

    response = await client.post(f"{GRNS}/{grn['id']}/discrepancy", json={"type": "damaged", "notes": "   "})
    assert response.status_code == 400
    assert response.json()["type"] == "ValidationError"

    response = await client.post(
        f"{GRNS}/{grn['id']}/discrepancy",
        json={"type": "damaged", "notes": "Two cartons crushed"},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "discrepancy"
    assert data["discrepancyType"] == "damaged"
    assert data["discrepancyNotes"] == "Two cartons crushed"

    response = await client.post(f"{GRNS}/{grn['id']}/complete")
    assert response.status_code == 422


async def test_stale_version_is_a_conflict(client):
    grn = await _create_grn(client)
    assert grn["version"] == 1

    response = await client.post(f"{GRNS}/{grn['id']}/start", headers={"If-Match": "1"})
    assert response.status_code == 200
    assert response.json()["data"]["version"] == 2

    response = await client.post(f"{GRNS}/{grn['id']}/complete", headers={"If-Match": "1"})
    assert response.status_code == 409
    assert response.json()["type"] == "Conflict"

    response = await client.post(f"{GRNS}/{grn['id']}/complete", headers={"If-Match": 'W/"2"'})
    assert response.status_code == 200


async def test_unknown_grn_is_not_found(client):
    response = await client.get(f"{GRNS}/not-a-uuid")
    assert response.status_code == 404
    assert response.json()["type"] == "NotFound"

    response = await client.post(f"{GRNS}/00000000-0000-0000-0000-000000000000/start")
    assert response.status_code == 404


async def test_list_filters_by_status(client):
    first = await _create_grn(client, po_number="PO-1")
    await _create_grn(client, po_number="PO-2")
    await client.post(f"{GRNS}/{first['id']}/start")

    response = await client.get(GRNS, params={"status": "in-progress"})
    assert [g["poNumber"] for g in response.json()["data"]] == ["PO-1"]

    response = await client.get(GRNS)
    assert len(response.json()["data"]) == 2


async def test_summary_counts(client):
    grn = await _create_grn(client, items=9)
    await _create_grn(client, po_number="PO-2")
    await client.post(f"{GRNS}/{grn['id']}/start")
    await client.post(f"{GRNS}/{grn['id']}/complete")

    response = await client.get("/api/v1/warehouse/inbound/summary")
    summary = response.json()["data"]
    assert summary["total"] == 2
    assert summary["byStatus"]["completed"] == 1
    assert summary["byStatus"]["pending"] == 1
    assert summary["putawayPallets"] == 3


async def test_dock_moves_along_its_chain(client):
    response = await client.post(DOCKS, json={"name": "Dock 1"})
    assert response.status_code == 201
    dock = response.json()["data"]
    assert dock["status"] == "empty"

    response = await client.put(f"{DOCKS}/{dock['id']}", json={"status": "offline"})
    assert response.status_code == 422

    response = await client.put(
        f"{DOCKS}/{dock['id']}",
        json={"status": "active", "truck": "TRK-42", "vendor": "Acme", "eta": "10:30"},
    )
    active = response.json()["data"]
    assert active["status"] == "active"
    assert active["truck"] == "TRK-42"

    response = await client.put(f"{DOCKS}/{dock['id']}", json={"status": "empty"})
    emptied = response.json()["data"]
    assert emptied["status"] == "empty"
    assert emptied["truck"] is None
    assert emptied["vendor"] is None


async def test_duplicate_dock_name_is_rejected(client):
    await client.post(DOCKS, json={"name": "Dock 1"})
    response = await client.post(DOCKS, json={"name": "Dock 1"})
    assert response.status_code == 400
