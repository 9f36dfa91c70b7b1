EXCEPTIONS = "/api/v1/warehouse/exceptions"
EQUIPMENT = "/api/v1/warehouse/equipment"


async def _report(client, title, priority="medium", category="inbound"):
    response = await client.post(
        EXCEPTIONS, json={"priority": priority, "category": category, "title": title}
    )
    assert response.status_code == 201
    return response.json()["data"]


async def test_exceptions_listed_critical_first(client):
    await _report(client, "Label smudged", priority="low")
    await _report(client, "Pallet collapsed", priority="critical")
    await _report(client, "Late truck")

    response = await client.get(EXCEPTIONS)
    assert [e["priority"] for e in response.json()["data"]] == ["critical", "medium", "low"]

    response = await client.get(EXCEPTIONS, params={"priority": "critical"})
    assert [e["title"] for e in response.json()["data"]] == ["Pallet collapsed"]


async def test_status_moves_one_step_at_a_time(client):
    exc = await _report(client, "Damaged cartons", category="outbound")
    url = f"{EXCEPTIONS}/{exc['id']}/status"

    response = await client.put(url, json={"status": "resolved"})
    assert response.status_code == 422
    assert response.json()["details"]["allowed"] == ["investigating"]

    assert (await client.put(url, json={"status": "investigating"})).status_code == 200
    response = await client.put(url, json={"status": "resolved"})
    data = response.json()["data"]
    assert data["status"] == "resolved"
    assert data["resolution"] == "investigated"
    assert data["resolvedBy"] == "anonymous"
    assert data["resolvedAt"] is not None


async def test_reject_shipment_resolves_inbound_exception(client):
    exc = await _report(client, "Wrong SKU delivered")
    response = await client.post(f"{EXCEPTIONS}/{exc['id']}/reject-shipment")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "resolved"
    assert response.json()["data"]["resolution"] == "shipment-rejected"

    response = await client.post(f"{EXCEPTIONS}/{exc['id']}/reject-shipment")
    assert response.status_code == 422


async def test_shipment_actions_only_for_inbound(client):
    exc = await _report(client, "Failed inspection", category="qc")
    response = await client.post(f"{EXCEPTIONS}/{exc['id']}/reject-shipment")
    assert response.status_code == 422

    response = await client.get(f"{EXCEPTIONS}/{exc['id']}")
    assert response.json()["data"]["status"] == "open"


async def test_accept_partial_records_quantity(client):
    exc = await _report(client, "Short shipment")
    response = await client.post(f"{EXCEPTIONS}/{exc['id']}/accept-partial", json={"acceptedQuantity": 40})
    data = response.json()["data"]
    assert data["status"] == "resolved"
    assert data["resolution"] == "partial-accepted"
    assert data["acceptedQuantity"] == 40


async def test_exception_export(client):
    await _report(client, "Late truck")
    response = await client.get(f"{EXCEPTIONS}/export")
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0] == "Priority,Category,Title,Status,Resolution,Timestamp"
    assert lines[1].startswith("medium,inbound,Late truck,open,,")


async def test_device_registration(client):
    body = {"name": "Scanner 1", "type": "scanner", "serialNumber": "SN-1", "assignedTo": "Alice", "battery": 80}
    response = await client.post(f"{EQUIPMENT}/devices", json=body)
    assert response.status_code == 201
    device = response.json()["data"]
    assert device["status"] == "online"
    assert device["battery"] == 80

    response = await client.post(f"{EQUIPMENT}/devices", json=dict(body, name="Scanner 2"))
    assert response.status_code == 400

    response = await client.get(f"{EQUIPMENT}/devices/{device['id']}")
    assert response.json()["data"]["serialNumber"] == "SN-1"


async def test_machine_issue_and_resolve(client):
    response = await client.post(
        f"{EQUIPMENT}/machinery", json={"name": "FL-1", "type": "forklift", "zone": "A", "operator": "Bob"}
    )
    forklift = response.json()["data"]
    assert forklift["status"] == "operational"

    response = await client.post(f"{EQUIPMENT}/machinery", json={"name": "PJ-1", "type": "pallet-jack"})
    assert response.json()["data"]["status"] == "idle"

    url = f"{EQUIPMENT}/machinery/{forklift['id']}"
    response = await client.post(f"{url}/resolve")
    assert response.status_code == 422

    response = await client.post(f"{url}/issue", json={"issue": "Hydraulic leak", "severity": "high"})
    data = response.json()["data"]
    assert data["status"] == "maintenance"
    assert data["issue"] == "Hydraulic leak"
    assert data["issueSeverity"] == "high"

    response = await client.post(f"{url}/resolve")
    data = response.json()["data"]
    assert data["status"] == "operational"
    assert data["issue"] is None
    assert data["lastMaintenance"] is not None


async def test_unknown_machine_type_is_rejected(client):
    response = await client.post(f"{EQUIPMENT}/machinery", json={"name": "X", "type": "hovercraft"})
    assert response.status_code == 400


async def test_machinery_export(client):
    await client.post(f"{EQUIPMENT}/machinery", json={"name": "CR-1", "type": "crane", "zone": "Yard"})
    response = await client.get(f"{EQUIPMENT}/export")
    lines = response.text.strip().splitlines()
    assert lines[0] == "Name,Type,Zone,Operator,Status,Issue,Last Maintenance"
    assert lines[1] == "CR-1,crane,Yard,,idle,,"
