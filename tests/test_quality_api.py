from datetime import date, timedelta

QC = "/api/v1/warehouse/qc"


async def test_inspection_score_and_status(client):
    response = await client.post(
        f"{QC}/inspections",
        json={"batchId": "B-1", "productName": "Widget", "itemsInspected": 100, "defectsFound": 5},
    )
    assert response.status_code == 201
    assert response.json()["data"]["score"] == 95
    assert response.json()["data"]["status"] == "passed"

    response = await client.post(
        f"{QC}/inspections",
        json={"batchId": "B-2", "productName": "Widget", "itemsInspected": 10, "defectsFound": 5},
    )
    assert response.json()["data"]["score"] == 50
    assert response.json()["data"]["status"] == "failed"

    response = await client.get(f"{QC}/inspections", params={"status": "failed"})
    assert [i["batchId"] for i in response.json()["data"]] == ["B-2"]


async def test_defects_cannot_exceed_inspected(client):
    response = await client.post(
        f"{QC}/inspections",
        json={"batchId": "B-1", "productName": "Widget", "itemsInspected": 3, "defectsFound": 4},
    )
    assert response.status_code == 400
    assert response.json()["type"] == "ValidationError"


async def test_temperature_bands(client):
    readings = {"Cold-1": (20, 45), "Cold-2": (27, 45), "Cold-3": (20, 80)}
    for zone, (temperature, humidity) in readings.items():
        response = await client.post(
            f"{QC}/temperature-logs",
            json={"zone": zone, "temperature": temperature, "humidity": humidity},
        )
        assert response.status_code == 201

    response = await client.get(f"{QC}/temperature-logs")
    by_zone = {log["zone"]: log["status"] for log in response.json()["data"]}
    assert by_zone == {"Cold-1": "normal", "Cold-2": "warning", "Cold-3": "critical"}


async def test_sample_result_is_final(client):
    response = await client.post(
        f"{QC}/samples", json={"batchId": "B-1", "productName": "Widget", "testType": "Moisture"}
    )
    sample = response.json()["data"]
    assert sample["result"] == "pending"
    assert sample["sampleId"].startswith("SMP-")

    url = f"{QC}/samples/{sample['id']}/update"
    assert (await client.put(url, json={"result": "pending"})).status_code == 400

    response = await client.put(url, json={"result": "pass"})
    assert response.json()["data"]["result"] == "pass"
    assert response.json()["data"]["testedBy"] == "anonymous"

    response = await client.put(url, json={"result": "fail"})
    assert response.status_code == 422


async def test_rejection_logged(client):
    body = {"batchId": "B-1", "productName": "Widget", "reason": "Crushed", "items": 4, "severity": "high"}
    response = await client.post(f"{QC}/rejections", json=body)
    assert response.status_code == 201
    assert response.json()["data"]["loggedBy"] == "anonymous"

    response = await client.post(f"{QC}/rejections", json=dict(body, severity="low"))
    assert response.status_code == 400

    response = await client.get(f"{QC}/rejections", params={"severity": "high"})
    assert len(response.json()["data"]) == 1


async def test_compliance_check_toggle(client):
    response = await client.post(f"{QC}/checks", json={"title": "Fire exits clear", "category": "Safety"})
    check = response.json()["data"]
    assert check["completed"] is False
    assert check["version"] == 1

    url = f"{QC}/checks/{check['id']}"
    response = await client.put(url, json={"completed": True}, headers={"If-Match": "1"})
    assert response.json()["data"]["completed"] is True
    assert response.json()["data"]["completedBy"] == "anonymous"

    response = await client.put(url, json={"completed": False}, headers={"If-Match": "1"})
    assert response.status_code == 409

    response = await client.put(url, json={"completed": False})
    assert response.json()["data"]["completed"] is False
    assert response.json()["data"]["completedBy"] is None


async def test_compliance_doc_status_from_expiry(client):
    today = date.today()
    docs = {
        "Fire certificate": today + timedelta(days=200),
        "Food licence": today + timedelta(days=10),
        "Forklift permit": today - timedelta(days=1),
    }
    for name, expiry in docs.items():
        response = await client.post(
            f"{QC}/compliance-docs",
            json={"name": name, "type": "Certificate", "expiryDate": expiry.isoformat()},
        )
        assert response.status_code == 201

    response = await client.get(f"{QC}/compliance-docs")
    statuses = {d["name"]: d["status"] for d in response.json()["data"]}
    assert statuses == {
        "Fire certificate": "valid",
        "Food licence": "expiring-soon",
        "Forklift permit": "expired",
    }

    response = await client.get(f"{QC}/compliance-docs", params={"status": "expired"})
    assert [d["name"] for d in response.json()["data"]] == ["Forklift permit"]


async def test_doc_expiry_before_issue_is_rejected(client):
    response = await client.post(
        f"{QC}/compliance-docs",
        json={"name": "Permit", "type": "Licence", "issuedDate": "2026-05-01", "expiryDate": "2026-04-01"},
    )
    assert response.status_code == 400
