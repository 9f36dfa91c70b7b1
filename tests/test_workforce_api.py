import uuid
from datetime import datetime, timedelta, timezone

WORKFORCE = "/api/v1/warehouse/workforce"


async def _staff(client, name, **extra):
    body = {"name": name, "role": "Picker", "shift": "morning", "hourlyRate": 18.5, "productivity": 80, **extra}
    response = await client.post(f"{WORKFORCE}/staff", json=body)
    assert response.status_code == 201
    return response.json()["data"]


async def test_schedule_status_follows_assignment(client):
    alice = await _staff(client, "Alice")
    bob = await _staff(client, "Bob")
    carol = await _staff(client, "Carol")

    response = await client.post(
        f"{WORKFORCE}/schedule", json={"date": "2026-11-02", "shift": "morning", "requiredStaff": 2}
    )
    schedule = response.json()["data"]
    assert schedule["status"] == "understaffed"
    assert schedule["staffAssigned"] == []

    url = f"{WORKFORCE}/schedule/{schedule['id']}/assign"
    response = await client.put(url, json={"staffIds": [alice["id"], bob["id"], alice["id"]]})
    assert response.json()["data"]["staffAssigned"] == [alice["id"], bob["id"]]
    assert response.json()["data"]["status"] == "full"

    response = await client.put(url, json={"staffIds": [alice["id"], bob["id"], carol["id"]]})
    assert response.json()["data"]["status"] == "overstaffed"

    response = await client.put(url, json={"staffIds": [alice["id"], str(uuid.uuid4())]})
    assert response.status_code == 404

    response = await client.get(f"{WORKFORCE}/schedule")
    assert len(response.json()["data"][0]["staffAssigned"]) == 3


async def test_duplicate_schedule_is_rejected(client):
    body = {"date": "2026-11-02", "shift": "night", "requiredStaff": 3}
    assert (await client.post(f"{WORKFORCE}/schedule", json=body)).status_code == 201
    response = await client.post(f"{WORKFORCE}/schedule", json=body)
    assert response.status_code == 400


async def test_attendance_across_midnight(client):
    staff = await _staff(client, "Dana", shift="night")
    response = await client.post(
        f"{WORKFORCE}/attendance",
        json={"staffId": staff["id"], "date": "2026-11-02", "checkIn": "22:00", "checkOut": "06:00"},
    )
    assert response.status_code == 201
    assert response.json()["data"]["hoursWorked"] == 8.0
    assert response.json()["data"]["staffName"] == "Dana"

    response = await client.get(f"{WORKFORCE}/attendance", params={"staff_id": staff["id"]})
    assert len(response.json()["data"]) == 1


async def test_leave_request_decision_is_final(client):
    staff = await _staff(client, "Eve")
    response = await client.post(
        f"{WORKFORCE}/leave-requests",
        json={
            "staffId": staff["id"],
            "leaveType": "Annual",
            "startDate": "2026-11-10",
            "endDate": "2026-11-12",
            "reason": "Family",
        },
    )
    request = response.json()["data"]
    assert request["days"] == 3
    assert request["status"] == "pending"

    url = f"{WORKFORCE}/leave-requests/{request['id']}/status"
    response = await client.put(url, json={"status": "approved"})
    assert response.json()["data"]["status"] == "approved"
    assert response.json()["data"]["decidedBy"] == "anonymous"

    response = await client.put(url, json={"status": "rejected"})
    assert response.status_code == 422


async def test_leave_end_before_start_is_rejected(client):
    staff = await _staff(client, "Eve")
    response = await client.post(
        f"{WORKFORCE}/leave-requests",
        json={"staffId": staff["id"], "leaveType": "Sick", "startDate": "2026-11-12", "endDate": "2026-11-10"},
    )
    assert response.status_code == 400


async def test_training_capacity(client):
    response = await client.post(
        f"{WORKFORCE}/training",
        json={
            "title": "Forklift safety",
            "type": "Safety",
            "date": "2026-11-20",
            "duration": "2h",
            "instructor": "Sam",
            "capacity": 1,
        },
    )
    training = response.json()["data"]
    assert training["enrolled"] == 0

    url = f"{WORKFORCE}/training/{training['id']}/enroll"
    response = await client.post(url)
    assert response.json()["data"]["enrolled"] == 1

    response = await client.post(url)
    assert response.status_code == 422

    response = await client.get(f"{WORKFORCE}/training")
    assert response.json()["data"][0]["enrolled"] == 1


async def test_staff_status_update(client):
    staff = await _staff(client, "Frank")
    assert staff["status"] == "active"

    url = f"{WORKFORCE}/staff/{staff['id']}"
    response = await client.put(url, json={"status": "break"})
    assert response.json()["data"]["status"] == "break"

    response = await client.put(url, json={"status": "sleeping"})
    assert response.status_code == 400

    response = await client.get(f"{WORKFORCE}/staff", params={"status": "break"})
    assert [s["name"] for s in response.json()["data"]] == ["Frank"]


async def test_performance_counts_completed_picks_in_window(client):
    outbound = "/api/v1/warehouse/outbound"
    today = datetime.now(timezone.utc).date()
    alice = await _staff(client, "Alice")
    await _staff(client, "Bob")
    await client.post(
        f"{WORKFORCE}/attendance",
        json={"staffId": alice["id"], "date": today.isoformat(), "checkIn": "09:00", "checkOut": "17:00"},
    )

    await client.post(f"{outbound}/pickers", json={"name": "Alice"})
    picklist = (await client.post(
        f"{outbound}/picklists", json={"orderId": "ORD-1", "customer": "Northwind", "items": 40}
    )).json()["data"]
    await client.post(f"{outbound}/picklists/ORD-1/assign", json={"pickerName": "Alice"})
    await client.put(f"{outbound}/picklists/{picklist['id']}", json={"status": "picking"})
    await client.put(f"{outbound}/picklists/{picklist['id']}", json={"status": "completed"})

    response = await client.get(f"{WORKFORCE}/performance")
    assert response.status_code == 200
    rows = {r["staffName"]: r for r in response.json()["data"]}
    assert rows["Alice"]["weeklyTarget"] == 1500
    assert rows["Alice"]["weeklyActual"] == 40
    assert rows["Alice"]["achievement"] == 3
    assert rows["Alice"]["hoursWorked"] == 8.0
    assert rows["Alice"]["avgSpeed"] == 5.0
    assert rows["Alice"]["daysPresent"] == 1
    assert rows["Alice"]["productivity"] == 80
    assert rows["Bob"]["weeklyActual"] == 0
    assert rows["Bob"]["avgSpeed"] == 0.0

    earlier = (today - timedelta(days=30)).isoformat()
    response = await client.get(f"{WORKFORCE}/performance", params={"as_of": earlier})
    rows = {r["staffName"]: r for r in response.json()["data"]}
    assert rows["Alice"]["weeklyActual"] == 0
    assert rows["Alice"]["hoursWorked"] == 0
