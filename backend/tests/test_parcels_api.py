"""
Integration tests for parcel management.

Tests parcel CRUD operations, tracking history and access control.
"""

import pytest

from backend.app.models.parcel_enums import DeliveryStatus
from backend.tests.factories import assigned_parcel_fields, auth_headers, create_parcel, create_user

SENDER = "sender@test.com"

PARCEL_BODY = {
    "title": "Birthday gift",
    "parcel_type": "non_document",
    "weight_kg": 1.5,
    "cost": 150,
    "sender_name": "Sender",
    "sender_region": "Dhaka",
    "sender_district": "Dhaka",
    "receiver_name": "Receiver",
    "receiver_region": "Chattogram",
    "receiver_district": "Cumilla",
}


@pytest.fixture
async def sender_headers(db_session):
    await create_user(db_session, SENDER)
    return auth_headers(SENDER)


@pytest.mark.asyncio
async def test_create_parcel(client, sender_headers):
    response = await client.post("/v1/parcels", json=PARCEL_BODY, headers=sender_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["tracking_id"].startswith("TRK-")

    detail = (await client.get(f"/v1/parcels/{body['id']}", headers=sender_headers)).json()
    assert detail["created_by"] == SENDER
    assert detail["delivery_status"] == "not_collected"
    assert detail["payment_status"] == "unpaid"
    assert detail["assigned_rider_email"] is None
    assert detail["delivered_at"] is None


@pytest.mark.asyncio
async def test_create_parcel_with_duplicate_tracking_id(client, sender_headers):
    body = dict(PARCEL_BODY, tracking_id="TRK-FIXED")

    first = await client.post("/v1/parcels", json=body, headers=sender_headers)
    second = await client.post("/v1/parcels", json=body, headers=sender_headers)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["error_code"] == "ERR_CONFLICT"


@pytest.mark.asyncio
async def test_create_parcel_validation(client, sender_headers):
    body = dict(PARCEL_BODY)
    del body["receiver_region"]

    response = await client.post("/v1/parcels", json=body, headers=sender_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_list_parcels_scoped_to_caller(client, sender_headers, admin_headers, db_session):
    await client.post("/v1/parcels", json=PARCEL_BODY, headers=sender_headers)
    await client.post("/v1/parcels", json=dict(PARCEL_BODY, title="Second"), headers=sender_headers)
    await create_parcel(db_session, created_by="someone@test.com")

    mine = (await client.get("/v1/parcels", headers=sender_headers)).json()
    # Non-admins cannot widen the filter
    spoofed = (await client.get("/v1/parcels", params={"email": "someone@test.com"}, headers=sender_headers)).json()
    everything = (await client.get("/v1/parcels", headers=admin_headers)).json()
    filtered = (await client.get("/v1/parcels", params={"email": SENDER}, headers=admin_headers)).json()

    assert [p["title"] for p in mine] == ["Second", "Birthday gift"]
    assert [p["created_by"] for p in spoofed] == [SENDER, SENDER]
    assert len(everything) == 3
    assert len(filtered) == 2


@pytest.mark.asyncio
async def test_parcel_detail_access(client, sender_headers, admin_headers, rider_headers, db_session):
    parcel = await create_parcel(db_session, created_by=SENDER, **assigned_parcel_fields())
    await create_user(db_session, "stranger@test.com")

    assert (await client.get(f"/v1/parcels/{parcel.id}", headers=sender_headers)).status_code == 200
    assert (await client.get(f"/v1/parcels/{parcel.id}", headers=rider_headers)).status_code == 200
    assert (await client.get(f"/v1/parcels/{parcel.id}", headers=admin_headers)).status_code == 200

    response = await client.get(f"/v1/parcels/{parcel.id}", headers=auth_headers("stranger@test.com"))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_parcel(client, sender_headers):
    created = (await client.post("/v1/parcels", json=PARCEL_BODY, headers=sender_headers)).json()

    response = await client.delete(f"/v1/parcels/{created['id']}", headers=sender_headers)

    assert response.status_code == 200
    assert response.json() == {"deleted": True, "id": created["id"]}
    missing = await client.get(f"/v1/parcels/{created['id']}", headers=sender_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_delete_after_assignment_rejected(client, sender_headers, db_session):
    parcel = await create_parcel(db_session, created_by=SENDER, **assigned_parcel_fields())

    response = await client.delete(f"/v1/parcels/{parcel.id}", headers=sender_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_STATUS"


@pytest.mark.asyncio
async def test_delete_by_stranger_forbidden(client, db_session):
    parcel = await create_parcel(db_session, created_by=SENDER)

    response = await client.delete(f"/v1/parcels/{parcel.id}", headers=auth_headers("stranger@test.com"))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_manual_tracking_events(client, sender_headers, db_session):
    parcel = await create_parcel(db_session, created_by=SENDER)

    response = await client.post(
        "/v1/tracking",
        json={"tracking_id": parcel.tracking_id, "parcel_id": parcel.id, "status": "booked", "message": "Booked at counter"},
        headers=sender_headers
    )
    assert response.status_code == 201

    events = (await client.get(f"/v1/tracking/{parcel.tracking_id}")).json()
    assert len(events) == 1
    assert events[0]["status"] == "booked"
    assert events[0]["updated_by"] == SENDER


@pytest.mark.asyncio
async def test_tracking_event_for_unknown_parcel(client, sender_headers):
    response = await client.post(
        "/v1/tracking",
        json={"tracking_id": "TRK-NOPE", "parcel_id": 4242, "status": "booked"},
        headers=sender_headers
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_counts(client, admin_headers, db_session):
    await create_parcel(db_session)
    await create_parcel(db_session)
    await create_parcel(db_session, **assigned_parcel_fields(delivery_status=DeliveryStatus.DELIVERED))

    response = await client.get("/v1/admin/parcels/status-counts", headers=admin_headers)

    assert response.status_code == 200
    counts = {row["delivery_status"]: row["count"] for row in response.json()}
    assert counts == {"not_collected": 2, "rider_assigned": 0, "in_transit": 0, "delivered": 1}


@pytest.mark.asyncio
async def test_unsettled_deliveries_report(client, admin_headers, db_session):
    orphan = await create_parcel(
        db_session, cost=1000, sender_region="Dhaka", receiver_region="Sylhet",
        **assigned_parcel_fields(delivery_status=DeliveryStatus.DELIVERED)
    )

    response = await client.get("/v1/admin/earnings/unsettled-deliveries", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == [{
        "parcel_id": orphan.id,
        "tracking_id": orphan.tracking_id,
        "rider_email": "rider@test.com",
        "delivered_at": None,
        "expected_amount": 300,
        "expected_rule": "different_region",
    }]


@pytest.mark.asyncio
async def test_admin_stats_forbidden_for_users(client, sender_headers):
    response = await client.get("/v1/admin/parcels/status-counts", headers=sender_headers)

    assert response.status_code == 403
