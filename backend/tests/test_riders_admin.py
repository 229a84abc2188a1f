"""
Rider application and administration tests.

Covers applying, approval with role promotion and the step failure report.
"""

import pytest
from sqlalchemy import select

from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.tests.factories import auth_headers, create_user

APPLICANT = "applicant@test.com"

APPLICATION = {
    "name": "New Rider",
    "phone": "01700000000",
    "region": "Dhaka",
    "district": "Mirpur",
    "nid": "1234567890",
    "bike_registration": "DHA-1234",
}


async def apply(client, email=APPLICANT, **overrides):
    return await client.post("/v1/riders", json=dict(APPLICATION, **overrides), headers=auth_headers(email))


async def role_of(database, email):
    async with database.session() as session:
        return await session.scalar(select(User.role).where(User.email == email))


@pytest.mark.asyncio
async def test_apply_creates_pending_rider(client, db_session):
    await create_user(db_session, APPLICANT)

    response = await apply(client)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["email"] == APPLICANT


@pytest.mark.asyncio
async def test_duplicate_application_conflicts(client):
    await apply(client)
    response = await apply(client)

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT"


@pytest.mark.asyncio
async def test_listing_requires_admin(client):
    response = await client.get("/v1/admin/riders", headers=auth_headers(APPLICANT))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_by_status(client, admin_headers):
    await apply(client)
    await apply(client, email="second@test.com", name="Second")

    pending = await client.get("/v1/admin/riders", params={"status": "pending"}, headers=admin_headers)
    active = await client.get("/v1/admin/riders", params={"status": "active"}, headers=admin_headers)

    assert [r["email"] for r in pending.json()] == [APPLICANT, "second@test.com"]
    assert active.json() == []


@pytest.mark.asyncio
async def test_approval_promotes_user(client, admin_headers, db_session, database):
    await create_user(db_session, APPLICANT)
    rider_id = (await apply(client)).json()["id"]

    response = await client.patch(
        f"/v1/admin/riders/{rider_id}/status", json={"status": "active"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "active"
    assert await role_of(database, APPLICANT) == UserRole.RIDER

    role = await client.get(f"/v1/users/{APPLICANT}/role", headers=admin_headers)
    assert role.json() == {"email": APPLICANT, "role": "rider"}


@pytest.mark.asyncio
async def test_approval_without_account_reports_failed_step(client, admin_headers):
    rider_id = (await apply(client)).json()["id"]

    response = await client.patch(
        f"/v1/admin/riders/{rider_id}/status", json={"status": "active"}, headers=admin_headers
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "ERR_STEP_FAILED"
    assert body["details"] == {"failed_step": "update_user_role", "completed_steps": ["update_rider_status"]}

    # Nothing was committed
    pending = await client.get("/v1/admin/riders", params={"status": "pending"}, headers=admin_headers)
    assert [r["id"] for r in pending.json()] == [rider_id]


@pytest.mark.asyncio
async def test_deactivation_demotes_rider(client, admin_headers, db_session, database):
    await create_user(db_session, APPLICANT)
    rider_id = (await apply(client)).json()["id"]
    await client.patch(f"/v1/admin/riders/{rider_id}/status", json={"status": "active"}, headers=admin_headers)

    response = await client.patch(
        f"/v1/admin/riders/{rider_id}/status", json={"status": "inactive"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert await role_of(database, APPLICANT) == UserRole.USER


@pytest.mark.asyncio
async def test_admin_keeps_role_when_riding(client, admin_headers, database):
    rider_id = (await apply(client, email="admin@test.com")).json()["id"]

    await client.patch(f"/v1/admin/riders/{rider_id}/status", json={"status": "active"}, headers=admin_headers)

    assert await role_of(database, "admin@test.com") == UserRole.ADMIN


@pytest.mark.asyncio
async def test_rejected_cannot_be_activated(client, admin_headers):
    rider_id = (await apply(client)).json()["id"]
    await client.patch(f"/v1/admin/riders/{rider_id}/status", json={"status": "rejected"}, headers=admin_headers)

    response = await client.patch(
        f"/v1/admin/riders/{rider_id}/status", json={"status": "active"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_INVALID_STATUS"


@pytest.mark.asyncio
async def test_unknown_rider_is_404(client, admin_headers):
    response = await client.patch("/v1/admin/riders/999/status", json={"status": "active"}, headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_available_riders_by_district(client, admin_headers, db_session):
    for email, district in [(APPLICANT, "Mirpur"), ("far@test.com", "Sylhet"), ("idle@test.com", "Mirpur")]:
        await create_user(db_session, email)
        await apply(client, email=email, district=district, name=email)

    riders = (await client.get("/v1/admin/riders", headers=admin_headers)).json()
    for rider in riders:
        if rider["email"] != "idle@test.com":
            await client.patch(
                f"/v1/admin/riders/{rider['id']}/status", json={"status": "active"}, headers=admin_headers
            )

    response = await client.get("/v1/admin/riders/available", params={"district": "Mirpur"}, headers=admin_headers)

    assert [r["email"] for r in response.json()] == [APPLICANT]
