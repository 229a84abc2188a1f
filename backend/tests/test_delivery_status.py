"""
Delivery state machine tests.

Assignment, forward-only transitions and the earning recorded on delivery.
"""

import pytest
from sqlalchemy import select, func

from backend.app.core.exceptions import (
    InsufficientPermissionsError,
    InvalidInputError,
    InvalidStatusError,
    ResourceNotFoundError,
)
from backend.app.core.identity import VerifiedIdentity
from backend.app.domain.delivery.status_service import DeliveryStatusService, get_parcel
from backend.app.domain.earnings import ledger
from backend.app.domain.earnings.calculator import summarize_rider_earnings
from backend.app.models.earning import Earning
from backend.app.models.earning_enums import EarningRule, EarningStatus
from backend.app.models.parcel_enums import DeliveryStatus
from backend.app.models.tracking_log import TrackingLog
from backend.tests.factories import assigned_parcel_fields, create_parcel

RIDER = VerifiedIdentity(email="rider@test.com", uid="rider-uid")
OTHER_RIDER = VerifiedIdentity(email="other@test.com", uid="other-uid")


async def count_earnings(database, parcel_id) -> int:
    async with database.session() as session:
        return await session.scalar(
            select(func.count(Earning.id)).where(Earning.parcel_id == parcel_id)
        )


@pytest.mark.asyncio
async def test_assign_rider_sets_fields_and_tracking(db_session):
    parcel = await create_parcel(db_session)

    updated = await DeliveryStatusService.assign_rider(
        db_session, parcel.id, "Rider One", "Rider@Test.com", assigned_by="admin@test.com"
    )

    assert updated.delivery_status == DeliveryStatus.RIDER_ASSIGNED
    assert updated.assigned_rider_name == "Rider One"
    assert updated.assigned_rider_email == "rider@test.com"
    assert updated.assigned_at is not None
    assert updated.delivered_at is None

    events = (await db_session.execute(
        select(TrackingLog).where(TrackingLog.parcel_id == parcel.id)
    )).scalars().all()
    assert [e.status for e in events] == ["rider_assigned"]
    assert events[0].message == "Rider Rider One assigned"


@pytest.mark.asyncio
@pytest.mark.parametrize("name, email", [(None, "rider@test.com"), ("Rider", None), ("  ", "")])
async def test_assign_rider_requires_name_and_email(db_session, name, email):
    # Input is checked before the parcel lookup
    with pytest.raises(InvalidInputError):
        await DeliveryStatusService.assign_rider(db_session, 9999, name, email)


@pytest.mark.asyncio
async def test_assign_rider_unknown_parcel(db_session):
    with pytest.raises(ResourceNotFoundError):
        await DeliveryStatusService.assign_rider(db_session, 9999, "Rider", "rider@test.com")


@pytest.mark.asyncio
async def test_reassign_before_pickup_is_allowed(db_session):
    parcel = await create_parcel(db_session, **assigned_parcel_fields())

    updated = await DeliveryStatusService.assign_rider(db_session, parcel.id, "Rider Two", "two@test.com")

    assert updated.assigned_rider_email == "two@test.com"
    assert updated.delivery_status == DeliveryStatus.RIDER_ASSIGNED


@pytest.mark.asyncio
async def test_assign_after_pickup_is_rejected(db_session):
    parcel = await create_parcel(db_session, **assigned_parcel_fields(delivery_status=DeliveryStatus.IN_TRANSIT))

    with pytest.raises(InvalidStatusError):
        await DeliveryStatusService.assign_rider(db_session, parcel.id, "Rider Two", "two@test.com")


@pytest.mark.asyncio
async def test_delivered_at_set_only_when_delivered(db_session):
    parcel = await create_parcel(db_session)
    assert parcel.delivered_at is None

    parcel = await DeliveryStatusService.assign_rider(db_session, parcel.id, "Rider One", RIDER.email)
    assert parcel.delivered_at is None

    parcel = await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, "in_transit", RIDER)
    assert parcel.delivery_status == DeliveryStatus.IN_TRANSIT
    assert parcel.delivered_at is None

    parcel = await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, "delivered", RIDER)
    assert parcel.delivery_status == DeliveryStatus.DELIVERED
    assert parcel.delivered_at is not None


@pytest.mark.asyncio
async def test_delivery_records_one_earning(db_session, database):
    parcel = await create_parcel(db_session, cost=1000, **assigned_parcel_fields())

    await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, DeliveryStatus.DELIVERED, RIDER)
    again = await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, DeliveryStatus.DELIVERED, RIDER)

    assert again.delivery_status == DeliveryStatus.DELIVERED
    assert await count_earnings(database, parcel.id) == 1

    earning = await ledger.get_earning_for_parcel(db_session, parcel.id)
    assert earning.amount == 800
    assert earning.rule == EarningRule.SAME_REGION
    assert earning.status == EarningStatus.UNPAID
    assert earning.rider_email == RIDER.email


@pytest.mark.asyncio
async def test_concurrent_delivery_records_one_earning(database):
    """A request working from a stale read must not deliver twice."""
    async with database.session() as setup:
        parcel = await create_parcel(
            setup, **assigned_parcel_fields(delivery_status=DeliveryStatus.IN_TRANSIT)
        )

    async with database.session() as first, database.session() as second:
        # first has already loaded the parcel as in_transit
        stale = await get_parcel(first, parcel.id)
        assert stale.delivery_status == DeliveryStatus.IN_TRANSIT

        await DeliveryStatusService.advance_delivery_status(second, parcel.id, "delivered", RIDER)
        result = await DeliveryStatusService.advance_delivery_status(first, parcel.id, "delivered", RIDER)

    assert result.delivery_status == DeliveryStatus.DELIVERED
    assert await count_earnings(database, parcel.id) == 1


@pytest.mark.asyncio
async def test_assign_after_concurrent_pickup_is_rejected(database):
    """Reassignment from a stale read must not take over a picked-up parcel."""
    async with database.session() as setup:
        parcel = await create_parcel(setup, **assigned_parcel_fields())

    async with database.session() as admin, database.session() as rider:
        stale = await get_parcel(admin, parcel.id)
        assert stale.delivery_status == DeliveryStatus.RIDER_ASSIGNED

        await DeliveryStatusService.advance_delivery_status(rider, parcel.id, "in_transit", RIDER)

        with pytest.raises(InvalidStatusError) as exc_info:
            await DeliveryStatusService.assign_rider(admin, parcel.id, "Other", OTHER_RIDER.email)

    assert exc_info.value.details["current_status"] == "in_transit"
    async with database.session() as session:
        current = await get_parcel(session, parcel.id)
    assert current.delivery_status == DeliveryStatus.IN_TRANSIT
    assert current.assigned_rider_email == RIDER.email


@pytest.mark.asyncio
async def test_non_assigned_rider_is_forbidden(db_session, database):
    parcel = await create_parcel(db_session, **assigned_parcel_fields())

    with pytest.raises(InsufficientPermissionsError):
        await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, "in_transit", OTHER_RIDER)

    async with database.session() as session:
        unchanged = await get_parcel(session, parcel.id)
    assert unchanged.delivery_status == DeliveryStatus.RIDER_ASSIGNED
    assert unchanged.delivered_at is None


@pytest.mark.asyncio
async def test_unassigned_parcel_is_forbidden(db_session):
    parcel = await create_parcel(db_session)

    with pytest.raises(InsufficientPermissionsError):
        await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, "in_transit", RIDER)


@pytest.mark.asyncio
@pytest.mark.parametrize("target", ["rider_assigned", "not_collected", "lost", ""])
async def test_only_forward_rider_targets_accepted(db_session, target):
    parcel = await create_parcel(db_session, **assigned_parcel_fields())

    with pytest.raises(InvalidStatusError):
        await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, target, RIDER)


@pytest.mark.asyncio
async def test_cannot_move_backwards(db_session):
    parcel = await create_parcel(db_session, **assigned_parcel_fields())
    await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, "delivered", RIDER)

    with pytest.raises(InvalidStatusError):
        await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, "in_transit", RIDER)


@pytest.mark.asyncio
async def test_unknown_parcel_not_found(db_session):
    with pytest.raises(ResourceNotFoundError):
        await DeliveryStatusService.advance_delivery_status(db_session, 424242, "in_transit", RIDER)


@pytest.mark.asyncio
async def test_summary_matches_ledger(db_session):
    costs = [(1000, "Dhaka", "Dhaka"), (1000, "Dhaka", "Sylhet"), (155, "Khulna", "Khulna"), (5, "A", "B")]
    parcel_ids = []
    for cost, sender, receiver in costs:
        parcel = await create_parcel(
            db_session, cost=cost, sender_region=sender, receiver_region=receiver, **assigned_parcel_fields()
        )
        await DeliveryStatusService.advance_delivery_status(db_session, parcel.id, "delivered", RIDER)
        parcel_ids.append(parcel.id)

    # Not delivered, so in neither
    await create_parcel(db_session, **assigned_parcel_fields(delivery_status=DeliveryStatus.IN_TRANSIT))

    summary = await summarize_rider_earnings(db_session, RIDER.email)
    earnings = await ledger.list_rider_earnings(db_session, RIDER.email)

    assert summary.total == 800 + 300 + 124 + 2
    assert summary.total == sum(e.amount for e in earnings)
    assert sorted(d.parcel_id for d in summary.deliveries) == sorted(parcel_ids)
    assert {e.parcel_id: e.amount for e in earnings} == {d.parcel_id: d.amount for d in summary.deliveries}
