"""
Delivery Status Service (Domain Logic).

Owns the parcel delivery state machine:

    not_collected -> rider_assigned -> in_transit -> delivered

Transitions only move forward. The first transition into delivered records
the rider's earning in the same transaction as the parcel update.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    InsufficientPermissionsError,
    InvalidInputError,
    InvalidStatusError,
    ResourceNotFoundError,
)
from backend.app.core.identity import VerifiedIdentity
from backend.app.domain.earnings import ledger
from backend.app.domain.earnings.calculator import quote_for_parcel
from backend.app.models.parcel import Parcel
from backend.app.models.parcel_enums import DeliveryStatus, DELIVERY_STATUS_ORDER
from backend.app.models.tracking_log import TrackingLog

logger = logging.getLogger("parcel_delivery.delivery")

# Targets a rider may move their parcel to
RIDER_TARGET_STATUSES = (DeliveryStatus.IN_TRANSIT, DeliveryStatus.DELIVERED)

# Statuses in which a (re)assignment is still accepted
ASSIGNABLE_STATUSES = (DeliveryStatus.NOT_COLLECTED, DeliveryStatus.RIDER_ASSIGNED)

TRACKING_MESSAGES = {
    DeliveryStatus.RIDER_ASSIGNED: "Rider {name} assigned",
    DeliveryStatus.IN_TRANSIT: "Parcel picked up and in transit",
    DeliveryStatus.DELIVERED: "Parcel delivered",
}


async def get_parcel(db: AsyncSession, parcel_id: int) -> Parcel:
    result = await db.execute(select(Parcel).where(Parcel.id == parcel_id))
    parcel = result.scalar_one_or_none()
    if not parcel:
        raise ResourceNotFoundError("Parcel", parcel_id)
    return parcel


def parse_target_status(value) -> DeliveryStatus:
    """Accept a DeliveryStatus or its string value; only rider targets pass."""
    try:
        target = DeliveryStatus(value)
    except ValueError:
        raise InvalidStatusError(f"Unknown delivery status: {value}", requested_status=str(value))

    if target not in RIDER_TARGET_STATUSES:
        raise InvalidStatusError(
            f"Status can only be advanced to: {', '.join(s.value for s in RIDER_TARGET_STATUSES)}",
            requested_status=target.value
        )
    return target


def _tracking_event(parcel: Parcel, status: DeliveryStatus, updated_by: str, now: datetime) -> TrackingLog:
    message = TRACKING_MESSAGES[status].format(name=parcel.assigned_rider_name or "")
    return TrackingLog(
        tracking_id=parcel.tracking_id,
        parcel_id=parcel.id,
        status=status.value,
        message=message,
        updated_by=updated_by,
        time=now
    )


class DeliveryStatusService:

    @staticmethod
    async def assign_rider(
        db: AsyncSession,
        parcel_id: int,
        rider_name: Optional[str],
        rider_email: Optional[str],
        assigned_by: Optional[str] = None
    ) -> Parcel:
        """
        Assign a rider to a parcel.

        Validates:
        - Rider name and email are present (before touching the database)
        - Parcel exists
        - Parcel has not been picked up yet

        Actions:
        - Set rider fields, status RIDER_ASSIGNED, assigned_at/updated_at
        - Append a tracking event
        """
        rider_name = (rider_name or "").strip()
        rider_email = (rider_email or "").strip().lower()
        missing = [name for name, value in (("rider_name", rider_name), ("rider_email", rider_email)) if not value]
        if missing:
            raise InvalidInputError("Rider name and email are required", details={"missing": missing})

        parcel = await get_parcel(db, parcel_id)

        if parcel.delivery_status not in ASSIGNABLE_STATUSES:
            raise InvalidStatusError(
                f"Cannot assign a rider to a parcel that is {parcel.delivery_status.value}",
                current_status=parcel.delivery_status.value,
                requested_status=DeliveryStatus.RIDER_ASSIGNED.value
            )

        now = datetime.now(timezone.utc)
        # The loaded parcel may be stale; the row is only written while it
        # has still not been picked up.
        stmt = (
            update(Parcel)
            .where(
                Parcel.id == parcel_id,
                Parcel.delivery_status.in_(ASSIGNABLE_STATUSES)
            )
            .values(
                assigned_rider_name=rider_name,
                assigned_rider_email=rider_email,
                delivery_status=DeliveryStatus.RIDER_ASSIGNED,
                assigned_at=now,
                updated_at=now
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)

        if result.rowcount == 0:
            await db.rollback()
            current = await DeliveryStatusService._reload(db, parcel_id)
            logger.info("Assignment to parcel %s rejected, parcel is %s", parcel_id, current.delivery_status.value)
            raise InvalidStatusError(
                f"Cannot assign a rider to a parcel that is {current.delivery_status.value}",
                current_status=current.delivery_status.value,
                requested_status=DeliveryStatus.RIDER_ASSIGNED.value
            )

        await db.refresh(parcel)
        db.add(_tracking_event(parcel, DeliveryStatus.RIDER_ASSIGNED, assigned_by or "", now))

        await db.commit()
        await db.refresh(parcel)

        logger.info("Rider %s assigned to parcel %s", rider_email, parcel_id)
        return parcel

    @staticmethod
    async def advance_delivery_status(
        db: AsyncSession,
        parcel_id: int,
        new_status,
        identity: VerifiedIdentity
    ) -> Parcel:
        """
        Move a parcel forward on behalf of its assigned rider.

        Validates:
        - Target status is IN_TRANSIT or DELIVERED
        - Parcel exists
        - Caller is the assigned rider
        - Target is not behind the current status

        Re-sending the current status is a no-op. Delivery is guarded by a
        conditional update so only one request can record the earning.
        """
        target = parse_target_status(new_status)
        parcel = await get_parcel(db, parcel_id)

        if not parcel.assigned_rider_email or parcel.assigned_rider_email != identity.email:
            raise InsufficientPermissionsError(
                "Only the assigned rider can update this parcel",
                details={"parcel_id": parcel.id}
            )

        current = parcel.delivery_status
        if target == current:
            return parcel

        if DELIVERY_STATUS_ORDER[target] < DELIVERY_STATUS_ORDER[current]:
            raise InvalidStatusError(
                f"Cannot move parcel from {current.value} back to {target.value}",
                current_status=current.value,
                requested_status=target.value
            )

        now = datetime.now(timezone.utc)
        values = {"delivery_status": target, "updated_at": now}
        if target == DeliveryStatus.DELIVERED:
            values["delivered_at"] = now

        # Only rows still behind the target move; a concurrent writer that
        # already reached it turns this into a no-op.
        earlier = [s for s, rank in DELIVERY_STATUS_ORDER.items() if rank < DELIVERY_STATUS_ORDER[target]]
        stmt = (
            update(Parcel)
            .where(
                Parcel.id == parcel_id,
                Parcel.delivery_status.in_(earlier)
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)

        if result.rowcount == 0:
            # rollback expires parcel; only parcel_id is safe to read here
            await db.rollback()
            logger.info("Parcel %s already advanced by a concurrent request", parcel_id)
            return await DeliveryStatusService._reload(db, parcel_id)

        await db.refresh(parcel)
        db.add(_tracking_event(parcel, target, identity.email, now))

        if target == DeliveryStatus.DELIVERED:
            await ledger.record_earning(db, parcel, quote_for_parcel(parcel))

        await db.commit()
        await db.refresh(parcel)

        logger.info("Parcel %s moved %s -> %s by %s", parcel_id, current.value, target.value, identity.email)
        return parcel

    @staticmethod
    async def _reload(db: AsyncSession, parcel_id: int) -> Parcel:
        parcel = await get_parcel(db, parcel_id)
        await db.refresh(parcel)
        return parcel

