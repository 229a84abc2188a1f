"""
Rider Service (Domain Logic).

Rider applications and their approval workflow. Activating a rider is a
two-step operation (rider status, then user role) committed together; if a
step fails nothing is written and the error names the step.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    ConflictError,
    InvalidStatusError,
    OperationStepError,
    ResourceNotFoundError,
)
from backend.app.models.enums import RiderStatus, UserRole
from backend.app.models.rider import Rider
from backend.app.models.user import User

logger = logging.getLogger("parcel_delivery.riders")

# Allowed admin decisions per current status
RIDER_TRANSITIONS = {
    RiderStatus.PENDING: {RiderStatus.ACTIVE, RiderStatus.REJECTED},
    RiderStatus.ACTIVE: {RiderStatus.INACTIVE},
    RiderStatus.INACTIVE: {RiderStatus.ACTIVE},
    RiderStatus.REJECTED: set(),
}

STEP_UPDATE_RIDER_STATUS = "update_rider_status"
STEP_UPDATE_USER_ROLE = "update_user_role"


class RiderService:

    @staticmethod
    async def apply(db: AsyncSession, **fields) -> Rider:
        """Create a pending rider application; one per email."""
        fields["email"] = fields["email"].lower()
        rider = Rider(status=RiderStatus.PENDING, **fields)
        db.add(rider)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("A rider application already exists for this email", details={"email": fields["email"]})
        await db.refresh(rider)
        logger.info("Rider application received from %s", rider.email)
        return rider

    @staticmethod
    async def list_riders(db: AsyncSession, status: Optional[RiderStatus] = None) -> List[Rider]:
        query = select(Rider)
        if status:
            query = query.where(Rider.status == status)
        query = query.order_by(Rider.created_at.asc(), Rider.id.asc())
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def available_riders(db: AsyncSession, district: Optional[str] = None) -> List[Rider]:
        """Active riders, optionally limited to a district, for assignment."""
        query = select(Rider).where(Rider.status == RiderStatus.ACTIVE)
        if district:
            query = query.where(Rider.district == district)
        result = await db.execute(query.order_by(Rider.name.asc()))
        return list(result.scalars().all())

    @staticmethod
    async def change_status(db: AsyncSession, rider_id: int, new_status: RiderStatus) -> Rider:
        """
        Apply an admin decision to a rider.

        Steps:
        1. update_rider_status: validate and set the rider status
        2. update_user_role: promote to RIDER on activation, demote back to
           USER on deactivation; admins keep their role

        Raises:
            ResourceNotFoundError: rider absent
            InvalidStatusError: decision not allowed from the current status
            OperationStepError: a step failed; nothing was committed
        """
        result = await db.execute(select(Rider).where(Rider.id == rider_id))
        rider = result.scalar_one_or_none()
        if not rider:
            raise ResourceNotFoundError("Rider", rider_id)

        if new_status not in RIDER_TRANSITIONS[rider.status]:
            raise InvalidStatusError(
                f"Cannot change rider from {rider.status.value} to {new_status.value}",
                current_status=rider.status.value,
                requested_status=new_status.value
            )

        completed: List[str] = []

        try:
            rider.status = new_status
            await db.flush()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Rider %s status update failed: %s", rider_id, e)
            raise OperationStepError("Failed to update rider status", STEP_UPDATE_RIDER_STATUS, completed)
        completed.append(STEP_UPDATE_RIDER_STATUS)

        user_result = await db.execute(select(User).where(User.email == rider.email))
        user = user_result.scalar_one_or_none()

        if new_status == RiderStatus.ACTIVE and user is None:
            await db.rollback()
            raise OperationStepError(
                "Rider has no user account to promote",
                STEP_UPDATE_USER_ROLE,
                completed
            )

        if user is not None and user.role != UserRole.ADMIN:
            user.role = UserRole.RIDER if new_status == RiderStatus.ACTIVE else UserRole.USER

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Rider %s role update failed: %s", rider_id, e)
            raise OperationStepError("Failed to update user role", STEP_UPDATE_USER_ROLE, completed)

        await db.refresh(rider)
        logger.info("Rider %s is now %s", rider.email, rider.status.value)
        return rider
