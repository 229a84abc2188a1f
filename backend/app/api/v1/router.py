"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    users, parcels, rider, riders, tracking, payments, admin
)

router = APIRouter()

# Profiles and sign-out
router.include_router(users.router)

# Parcels and their tracking history
router.include_router(parcels.router)
router.include_router(tracking.router)

# Rider deliveries, earnings and cash-out
router.include_router(rider.router)

# Rider applications and their administration
router.include_router(riders.router)
router.include_router(riders.admin_router)

# Charges
router.include_router(payments.router)

# Stats, reconciliation and audit
router.include_router(admin.router)
