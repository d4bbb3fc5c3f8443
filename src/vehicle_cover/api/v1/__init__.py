# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""API v1 router aggregation."""

from fastapi import APIRouter

from .auth import router as auth_router
from .claims import router as claims_router
from .customers import router as customers_router
from .dashboard import router as dashboard_router
from .health import router as health_router
from .policies import router as policies_router
from .premiums import router as premiums_router
from .renewals import router as renewals_router
from .vehicles import router as vehicles_router

# Create main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(health_router)
router.include_router(auth_router)
router.include_router(policies_router)
router.include_router(premiums_router)
router.include_router(renewals_router)
router.include_router(claims_router)
router.include_router(vehicles_router)
router.include_router(customers_router)
router.include_router(dashboard_router)


__all__ = ["router"]
