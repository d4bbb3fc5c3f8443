# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""FastAPI dependencies for authentication, storage and services.

Endpoints depend on the service factories below so tests can swap any of
them through ``app.dependency_overrides``.
"""

from beartype import beartype
from fastapi import Depends, HTTPException, Query, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.cache import Cache, get_cache
from ..core.config import Settings, get_settings
from ..core.database import Database, get_database
from ..core.security import Security as TokenSecurity
from ..core.security import get_security
from ..models.base import PageRequest
from ..models.user import Principal
from ..services.auth_service import AuthService
from ..services.claim_service import ClaimService
from ..services.customer_service import CustomerService
from ..services.dashboard_service import DashboardService
from ..services.notifier import Notifier
from ..services.policy_service import PolicyService
from ..services.premium_calculator import PremiumCalculator
from ..services.premium_service import PremiumService
from ..services.renewal_service import RenewalService
from ..services.vehicle_service import VehicleService

# Security scheme; missing credentials are reported as 401 below
bearer_scheme = HTTPBearer(auto_error=False)


@beartype
async def get_db() -> Database:
    """Provide the shared connection pool wrapper."""
    return get_database()


@beartype
async def get_cache_dep() -> Cache:
    return get_cache()


@beartype
async def get_token_security() -> TokenSecurity:
    return get_security()


@beartype
async def get_notifier(cache: Cache = Depends(get_cache_dep)) -> Notifier:
    return Notifier(cache)


@beartype
async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    security: TokenSecurity = Depends(get_token_security),
) -> Principal:
    """Validate the bearer token and return the calling principal.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    # NOTE: This is a dependency function, not an endpoint
    # We need to keep raising HTTPException here as FastAPI expects it
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = security.decode_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return payload.to_principal()
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


class PaginationParams:
    """Common pagination parameters for list endpoints."""

    def __init__(
        self,
        page: int = Query(default=1),
        limit: int | None = Query(default=None),
        settings: Settings = Depends(get_settings),
    ) -> None:
        if page < 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Page must be at least 1",
            )
        if limit is None:
            limit = settings.default_page_size
        if limit < 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Limit must be at least 1",
            )
        if limit > settings.max_page_size:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Limit cannot exceed {settings.max_page_size}",
            )

        self.page = page
        self.limit = limit

    @property
    def request(self) -> PageRequest:
        return PageRequest(page=self.page, limit=self.limit)


async def get_auth_service(
    db: Database = Depends(get_db),
    security: TokenSecurity = Depends(get_token_security),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db, security, expose_reset_token=not settings.is_production)


async def get_customer_service(
    db: Database = Depends(get_db),
    cache: Cache = Depends(get_cache_dep),
) -> CustomerService:
    return CustomerService(db, cache)


async def get_vehicle_service(db: Database = Depends(get_db)) -> VehicleService:
    return VehicleService(db)


async def get_policy_service(
    db: Database = Depends(get_db),
    cache: Cache = Depends(get_cache_dep),
) -> PolicyService:
    return PolicyService(db, cache)


async def get_premium_service(
    db: Database = Depends(get_db),
    cache: Cache = Depends(get_cache_dep),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> PremiumService:
    return PremiumService(
        db, cache, notifier, PremiumCalculator(settings.depreciation_cap_percent)
    )


async def get_renewal_service(
    db: Database = Depends(get_db),
    cache: Cache = Depends(get_cache_dep),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> RenewalService:
    return RenewalService(db, cache, notifier, settings.expiring_renewal_window_days)


async def get_claim_service(
    db: Database = Depends(get_db),
    cache: Cache = Depends(get_cache_dep),
    notifier: Notifier = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> ClaimService:
    return ClaimService(db, cache, notifier, settings.claim_payout_cap_multiplier)


async def get_dashboard_service(
    db: Database = Depends(get_db),
    cache: Cache = Depends(get_cache_dep),
    settings: Settings = Depends(get_settings),
) -> DashboardService:
    return DashboardService(db, cache, settings.expiring_renewal_window_days)
