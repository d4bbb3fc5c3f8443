# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Domain models."""

from .base import BaseModelConfig, Page, PageRequest, Pagination
from .claim import Claim, ClaimCreate, ClaimProcess, ClaimStatus
from .customer import Customer, CustomerCreate
from .policy import CoverageType, Policy, PolicyCreate, PolicyUpdate, PremiumRules
from .premium import PaymentStatus, PremiumBreakdown, PremiumRecord
from .renewal import Renewal, RenewalCreate, RenewalStatus
from .user import Principal, Role
from .vehicle import Vehicle, VehicleCreate, VehicleType

__all__ = [
    "BaseModelConfig",
    "Claim",
    "ClaimCreate",
    "ClaimProcess",
    "ClaimStatus",
    "CoverageType",
    "Customer",
    "CustomerCreate",
    "Page",
    "PageRequest",
    "Pagination",
    "PaymentStatus",
    "Policy",
    "PolicyCreate",
    "PolicyUpdate",
    "PremiumBreakdown",
    "PremiumRecord",
    "PremiumRules",
    "Principal",
    "Renewal",
    "RenewalCreate",
    "RenewalStatus",
    "Role",
    "Vehicle",
    "VehicleCreate",
    "VehicleType",
]
