# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Read-only dashboard rollups."""

from decimal import Decimal

from .base import BaseModelConfig


class AdminDashboard(BaseModelConfig):
    total_customers: int = 0
    active_customers: int = 0
    total_policies: int = 0
    active_policies: int = 0
    active_coverages: int = 0
    pending_payments: int = 0
    premium_collected: Decimal = Decimal("0")
    claims_paid: Decimal = Decimal("0")
    pending_claims: int = 0
    pending_renewals: int = 0


class CustomerDashboard(BaseModelConfig):
    vehicles: int = 0
    active_policies: int = 0
    pending_payments: int = 0
    total_premium_paid: Decimal = Decimal("0")
    open_claims: int = 0
    pending_renewals: int = 0
    expiring_soon: int = 0
