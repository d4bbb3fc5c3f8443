# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Centralized cache key and channel names."""

from uuid import UUID

from beartype import beartype


class CacheKeys:
    """Centralized cache key management."""

    POLICY_PREFIX = "policy"
    DASHBOARD_PREFIX = "dashboard"
    NOTIFICATION_PREFIX = "notifications"

    # TTLs in seconds
    POLICY_TTL = 600
    DASHBOARD_TTL = 60

    @staticmethod
    @beartype
    def policy_by_id(policy_id: UUID) -> str:
        return f"{CacheKeys.POLICY_PREFIX}:id:{policy_id}"

    @staticmethod
    @beartype
    def policy_stats() -> str:
        return f"{CacheKeys.POLICY_PREFIX}:stats"

    @staticmethod
    @beartype
    def admin_dashboard() -> str:
        return f"{CacheKeys.DASHBOARD_PREFIX}:admin"

    @staticmethod
    @beartype
    def notification_channel(customer_id: UUID) -> str:
        """Pub/sub channel consumed by the notification service."""
        return f"{CacheKeys.NOTIFICATION_PREFIX}:{customer_id}"
