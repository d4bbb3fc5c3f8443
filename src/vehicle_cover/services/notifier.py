# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Fire-and-forget publisher for the external notification service."""

import logging
from uuid import UUID

from beartype import beartype
from redis.exceptions import RedisError

from ..core.cache import Cache
from ..models.notification import MessageType, NotificationEvent
from .cache_keys import CacheKeys

logger = logging.getLogger(__name__)


class Notifier:
    """Publishes notification events on per-customer Redis channels.

    Delivery is best effort: a failed publish is logged and reported as
    ``False`` but never fails the business operation that triggered it.
    """

    def __init__(self, cache: Cache) -> None:
        self._cache = cache

    @beartype
    async def notify(
        self,
        customer_id: UUID,
        message_type: MessageType,
        title: str,
        message: str,
        reference: str | None = None,
    ) -> bool:
        event = NotificationEvent(
            customer_id=customer_id,
            message_type=message_type,
            title=title,
            message=message,
            reference=reference,
        )
        try:
            await self._cache.publish(
                CacheKeys.notification_channel(customer_id),
                event.model_dump(mode="json"),
            )
        except (RedisError, OSError, RuntimeError) as e:
            logger.warning(
                "Notification %s for customer %s not delivered: %s",
                message_type.value,
                customer_id,
                e,
            )
            return False
        return True
