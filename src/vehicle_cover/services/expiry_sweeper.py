# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""In-process scheduler for the coverage expiry sweep.

``PUT /renewals/mark-expired`` stays available as a manual override.
"""

import asyncio
import logging

from .renewal_service import RenewalService

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Runs :meth:`RenewalService.sweep_expired` every ``interval_seconds``."""

    def __init__(self, renewal_service: RenewalService, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._renewal_service = renewal_service
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop. A second call is a no-op."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._sweep_loop(), name="expiry-sweeper")
        logger.info("Expiry sweeper started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Expiry sweeper stopped")

    async def run_once(self) -> int:
        """One sweep; returns how many records were newly expired."""
        result = await self._renewal_service.sweep_expired()
        if result.expired_count:
            logger.info("Expiry sweep flagged %d premium record(s)", result.expired_count)
        return result.expired_count

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await self.run_once()
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break
            except Exception:
                # next tick retries
                logger.exception("Expiry sweep failed")
                await asyncio.sleep(self._interval)
