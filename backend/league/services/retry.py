"""Backoff for Strava's effort-indexing lag.

Strava pushes the webhook for a new upload before it has matched the
activity against segments, so an immediate detail fetch can come back with
no efforts at all. We re-fetch a few times with growing waits. This is only
for that race: transport and auth failures are raised straight through.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from league.core.constants import DEFAULT_RETRY_DELAYS_S
from league.services.upstream import ActivityDetail

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class RetryOrchestrator:
    def __init__(self, delays: Sequence[float] = DEFAULT_RETRY_DELAYS_S, sleep: Sleep | None = None):
        self.delays = tuple(delays)
        self._sleep = sleep or asyncio.sleep

    @property
    def max_attempts(self) -> int:
        return len(self.delays) + 1

    async def fetch_with_effort_retry(
        self,
        fetch: Callable[[], Awaitable[ActivityDetail]],
        label: str = "activity",
    ) -> ActivityDetail:
        """
        Call `fetch` until it returns segment efforts or attempts run out.

        Returns the first detail with efforts, otherwise the last (empty)
        detail; the window selector then rejects it as having too few laps.
        Exceptions from `fetch` propagate on the attempt that raised them.
        """
        detail = await fetch()
        for attempt, delay in enumerate(self.delays, start=2):
            if detail.has_efforts:
                return detail
            log.info(
                "%s has no segment efforts yet; retrying in %ss (attempt %d/%d)",
                label, delay, attempt, self.max_attempts,
            )
            await self._sleep(delay)
            detail = await fetch()

        if not detail.has_efforts:
            log.warning("%s still has no segment efforts after %d attempts", label, self.max_attempts)
        return detail
