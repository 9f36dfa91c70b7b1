"""
APScheduler-driven dashboard polling.

One interval job per screen. Each job fetches the screen's lists and merges
them into its caches; a failed fetch is logged and leaves the caches as they
were.

Job defaults keep a single instance of each screen's job running at a time
and coalesce missed runs, so two loads of the same screen never interleave.
"""

import logging
from typing import Awaitable, Callable, Dict, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from app.client.cache import EntityCache
from app.config import settings

logger = logging.getLogger(__name__)

# Job defaults
job_defaults = {
    'coalesce': True,  # Combine multiple pending executions into one
    'max_instances': 1,  # Only one load of a screen at a time
    'misfire_grace_time': 30,
}

SCREEN_INTERVALS = {
    'overview': lambda: settings.POLL_INTERVAL_OVERVIEW,
    'outbound': lambda: settings.POLL_INTERVAL_OUTBOUND,
    'qc': lambda: settings.POLL_INTERVAL_QC,
    'inbound': lambda: settings.POLL_INTERVAL_INBOUND,
    'inventory': lambda: settings.POLL_INTERVAL_INVENTORY,
    'analytics': lambda: settings.POLL_INTERVAL_ANALYTICS,
}


def screen_interval(screen: str) -> int:
    """Configured poll interval in seconds; unknown screens use the overview rate."""
    return SCREEN_INTERVALS.get(screen, SCREEN_INTERVALS['overview'])()


def cache_loader(cache: EntityCache, fetch: Callable[[], Awaitable[list]]) -> Callable[[], Awaitable[int]]:
    """Build a loader that fetches a full list and merges it into `cache`."""
    async def load() -> int:
        records = await fetch()
        return cache.apply_poll(records or [])
    return load


class DashboardPoller:
    """
    Polls each registered screen on its own interval.

    Usage:
        poller = DashboardPoller()
        poller.register("inbound", cache_loader(grn_cache, api.list_grns))
        poller.start()
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults=job_defaults,
            timezone='UTC',
        )
        self._loaders: Dict[str, Callable[[], Awaitable[object]]] = {}

    def register(
        self,
        screen: str,
        loader: Callable[[], Awaitable[object]],
        seconds: Optional[int] = None,
    ):
        """Arm (or re-arm) the poll job for a screen."""
        self._loaders[screen] = loader
        interval = seconds or screen_interval(screen)
        return self.scheduler.add_job(
            self.poll_now,
            'interval',
            seconds=interval,
            args=[screen],
            id=f'poll_{screen}',
            name=f'[Dashboard] Poll {screen}',
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def unregister(self, screen: str) -> None:
        """Screen unmounted: stop its job. A load already running finishes, its result is still merged."""
        self._loaders.pop(screen, None)
        if self.scheduler.get_job(f'poll_{screen}') is not None:
            self.scheduler.remove_job(f'poll_{screen}')

    async def poll_now(self, screen: str) -> bool:
        """Run one load of a screen. Returns False when the load failed."""
        loader = self._loaders.get(screen)
        if loader is None:
            logger.warning(f"No loader registered for screen '{screen}'")
            return False
        try:
            await loader()
        except Exception as e:
            logger.warning(f"Poll for '{screen}' failed: {e}")
            return False
        return True

    def start(self) -> None:
        """Start polling. Must be called with a running event loop."""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info(f"Dashboard poller started with {len(self._loaders)} screens")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Dashboard poller stopped")
