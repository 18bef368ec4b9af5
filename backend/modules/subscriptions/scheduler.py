"""
Daily maintenance scheduling.

Runs the quota reset and both subscription sweeps once a day at a fixed
wall-clock time. The scheduler is an asyncio task owned by the API
process; ``run_jobs.py`` runs the same maintenance once from the command
line.
"""

import asyncio
import logging
from contextlib import suppress
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Callable, Optional

from dateutil import tz

from shared.config import Settings

from .exceptions import InvalidScheduleError
from .interfaces import ISubscriptionService
from .models import MaintenanceReport
from .service import utc_now

logger = logging.getLogger(__name__)


def parse_run_time(value: str) -> time:
    """Parse an "HH:MM" wall-clock time."""
    try:
        parsed = time.fromisoformat(value.strip())
    except ValueError:
        raise InvalidScheduleError(value) from None
    return parsed.replace(second=0, microsecond=0)


def resolve_timezone(name: str) -> tzinfo:
    zone = tz.gettz(name)
    if zone is None:
        logger.warning(f"Unknown timezone {name!r}, falling back to UTC")
        return tz.UTC
    return zone


def seconds_until_next_run(now: datetime, run_at: time, zone: tzinfo) -> float:
    """
    Seconds from ``now`` until the next ``run_at`` wall-clock time in ``zone``.

    A run time equal to the current minute is scheduled for the next day.
    """
    local_now = now.astimezone(zone)
    candidate = local_now.replace(
        hour=run_at.hour,
        minute=run_at.minute,
        second=0,
        microsecond=0,
    )
    if candidate <= local_now:
        candidate = candidate + timedelta(days=1)
    return (candidate.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds()


async def run_daily_maintenance(
    service: ISubscriptionService,
    notify_days: int = 3,
    clock: Callable[[], datetime] = utc_now,
) -> MaintenanceReport:
    """
    Run one maintenance pass: quota reset, expiry sweep, expiring-soon sweep.

    Each step runs even if an earlier one only partially notified.
    """
    started_at = clock()
    logger.info("Running scheduled maintenance tasks")

    quota = service.reset_daily_quota()
    expired = await service.sweep_expired()
    expiring = await service.sweep_soon_to_expire(notify_days)

    report = MaintenanceReport(
        started_at=started_at,
        finished_at=clock(),
        quota_reset=quota,
        expired=expired,
        expiring_soon=expiring,
    )
    logger.info(
        f"Scheduled tasks complete: {quota.count} quotas reset, "
        f"{expired.downgraded_count} downgraded, "
        f"{len(expiring.subscriptions)} expiring soon"
    )
    return report


class DailyScheduler:
    """
    Runs daily maintenance in a background asyncio task.

    A failing run is logged and the scheduler waits for the next day.
    """

    def __init__(
        self,
        service: ISubscriptionService,
        run_at: time = time(0, 0),
        zone: tzinfo = tz.UTC,
        notify_days: int = 3,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._service = service
        self._run_at = run_at
        self._zone = zone
        self._notify_days = notify_days
        self._clock = clock
        self._task: Optional[asyncio.Task] = None
        self.last_report: Optional[MaintenanceReport] = None

    @classmethod
    def from_settings(cls, service: ISubscriptionService, settings: Settings) -> "DailyScheduler":
        return cls(
            service,
            run_at=parse_run_time(settings.maintenance_time),
            zone=resolve_timezone(settings.maintenance_timezone),
            notify_days=settings.expiring_soon_days,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_run_in(self) -> float:
        return seconds_until_next_run(self._clock(), self._run_at, self._zone)

    def start(self) -> None:
        """Start the background loop. Must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(f"Cron jobs scheduled daily at {self._run_at.strftime('%H:%M')}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Daily scheduler stopped")

    async def run_once(self) -> Optional[MaintenanceReport]:
        logger.info(f"Running maintenance scheduled for {self._run_at.strftime('%H:%M')}")
        try:
            self.last_report = await run_daily_maintenance(
                self._service, self._notify_days, self._clock
            )
        except Exception:
            logger.exception("Error in scheduled tasks")
            return None
        return self.last_report

    async def _loop(self) -> None:
        while True:
            delay = self.next_run_in()
            logger.info(f"Next maintenance run in {delay / 3600:.1f} hours")
            await asyncio.sleep(delay)
            await self.run_once()
