"""
Scheduled purge runner.

Armed at service startup when auto-purge is enabled, disarmed at shutdown.
Arming is idempotent so repeated activations never stack schedules.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from shared.logging import get_logger

from ..purge import ContentChangeEvent, EventKind, InvalidationCoordinator, PurgeOutcome
from ..settings import PurgeFrequency

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class ScheduledPurgeRunner:
    """Recurring task that purges the site host on a fixed frequency."""

    def __init__(
        self,
        coordinator: InvalidationCoordinator,
        *,
        metrics: Optional["MetricsCollector"] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.coordinator = coordinator
        self.metrics = metrics
        self._sleep = sleep
        self.logger = get_logger("varnish.scheduler")
        self.frequency: Optional[PurgeFrequency] = None
        self.next_run_at: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    async def activate(self) -> bool:
        """Arm the recurring task. Returns True only when a new task was armed."""
        if self.is_scheduled:
            self.logger.info("Scheduled purge already armed", frequency=self.frequency.value)
            return False

        config = self.coordinator.load_config()
        if not config.auto_purge:
            self.logger.info("Auto purge disabled, nothing scheduled")
            return False

        self.frequency = config.auto_purge_frequency
        self._schedule_next()
        self._task = asyncio.create_task(self._run_loop(self.frequency.seconds))
        self.logger.info(
            "Scheduled purge armed",
            frequency=self.frequency.value,
            interval_seconds=self.frequency.seconds,
        )
        return True

    async def deactivate(self) -> None:
        """Clear any armed task, whatever the current auto-purge setting."""
        task, self._task = self._task, None
        self.next_run_at = None
        if task is None:
            return

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self.logger.info("Scheduled purge disarmed")

    async def run_once(self, host: Optional[str] = None) -> Optional[PurgeOutcome]:
        """One tick: purge ``host``, or the site host when none is given."""
        event = ContentChangeEvent(kind=EventKind.SCHEDULED, host=host)
        outcome = await self.coordinator.on_content_change(event)

        if outcome is None:
            status = "skipped"
        elif outcome.success:
            status = "success"
        else:
            status = "failed"
        if self.metrics:
            self.metrics.increment_counter("scheduled_purge_runs_total", status=status)
        self.logger.info("Scheduled purge tick", status=status)
        return outcome

    def status(self) -> Dict[str, Any]:
        return {
            "scheduled": self.is_scheduled,
            "frequency": self.frequency.value if self.frequency else None,
            "interval_seconds": self.frequency.seconds if self.frequency else None,
            "next_run_at": self.next_run_at.isoformat() if self.next_run_at and self.is_scheduled else None,
        }

    def _schedule_next(self) -> None:
        self.next_run_at = datetime.now(timezone.utc) + timedelta(seconds=self.frequency.seconds)

    async def _run_loop(self, interval_seconds: int) -> None:
        while True:
            await self._sleep(interval_seconds)
            self._schedule_next()
            try:
                if not self.coordinator.load_config().auto_purge:
                    self.logger.info("Auto purge switched off, tick skipped")
                    if self.metrics:
                        self.metrics.increment_counter("scheduled_purge_runs_total", status="skipped")
                    continue
                await self.run_once()
            except Exception as exc:
                self.logger.error("Scheduled purge tick failed", error=str(exc), exc_info=True)
                if self.metrics:
                    self.metrics.increment_counter("scheduled_purge_runs_total", status="error")
