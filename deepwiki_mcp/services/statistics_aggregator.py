"""Periodic roll-up of MCP usage logs into daily statistics"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional

from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.core.monitoring import MetricsCollector
from deepwiki_mcp.services.usage_log_service import MCPUsageLogService

logger = get_logger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class StatisticsAggregationService:
    """
    Background loop aggregating today's and yesterday's usage (UTC).

    The first cycle runs after ``initial_delay`` seconds, then one cycle every
    ``interval`` seconds. A failing cycle is logged and counted; the loop keeps
    going. ``stop`` interrupts any sleep immediately.

    Args:
        usage_log_service: Service performing the per-day aggregation
        initial_delay: Seconds to wait before the first cycle
        interval: Seconds between cycles
        clock: Returns the current UTC date (injectable for tests)
    """

    def __init__(
        self,
        usage_log_service: MCPUsageLogService,
        initial_delay: float = 120,
        interval: float = 3600,
        clock: Optional[Callable[[], date]] = None,
    ):
        self.usage_log_service = usage_log_service
        self.initial_delay = initial_delay
        self.interval = interval
        self.clock = clock or utc_today
        self.cycles_completed = 0
        self.cycles_failed = 0
        self._shutdown_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._cycle_running = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Run the aggregation loop as a background task."""
        if self.is_running:
            logger.warning("statistics_aggregator_already_running")
            return

        self._shutdown_event.clear()
        self._task = asyncio.create_task(self.run())
        logger.info(
            "statistics_aggregator_started",
            initial_delay=self.initial_delay,
            interval=self.interval,
        )

    async def run(self) -> None:
        try:
            if await self._wait(self.initial_delay):
                return

            while not self._shutdown_event.is_set():
                try:
                    self._cycle_running = True
                    await self.run_once()
                    self.cycles_completed += 1
                    MetricsCollector.record_aggregation("success")
                except Exception as e:
                    self.cycles_failed += 1
                    MetricsCollector.record_aggregation("failure")
                    logger.error(
                        "statistics_aggregation_failed",
                        error=str(e),
                        error_type=type(e).__name__,
                        exc_info=True,
                    )
                finally:
                    self._cycle_running = False

                if await self._wait(self.interval):
                    return
        finally:
            logger.info("statistics_aggregator_loop_exited")

    async def run_once(self) -> List[date]:
        """Aggregate the current UTC day and the day before; returns the days processed."""
        today = self.clock()
        days = [today, today - timedelta(days=1)]
        for day in days:
            await self.usage_log_service.aggregate_daily_statistics(day)
        logger.debug("statistics_aggregation_cycle_completed", days=[d.isoformat() for d in days])
        return days

    async def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True if shutdown was requested meanwhile"""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            # Normal timeout, time for the next cycle
            pass
        return self._shutdown_event.is_set()

    async def stop(self, timeout: float = 30.0) -> None:
        """
        Stop the loop gracefully.

        Waits for an in-flight cycle to complete or timeout, then cancels.

        Args:
            timeout: Maximum time to wait for graceful shutdown (seconds)
        """
        if self._task is None:
            return

        logger.info("statistics_aggregator_stopping", cycle_running=self._cycle_running)
        self._shutdown_event.set()

        if not self._task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("statistics_aggregator_shutdown_timeout", timeout=timeout)
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    logger.info("statistics_aggregator_cycle_cancelled")

        self._task = None
        logger.info("statistics_aggregator_stopped")
