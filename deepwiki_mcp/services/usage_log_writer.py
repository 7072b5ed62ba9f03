"""Background writer draining usage logs from a bounded in-process queue"""

import asyncio
from typing import Optional

from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.core.monitoring import MetricsCollector
from deepwiki_mcp.services.usage_log_service import MCPUsageLogService, UsageLogRecord

logger = get_logger(__name__)


class UsageLogWriter:
    """
    Single consumer task persisting usage logs in arrival order.

    ``submit`` never blocks the request path: when the queue is full the
    record is dropped and counted.

    Args:
        usage_log_service: Service that persists one record
        max_queue_size: Queue capacity before records are dropped
    """

    def __init__(self, usage_log_service: MCPUsageLogService, max_queue_size: int = 1000):
        self.usage_log_service = usage_log_service
        self.max_queue_size = max_queue_size
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, record: UsageLogRecord) -> bool:
        """Enqueue a record; returns False if it was dropped"""
        try:
            self._queue.put_nowait(record)
            return True
        except asyncio.QueueFull:
            MetricsCollector.record_usage_log("dropped")
            logger.warning(
                "mcp_usage_log_dropped",
                tool_name=record.tool_name,
                queue_size=self.max_queue_size,
            )
            return False

    async def start(self) -> None:
        if self.is_running:
            logger.warning("usage_log_writer_already_running")
            return
        self._task = asyncio.create_task(self._run())
        logger.info("usage_log_writer_started", queue_size=self.max_queue_size)

    async def _run(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await self.usage_log_service.log_usage(record)
            except Exception as e:
                logger.error(
                    "usage_log_writer_error",
                    tool_name=record.tool_name,
                    error=str(e),
                    exc_info=True,
                )
            finally:
                self._queue.task_done()

    async def stop(self, timeout: float = 10.0) -> None:
        """
        Flush queued records and stop the consumer.

        Args:
            timeout: Maximum time to wait for the queue to drain (seconds)
        """
        if self._task is None:
            return

        logger.info("usage_log_writer_stopping", pending=self.pending, timeout=timeout)
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("usage_log_writer_flush_timeout", pending=self.pending)

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            logger.debug("usage_log_writer_task_cancelled")
        self._task = None
        logger.info("usage_log_writer_stopped")
