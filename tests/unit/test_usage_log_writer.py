"""Unit tests for the background usage log writer"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from deepwiki_mcp.services.usage_log_service import UsageLogRecord
from deepwiki_mcp.services.usage_log_writer import UsageLogWriter


def record(tool_name="search_doc", status=200):
    return UsageLogRecord(tool_name=tool_name, response_status=status, duration_ms=1)


def fake_service(side_effect=None):
    service = MagicMock()
    service.log_usage = AsyncMock(return_value=True, side_effect=side_effect)
    return service


@pytest.mark.asyncio
async def test_submitted_records_are_written_in_order():
    service = fake_service()
    writer = UsageLogWriter(service, max_queue_size=10)
    await writer.start()

    for name in ("search_doc", "read_file", "get_repo_structure"):
        assert writer.submit(record(name)) is True
    await writer.stop()

    written = [call.args[0].tool_name for call in service.log_usage.await_args_list]
    assert written == ["search_doc", "read_file", "get_repo_structure"]
    assert not writer.is_running


@pytest.mark.asyncio
async def test_full_queue_drops_record():
    service = fake_service()
    writer = UsageLogWriter(service, max_queue_size=1)

    assert writer.submit(record("first")) is True
    assert writer.submit(record("second")) is False
    assert writer.pending == 1


@pytest.mark.asyncio
async def test_stop_flushes_pending_records():
    service = fake_service()
    writer = UsageLogWriter(service, max_queue_size=5)
    for _ in range(5):
        writer.submit(record())

    await writer.start()
    await writer.stop(timeout=5)

    assert service.log_usage.await_count == 5
    assert writer.pending == 0


@pytest.mark.asyncio
async def test_failing_write_does_not_stop_consumer():
    service = fake_service(side_effect=[RuntimeError("boom"), True])
    writer = UsageLogWriter(service)
    await writer.start()

    writer.submit(record("first"))
    writer.submit(record("second"))
    await writer.stop()

    assert service.log_usage.await_count == 2


@pytest.mark.asyncio
async def test_stop_gives_up_after_timeout():
    async def slow_write(item):
        await asyncio.sleep(10)

    service = MagicMock()
    service.log_usage = slow_write
    writer = UsageLogWriter(service)
    await writer.start()
    writer.submit(record())

    await asyncio.wait_for(writer.stop(timeout=0.05), timeout=2)

    assert not writer.is_running


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    writer = UsageLogWriter(fake_service())
    await writer.stop()
    assert not writer.is_running


@pytest.mark.asyncio
async def test_start_twice_keeps_one_consumer():
    writer = UsageLogWriter(fake_service())
    await writer.start()
    task = writer._task

    await writer.start()

    assert writer._task is task
    await writer.stop()
