#!/usr/bin/env python
"""
Aggregate MCP usage logs into daily statistics.

Usage:
    python scripts/aggregate_statistics.py                         # Today and yesterday (UTC)
    python scripts/aggregate_statistics.py 2026-01-10              # One day
    python scripts/aggregate_statistics.py 2026-01-01 2026-01-10   # Inclusive range (back-fill)
"""

import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path

# Ensure we're in the project root
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from deepwiki_mcp.core.database import close_database, get_session_factory, init_database  # noqa: E402
from deepwiki_mcp.core.logging_config import get_logger  # noqa: E402
from deepwiki_mcp.services.statistics_aggregator import utc_today  # noqa: E402
from deepwiki_mcp.services.usage_log_service import MCPUsageLogService  # noqa: E402

logger = get_logger("aggregate_statistics")


def parse_days(args: list[str]) -> list[date]:
    """Days to aggregate from command-line arguments"""
    if not args:
        today = utc_today()
        return [today, today - timedelta(days=1)]

    start = date.fromisoformat(args[0])
    end = date.fromisoformat(args[1]) if len(args) > 1 else start
    if end < start:
        raise ValueError(f"End date {end} is before start date {start}")
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


async def aggregate(days: list[date]) -> int:
    await init_database()
    try:
        service = MCPUsageLogService(get_session_factory())
        for day in days:
            rows = await service.aggregate_daily_statistics(day)
            print(f"{day.isoformat()}: {rows} provider row(s)")
    finally:
        await close_database()
    return 0


def main() -> int:
    if len(sys.argv) > 1 and sys.argv[1] in ("-h", "--help"):
        print(__doc__)
        return 0

    try:
        days = parse_days(sys.argv[1:3])
    except ValueError as e:
        print(f"Error: {e}")
        print(__doc__)
        return 1

    logger.info("statistics_backfill_started", days=len(days))
    return asyncio.run(aggregate(days))


if __name__ == "__main__":
    sys.exit(main())
