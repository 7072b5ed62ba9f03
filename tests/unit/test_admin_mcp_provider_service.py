"""Unit tests for MCP provider administration"""

from datetime import date, datetime

import pytest
from sqlalchemy import select

from deepwiki_mcp.models import (
    AIModelConfigModel,
    MCPDailyStatisticModel,
    MCPProviderModel,
    MCPUsageLogModel,
    UserModel,
)
from deepwiki_mcp.schemas.common import envelope
from deepwiki_mcp.schemas.mcp_provider import MCPProviderRequest, MCPUsageLogFilter
from deepwiki_mcp.services.admin_mcp_provider_service import (
    AdminMCPProviderService,
    clamp_statistics_days,
)


SCOPED_URL = "/api/mcp/{owner}/{repo}"
TODAY = date(2024, 5, 10)


def provider_request(**overrides):
    values = {"name": "DeepWiki", "description": "Repository docs"}
    values.update(overrides)
    return MCPProviderRequest(**values)


@pytest.fixture
def service(db_session):
    return AdminMCPProviderService(db_session, clock=lambda: TODAY)


# ============================================================================
# Providers
# ============================================================================

@pytest.mark.asyncio
async def test_create_provider_hides_system_key(service, db_session):
    dto = await service.create_provider(provider_request(system_api_key="sk-secret", server_url="https://ignored"))

    assert dto.has_system_api_key is True
    assert dto.server_url == SCOPED_URL
    body = envelope(dto)
    assert body["data"]["hasSystemApiKey"] is True
    assert "systemApiKey" not in body["data"]
    assert "sk-secret" not in str(body)

    stored = await db_session.get(MCPProviderModel, dto.id)
    assert stored.system_api_key == "sk-secret"
    assert stored.server_url == SCOPED_URL


@pytest.mark.asyncio
async def test_create_provider_resolves_model_config_name(service, db_session):
    config = AIModelConfigModel(name="GPT-4o", model_id="gpt-4o")
    db_session.add(config)
    await db_session.commit()

    dto = await service.create_provider(provider_request(model_config_id=config.id))

    assert dto.model_config_name == "GPT-4o"


@pytest.mark.asyncio
async def test_update_keeps_key_when_not_supplied(service, db_session):
    created = await service.create_provider(provider_request(system_api_key="sk-secret"))

    updated = await service.update_provider(created.id, provider_request(name="Renamed", is_active=False))

    assert updated.name == "Renamed"
    assert updated.is_active is False
    assert updated.has_system_api_key is True
    stored = await db_session.get(MCPProviderModel, created.id)
    assert stored.system_api_key == "sk-secret"


@pytest.mark.asyncio
async def test_update_replaces_key_when_supplied(service, db_session):
    created = await service.create_provider(provider_request(system_api_key="sk-old"))

    await service.update_provider(created.id, provider_request(system_api_key="sk-new"))

    stored = await db_session.get(MCPProviderModel, created.id)
    assert stored.system_api_key == "sk-new"


@pytest.mark.asyncio
async def test_update_missing_provider(service):
    assert await service.update_provider("does-not-exist", provider_request()) is None


@pytest.mark.asyncio
async def test_delete_is_soft(service, db_session):
    created = await service.create_provider(provider_request())

    assert await service.delete_provider(created.id) is True

    stored = await db_session.get(MCPProviderModel, created.id)
    assert stored.is_deleted is True
    assert stored.deleted_at is not None
    assert await service.list_providers() == []
    assert await service.delete_provider(created.id) is False
    assert await service.update_provider(created.id, provider_request()) is None


@pytest.mark.asyncio
async def test_list_orders_by_sort_order_then_name(service):
    await service.create_provider(provider_request(name="Beta", sort_order=1))
    await service.create_provider(provider_request(name="Alpha", sort_order=1))
    await service.create_provider(provider_request(name="Zulu", sort_order=0, is_active=False))

    names = [p.name for p in await service.list_providers()]

    assert names == ["Zulu", "Alpha", "Beta"]


@pytest.mark.asyncio
async def test_public_list_only_active(service):
    await service.create_provider(provider_request(name="Visible", system_api_key="sk-secret"))
    await service.create_provider(provider_request(name="Hidden", is_active=False))
    deleted = await service.create_provider(provider_request(name="Deleted"))
    await service.delete_provider(deleted.id)

    providers = await service.list_public_providers()

    assert [p.name for p in providers] == ["Visible"]
    data = envelope(providers)["data"][0]
    assert data["serverUrl"] == SCOPED_URL
    assert "hasSystemApiKey" not in data
    assert "systemApiKey" not in data


# ============================================================================
# Usage logs
# ============================================================================

async def seed_usage(db_session):
    user = UserModel(name="Alice", email="alice@example.com")
    provider = MCPProviderModel(name="DeepWiki", server_url=SCOPED_URL)
    db_session.add_all([user, provider])
    await db_session.flush()

    for index, (user_id, tool_name) in enumerate([
        (user.id, "search_doc"),
        (user.id, "read_file"),
        ("anonymous", "search_doc"),
        (user.id, "POST /api/mcp/acme/widgets"),
    ]):
        db_session.add(MCPUsageLogModel(
            user_id=user_id,
            mcp_provider_id=provider.id,
            tool_name=tool_name,
            response_status=200,
            duration_ms=index,
            created_at=datetime(2024, 5, 10, 12, index),
        ))
    db_session.add(MCPUsageLogModel(
        user_id=user.id,
        mcp_provider_id=provider.id,
        tool_name="search_doc",
        response_status=200,
        duration_ms=0,
        created_at=datetime(2024, 5, 10, 13),
        is_deleted=True,
    ))
    await db_session.commit()
    return user, provider


@pytest.mark.asyncio
async def test_usage_logs_newest_first_with_names(service, db_session):
    user, provider = await seed_usage(db_session)

    page = await service.get_usage_logs(MCPUsageLogFilter())

    assert page.total == 4
    assert [log.tool_name for log in page.items] == [
        "POST /api/mcp/acme/widgets",
        "search_doc",
        "read_file",
        "search_doc",
    ]
    assert page.items[0].user_name == "Alice"
    assert page.items[0].mcp_provider_name == "DeepWiki"
    assert page.items[1].user_id == "anonymous"
    assert page.items[1].user_name is None


@pytest.mark.asyncio
async def test_usage_logs_filters(service, db_session):
    user, provider = await seed_usage(db_session)

    by_tool = await service.get_usage_logs(MCPUsageLogFilter(tool_name="search"))
    by_user = await service.get_usage_logs(MCPUsageLogFilter(user_id=user.id))
    by_provider = await service.get_usage_logs(MCPUsageLogFilter(mcp_provider_id="other"))

    assert by_tool.total == 2
    assert by_user.total == 3
    assert by_provider.total == 0
    assert by_provider.items == []


@pytest.mark.asyncio
async def test_usage_logs_pagination(service, db_session):
    await seed_usage(db_session)

    page = await service.get_usage_logs(MCPUsageLogFilter(page=2, page_size=3))

    assert page.total == 4
    assert page.page == 2
    assert page.page_size == 3
    assert [log.duration_ms for log in page.items] == [0]


def test_usage_log_filter_clamps_paging():
    assert MCPUsageLogFilter(page=0, page_size=0).page == 1
    assert MCPUsageLogFilter(page=-5, page_size=0).page_size == 20
    assert MCPUsageLogFilter(page_size=1000).page_size == 100
    assert MCPUsageLogFilter(tool_name="  ").tool_name is None


# ============================================================================
# Statistics
# ============================================================================

@pytest.mark.parametrize("days,expected", [(None, 7), (0, 1), (-4, 1), (30, 30), (1000, 365)])
def test_clamp_statistics_days(days, expected):
    assert clamp_statistics_days(days) == expected


@pytest.mark.asyncio
async def test_statistics_zero_filled_and_summed(service, db_session):
    db_session.add_all([
        MCPDailyStatisticModel(mcp_provider_id="p1", date=date(2024, 5, 10), request_count=3, success_count=2, error_count=1, input_tokens=10, output_tokens=20),
        MCPDailyStatisticModel(mcp_provider_id="p2", date=date(2024, 5, 10), request_count=2, success_count=2, error_count=0),
        MCPDailyStatisticModel(mcp_provider_id="p1", date=date(2024, 5, 8), request_count=1, success_count=1, error_count=0),
        MCPDailyStatisticModel(mcp_provider_id="p1", date=date(2024, 5, 9), request_count=50, is_deleted=True),
        MCPDailyStatisticModel(mcp_provider_id="p1", date=date(2024, 5, 1), request_count=70),
    ])
    await db_session.commit()

    response = await service.get_usage_statistics(3)

    assert [u.date for u in response.daily_usages] == [date(2024, 5, 8), date(2024, 5, 9), date(2024, 5, 10)]
    assert [u.request_count for u in response.daily_usages] == [1, 0, 5]
    assert response.daily_usages[2].success_count == 4
    assert response.daily_usages[2].error_count == 1
    assert response.total_requests == 6
    assert response.total_successful == 5
    assert response.total_errors == 1
    assert response.total_input_tokens == 10
    assert response.total_output_tokens == 20


@pytest.mark.asyncio
async def test_statistics_default_window(service):
    response = await service.get_usage_statistics()

    assert len(response.daily_usages) == 7
    assert response.daily_usages[-1].date == TODAY
    assert response.total_requests == 0
    body = envelope(response)["data"]
    assert set(body) >= {"dailyUsages", "totalRequests", "totalSuccessful", "totalErrors"}
