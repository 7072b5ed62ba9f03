"""Integration tests for MCP provider HTTP endpoints"""

from datetime import datetime

import pytest

from deepwiki_mcp.core.security import create_access_token
from deepwiki_mcp.models import MCPDailyStatisticModel, MCPUsageLogModel
from deepwiki_mcp.services.statistics_aggregator import utc_today


ADMIN_BASE = "/api/admin/mcp-providers"
PROVIDER_PAYLOAD = {
    "name": "DeepWiki",
    "description": "Repository documentation",
    "requiresApiKey": False,
    "systemApiKey": "sk-very-secret",
    "sortOrder": 1,
    "maxRequestsPerDay": 100,
}


# ============================================================================
# Authorization
# ============================================================================

@pytest.mark.integration
@pytest.mark.asyncio
async def test_admin_endpoints_require_token(client):
    response = await client.get(ADMIN_BASE)
    assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
async def test_admin_endpoints_reject_invalid_token(client):
    response = await client.get(ADMIN_BASE, headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
async def test_admin_endpoints_reject_unknown_user(client, db_session):
    token = create_access_token("ghost", "Ghost", "admin")
    response = await client.get(ADMIN_BASE, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
async def test_admin_endpoints_reject_non_admin(client, user_headers):
    response = await client.get(ADMIN_BASE, headers=user_headers)

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin role required"


# ============================================================================
# Provider CRUD
# ============================================================================

@pytest.mark.integration
@pytest.mark.asyncio
async def test_create_and_list_providers(client, admin_headers):
    created = await client.post(ADMIN_BASE, json=PROVIDER_PAYLOAD, headers=admin_headers)

    assert created.status_code == 200
    body = created.json()
    assert body["success"] is True
    data = body["data"]
    assert data["name"] == "DeepWiki"
    assert data["serverUrl"] == "/api/mcp/{owner}/{repo}"
    assert data["hasSystemApiKey"] is True
    assert data["maxRequestsPerDay"] == 100
    assert "systemApiKey" not in data
    assert "sk-very-secret" not in created.text

    listed = await client.get(ADMIN_BASE, headers=admin_headers)
    assert [p["id"] for p in listed.json()["data"]] == [data["id"]]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_create_rejects_blank_name(client, admin_headers):
    response = await client.post(ADMIN_BASE, json={"name": "   "}, headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["success"] is False


@pytest.mark.integration
@pytest.mark.asyncio
async def test_update_provider(client, admin_headers):
    created = (await client.post(ADMIN_BASE, json=PROVIDER_PAYLOAD, headers=admin_headers)).json()["data"]

    response = await client.put(
        f"{ADMIN_BASE}/{created['id']}",
        json={"name": "DeepWiki Docs", "isActive": False},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "DeepWiki Docs"
    assert data["isActive"] is False
    assert data["hasSystemApiKey"] is True


@pytest.mark.integration
@pytest.mark.asyncio
async def test_update_missing_provider_is_404(client, admin_headers):
    response = await client.put(f"{ADMIN_BASE}/missing", json={"name": "x"}, headers=admin_headers)

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "MCP provider not found"}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_delete_provider(client, admin_headers):
    created = (await client.post(ADMIN_BASE, json=PROVIDER_PAYLOAD, headers=admin_headers)).json()["data"]

    deleted = await client.delete(f"{ADMIN_BASE}/{created['id']}", headers=admin_headers)
    again = await client.delete(f"{ADMIN_BASE}/{created['id']}", headers=admin_headers)
    listed = await client.get(ADMIN_BASE, headers=admin_headers)

    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "message": "MCP provider deleted"}
    assert again.status_code == 404
    assert listed.json()["data"] == []


# ============================================================================
# Public listing
# ============================================================================

@pytest.mark.integration
@pytest.mark.asyncio
async def test_public_providers_need_no_auth(client, admin_headers):
    await client.post(ADMIN_BASE, json=PROVIDER_PAYLOAD, headers=admin_headers)
    await client.post(ADMIN_BASE, json={"name": "Disabled", "isActive": False}, headers=admin_headers)

    response = await client.get("/api/mcp-providers")

    assert response.status_code == 200
    data = response.json()["data"]
    assert [p["name"] for p in data] == ["DeepWiki"]
    assert data[0]["requiresApiKey"] is False
    assert "hasSystemApiKey" not in data[0]
    assert "sk-very-secret" not in response.text


# ============================================================================
# Usage logs and statistics
# ============================================================================

@pytest.mark.integration
@pytest.mark.asyncio
async def test_usage_logs_endpoint(client, admin_headers, db_session, regular_user):
    for minute, tool_name in enumerate(["search_doc", "read_file", "search_doc"]):
        db_session.add(MCPUsageLogModel(
            user_id=regular_user.id,
            mcp_provider_id="unknown",
            tool_name=tool_name,
            response_status=200,
            duration_ms=5,
            created_at=datetime(2024, 5, 10, 12, minute),
        ))
    await db_session.commit()

    response = await client.get(
        f"{ADMIN_BASE}/usage-logs",
        params={"toolName": "search", "userId": regular_user.id, "page": 0, "pageSize": 1},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 2
    assert data["page"] == 1
    assert data["pageSize"] == 1
    assert len(data["items"]) == 1
    item = data["items"][0]
    assert item["toolName"] == "search_doc"
    assert item["userName"] == "Alice"
    assert item["mcpProviderName"] is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_statistics_endpoint(client, admin_headers, db_session):
    db_session.add(MCPDailyStatisticModel(
        mcp_provider_id="p1",
        date=utc_today(),
        request_count=4,
        success_count=3,
        error_count=1,
    ))
    await db_session.commit()

    response = await client.get(f"{ADMIN_BASE}/statistics", params={"days": 2}, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["dailyUsages"]) == 2
    assert data["dailyUsages"][-1]["requestCount"] == 4
    assert data["totalRequests"] == 4
    assert data["totalSuccessful"] == 3
    assert data["totalErrors"] == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_statistics_days_clamped(client, admin_headers):
    response = await client.get(f"{ADMIN_BASE}/statistics", params={"days": 5000}, headers=admin_headers)

    assert len(response.json()["data"]["dailyUsages"]) == 365


@pytest.mark.integration
@pytest.mark.asyncio
async def test_root_advertises_scoped_mcp_path(client):
    response = await client.get("/")

    assert response.json()["mcp"] == "/api/mcp/{owner}/{repo}"
