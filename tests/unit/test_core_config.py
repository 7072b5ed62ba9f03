"""Unit tests for settings, log redaction and JWT helpers"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from deepwiki_mcp.core.config import Settings
from deepwiki_mcp.core.logging_config import censor_sensitive_data
from deepwiki_mcp.core.security import (
    create_access_token,
    decode_access_token,
    extract_user_id,
    get_bearer_token,
)


SECRET = "x" * 32


@pytest.mark.parametrize("prefix,expected", [
    ("/api/mcp", "/api/mcp"),
    ("api/mcp/", "/api/mcp"),
    ("  /mcp// ", "/mcp"),
])
def test_mcp_path_prefix_is_normalized(prefix, expected):
    settings = Settings(SECRET_KEY=SECRET, MCP_PATH_PREFIX=prefix)

    assert settings.MCP_PATH_PREFIX == expected
    assert settings.repository_scoped_mcp_path == f"{expected}/{{owner}}/{{repo}}"


def test_root_mcp_path_prefix_rejected():
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY=SECRET, MCP_PATH_PREFIX="/")


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY="short")


def test_negative_initial_delay_rejected():
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY=SECRET, MCP_AGGREGATION_INITIAL_DELAY_SECONDS=-1)


def test_censor_keeps_token_counters():
    event = censor_sensitive_data(None, "info", {
        "event": "mcp_usage_log_written",
        "system_api_key": "sk-secret",
        "access_token": "abc",
        "input_tokens": 12,
        "nested": {"password": "hunter2", "tool": "search_doc"},
    })

    assert event["system_api_key"] == "***REDACTED***"
    assert event["access_token"] == "***REDACTED***"
    assert event["input_tokens"] == 12
    assert event["nested"] == {"password": "***REDACTED***", "tool": "search_doc"}


def test_access_token_round_trip():
    token = create_access_token("user-1", "Alice", "user")

    payload = decode_access_token(token)

    assert extract_user_id(payload) == "user-1"
    assert payload["role"] == "user"


def test_expired_token_is_rejected():
    token = create_access_token("user-1", "Alice", "user", expires_delta=timedelta(seconds=-10))

    assert decode_access_token(token) is None
    assert extract_user_id(None) is None


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc.def", "abc.def"),
    ("bearer abc", "abc"),
    ("Basic abc", None),
    ("Bearer ", None),
    (None, None),
])
def test_get_bearer_token(header, expected):
    assert get_bearer_token(header) == expected
