"""FastMCP server exposing the repository tools

The HTTP app is mounted under ``MCP_PATH_PREFIX`` with the inner route
``/{owner}/{repo}``. Each tool call binds the owner/repo of the current HTTP
request to the MCP session and leaves its name on ``request.state`` for the
usage logging middleware.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Optional

from fastmcp import Context, FastMCP
from fastmcp.server.dependencies import get_http_request

from deepwiki_mcp.core.config import settings
from deepwiki_mcp.core.database import get_session_factory
from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.core.monitoring import MetricsCollector
from deepwiki_mcp.mcp.repository_tools import RepositoryTools
from deepwiki_mcp.mcp.scope import clear_scope, set_scope
from deepwiki_mcp.mcp.summarizer import DocSearchSummarizer

logger = get_logger(__name__)

TOOL_NAME_STATE_KEY = "mcp_tool_name"
REPOSITORY_ROUTE = "/{owner}/{repo}"

mcp = FastMCP(
    settings.APP_NAME,
    instructions=(
        "Documentation tools for one repository. Connect to "
        f"{settings.repository_scoped_mcp_path}; every tool answers for that repository."
    ),
)


def bind_request_scope(ctx: Context, tool_name: str) -> None:
    """Record the tool name on the HTTP request and bind its owner/repo to the session"""
    try:
        request = get_http_request()
    except RuntimeError:
        # Not served over HTTP (stdio): there is no route to take a scope from
        clear_scope(ctx.session)
        return

    setattr(request.state, TOOL_NAME_STATE_KEY, tool_name)
    set_scope(
        ctx.session,
        request.path_params.get("owner"),
        request.path_params.get("repo"),
    )


async def run_tool(
    ctx: Context,
    tool_name: str,
    call: Callable[[RepositoryTools], Awaitable[Dict[str, Any]]],
) -> Dict[str, Any]:
    bind_request_scope(ctx, tool_name)

    start_time = time.perf_counter()
    outcome = "error"
    try:
        async with get_session_factory()() as db:
            tools = RepositoryTools(
                ctx.session,
                db,
                settings.REPOSITORIES_DIRECTORY,
                summarizer=DocSearchSummarizer(db),
            )
            result = await call(tools)
        if not result.get("error"):
            outcome = "ok"
        return result
    except Exception as e:
        logger.error(
            "mcp_tool_failed",
            tool=tool_name,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        raise
    finally:
        MetricsCollector.record_tool_call(tool_name, outcome, time.perf_counter() - start_time)


@mcp.tool(name="search_doc")
async def search_doc(
    query: str,
    max_results: int = 5,
    language: str = "en",
    ctx: Context = None,
) -> Dict[str, Any]:
    """
    Search documentation within the current repository and return summarized insights.

    Args:
        query: Search query or question to answer
        max_results: Maximum number of documents to return (default 5, max 20)
        language: Documentation language code (default "en")
    """
    return await run_tool(
        ctx,
        "search_doc",
        lambda tools: tools.search_doc(query, max_results=max_results, language=language),
    )


@mcp.tool(name="get_repo_structure")
async def get_repo_structure(
    path: Optional[str] = None,
    max_depth: int = 3,
    max_entries: int = 200,
    ctx: Context = None,
) -> Dict[str, Any]:
    """
    Get the repository directory structure. Useful for understanding module layout.

    Args:
        path: Optional subdirectory relative to the repository root
        max_depth: Maximum depth to traverse (default 3)
        max_entries: Maximum entries to return (default 200)
    """
    return await run_tool(
        ctx,
        "get_repo_structure",
        lambda tools: tools.get_repo_structure(path, max_depth=max_depth, max_entries=max_entries),
    )


@mcp.tool(name="read_file")
async def read_file(
    path: str,
    offset: int = 1,
    limit: int = 2000,
    ctx: Context = None,
) -> Dict[str, Any]:
    """
    Read a file from the current repository. Returns file content with line numbers.

    Args:
        path: File path relative to the repository root
        offset: Line number to start reading from (1-based, default 1)
        limit: Maximum number of lines to read (default 2000)
    """
    return await run_tool(
        ctx,
        "read_file",
        lambda tools: tools.read_file(path, offset=offset, limit=limit),
    )


def create_mcp_http_app():
    """Streamable-HTTP ASGI app serving the MCP server at ``/{owner}/{repo}``"""
    return mcp.http_app(
        path=REPOSITORY_ROUTE,
        json_response=True,
        stateless_http=settings.MCP_STATELESS_HTTP,
    )
