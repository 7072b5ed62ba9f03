"""Repository documentation tools exposed over MCP

Every tool is answered for the repository bound to the calling MCP session
(see :mod:`deepwiki_mcp.mcp.scope`). Tools never raise to the client: any
:class:`RepositoryToolError` becomes ``{"error": true, "message": ...}``.
"""

import asyncio
import functools
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import String, Text, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from deepwiki_mcp.core.config import settings
from deepwiki_mcp.core.exceptions import (
    InvalidRepositoryPathError,
    RepositoryScopeRequiredError,
    RepositoryToolError,
)
from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.mcp.scope import get_scope
from deepwiki_mcp.models import (
    BranchLanguageModel,
    DocCatalogModel,
    DocFileModel,
    RepositoryBranchModel,
    RepositoryModel,
)

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 5
MAX_RESULTS_LIMIT = 20
DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_ENTRIES = 200
DEFAULT_READ_LIMIT = 2000
SNIPPET_CONTEXT_BEFORE = 2
SNIPPET_LINES = 5
SNIPPET_MAX_CHARS = 500
NO_MATCHES_SUMMARY = "No matching documentation found."


@dataclass
class DocSearchMatch:
    title: str
    path: str
    matchLine: int
    snippet: str


# ============================================================================
# Path helpers
# ============================================================================

def sanitize_path_component(component: str) -> str:
    """Make an owner or repo name safe to use as a single directory name"""
    sanitized = (
        (component or "")
        .replace("/", "_")
        .replace("\\", "_")
        .replace("..", "_")
        .strip()
    )
    if sanitized in ("", "."):
        return "_"
    return sanitized


def build_repository_path(repositories_directory: str, owner: str, repo: str) -> Path:
    """Working tree of a repository: {root}/{owner}/{repo}/tree"""
    return (
        Path(repositories_directory)
        / sanitize_path_component(owner)
        / sanitize_path_component(repo)
        / "tree"
    )


def normalize_relative_path(path: Optional[str]) -> str:
    """Normalize separators and strip surrounding slashes; '' means the root"""
    if path is None or not path.strip():
        return ""
    return path.strip().replace("\\", "/").strip("/")


def resolve_within(root: Path, relative: str) -> Path:
    """
    Resolve ``relative`` against ``root`` following symlinks.

    Raises:
        InvalidRepositoryPathError: If the path cannot be resolved or is outside ``root``
    """
    resolved_root = root.resolve()
    try:
        target = (resolved_root / relative).resolve() if relative else resolved_root
    except (ValueError, OSError):
        raise InvalidRepositoryPathError(relative)
    if target != resolved_root and resolved_root not in target.parents:
        raise InvalidRepositoryPathError(relative)
    return target


def _is_hidden(entry: Path) -> bool:
    return entry.name.startswith(".")


def _sort_key(entry: Path) -> str:
    return entry.name.lower()


def build_directory_tree(root: Path, max_depth: int, max_entries: int) -> List[str]:
    """
    Depth-first listing of ``root``.

    At every level directories come first, then files, each group ordered
    case-insensitively. Hidden entries are skipped. Symlinked directories are
    listed but not descended into.
    """
    entries: List[str] = []

    def walk(current: Path, depth: int, indent: str) -> None:
        if len(entries) >= max_entries:
            return

        children = [child for child in current.iterdir() if not _is_hidden(child)]
        directories = sorted((c for c in children if c.is_dir()), key=_sort_key)
        files = sorted((c for c in children if not c.is_dir()), key=_sort_key)

        for directory in directories:
            if len(entries) >= max_entries:
                return
            entries.append(f"{indent}{directory.name}/")
            if depth + 1 < max_depth and not directory.is_symlink():
                walk(directory, depth + 1, indent + "  ")

        for file in files:
            if len(entries) >= max_entries:
                return
            entries.append(f"{indent}{file.name}")

    walk(root, 0, "")
    return entries


def read_numbered_lines(file_path: Path, offset: int, limit: int) -> Dict[str, Any]:
    """Read ``limit`` lines from 1-based ``offset``, each prefixed with its line number"""
    text = file_path.read_bytes().decode("utf-8", errors="replace")
    lines = text.splitlines()
    selected = lines[offset - 1:offset - 1 + limit]
    width = len(str(max(len(lines), 1)))
    content = "\n".join(
        f"{number:>{width}}\t{line}"
        for number, line in enumerate(selected, start=offset)
    )
    return {"totalLines": len(lines), "content": content}


def build_snippet(content: Optional[str], match_line: int) -> str:
    lines = (content or "").split("\n")
    start = max(0, (match_line - 1 if match_line > 0 else 0) - SNIPPET_CONTEXT_BEFORE)
    snippet = "\n".join(lines[start:start + SNIPPET_LINES])
    if len(snippet) > SNIPPET_MAX_CHARS:
        snippet = snippet[:SNIPPET_MAX_CHARS] + "..."
    return snippet


def find_match_line(content: Optional[str], query: str) -> int:
    """1-based number of the first line containing ``query`` (case-insensitive), else -1"""
    lowered = query.lower()
    for index, line in enumerate((content or "").split("\n")):
        if lowered in line.lower():
            return index + 1
    return -1


def tool_errors_as_payload(func):
    """Convert RepositoryToolError raised by a tool method into its payload"""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except RepositoryToolError as e:
            logger.info("mcp_tool_rejected", tool=func.__name__, error=e.to_dict())
            return e.to_payload()
    return wrapper


# ============================================================================
# Tool set
# ============================================================================

class RepositoryTools:
    """
    The three repository tools, bound to one MCP session and one DB session.

    Args:
        mcp_session: MCP session carrying the repository scope
        db_session: SQLAlchemy async session for documentation lookups
        repositories_directory: Root of checked-out repository workspaces
        summarizer: Optional object with ``async summarize(owner, repo, query, matches)``
    """

    def __init__(
        self,
        mcp_session: Any,
        db_session: AsyncSession,
        repositories_directory: Optional[str] = None,
        summarizer: Any = None,
    ):
        self.mcp_session = mcp_session
        self.db = db_session
        self.repositories_directory = repositories_directory or settings.REPOSITORIES_DIRECTORY
        self.summarizer = summarizer

    def _require_scope(self) -> tuple:
        owner, repo = get_scope(self.mcp_session)
        if not owner or not repo or not owner.strip() or not repo.strip():
            raise RepositoryScopeRequiredError()
        return owner, repo

    async def _get_repository(self, owner: str, repo: str) -> RepositoryModel:
        result = await self.db.execute(
            select(RepositoryModel)
            .where(
                RepositoryModel.org_name == owner,
                RepositoryModel.repo_name == repo,
                RepositoryModel.is_deleted.is_(False),
            )
            .limit(1)
        )
        repository = result.scalars().first()
        if repository is None:
            raise RepositoryToolError(f"Repository {owner}/{repo} not found", context="repository")
        return repository

    def _get_workspace(self, owner: str, repo: str) -> Path:
        workspace = build_repository_path(self.repositories_directory, owner, repo)
        if not workspace.is_dir():
            raise RepositoryToolError(
                "Repository workspace not found on server",
                context="workspace",
                details={"workspace": str(workspace)},
            )
        return workspace

    # ------------------------------------------------------------------
    # search_doc
    # ------------------------------------------------------------------

    @tool_errors_as_payload
    async def search_doc(
        self,
        query: Optional[str],
        max_results: int = DEFAULT_MAX_RESULTS,
        language: str = "en",
    ) -> Dict[str, Any]:
        """
        Case-insensitive substring search over catalog titles and doc contents.

        Results are ordered by catalog sort order then path; there is no
        relevance ranking.
        """
        owner, repo = self._require_scope()

        if query is None or not query.strip():
            raise RepositoryToolError("Search query is required", context="search_doc")
        query = query.strip()

        if max_results <= 0:
            max_results = DEFAULT_MAX_RESULTS
        if max_results > MAX_RESULTS_LIMIT:
            max_results = MAX_RESULTS_LIMIT

        repository = await self._get_repository(owner, repo)

        branch_result = await self.db.execute(
            select(RepositoryBranchModel)
            .where(
                RepositoryBranchModel.repository_id == repository.id,
                RepositoryBranchModel.is_deleted.is_(False),
            )
            .order_by(RepositoryBranchModel.created_at)
            .limit(1)
        )
        branch = branch_result.scalars().first()
        if branch is None:
            raise RepositoryToolError("No branch found for this repository", context="search_doc")

        language_result = await self.db.execute(
            select(BranchLanguageModel)
            .where(
                BranchLanguageModel.repository_branch_id == branch.id,
                BranchLanguageModel.language_code == language,
                BranchLanguageModel.is_deleted.is_(False),
            )
            .limit(1)
        )
        branch_language = language_result.scalars().first()
        if branch_language is None:
            raise RepositoryToolError(
                f"No documentation in language '{language}'",
                context="search_doc",
            )

        lowered = query.lower()
        rows = await self.db.execute(
            select(DocCatalogModel.title, DocCatalogModel.path, DocFileModel.content)
            .join(DocFileModel, DocFileModel.id == DocCatalogModel.doc_file_id)
            .where(
                DocCatalogModel.branch_language_id == branch_language.id,
                DocCatalogModel.is_deleted.is_(False),
                DocCatalogModel.doc_file_id.is_not(None),
                DocCatalogModel.doc_file_id != "",
                DocFileModel.is_deleted.is_(False),
                or_(
                    func.lower(DocFileModel.content, type_=Text).contains(lowered, autoescape=True),
                    func.lower(DocCatalogModel.title, type_=String).contains(lowered, autoescape=True),
                ),
            )
            .order_by(DocCatalogModel.sort_order, DocCatalogModel.path)
            .limit(max_results)
        )

        matches = []
        for title, path, content in rows.all():
            match_line = find_match_line(content, query)
            matches.append(DocSearchMatch(
                title=title,
                path=path,
                matchLine=match_line,
                snippet=build_snippet(content, match_line),
            ))

        summary = await self._summarize(owner, repo, query, matches)

        logger.info(
            "mcp_search_doc_completed",
            repository=f"{owner}/{repo}",
            language=language,
            match_count=len(matches),
        )

        return {
            "repository": f"{owner}/{repo}",
            "branch": branch.branch_name,
            "language": language,
            "query": query,
            "matchCount": len(matches),
            "results": [asdict(match) for match in matches],
            "summary": summary,
        }

    async def _summarize(
        self,
        owner: str,
        repo: str,
        query: str,
        matches: List[DocSearchMatch],
    ) -> Optional[str]:
        if not matches:
            return NO_MATCHES_SUMMARY
        if self.summarizer is None:
            return None
        return await self.summarizer.summarize(owner, repo, query, matches)

    # ------------------------------------------------------------------
    # get_repo_structure
    # ------------------------------------------------------------------

    @tool_errors_as_payload
    async def get_repo_structure(
        self,
        path: Optional[str] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> Dict[str, Any]:
        """List the repository working tree, bounded by depth and entry count."""
        owner, repo = self._require_scope()

        if max_depth <= 0:
            max_depth = 1
        if max_entries <= 0:
            max_entries = DEFAULT_MAX_ENTRIES

        await self._get_repository(owner, repo)
        workspace = self._get_workspace(owner, repo)

        relative = normalize_relative_path(path)
        target = resolve_within(workspace, relative)
        if not target.is_dir():
            raise RepositoryToolError(f"Path '{relative}' does not exist", context="get_repo_structure")

        try:
            entries = await asyncio.to_thread(build_directory_tree, target, max_depth, max_entries)
        except OSError as e:
            raise RepositoryToolError(
                f"Failed to list '{relative or '/'}'",
                context="get_repo_structure",
                details={"error": str(e)},
            )

        return {
            "repository": f"{owner}/{repo}",
            "root": relative or "/",
            "depth": max_depth,
            "entryCount": len(entries),
            "truncated": len(entries) >= max_entries,
            "entries": entries,
        }

    # ------------------------------------------------------------------
    # read_file
    # ------------------------------------------------------------------

    @tool_errors_as_payload
    async def read_file(
        self,
        path: Optional[str],
        offset: int = 1,
        limit: int = DEFAULT_READ_LIMIT,
    ) -> Dict[str, Any]:
        """Read a window of a file in the working tree with line numbers."""
        owner, repo = self._require_scope()

        if path is None or not path.strip():
            raise RepositoryToolError("File path is required", context="read_file")

        if offset < 1:
            offset = 1
        if limit <= 0:
            limit = DEFAULT_READ_LIMIT

        await self._get_repository(owner, repo)
        workspace = self._get_workspace(owner, repo)

        relative = normalize_relative_path(path)
        if not relative:
            raise RepositoryToolError(f"File '{path}' not found", context="read_file")
        target = resolve_within(workspace, relative)
        if not target.is_file():
            raise RepositoryToolError(f"File '{relative}' not found", context="read_file")

        try:
            window = await asyncio.to_thread(read_numbered_lines, target, offset, limit)
        except OSError as e:
            raise RepositoryToolError(
                f"Failed to read file '{relative}'",
                context="read_file",
                details={"error": str(e)},
            )

        return {
            "repository": f"{owner}/{repo}",
            "path": relative,
            "offset": offset,
            "limit": limit,
            "totalLines": window["totalLines"],
            "content": window["content"],
        }
