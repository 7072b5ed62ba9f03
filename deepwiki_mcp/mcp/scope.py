"""Repository scope bound to an MCP session

A client connects to ``/api/mcp/{owner}/{repo}``; the pair is attached to the
MCP session object so every tool call on that session knows which repository
it serves. The scope is a single typed attribute on the session.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple


SCOPE_ATTRIBUTE = "repository_scope"


@dataclass(frozen=True)
class RepositoryScope:
    owner: Optional[str] = None
    repo: Optional[str] = None

    @property
    def is_bound(self) -> bool:
        return bool(self.owner) and bool(self.repo)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


EMPTY_SCOPE = RepositoryScope()


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def set_scope(session: Any, owner: Optional[str], repo: Optional[str]) -> None:
    """
    Bind (owner, repo) to the session.

    If either value is blank the session's scope is cleared instead, so a
    half-specified scope can never be observed.

    Raises:
        ValueError: If session is None
    """
    if session is None:
        raise ValueError("session is required to set a repository scope")

    if _is_blank(owner) or _is_blank(repo):
        clear_scope(session)
        return

    setattr(session, SCOPE_ATTRIBUTE, RepositoryScope(owner=owner, repo=repo))


def get_scope(session: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return the (owner, repo) bound to the session, or (None, None)"""
    if session is None:
        return None, None

    scope = getattr(session, SCOPE_ATTRIBUTE, None)
    if not isinstance(scope, RepositoryScope) or not scope.is_bound:
        return None, None
    return scope.owner, scope.repo


def clear_scope(session: Any) -> None:
    if session is None:
        return
    setattr(session, SCOPE_ATTRIBUTE, EMPTY_SCOPE)
