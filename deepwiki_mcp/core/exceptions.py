"""Custom exceptions for the DeepWiki MCP backend"""

from typing import Optional, Dict, Any
from datetime import datetime


class RepositoryToolError(Exception):
    """
    Raised inside the repository tool set when a call cannot be answered.

    Tools never let this escape to the MCP client: the tool boundary turns it
    into the structured ``{"error": true, "message": ...}`` payload.

    This exception is raised when:
    - No repository scope is bound to the MCP session
    - The repository, branch or language variant does not exist
    - A requested path is missing or escapes the repository workspace
    """

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize RepositoryToolError.

        Args:
            message: Human-readable message returned to the MCP client
            context: Tool or step where the error occurred (for logs only)
            details: Additional error details for debugging (for logs only)
        """
        self.message = message
        self.context = context
        self.details = details or {}
        self.timestamp = datetime.utcnow()

        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_type": "repository_tool_error",
            "message": self.message,
            "context": self.context,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }

    def to_payload(self) -> Dict[str, Any]:
        """
        Get the tool result returned to the MCP client.

        Returns:
            Dictionary with only the error flag and message
        """
        return {"error": True, "message": self.message}


class RepositoryScopeRequiredError(RepositoryToolError):
    """Raised when a tool is invoked on a session without a bound repository"""

    MESSAGE = "Repository scope is required. Call MCP via /api/mcp/{owner}/{repo}."

    def __init__(self):
        super().__init__(self.MESSAGE, context="scope")


class InvalidRepositoryPathError(RepositoryToolError):
    """Raised when a requested path escapes the repository workspace"""

    def __init__(self, requested_path: Optional[str] = None):
        super().__init__(
            "Invalid path",
            context="path_resolution",
            details={"requested_path": requested_path}
        )
