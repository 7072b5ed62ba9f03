"""DeepWiki MCP backend: repository-scoped MCP tools and usage accounting"""

__version__ = "1.0.0"
