"""Repository-scoped MCP server"""
