"""Setup script for DeepWiki MCP Backend"""

from setuptools import setup, find_packages

setup(
    name="deepwiki-mcp-backend",
    version="1.0.0",
    description="Repository-scoped MCP server and usage accounting for OpenDeepWiki",
    packages=find_packages(include=["deepwiki_mcp", "deepwiki_mcp.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn[standard]>=0.23.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "sqlalchemy[asyncio]>=2.0.0",
        "aiomysql>=0.2.0",
        "alembic>=1.12.0",
        "fastmcp>=2.10.0",
        "langchain-core>=0.2.0",
        "langchain-openai>=0.1.0",
        "python-jose[cryptography]>=3.3.0",
        "structlog>=23.1.0",
        "prometheus-client>=0.18.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "hypothesis>=6.80.0",
            "httpx>=0.24.0",
            "aiosqlite>=0.19.0",
        ]
    },
)
