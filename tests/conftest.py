"""Shared test fixtures for all tests"""

from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from deepwiki_mcp.core.database import create_session_factory
from deepwiki_mcp.core.security import create_access_token
from deepwiki_mcp.models import (
    Base,
    BranchLanguageModel,
    DocCatalogModel,
    DocFileModel,
    RepositoryBranchModel,
    RepositoryModel,
    UserModel,
    UserRole,
)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine (in-memory SQLite shared by all sessions)"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    """Session factory bound to the test engine"""
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session"""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ============================================================================
# Users and tokens
# ============================================================================

@pytest_asyncio.fixture
async def admin_user(db_session):
    user = UserModel(name="Admin", email="admin@example.com", role=UserRole.ADMIN)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def regular_user(db_session):
    user = UserModel(name="Alice", email="alice@example.com", role=UserRole.USER)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def admin_headers(admin_user):
    token = create_access_token(admin_user.id, admin_user.name, "admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(regular_user):
    token = create_access_token(regular_user.id, regular_user.name, "user")
    return {"Authorization": f"Bearer {token}"}


# ============================================================================
# Repository documentation
# ============================================================================

async def seed_repository(session, owner="acme", repo="widgets", docs=None, language="en"):
    """
    Insert a repository with one branch, one language variant and a catalog.

    ``docs`` is a list of (title, path, content, sort_order) tuples.
    """
    repository = RepositoryModel(org_name=owner, repo_name=repo)
    session.add(repository)
    await session.flush()

    branch = RepositoryBranchModel(repository_id=repository.id, branch_name="main")
    session.add(branch)
    await session.flush()

    branch_language = BranchLanguageModel(repository_branch_id=branch.id, language_code=language)
    session.add(branch_language)
    await session.flush()

    for title, path, content, sort_order in docs or []:
        doc_file = DocFileModel(content=content)
        session.add(doc_file)
        await session.flush()
        session.add(DocCatalogModel(
            branch_language_id=branch_language.id,
            title=title,
            path=path,
            sort_order=sort_order,
            doc_file_id=doc_file.id,
        ))

    await session.commit()
    return repository


@pytest.fixture
def mcp_session():
    """Stand-in for an MCP server session: any object that takes attributes"""
    return SimpleNamespace()


# ============================================================================
# HTTP client
# ============================================================================

@pytest_asyncio.fixture
async def client(session_factory):
    """Create test HTTP client for API integration tests"""
    from httpx import ASGITransport, AsyncClient
    from deepwiki_mcp.main import app
    from deepwiki_mcp.core.database import get_db

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    # The lifespan does not run under ASGITransport, so no usage log writer is attached
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers",
        "asyncio: mark test as async"
    )
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers",
        "property: mark test as property-based test"
    )
