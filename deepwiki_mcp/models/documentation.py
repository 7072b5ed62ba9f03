"""Repository documentation models

These tables belong to the documentation pipeline. The MCP tools only read
them: repository -> branch -> language variant -> catalog entries -> doc files.
"""

from sqlalchemy import Column, String, Integer, Text, ForeignKey, Index
from sqlalchemy.dialects.mysql import CHAR, LONGTEXT
from deepwiki_mcp.models.base import BaseModel, SoftDeleteMixin


class RepositoryModel(SoftDeleteMixin, BaseModel):
    __tablename__ = "repositories"

    org_name = Column(String(100), nullable=False)
    repo_name = Column(String(100), nullable=False)
    git_url = Column(String(500), nullable=True)

    __table_args__ = (
        Index('idx_repositories_owner_repo', 'org_name', 'repo_name'),
    )


class RepositoryBranchModel(SoftDeleteMixin, BaseModel):
    __tablename__ = "repository_branches"

    repository_id = Column(CHAR(36), ForeignKey("repositories.id"), nullable=False, index=True)
    branch_name = Column(String(200), nullable=False)


class BranchLanguageModel(SoftDeleteMixin, BaseModel):
    __tablename__ = "branch_languages"

    repository_branch_id = Column(
        CHAR(36),
        ForeignKey("repository_branches.id"),
        nullable=False,
        index=True
    )
    language_code = Column(String(20), nullable=False)


class DocFileModel(SoftDeleteMixin, BaseModel):
    __tablename__ = "doc_files"

    content = Column(Text().with_variant(LONGTEXT(), "mysql"), nullable=True)


class DocCatalogModel(SoftDeleteMixin, BaseModel):
    """Table-of-contents entry of a language variant, optionally pointing at a doc file"""
    __tablename__ = "doc_catalogs"

    branch_language_id = Column(
        CHAR(36),
        ForeignKey("branch_languages.id"),
        nullable=False,
        index=True
    )
    parent_id = Column(CHAR(36), nullable=True)
    title = Column(String(500), nullable=False)
    path = Column(String(1000), nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    doc_file_id = Column(CHAR(36), ForeignKey("doc_files.id"), nullable=True)
