"""MCP providers, usage logs and daily statistics

Revision ID: 001
Revises: 
Create Date: 2026-01-12 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create mcp_providers table
    op.create_table(
        'mcp_providers',
        sa.Column('id', mysql.CHAR(36), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.TIMESTAMP(), nullable=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('server_url', sa.String(500), nullable=False),
        sa.Column('transport_type', sa.String(50), nullable=False, server_default='streamable_http'),
        sa.Column('requires_api_key', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('api_key_obtain_url', sa.String(500), nullable=True),
        sa.Column('system_api_key', sa.String(500), nullable=True),
        sa.Column('model_config_id', mysql.CHAR(36), nullable=True),
        sa.Column('request_types', sa.Text(), nullable=True),
        sa.Column('allowed_tools', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('icon_url', sa.String(500), nullable=True),
        sa.Column('max_requests_per_day', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_mcp_providers_is_deleted', 'mcp_providers', ['is_deleted'])
    op.create_index('idx_mcp_providers_active_sort', 'mcp_providers', ['is_active', 'sort_order'])

    # Create mcp_usage_logs table
    op.create_table(
        'mcp_usage_logs',
        sa.Column('id', mysql.CHAR(36), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.TIMESTAMP(), nullable=True),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('mcp_provider_id', sa.String(36), nullable=True),
        sa.Column('tool_name', sa.String(200), nullable=False),
        sa.Column('request_summary', sa.Text(), nullable=True),
        sa.Column('response_status', sa.Integer(), nullable=False),
        sa.Column('duration_ms', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('input_tokens', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('output_tokens', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ip_address', sa.String(50), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('error_message', sa.String(2000), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_mcp_usage_logs_is_deleted', 'mcp_usage_logs', ['is_deleted'])
    op.create_index('ix_mcp_usage_logs_user_id', 'mcp_usage_logs', ['user_id'])
    op.create_index('ix_mcp_usage_logs_mcp_provider_id', 'mcp_usage_logs', ['mcp_provider_id'])
    op.create_index('idx_mcp_usage_logs_created_at', 'mcp_usage_logs', ['created_at'])
    op.create_index(
        'idx_mcp_usage_logs_provider_created',
        'mcp_usage_logs',
        ['mcp_provider_id', 'created_at']
    )

    # Create mcp_daily_statistics table
    op.create_table(
        'mcp_daily_statistics',
        sa.Column('id', mysql.CHAR(36), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.TIMESTAMP(), nullable=True),
        sa.Column('mcp_provider_id', sa.String(36), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('request_count', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('success_count', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('error_count', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_duration_ms', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('input_tokens', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('output_tokens', sa.BigInteger(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('mcp_provider_id', 'date', name='uq_mcp_daily_statistics_provider_date')
    )
    op.create_index('ix_mcp_daily_statistics_is_deleted', 'mcp_daily_statistics', ['is_deleted'])


def downgrade() -> None:
    op.drop_table('mcp_daily_statistics')
    op.drop_table('mcp_usage_logs')
    op.drop_table('mcp_providers')
