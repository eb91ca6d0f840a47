"""add sync runs table

Revision ID: 003
Revises: 002
Create Date: 2025-03-12 16:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '003'
down_revision = '002'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # History of legacy inventory sync runs
    op.create_table(
        'sync_runs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('site_code', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='running'),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('stats', postgresql.JSONB()),
        sa.Column('errors', postgresql.JSONB()),
        sa.Column('error_message', sa.String(500)),
    )
    op.create_index('idx_sync_runs_started', 'sync_runs', ['started_at'])


def downgrade() -> None:
    op.drop_index('idx_sync_runs_started', table_name='sync_runs')
    op.drop_table('sync_runs')
