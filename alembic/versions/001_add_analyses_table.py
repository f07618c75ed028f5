"""Add analyses table with attestation verification columns

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'analyses',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),

        # Attestation results keyed by attestation type
        sa.Column('attestation_analysis', postgresql.JSONB(), nullable=True),
        sa.Column('attestation_comparison', postgresql.JSONB(), nullable=True),
        sa.Column('assurance_source', sa.String(50), nullable=True),
        sa.Column('attestation_decennale_url', sa.Text(), nullable=True),
        sa.Column('attestation_rcpro_url', sa.Text(), nullable=True),
        sa.Column('assurance_level2_score', sa.String(10), nullable=True),

        # Optimistic concurrency
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),

        # Timestamps
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),

        sa.PrimaryKeyConstraint('id'),
    )

    op.create_index('ix_analyses_id', 'analyses', ['id'])


def downgrade() -> None:
    op.drop_index('ix_analyses_id', 'analyses')
    op.drop_table('analyses')
