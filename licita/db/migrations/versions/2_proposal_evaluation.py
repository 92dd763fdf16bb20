"""Proposal evaluation result and rejection reason

Revision ID: 2_proposal_evaluation
Revises: 1_create_tables
Create Date: 2025-04-02 10:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = '2_proposal_evaluation'
down_revision = '1_create_tables'
branch_labels = None
depends_on = None

def upgrade():
    op.add_column('proposals', sa.Column('evaluation', sa.Text(), nullable=True))
    op.add_column('proposals', sa.Column('score', sa.Numeric(precision=5, scale=2), nullable=True))
    op.add_column('proposals', sa.Column('evaluation_notes', sa.Text(), nullable=True))
    op.add_column('proposals', sa.Column('evaluated_at', sa.DateTime(timezone=True), nullable=True))
    op.add_column('proposals', sa.Column('rejection_reason', sa.Text(), nullable=True))

def downgrade():
    op.drop_column('proposals', 'rejection_reason')
    op.drop_column('proposals', 'evaluated_at')
    op.drop_column('proposals', 'evaluation_notes')
    op.drop_column('proposals', 'score')
    op.drop_column('proposals', 'evaluation')
