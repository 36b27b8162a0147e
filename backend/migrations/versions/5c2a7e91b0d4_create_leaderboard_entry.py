"""create leaderboard_entry

Revision ID: 5c2a7e91b0d4
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a7e91b0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'leaderboard_entry',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('leaderboard_entry') as batch_op:
        batch_op.create_index(batch_op.f('ix_leaderboard_entry_username'), ['username'], unique=True)


def downgrade():
    with op.batch_alter_table('leaderboard_entry') as batch_op:
        batch_op.drop_index(batch_op.f('ix_leaderboard_entry_username'))
    op.drop_table('leaderboard_entry')
