"""create users, polls, poll_choices, votes

Revision ID: 3b8f1c2d9a71
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b8f1c2d9a71'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'polls',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_polls_user_id', 'polls', ['user_id'])
    op.create_index('ix_polls_created_at', 'polls', ['created_at'])

    op.create_table(
        'poll_choices',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('poll_id', sa.String(), nullable=False),
        sa.Column('choice_text', sa.String(length=200), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['poll_id'], ['polls.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_poll_choices_poll_id', 'poll_choices', ['poll_id'])

    op.create_table(
        'votes',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('poll_id', sa.String(), nullable=False),
        sa.Column('choice_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.CheckConstraint('points > 0', name='ck_votes_points_positive'),
        sa.ForeignKeyConstraint(['choice_id'], ['poll_choices.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['poll_id'], ['polls.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('poll_id', 'user_id', 'choice_id', name='uq_votes_poll_user_choice'),
    )
    op.create_index('ix_votes_poll_id', 'votes', ['poll_id'])
    op.create_index('ix_votes_user_id', 'votes', ['user_id'])


def downgrade() -> None:
    # reverse order
    op.drop_index('ix_votes_user_id', table_name='votes')
    op.drop_index('ix_votes_poll_id', table_name='votes')
    op.drop_table('votes')
    op.drop_index('ix_poll_choices_poll_id', table_name='poll_choices')
    op.drop_table('poll_choices')
    op.drop_index('ix_polls_created_at', table_name='polls')
    op.drop_index('ix_polls_user_id', table_name='polls')
    op.drop_table('polls')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
