"""add ballots, one per poll and voter

Revision ID: 8d41e7a0c5b2
Revises: 3b8f1c2d9a71
Create Date: 2026-10-20 10:30:00.000000

"""
from typing import Sequence, Union
import uuid

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d41e7a0c5b2'
down_revision: Union[str, Sequence[str], None] = '3b8f1c2d9a71'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'ballots',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('poll_id', sa.String(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['poll_id'], ['polls.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('poll_id', 'user_id', name='uq_ballots_poll_user'),
    )
    op.create_index('ix_ballots_poll_id', 'ballots', ['poll_id'])
    op.create_index('ix_ballots_user_id', 'ballots', ['user_id'])

    with op.batch_alter_table('votes') as batch_op:
        batch_op.add_column(sa.Column('ballot_id', sa.String(), nullable=True))

    # one ballot for every existing (poll, voter) vote set
    bind = op.get_bind()
    ballots = sa.table(
        'ballots',
        sa.column('id', sa.String()),
        sa.column('poll_id', sa.String()),
        sa.column('user_id', sa.String()),
        sa.column('created_at', sa.DateTime(timezone=True)),
    )
    votes = sa.table(
        'votes',
        sa.column('poll_id', sa.String()),
        sa.column('user_id', sa.String()),
        sa.column('ballot_id', sa.String()),
        sa.column('created_at', sa.DateTime(timezone=True)),
    )
    existing = bind.execute(
        sa.select(votes.c.poll_id, votes.c.user_id, sa.func.min(votes.c.created_at))
        .group_by(votes.c.poll_id, votes.c.user_id)
    ).all()
    for poll_id, user_id, created_at in existing:
        ballot_id = str(uuid.uuid4())
        bind.execute(ballots.insert().values(id=ballot_id, poll_id=poll_id, user_id=user_id, created_at=created_at))
        bind.execute(
            votes.update()
            .where(votes.c.poll_id == poll_id, votes.c.user_id == user_id)
            .values(ballot_id=ballot_id)
        )

    with op.batch_alter_table('votes') as batch_op:
        batch_op.alter_column('ballot_id', existing_type=sa.String(), nullable=False)
        batch_op.create_index('ix_votes_ballot_id', ['ballot_id'])
        batch_op.create_foreign_key('fk_votes_ballot_id_ballots', 'ballots', ['ballot_id'], ['id'], ondelete='CASCADE')


def downgrade() -> None:
    with op.batch_alter_table('votes') as batch_op:
        batch_op.drop_constraint('fk_votes_ballot_id_ballots', type_='foreignkey')
        batch_op.drop_index('ix_votes_ballot_id')
        batch_op.drop_column('ballot_id')

    op.drop_index('ix_ballots_user_id', table_name='ballots')
    op.drop_index('ix_ballots_poll_id', table_name='ballots')
    op.drop_table('ballots')
