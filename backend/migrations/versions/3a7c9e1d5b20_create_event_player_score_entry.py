"""create event, player and score_entry tables

Revision ID: 3a7c9e1d5b20
Revises:
Create Date: 2026-10-17 00:00:00

"""
from datetime import datetime

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c9e1d5b20'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'event' not in existing_tables:
        op.create_table(
            'event',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('date', sa.String(length=32), nullable=True),
            sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        event_table = sa.table(
            'event',
            sa.column('id', sa.String),
            sa.column('name', sa.String),
            sa.column('active', sa.Boolean),
            sa.column('created_at', sa.DateTime),
        )
        op.bulk_insert(event_table, [
            {'id': 'default', 'name': 'Default event', 'active': True, 'created_at': datetime.utcnow()},
        ])

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('event_id', sa.String(length=64), sa.ForeignKey('event.id'), nullable=False),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('email', sa.String(length=256), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_player_event_id', 'player', ['event_id'])

    if 'score_entry' not in existing_tables:
        op.create_table(
            'score_entry',
            sa.Column('id', sa.String(length=64), primary_key=True),
            sa.Column('event_id', sa.String(length=64), sa.ForeignKey('event.id'), nullable=False),
            sa.Column('name', sa.String(length=128), nullable=False),
            sa.Column('email', sa.String(length=256), nullable=True),
            sa.Column('chars_typed', sa.Integer(), nullable=False),
            sa.Column('duration_seconds', sa.Integer(), nullable=False),
            sa.Column('duration_ms', sa.Integer(), nullable=False),
            sa.Column('accuracy', sa.Float(), nullable=True),
            sa.Column('cps', sa.Float(), nullable=False),
            sa.Column('timestamp', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_score_entry_event_id', 'score_entry', ['event_id'])


def downgrade():
    op.drop_index('ix_score_entry_event_id', table_name='score_entry')
    op.drop_table('score_entry')
    op.drop_index('ix_player_event_id', table_name='player')
    op.drop_table('player')
    op.drop_table('event')
