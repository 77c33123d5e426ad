"""create game, result and user tables

Revision ID: 4c1e9a7b2d10
Revises:
Create Date: 2025-08-01 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c1e9a7b2d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'user' not in existing_tables:
        op.create_table(
            'user',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=256), nullable=False),
        )
        op.create_index('ix_user_username', 'user', ['username'], unique=True)

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code', sa.String(length=16), nullable=False),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('default_time', sa.String(length=16), nullable=False, server_default=''),
            sa.Column('order_index', sa.Integer(), nullable=False, server_default='999'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index('ix_game_code', 'game', ['code'], unique=True)
        # Rank is not unique; the catalog shifts colliding games instead
        op.create_index('ix_game_order_index', 'game', ['order_index'], unique=False)

    if 'result' not in existing_tables:
        op.create_table(
            'result',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.Integer(), nullable=False),
            sa.Column('date_str', sa.String(length=10), nullable=False),
            sa.Column('slot_min', sa.Integer(), nullable=False),
            sa.Column('value', sa.String(length=8), nullable=False),
            sa.Column('note', sa.Text(), nullable=False, server_default=''),
            sa.Column('source', sa.String(length=32), nullable=False, server_default='manual'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
            sa.UniqueConstraint('game_id', 'date_str', 'slot_min', name='uq_result_game_date_slot'),
            sa.CheckConstraint('slot_min >= 0 AND slot_min <= 1439', name='ck_result_slot_range'),
        )
        op.create_index('ix_result_game_id', 'result', ['game_id'], unique=False)
        op.create_index('ix_result_date_slot', 'result', ['date_str', 'slot_min'], unique=False)


def downgrade():
    op.drop_index('ix_result_date_slot', table_name='result')
    op.drop_index('ix_result_game_id', table_name='result')
    op.drop_table('result')
    op.drop_index('ix_game_order_index', table_name='game')
    op.drop_index('ix_game_code', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
