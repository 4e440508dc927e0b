"""create_stake_ledger

Revision ID: a7f3c91e2b40
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

from meetstake.db.types import Amount


# revision identifiers, used by Alembic.
revision = 'a7f3c91e2b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'meeting_stakes',
        sa.Column('meeting_id', sa.String(length=128), primary_key=True),
        sa.Column('event_id', sa.String(length=255), nullable=False),
        sa.Column('organizer', sa.String(length=128), nullable=False),
        sa.Column('required_stake', Amount(), nullable=False),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('attendance_code', sa.String(length=16), nullable=True),
        sa.Column('code_generated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_settled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('settled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('required_stake > 0', name='ck_required_stake_positive'),
    )
    op.create_index('ix_meeting_stakes_organizer', 'meeting_stakes', ['organizer'])

    op.create_table(
        'stake_records',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'meeting_id',
            sa.String(length=128),
            sa.ForeignKey('meeting_stakes.meeting_id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('wallet_address', sa.String(length=128), nullable=False),
        sa.Column('amount', Amount(), nullable=False),
        sa.Column('staked_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('has_checked_in', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('check_in_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_refunded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint('meeting_id', 'wallet_address', name='uq_meeting_wallet'),
        sa.CheckConstraint('amount > 0', name='ck_stake_amount_positive'),
        sa.CheckConstraint('NOT is_refunded OR has_checked_in', name='ck_refund_requires_checkin'),
    )
    op.create_index('idx_stake_records_wallet', 'stake_records', ['wallet_address'])


def downgrade():
    op.drop_index('idx_stake_records_wallet', table_name='stake_records')
    op.drop_table('stake_records')
    op.drop_index('ix_meeting_stakes_organizer', table_name='meeting_stakes')
    op.drop_table('meeting_stakes')
