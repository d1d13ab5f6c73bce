"""Create commission engine tables

Revision ID: 20260101_000001
Revises:
Create Date: 2026-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20260101_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Position levels (Intern, P1..P10)
    op.create_table(
        'position_levels',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, comment='Tier ordinal, 0 = Intern'),
        sa.Column('tasks_per_day', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('deposit', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index('ix_position_levels_level', 'position_levels', ['level'], unique=True)

    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('referral_code', sa.String(20), nullable=True),
        sa.Column('referred_by_id', sa.Integer(), nullable=True),
        sa.Column('position_level_id', sa.Integer(), nullable=True),
        sa.Column('position_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('position_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'is_intern', sa.Boolean(), nullable=False, server_default='true',
            comment='Entry-tier users never trigger or receive commissions',
        ),
        sa.Column('wallet_balance', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('commission_balance', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('total_earnings', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_banned', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('earnings_blocked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('wallet_balance >= 0', name='check_user_wallet_balance_non_negative'),
        sa.CheckConstraint('commission_balance >= 0', name='check_user_commission_balance_non_negative'),
        sa.CheckConstraint('total_earnings >= 0', name='check_user_total_earnings_non_negative'),
        sa.ForeignKeyConstraint(['referred_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['position_level_id'], ['position_levels.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_phone', 'users', ['phone'], unique=True)
    op.create_index('ix_users_referral_code', 'users', ['referral_code'], unique=True)
    op.create_index('ix_users_referred_by_id', 'users', ['referred_by_id'])
    op.create_index('ix_users_position_level_id', 'users', ['position_level_id'])

    # Subscription plans
    op.create_table(
        'plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('price', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('daily_video_limit', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'user_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_plans_user_id', 'user_plans', ['user_id'], unique=True)

    # Completed tasks
    op.create_table(
        'user_video_tasks',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('video_id', sa.Integer(), nullable=True),
        sa.Column('watched_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('reward_earned', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_video_tasks_user_id', 'user_video_tasks', ['user_id'])
    op.create_index('idx_user_video_tasks_user_watched', 'user_video_tasks', ['user_id', 'watched_at'])

    # A/B/C ancestor edges
    op.create_table(
        'referral_hierarchy',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.String(10), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'level', name='uq_referral_hierarchy_user_level'),
    )
    op.create_index('ix_referral_hierarchy_user_id', 'referral_hierarchy', ['user_id'])
    op.create_index('ix_referral_hierarchy_referrer_id', 'referral_hierarchy', ['referrer_id'])
    op.create_index('ix_referral_hierarchy_level', 'referral_hierarchy', ['level'])

    # Ledger
    op.create_table(
        'wallet_transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('amount', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('balance_after', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('reference_id', sa.String(255), nullable=False, comment='Deterministic idempotency key'),
        sa.Column('status', sa.String(20), nullable=False, server_default='COMPLETED'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference_id'),
    )
    op.create_index('ix_wallet_transactions_user_id', 'wallet_transactions', ['user_id'])
    op.create_index('idx_wallet_transactions_user_type', 'wallet_transactions', ['user_id', 'type'])

    # Daily bonus records
    op.create_table(
        'task_management_bonuses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=True),
        sa.Column('subordinate_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.String(10), nullable=True),
        sa.Column('task_date', sa.Date(), nullable=False, comment='Calendar day in the configured timezone'),
        sa.Column('bonus_amount', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('subordinate_daily_income', sa.DECIMAL(18, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['subordinate_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'referrer_id', 'subordinate_id', 'task_date',
            name='uq_task_management_bonus_referrer_subordinate_date',
        ),
    )
    op.create_index('ix_task_management_bonuses_referrer_id', 'task_management_bonuses', ['referrer_id'])
    op.create_index(
        'idx_task_management_bonus_subordinate_date',
        'task_management_bonuses',
        ['subordinate_id', 'task_date'],
    )


def downgrade() -> None:
    op.drop_index('idx_task_management_bonus_subordinate_date', 'task_management_bonuses')
    op.drop_index('ix_task_management_bonuses_referrer_id', 'task_management_bonuses')
    op.drop_table('task_management_bonuses')

    op.drop_index('idx_wallet_transactions_user_type', 'wallet_transactions')
    op.drop_index('ix_wallet_transactions_user_id', 'wallet_transactions')
    op.drop_table('wallet_transactions')

    op.drop_index('ix_referral_hierarchy_level', 'referral_hierarchy')
    op.drop_index('ix_referral_hierarchy_referrer_id', 'referral_hierarchy')
    op.drop_index('ix_referral_hierarchy_user_id', 'referral_hierarchy')
    op.drop_table('referral_hierarchy')

    op.drop_index('idx_user_video_tasks_user_watched', 'user_video_tasks')
    op.drop_index('ix_user_video_tasks_user_id', 'user_video_tasks')
    op.drop_table('user_video_tasks')

    op.drop_index('ix_user_plans_user_id', 'user_plans')
    op.drop_table('user_plans')
    op.drop_table('plans')

    op.drop_index('ix_users_position_level_id', 'users')
    op.drop_index('ix_users_referred_by_id', 'users')
    op.drop_index('ix_users_referral_code', 'users')
    op.drop_index('ix_users_phone', 'users')
    op.drop_table('users')

    op.drop_index('ix_position_levels_level', 'position_levels')
    op.drop_table('position_levels')
