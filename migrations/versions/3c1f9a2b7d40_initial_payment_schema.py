"""initial payment schema

Revision ID: 3c1f9a2b7d40
Revises:
Create Date: 2026-10-18 09:12:44.318201

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1f9a2b7d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=120), nullable=False),
    sa.Column('email', sa.String(length=120), nullable=True),
    sa.Column('phone', sa.String(length=50), nullable=True),
    sa.Column('role', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email')
    )
    op.create_table('bookings',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('parent_id', sa.Integer(), nullable=True),
    sa.Column('driver_id', sa.Integer(), nullable=True),
    sa.Column('end_date', sa.DateTime(), nullable=False),
    sa.Column('status', sa.String(length=30), nullable=True),
    sa.Column('status_reason', sa.String(length=255), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['driver_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['parent_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_table('changelogs',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('entity_type', sa.String(length=50), nullable=True),
    sa.Column('entity_id', sa.Integer(), nullable=True),
    sa.Column('action', sa.String(length=50), nullable=True),
    sa.Column('changed_by', sa.Integer(), nullable=True),
    sa.Column('timestamp', sa.DateTime(), nullable=True),
    sa.Column('details', sa.JSON(), nullable=True),
    sa.ForeignKeyConstraint(['changed_by'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_table('notifications',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('recipient_id', sa.Integer(), nullable=False),
    sa.Column('kind', sa.String(length=50), nullable=False),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('message', sa.Text(), nullable=False),
    sa.Column('data', sa.JSON(), nullable=True),
    sa.Column('is_read', sa.Boolean(), nullable=True),
    sa.Column('email_status', sa.String(length=20), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['recipient_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('notifications', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_notifications_recipient_id'), ['recipient_id'], unique=False)

    op.create_table('payout_batches',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('driver_ids', sa.JSON(), nullable=False),
    sa.Column('total_amount', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('trigger', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('processed_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_table('payment_transactions',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('booking_id', sa.Integer(), nullable=False),
    sa.Column('parent_id', sa.Integer(), nullable=False),
    sa.Column('driver_id', sa.Integer(), nullable=False),
    sa.Column('total_amount', sa.Integer(), nullable=False),
    sa.Column('required_upfront', sa.Integer(), nullable=False),
    sa.Column('upfront_paid', sa.Integer(), nullable=False),
    sa.Column('balance_paid', sa.Integer(), nullable=False),
    sa.Column('system_commission', sa.Integer(), nullable=False),
    sa.Column('gateway_fee', sa.Integer(), nullable=False),
    sa.Column('driver_earning', sa.Integer(), nullable=False),
    sa.Column('balance_due_date', sa.DateTime(), nullable=False),
    sa.Column('reminder_three_days_sent', sa.Boolean(), nullable=False),
    sa.Column('reminder_one_day_sent', sa.Boolean(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('suspension_reason', sa.String(length=255), nullable=True),
    sa.Column('upfront_payment_date', sa.DateTime(), nullable=True),
    sa.Column('balance_payment_date', sa.DateTime(), nullable=True),
    sa.Column('upfront_gateway_ref', sa.String(length=100), nullable=True),
    sa.Column('balance_gateway_ref', sa.String(length=100), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.Column('version', sa.Integer(), nullable=False),
    sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ),
    sa.ForeignKeyConstraint(['driver_id'], ['users.id'], ),
    sa.ForeignKeyConstraint(['parent_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('booking_id')
    )
    with op.batch_alter_table('payment_transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payment_transactions_balance_due_date'), ['balance_due_date'], unique=False)
        batch_op.create_index(batch_op.f('ix_payment_transactions_driver_id'), ['driver_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payment_transactions_parent_id'), ['parent_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payment_transactions_status'), ['status'], unique=False)

    op.create_table('driver_wallets',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('driver_id', sa.Integer(), nullable=False),
    sa.Column('total_earnings', sa.Integer(), nullable=False),
    sa.Column('pending_payouts', sa.Integer(), nullable=False),
    sa.Column('last_payout_date', sa.DateTime(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.Column('version', sa.Integer(), nullable=False),
    sa.ForeignKeyConstraint(['driver_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('driver_id')
    )
    op.create_table('wallet_transactions',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('wallet_id', sa.Integer(), nullable=False),
    sa.Column('driver_id', sa.Integer(), nullable=False),
    sa.Column('booking_id', sa.Integer(), nullable=True),
    sa.Column('parent_id', sa.Integer(), nullable=True),
    sa.Column('payment_transaction_id', sa.Integer(), nullable=True),
    sa.Column('amount', sa.Integer(), nullable=False),
    sa.Column('type', sa.String(length=20), nullable=False),
    sa.Column('date', sa.DateTime(), nullable=True),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('payout_batch_id', sa.Integer(), nullable=True),
    sa.ForeignKeyConstraint(['payment_transaction_id'], ['payment_transactions.id'], ),
    sa.ForeignKeyConstraint(['payout_batch_id'], ['payout_batches.id'], ),
    sa.ForeignKeyConstraint(['wallet_id'], ['driver_wallets.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('wallet_transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_wallet_transactions_driver_id'), ['driver_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_wallet_transactions_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_wallet_transactions_wallet_id'), ['wallet_id'], unique=False)

    op.create_table('payout_transactions',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('batch_id', sa.Integer(), nullable=False),
    sa.Column('driver_id', sa.Integer(), nullable=False),
    sa.Column('amount', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('error_message', sa.String(length=500), nullable=True),
    sa.Column('rail_reference', sa.String(length=100), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['batch_id'], ['payout_batches.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('payout_transactions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payout_transactions_batch_id'), ['batch_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_payout_transactions_driver_id'), ['driver_id'], unique=False)

    op.create_table('budget_limits',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('child_id', sa.Integer(), nullable=False),
    sa.Column('parent_id', sa.Integer(), nullable=False),
    sa.Column('monthly_limit', sa.Integer(), nullable=False),
    sa.Column('current_spent', sa.Integer(), nullable=False),
    sa.Column('warning_threshold', sa.Integer(), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('warning_enabled', sa.Boolean(), nullable=False),
    sa.Column('limit_reached_enabled', sa.Boolean(), nullable=False),
    sa.Column('weekly_report_enabled', sa.Boolean(), nullable=False),
    sa.Column('warning_notified_month', sa.String(length=7), nullable=True),
    sa.Column('limit_notified_month', sa.String(length=7), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['parent_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('budget_limits', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_budget_limits_child_id'), ['child_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_budget_limits_parent_id'), ['parent_id'], unique=False)

    op.create_table('monthly_expenses',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('child_id', sa.Integer(), nullable=False),
    sa.Column('parent_id', sa.Integer(), nullable=True),
    sa.Column('month', sa.String(length=7), nullable=False),
    sa.Column('total_amount', sa.Integer(), nullable=False),
    sa.Column('ride_count', sa.Integer(), nullable=False),
    sa.Column('average_cost_per_ride', sa.Float(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=True),
    sa.Column('updated_at', sa.DateTime(), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('child_id', 'month', name='uq_monthly_expense_child_month')
    )
    with op.batch_alter_table('monthly_expenses', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_monthly_expenses_child_id'), ['child_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_monthly_expenses_parent_id'), ['parent_id'], unique=False)

    op.create_table('expense_entries',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('monthly_expense_id', sa.Integer(), nullable=False),
    sa.Column('ride_id', sa.String(length=100), nullable=False),
    sa.Column('amount', sa.Integer(), nullable=False),
    sa.Column('date', sa.DateTime(), nullable=True),
    sa.Column('driver_name', sa.String(length=120), nullable=True),
    sa.Column('route', sa.String(length=255), nullable=True),
    sa.ForeignKeyConstraint(['monthly_expense_id'], ['monthly_expenses.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('expense_entries', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_expense_entries_monthly_expense_id'), ['monthly_expense_id'], unique=False)


def downgrade():
    with op.batch_alter_table('expense_entries', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_expense_entries_monthly_expense_id'))
    op.drop_table('expense_entries')

    with op.batch_alter_table('monthly_expenses', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_monthly_expenses_parent_id'))
        batch_op.drop_index(batch_op.f('ix_monthly_expenses_child_id'))
    op.drop_table('monthly_expenses')

    with op.batch_alter_table('budget_limits', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_budget_limits_parent_id'))
        batch_op.drop_index(batch_op.f('ix_budget_limits_child_id'))
    op.drop_table('budget_limits')

    with op.batch_alter_table('payout_transactions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_payout_transactions_driver_id'))
        batch_op.drop_index(batch_op.f('ix_payout_transactions_batch_id'))
    op.drop_table('payout_transactions')

    with op.batch_alter_table('wallet_transactions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_wallet_transactions_wallet_id'))
        batch_op.drop_index(batch_op.f('ix_wallet_transactions_status'))
        batch_op.drop_index(batch_op.f('ix_wallet_transactions_driver_id'))
    op.drop_table('wallet_transactions')
    op.drop_table('driver_wallets')

    with op.batch_alter_table('payment_transactions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_payment_transactions_status'))
        batch_op.drop_index(batch_op.f('ix_payment_transactions_parent_id'))
        batch_op.drop_index(batch_op.f('ix_payment_transactions_driver_id'))
        batch_op.drop_index(batch_op.f('ix_payment_transactions_balance_due_date'))
    op.drop_table('payment_transactions')
    op.drop_table('payout_batches')

    with op.batch_alter_table('notifications', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_notifications_recipient_id'))
    op.drop_table('notifications')
    op.drop_table('changelogs')
    op.drop_table('bookings')
    op.drop_table('users')
