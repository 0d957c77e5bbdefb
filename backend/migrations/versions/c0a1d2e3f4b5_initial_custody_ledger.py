"""initial custody ledger

Revision ID: c0a1d2e3f4b5
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete custody ledger schema:
- ledger_state: single-row role registry + product counter + command sequence
- products: canonical product records with the five lifecycle timestamps
- stage_index_entries: per-status buckets (swap-and-pop, dense positions)
- product_transactions: append-only per-product audit log
- user_products: identity -> product lookup index
- notifications: outbox written in the same transaction as each command
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c0a1d2e3f4b5'
down_revision = None
branch_labels = None
depends_on = None


PRODUCT_STATUS_VALUES = (
    'Created',
    'SentByManufacturer',
    'ReceivedByDistributor',
    'SentByDistributor',
    'ReceivedByRetailer',
    'ReturnRequested',
)


def _status_type():
    return sa.Enum(*PRODUCT_STATUS_VALUES, name='product_status', native_enum=False)


def upgrade():
    # ============================================================================
    # ledger_state: one row, optimistic version column command_seq
    # ============================================================================
    op.create_table(
        'ledger_state',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner', sa.String(length=255), nullable=False),
        sa.Column('manufacturer', sa.String(length=255), nullable=True),
        sa.Column('distributor', sa.String(length=255), nullable=True),
        sa.Column('retailer', sa.String(length=255), nullable=True),
        sa.Column('product_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('command_seq', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )

    # ============================================================================
    # products: ids assigned from ledger_state.product_count (no autoincrement)
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('status', _status_type(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sent_by_manufacturer_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('received_by_distributor_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_by_distributor_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('received_by_retailer_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_products_status', 'products', ['status'])
    op.create_index('ix_products_status_id', 'products', ['status', 'id'])
    op.create_index('ix_products_created_by', 'products', ['created_by'])
    op.create_index('ix_products_created_at', 'products', ['created_at'])

    # ============================================================================
    # stage_index_entries: one row per product, dense positions per status
    # ============================================================================
    op.create_table(
        'stage_index_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('status', _status_type(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', name='uq_stage_index_product'),
        sa.UniqueConstraint('status', 'position', name='uq_stage_index_slot'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # product_transactions: append-only, contiguous sequence per product
    # ============================================================================
    op.create_table(
        'product_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('transaction_type', sa.String(length=64), nullable=False),
        sa.Column('performer', sa.String(length=255), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_id', 'sequence', name='uq_product_transactions_seq'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_transactions_product_id', 'product_transactions', ['product_id'])
    op.create_index('ix_product_transactions_performer', 'product_transactions', ['performer'])
    op.create_index('ix_product_transactions_occurred_at', 'product_transactions', ['occurred_at'])

    # ============================================================================
    # user_products: lookup index, not deduplicated
    # ============================================================================
    op.create_table(
        'user_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=16), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_user_products_identity_id', 'user_products', ['identity', 'id'])
    op.create_index('ix_user_products_product_id', 'user_products', ['product_id'])

    # ============================================================================
    # notifications: outbox + activity feed
    # ============================================================================
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('command_seq', sa.Integer(), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_notifications_event_type', 'notifications', ['event_type'])
    op.create_index('ix_notifications_type_id', 'notifications', ['event_type', 'id'])
    op.create_index('ix_notifications_product_id', 'notifications', ['product_id'])
    op.create_index('ix_notifications_command_seq', 'notifications', ['command_seq'])
    op.create_index('ix_notifications_occurred_at', 'notifications', ['occurred_at'])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('user_products')
    op.drop_table('product_transactions')
    op.drop_table('stage_index_entries')
    op.drop_table('products')
    op.drop_table('ledger_state')
