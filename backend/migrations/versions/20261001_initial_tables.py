"""initial tables

Revision ID: 20261001_initial
Revises:
Create Date: 2026-10-01 00:00:00.000000

Creates every table without its secondary indexes. Indexes are added by
the per-collection revisions that follow, each of which is safe to re-run.

Embedded arrays of the document model become ordered child tables:
- sales.items -> sale_lines
- rentals.assets -> rental_lines
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def _customer_columns():
    return [
        sa.Column('customer_name', sa.String(length=200), nullable=False),
        sa.Column('customer_phone', sa.String(length=20), nullable=True),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_address', sa.String(length=500), nullable=True),
    ]


def upgrade():
    bind = op.get_bind()
    existing = set(sa.inspect(bind).get_table_names())

    # ============================================================================
    # users / sessions / password reset
    # ============================================================================
    if 'users' not in existing:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=50), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('role', sa.String(length=32), nullable=False),
            *_timestamps(),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    if 'session_tokens' not in existing:
        op.create_table(
            'session_tokens',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('token_hash', sa.String(length=64), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('is_revoked', sa.Boolean(), nullable=False),
            sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('revoked_reason', sa.String(length=64), nullable=True),
            sa.Column('user_agent', sa.String(length=255), nullable=True),
            sa.Column('ip_address', sa.String(length=64), nullable=True),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    if 'passwordresettokens' not in existing:
        op.create_table(
            'passwordresettokens',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('token_hash', sa.String(length=64), nullable=False),
            sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    # ============================================================================
    # products / buystocks / rentalassets
    # ============================================================================
    if 'products' not in existing:
        op.create_table(
            'products',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('sku', sa.String(length=64), nullable=False),
            sa.Column('category', sa.String(length=100), nullable=True),
            sa.Column('price', sa.Float(), nullable=True),
            sa.Column('unit', sa.String(length=20), nullable=True),
            sa.Column('images', sa.JSON(), nullable=False),
            sa.Column('stock_type', sa.String(length=16), nullable=False),
            sa.Column('daily_rental_rate', sa.Float(), nullable=True),
            sa.Column('monthly_rental_rate', sa.Float(), nullable=True),
            sa.Column('insurance_fee', sa.Float(), nullable=True),
            sa.Column('replacement_price', sa.Float(), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(['created_by'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    if 'buystocks' not in existing:
        op.create_table(
            'buystocks',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('product_id', sa.Integer(), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('min_quantity', sa.Integer(), nullable=False),
            sa.Column('last_updated_by', sa.Integer(), nullable=False),
            *_timestamps(),
            sa.CheckConstraint('quantity >= 0', name='ck_buystocks_quantity_nonnegative'),
            sa.ForeignKeyConstraint(['product_id'], ['products.id']),
            sa.ForeignKeyConstraint(['last_updated_by'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    if 'rentalassets' not in existing:
        op.create_table(
            'rentalassets',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('product_id', sa.Integer(), nullable=False),
            sa.Column('asset_code', sa.String(length=64), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('current_rental_id', sa.Integer(), nullable=True),
            sa.Column('notes', sa.Text(), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(['product_id'], ['products.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    # ============================================================================
    # rentals / sales
    # ============================================================================
    if 'rentals' not in existing:
        op.create_table(
            'rentals',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('rental_number', sa.String(length=32), nullable=False),
            *_customer_columns(),
            sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('expected_return_date', sa.DateTime(timezone=True), nullable=True),
            sa.Column('actual_return_date', sa.DateTime(timezone=True), nullable=True),
            sa.Column('daily_rate', sa.Float(), nullable=False),
            sa.Column('total_amount', sa.Float(), nullable=False),
            sa.Column('deposit', sa.Float(), nullable=False),
            sa.Column('shipping_cost', sa.Float(), nullable=False),
            sa.Column('penalty_rate', sa.Float(), nullable=False),
            sa.Column('penalty_amount', sa.Float(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(['created_by'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    if 'rental_lines' not in existing:
        op.create_table(
            'rental_lines',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('rental_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('asset_id', sa.Integer(), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['rental_id'], ['rentals.id']),
            sa.ForeignKeyConstraint(['asset_id'], ['rentalassets.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('rental_id', 'asset_id', name='uq_rental_lines_rental_asset'),
            sqlite_autoincrement=True,
        )

    if 'sales' not in existing:
        op.create_table(
            'sales',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('bill_number', sa.String(length=32), nullable=False),
            *_customer_columns(),
            sa.Column('subtotal', sa.Float(), nullable=False),
            sa.Column('discount', sa.Float(), nullable=False),
            sa.Column('tax', sa.Float(), nullable=False),
            sa.Column('total_amount', sa.Float(), nullable=False),
            sa.Column('deposit', sa.Float(), nullable=False),
            sa.Column('payment_method', sa.String(length=16), nullable=True),
            sa.Column('payment_status', sa.String(length=16), nullable=False),
            sa.Column('paid_amount', sa.Float(), nullable=False),
            sa.Column('status', sa.String(length=16), nullable=False),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('created_by', sa.Integer(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(['created_by'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    if 'sale_lines' not in existing:
        op.create_table(
            'sale_lines',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('sale_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), nullable=False),
            sa.Column('product_id', sa.Integer(), nullable=False),
            sa.Column('product_name', sa.String(length=200), nullable=False),
            sa.Column('sku', sa.String(length=64), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('unit_price', sa.Float(), nullable=False),
            sa.Column('total_price', sa.Float(), nullable=False),
            sa.ForeignKeyConstraint(['sale_id'], ['sales.id']),
            sa.ForeignKeyConstraint(['product_id'], ['products.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    # ============================================================================
    # activitylogs / document_sequences
    # ============================================================================
    if 'activitylogs' not in existing:
        op.create_table(
            'activitylogs',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('action', sa.String(length=16), nullable=False),
            sa.Column('entity_type', sa.String(length=32), nullable=False),
            sa.Column('entity_id', sa.String(length=64), nullable=False),
            sa.Column('entity_name', sa.String(length=200), nullable=True),
            sa.Column('changes', sa.JSON(), nullable=True),
            sa.Column('ip_address', sa.String(length=64), nullable=True),
            sa.Column('user_agent', sa.String(length=255), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sqlite_autoincrement=True,
        )

    if 'document_sequences' not in existing:
        op.create_table(
            'document_sequences',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('document_type', sa.String(length=16), nullable=False),
            sa.Column('sequence_date', sa.String(length=8), nullable=False),
            sa.Column('next_number', sa.Integer(), nullable=False),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('document_type', 'sequence_date', name='uq_document_sequences_type_date'),
            sqlite_autoincrement=True,
        )


def downgrade():
    bind = op.get_bind()
    existing = set(sa.inspect(bind).get_table_names())
    for table in (
        'document_sequences', 'activitylogs', 'sale_lines', 'sales',
        'rental_lines', 'rentals', 'rentalassets', 'buystocks', 'products',
        'passwordresettokens', 'session_tokens', 'users',
    ):
        if table in existing:
            op.drop_table(table)
