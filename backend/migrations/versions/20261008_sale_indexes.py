"""sale indexes

Revision ID: 20261008_sale_idx
Revises: 20261007_activitylog_idx
Create Date: 2026-10-08 00:00:00.000000

Bill numbers are unique; list filters hit date, customer and status.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261008_sale_idx'
down_revision = '20261007_activitylog_idx'
branch_labels = None
depends_on = None

# (name, table, columns, unique)
INDEXES = [
    ('uq_sales_bill_number', 'sales', ['bill_number'], True),
    ('ix_sales_created_at', 'sales', ['created_at'], False),
    ('ix_sales_customer_name', 'sales', ['customer_name'], False),
    ('ix_sales_status', 'sales', ['status'], False),
    ('ix_sales_payment_status', 'sales', ['payment_status'], False),
    ('ix_sale_lines_sale_id', 'sale_lines', ['sale_id'], False),
    ('ix_sale_lines_product_id', 'sale_lines', ['product_id'], False),
]


def upgrade():
    for name, table, columns, unique in INDEXES:
        create_index_if_missing(op, name, table, columns, unique=unique)


def downgrade():
    for name, table, _columns, _unique in reversed(INDEXES):
        drop_index_if_exists(op, name, table)
