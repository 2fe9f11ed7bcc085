"""product indexes

Revision ID: 20261003_product_idx
Revises: 20261002_user_idx
Create Date: 2026-10-03 00:00:00.000000

SKU is the catalog natural key.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261003_product_idx'
down_revision = '20261002_user_idx'
branch_labels = None
depends_on = None

# (name, table, columns, unique)
INDEXES = [
    ('uq_products_sku', 'products', ['sku'], True),
    ('ix_products_category', 'products', ['category'], False),
    ('ix_products_stock_type', 'products', ['stock_type'], False),
    ('ix_products_created_by', 'products', ['created_by'], False),
]


def upgrade():
    for name, table, columns, unique in INDEXES:
        create_index_if_missing(op, name, table, columns, unique=unique)


def downgrade():
    for name, table, _columns, _unique in reversed(INDEXES):
        drop_index_if_exists(op, name, table)
