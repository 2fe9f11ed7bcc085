"""buy stock indexes

Revision ID: 20261004_buystock_idx
Revises: 20261003_product_idx
Create Date: 2026-10-04 00:00:00.000000

One stock row per product.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261004_buystock_idx'
down_revision = '20261003_product_idx'
branch_labels = None
depends_on = None

# (name, table, columns, unique)
INDEXES = [
    ('uq_buystocks_product_id', 'buystocks', ['product_id'], True),
    ('ix_buystocks_quantity', 'buystocks', ['quantity'], False),
    ('ix_buystocks_last_updated_by', 'buystocks', ['last_updated_by'], False),
]


def upgrade():
    for name, table, columns, unique in INDEXES:
        create_index_if_missing(op, name, table, columns, unique=unique)


def downgrade():
    for name, table, _columns, _unique in reversed(INDEXES):
        drop_index_if_exists(op, name, table)
