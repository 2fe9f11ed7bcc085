"""rental asset indexes

Revision ID: 20261005_rentalasset_idx
Revises: 20261004_buystock_idx
Create Date: 2026-10-05 00:00:00.000000

Asset codes start out globally unique. 20261009_asset_code_per_product
narrows this to unique per product.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261005_rentalasset_idx'
down_revision = '20261004_buystock_idx'
branch_labels = None
depends_on = None

# (name, table, columns, unique)
INDEXES = [
    ('uq_rentalassets_asset_code', 'rentalassets', ['asset_code'], True),
    ('ix_rentalassets_product_id', 'rentalassets', ['product_id'], False),
    ('ix_rentalassets_status', 'rentalassets', ['status'], False),
    ('ix_rentalassets_current_rental_id', 'rentalassets', ['current_rental_id'], False),
]


def upgrade():
    for name, table, columns, unique in INDEXES:
        create_index_if_missing(op, name, table, columns, unique=unique)


def downgrade():
    for name, table, _columns, _unique in reversed(INDEXES):
        drop_index_if_exists(op, name, table)
