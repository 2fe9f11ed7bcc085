"""asset code unique per product

Revision ID: 20261009_asset_code_product
Revises: 20261008_sale_idx
Create Date: 2026-10-09 00:00:00.000000

Two products may each label a unit "A01". Replaces the global unique
index on rentalassets.asset_code with a compound (asset_code, product_id)
unique index. Both steps tolerate a rerun.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261009_asset_code_product'
down_revision = '20261008_sale_idx'
branch_labels = None
depends_on = None


def upgrade():
    drop_index_if_exists(op, 'uq_rentalassets_asset_code', 'rentalassets')
    create_index_if_missing(
        op, 'uq_rentalassets_asset_code_product', 'rentalassets', ['asset_code', 'product_id'], unique=True
    )


def downgrade():
    # Fails if two products already share a code; resolve those first
    drop_index_if_exists(op, 'uq_rentalassets_asset_code_product', 'rentalassets')
    create_index_if_missing(op, 'uq_rentalassets_asset_code', 'rentalassets', ['asset_code'], unique=True)
