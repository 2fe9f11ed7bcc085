"""rental indexes

Revision ID: 20261006_rental_idx
Revises: 20261005_rentalasset_idx
Create Date: 2026-10-06 00:00:00.000000

Rental numbers are unique; list filters hit customer, status and dates.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261006_rental_idx'
down_revision = '20261005_rentalasset_idx'
branch_labels = None
depends_on = None

# (name, table, columns, unique)
INDEXES = [
    ('uq_rentals_rental_number', 'rentals', ['rental_number'], True),
    ('ix_rentals_customer_email', 'rentals', ['customer_email'], False),
    ('ix_rentals_status', 'rentals', ['status'], False),
    ('ix_rentals_start_date', 'rentals', ['start_date'], False),
    ('ix_rentals_end_date', 'rentals', ['end_date'], False),
    ('ix_rentals_created_by', 'rentals', ['created_by'], False),
    ('ix_rental_lines_rental_id', 'rental_lines', ['rental_id'], False),
    ('ix_rental_lines_asset_id', 'rental_lines', ['asset_id'], False),
]


def upgrade():
    for name, table, columns, unique in INDEXES:
        create_index_if_missing(op, name, table, columns, unique=unique)


def downgrade():
    for name, table, _columns, _unique in reversed(INDEXES):
        drop_index_if_exists(op, name, table)
