"""activity log indexes

Revision ID: 20261007_activitylog_idx
Revises: 20261006_rental_idx
Create Date: 2026-10-07 00:00:00.000000

Filters by user, entity and time, plus the two compound lookups used by
the activity log screens.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261007_activitylog_idx'
down_revision = '20261006_rental_idx'
branch_labels = None
depends_on = None

# (name, table, columns, unique)
INDEXES = [
    ('ix_activitylogs_user_id', 'activitylogs', ['user_id'], False),
    ('ix_activitylogs_entity_type', 'activitylogs', ['entity_type'], False),
    ('ix_activitylogs_entity_id', 'activitylogs', ['entity_id'], False),
    ('ix_activitylogs_created_at', 'activitylogs', ['created_at'], False),
    ('ix_activitylogs_entity', 'activitylogs', ['entity_type', 'entity_id'], False),
    ('ix_activitylogs_user_created', 'activitylogs', ['user_id', 'created_at'], False),
]


def upgrade():
    for name, table, columns, unique in INDEXES:
        create_index_if_missing(op, name, table, columns, unique=unique)


def downgrade():
    for name, table, _columns, _unique in reversed(INDEXES):
        drop_index_if_exists(op, name, table)
