"""user indexes

Revision ID: 20261002_user_idx
Revises: 20261001_initial
Create Date: 2026-10-02 00:00:00.000000

Email is the login key and must be unique. Session and reset tokens are
looked up by their hash.
"""
from alembic import op

from stockroom.indexes import create_index_if_missing, drop_index_if_exists


# revision identifiers, used by Alembic.
revision = '20261002_user_idx'
down_revision = '20261001_initial'
branch_labels = None
depends_on = None

# (name, table, columns, unique)
INDEXES = [
    ('uq_users_email', 'users', ['email'], True),
    ('ix_users_role', 'users', ['role'], False),
    ('ix_users_created_at', 'users', ['created_at'], False),
    ('uq_session_tokens_token_hash', 'session_tokens', ['token_hash'], True),
    ('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'], False),
    ('uq_passwordresettokens_token_hash', 'passwordresettokens', ['token_hash'], True),
    ('ix_passwordresettokens_user_id', 'passwordresettokens', ['user_id'], False),
    ('ix_passwordresettokens_expires_at', 'passwordresettokens', ['expires_at'], False),
]


def upgrade():
    for name, table, columns, unique in INDEXES:
        create_index_if_missing(op, name, table, columns, unique=unique)


def downgrade():
    for name, table, _columns, _unique in reversed(INDEXES):
        drop_index_if_exists(op, name, table)
