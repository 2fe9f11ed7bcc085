# Overview: Index bookkeeping: unique-key lookup for error translation and idempotent index creation.

"""
Uniqueness/index layer

The model `__table_args__` are the source of truth for indexes. This module:

- maps a database unique-violation back to the natural-key field(s) it covers,
  for both index-name style messages (PostgreSQL: `... constraint "uq_x"`)
  and column style messages (SQLite: `UNIQUE constraint failed: t.a, t.b`)
- creates missing indexes idempotently, for migrations and the
  `flask db-indexes ensure` command
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import sqlalchemy as sa

from .extensions import db


@dataclass(frozen=True)
class UniqueKey:
    name: str
    table: str
    fields: tuple[str, ...]


_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: ([\w\., ]+)")
_NAMED_CONSTRAINT = re.compile(r'constraint "?(\w+)"?', re.IGNORECASE)
# MySQL: Duplicate entry 'X' for key 'products.uq_products_sku'
_MYSQL_KEY = re.compile(r"for key '(?:\w+\.)?(\w+)'")


def unique_keys(metadata=None) -> list[UniqueKey]:
    """Every unique index and unique constraint declared on the models."""
    metadata = metadata or db.metadata
    keys: list[UniqueKey] = []
    for table in metadata.sorted_tables:
        for index in table.indexes:
            if index.unique:
                keys.append(UniqueKey(index.name, table.name, tuple(c.name for c in index.columns)))
        for constraint in table.constraints:
            if isinstance(constraint, sa.UniqueConstraint) and constraint.name:
                keys.append(UniqueKey(constraint.name, table.name, tuple(c.name for c in constraint.columns)))
    return keys


def match_unique_violation(message: str, metadata=None) -> UniqueKey | None:
    """
    Identify which unique key a driver error message refers to.

    Returns None when the message is not a unique violation we know about.
    """
    keys = unique_keys(metadata)

    m = _SQLITE_UNIQUE.search(message)
    if m:
        qualified = [part.strip() for part in m.group(1).split(",") if part.strip()]
        table = qualified[0].split(".", 1)[0]
        columns = {part.split(".", 1)[-1] for part in qualified}
        for key in keys:
            if key.table == table and set(key.fields) == columns:
                return key
        return None

    for pattern in (_MYSQL_KEY, _NAMED_CONSTRAINT):
        m = pattern.search(message)
        if m:
            name = m.group(1)
            for key in keys:
                if key.name == name:
                    return key
    return None


def existing_index_names(bind, table: str) -> set[str]:
    inspector = sa.inspect(bind)
    if not inspector.has_table(table):
        return set()
    return {ix["name"] for ix in inspector.get_indexes(table)}


def create_index_if_missing(op, name: str, table: str, columns: list[str], unique: bool = False) -> bool:
    """Alembic helper. Returns True if the index was created."""
    if name in existing_index_names(op.get_bind(), table):
        return False
    op.create_index(name, table, columns, unique=unique)
    return True


def drop_index_if_exists(op, name: str, table: str) -> bool:
    """Alembic helper. A missing index is not an error."""
    if name not in existing_index_names(op.get_bind(), table):
        return False
    op.drop_index(name, table_name=table)
    return True


def ensure_indexes(bind, metadata=None) -> list[str]:
    """
    Create every model-declared index that the database lacks.

    Tables that do not exist yet are skipped (that is the migration's job).
    Returns the names of the indexes created; a second run returns [].
    """
    metadata = metadata or db.metadata
    created: list[str] = []
    for table in metadata.sorted_tables:
        if not sa.inspect(bind).has_table(table.name):
            continue
        present = existing_index_names(bind, table.name)
        for index in sorted(table.indexes, key=lambda ix: ix.name):
            if index.name in present:
                continue
            index.create(bind)
            created.append(index.name)
    return created


def describe_indexes(bind, metadata=None) -> list[dict]:
    """Declared indexes with whether each is present in the database."""
    metadata = metadata or db.metadata
    rows = []
    for table in metadata.sorted_tables:
        present = existing_index_names(bind, table.name)
        for index in sorted(table.indexes, key=lambda ix: ix.name):
            rows.append({
                "table": table.name,
                "name": index.name,
                "columns": [c.name for c in index.columns],
                "unique": bool(index.unique),
                "present": index.name in present,
            })
    return rows
