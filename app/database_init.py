"""Database bootstrap helpers for existing installations."""
from __future__ import annotations

from sqlalchemy import inspect, text

from app.models import db

# Columns added after the first release, with the DDL used to add them.
USER_COLUMNS: dict[str, str] = {
    "currency": "VARCHAR(3) NOT NULL DEFAULT 'USD'",
    "subscription_tier": "VARCHAR(20) NOT NULL DEFAULT 'free'",
    "subscription_status": "VARCHAR(30)",
    "stripe_customer_id": "VARCHAR(255)",
    "subscription_id": "VARCHAR(255)",
}

WINE_COLUMNS: dict[str, str] = {
    "is_non_vintage": "BOOLEAN NOT NULL DEFAULT FALSE",
    "abv": "FLOAT NOT NULL DEFAULT 0",
    "image_url": "TEXT",
    "type": "VARCHAR(50)",
    "category": "VARCHAR(80)",
    "sub_category": "VARCHAR(80)",
    "bottle_size": "VARCHAR(20) NOT NULL DEFAULT '75cl'",
}


def _add_missing_columns(inspector, table: str, columns: dict[str, str]) -> list[str]:
    if table not in inspector.get_table_names():
        return []

    existing = {column["name"] for column in inspector.get_columns(table)}
    missing = [name for name in columns if name not in existing]
    if not missing:
        return []

    # "user" is a reserved word on PostgreSQL
    quoted_table = db.engine.dialect.identifier_preparer.quote(table)
    with db.engine.begin() as connection:
        for name in missing:
            connection.execute(
                text(f"ALTER TABLE {quoted_table} ADD COLUMN {name} {columns[name]}")
            )
    return missing


def apply_schema_updates() -> list[str]:
    """Apply idempotent schema tweaks required by recent releases.

    Returns the list of ``table.column`` entries that were added.
    """

    inspector = inspect(db.engine)
    added = []
    for table, columns in (("user", USER_COLUMNS), ("wine", WINE_COLUMNS)):
        added.extend(f"{table}.{name}" for name in _add_missing_columns(inspector, table, columns))
    return added
