"""Repository for persisted key-value preferences."""

import sqlite3

FAVORITE_CITIES_KEY = "favoriteCities"
TEMP_UNIT_KEY = "tempUnit"


def get_preference(conn: sqlite3.Connection, key: str) -> str | None:
    """Get a preference value, or None if it was never stored."""
    row = conn.execute(
        "SELECT value FROM preferences WHERE key = ?", (key,)
    ).fetchone()
    if row is None:
        return None
    return row[0]


def set_preference(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Upsert a preference value and commit."""
    conn.execute(
        "INSERT INTO preferences (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP",
        (key, value),
    )
    conn.commit()
