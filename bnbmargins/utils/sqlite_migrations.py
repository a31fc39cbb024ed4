"""Ordered SQLite schema migrations for the BnbMargins store."""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, List, Tuple

logger = logging.getLogger(__name__)

Migration = Tuple[int, str]

STORE_MIGRATIONS: List[Migration] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS properties (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            address TEXT,
            property_type TEXT NOT NULL DEFAULT 'other',
            bedrooms INTEGER,
            bathrooms REAL,
            max_guests INTEGER,
            purchase_price REAL,
            purchase_date TEXT,
            notes TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_properties_user ON properties(user_id);

        CREATE TABLE IF NOT EXISTS bookings (
            id TEXT PRIMARY KEY,
            property_id TEXT NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            guest_name TEXT NOT NULL,
            guest_email TEXT,
            guest_phone TEXT,
            check_in_date TEXT NOT NULL,
            check_out_date TEXT NOT NULL,
            nights INTEGER NOT NULL,
            guests INTEGER NOT NULL DEFAULT 1,
            total_amount REAL NOT NULL DEFAULT 0,
            custom_rate REAL,
            status TEXT NOT NULL DEFAULT 'confirmed',
            booking_source TEXT,
            notes TEXT,
            cancelled_at TEXT,
            cancellation_reason TEXT,
            refund_amount REAL,
            cancellation_fee REAL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_bookings_user ON bookings(user_id);

        CREATE TABLE IF NOT EXISTS transactions (
            id TEXT PRIMARY KEY,
            property_id TEXT NOT NULL REFERENCES properties(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            booking_id TEXT REFERENCES bookings(id) ON DELETE SET NULL,
            type TEXT NOT NULL,
            category TEXT NOT NULL,
            amount REAL NOT NULL,
            description TEXT,
            date TEXT NOT NULL,
            receipt_url TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_transactions_user ON transactions(user_id);
        CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);

        CREATE TABLE IF NOT EXISTS categories (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            type TEXT NOT NULL,
            color TEXT,
            is_default INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_categories_user ON categories(user_id);
        """,
    ),
]


def connect(db_path: Path) -> sqlite3.Connection:
    """Open a connection with row access by name and foreign keys enforced."""

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def apply_migrations(db_path: Path, migrations: Iterable[Migration] = STORE_MIGRATIONS) -> int:
    """Apply ordered migrations to a SQLite database.

    Args:
        db_path: Target database file.
        migrations: Iterable of (version, sql_script) pairs. Scripts are executed
            when a higher version than the current schema_version is encountered.

    Returns:
        The schema version after migrating.
    """

    db_path.parent.mkdir(parents=True, exist_ok=True)

    with sqlite3.connect(db_path) as conn:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version (\n"
            "    version INTEGER PRIMARY KEY,\n"
            "    applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP\n"
            ")"
        )

        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        current_version = row[0] or 0

        for version, sql in sorted(migrations, key=lambda item: item[0]):
            if version <= current_version:
                continue
            with conn:
                conn.executescript(sql)
                conn.execute(
                    "INSERT INTO schema_version (version) VALUES (?)",
                    (version,),
                )
            logger.info("Applied store migration %s to %s", version, db_path)
            current_version = version

    return current_version
