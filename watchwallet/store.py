"""SQLite storage of addresses and their aliases."""

from __future__ import annotations

import sqlite3
from os import PathLike

_SCHEMA = """
CREATE TABLE IF NOT EXISTS addresses (
    address TEXT PRIMARY KEY,
    alias TEXT NOT NULL UNIQUE,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""


class AddressStore:
    """Addresses keyed by alias, kept in an SQLite database file."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self.connection = sqlite3.connect(path)
        with self.connection:
            self.connection.execute(_SCHEMA)

    def store_address(self, address: str, alias: str) -> None:
        """Insert an address under an alias; raises sqlite3.IntegrityError on duplicates."""
        with self.connection:
            self.connection.execute(
                "INSERT INTO addresses (address, alias) VALUES (?, ?)", (address, alias)
            )

    def delete_address(self, alias: str) -> None:
        """Remove the address stored under an alias."""
        with self.connection:
            self.connection.execute("DELETE FROM addresses WHERE alias = ?", (alias,))

    def get_addresses(self) -> list[str]:
        """Return every stored address."""
        rows = self.connection.execute("SELECT address FROM addresses")
        return [address for (address,) in rows]

    def get_address(self, value: str) -> str | None:
        """Return the address matching an address or alias, or None."""
        row = self.connection.execute(
            "SELECT address FROM addresses WHERE address = ? OR alias = ?",
            (value, value),
        ).fetchone()
        return row[0] if row else None

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> AddressStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()