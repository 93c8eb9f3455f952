"""
World (content) database handle

One instance owns one read-only connection to one locale content database
for the duration of a single operation: open -> query -> close.
"""
import json
import logging
import os
import sqlite3
from typing import Dict, List, Optional
from urllib.parse import quote

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ghost.constants import CONTENT_TABLES
from ghost.exceptions import ContentFileNotFoundException, ContentHandleFault, DatabaseException, ValidationException
from ghost.utils import to_signed_hash, to_unsigned_hash

logger = logging.getLogger("main")


def resolve_database_path(directory: str, file_name: str) -> str:
    """Only the base name of a remote supplied path is honored"""
    return os.path.join(directory, os.path.basename(file_name or ""))


def _carried_hashes(definition: Dict, legacy_key: str) -> set:
    """Hashes a decoded definition declares for itself"""
    candidates = [definition.get("hash"), definition.get(legacy_key)]
    summary = definition.get("summary")
    if isinstance(summary, dict):
        candidates.append(summary.get(legacy_key))

    carried = set()
    for value in candidates:
        try:
            carried.add(to_unsigned_hash(value))
        except (TypeError, ValueError):
            continue
    return carried


class WorldDatabase:
    """Handle on a single content database file"""

    def __init__(self, directory: str):
        self.directory = directory
        self.path = None
        self._engine = None
        self._connection = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def open(self, file_name: str) -> "WorldDatabase":
        if self.is_open:
            raise ContentHandleFault(f"Database {self.path} is already open")

        path = resolve_database_path(self.directory, file_name)
        if not os.path.basename(path) or not os.path.isfile(path):
            raise ContentFileNotFoundException(path)

        try:
            uri = f"file:{quote(path)}?mode=ro"
            self._engine = create_engine(
                "sqlite://",
                creator=lambda: sqlite3.connect(uri, uri=True, check_same_thread=False),
                poolclass=NullPool,
            )
            self._connection = self._engine.connect()
        except SQLAlchemyError as e:
            self.close()
            raise DatabaseException(f"Failed to open {path}: {e}") from e

        self.path = path
        logger.debug(f"Opened world database {path}")
        return self

    def _require_open(self):
        if not self.is_open:
            raise ContentHandleFault("Query on a world database that is not open")

    def _execute(self, table: str, statement, params=None):
        try:
            return self._connection.execute(statement, params or {}).fetchall()
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to query {table} in {self.path}: {e}") from e

    @staticmethod
    def _check_table(table: str):
        if table not in CONTENT_TABLES:
            raise ValidationException(f"Unknown content table: {table}")

    def query_by_hash(self, table: str, item_hash) -> Optional[Dict]:
        """
        Definition in table whose hash is exactly item_hash, or None.

        Rows are keyed by the hash stored as a signed 32-bit integer. When the
        decoded document also carries a hash (under 'hash', the table's legacy
        key or summary.<legacy key>) it must be the same one.
        """
        self._require_open()
        self._check_table(table)

        try:
            item_hash = int(item_hash)
        except (TypeError, ValueError):
            raise ValidationException(f"Invalid hash: {item_hash}") from None

        # Table name comes from the CONTENT_TABLES whitelist
        statement = text(f"SELECT json FROM {table} WHERE id = :signed OR id = :unsigned ORDER BY rowid")
        rows = self._execute(table, statement, {
            "signed": to_signed_hash(item_hash),
            "unsigned": to_unsigned_hash(item_hash),
        })

        legacy_key = CONTENT_TABLES[table]
        wanted = to_unsigned_hash(item_hash)
        for (document,) in rows:
            definition = json.loads(document)
            carried = _carried_hashes(definition, legacy_key)
            if not carried or wanted in carried:
                return definition

        if rows:
            logger.warning(f"Hash {item_hash} matched {len(rows)} rows in {table} but none carried it")
        return None

    def query_all(self, table: str) -> List[Dict]:
        """Every definition in table, in rowid order"""
        self._require_open()
        self._check_table(table)
        rows = self._execute(table, text(f"SELECT json FROM {table} ORDER BY rowid"))
        return [json.loads(document) for (document,) in rows]

    def search_by_name(self, table: str, field: str, name: str) -> List[Dict]:
        """Definitions whose string field contains name, case-insensitively"""
        self._require_open()
        self._check_table(table)
        if not name or not isinstance(name, str):
            raise ValidationException("A name to search for is required")

        escaped = name.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        statement = text(f"SELECT json FROM {table} WHERE json LIKE :pattern ESCAPE '\\' ORDER BY rowid")
        rows = self._execute(table, statement, {"pattern": f"%{escaped}%"})

        needle = name.lower()
        matches = []
        for (document,) in rows:
            definition = json.loads(document)
            value = definition.get(field)
            if isinstance(value, str) and needle in value.lower():
                matches.append(definition)
        return matches

    def close(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.debug(f"Closed world database {self.path}")

    def __enter__(self):
        if not self.is_open:
            raise ContentHandleFault("World database must be opened before use")
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False
