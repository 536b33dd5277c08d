"""Core database handle: connection, schema bootstrap, transactions, backup."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generator, Optional

import requests

from omnibus.db.schema import SCHEMA_DDL, iter_statements, view_statements
from omnibus.errors import (
    ConstraintError,
    NotInitializedError,
    OmnibusError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MEMORY = ":memory:"
SQLITE_HEADER = b"SQLite format 3\x00"


def translate_error(exc: sqlite3.Error) -> StoreError:
    """Map a sqlite3 exception onto the catalog's error types."""
    if isinstance(exc, sqlite3.IntegrityError):
        return ConstraintError(str(exc))
    return StoreError(str(exc))


class Database:
    """
    SQLite database wrapper with explicit transaction support.

    Every mutation goes through ``transaction()``, which commits on success
    and rolls back on failure.  Nested ``transaction()`` blocks become
    savepoints, so a failing inner block only undoes its own writes.
    """

    def __init__(self, path: Optional[Path | str] = None):
        from omnibus.config import get_db_path
        if path is None:
            self.path: Path | str = get_db_path()
        elif isinstance(path, str) and path != MEMORY:
            self.path = Path(path)
        else:
            self.path = path
        self._conn: Optional[sqlite3.Connection] = None
        self._savepoints = 0

    @property
    def in_memory(self) -> bool:
        return self.path == MEMORY

    @classmethod
    def from_bytes(cls, data: bytes) -> "Database":
        """Open an in-memory database holding a copy of ``data``."""
        db = cls(MEMORY)
        conn = db._open()
        try:
            conn.deserialize(data)
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as exc:
            db.close()
            raise translate_error(exc) from exc
        return db

    # -- connection lifecycle --------------------------------------------------

    def _ensure_dir(self) -> None:
        if isinstance(self.path, Path):
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def _open(self) -> sqlite3.Connection:
        if self._conn is None:
            self._ensure_dir()
            try:
                # isolation_level=None: transactions are managed explicitly below.
                self._conn = sqlite3.connect(
                    str(self.path), check_same_thread=False, isolation_level=None
                )
                self._conn.row_factory = sqlite3.Row
                self._conn.execute("PRAGMA foreign_keys = ON")
            except sqlite3.Error as exc:
                raise translate_error(exc) from exc
        return self._conn

    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise NotInitializedError()
        return self._conn

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def init(self) -> None:
        """Create all tables, indices and views (idempotent)."""
        self._open()
        self.create_schema()
        self.create_views()
        logger.info(f"Database ready at {self.path}")

    # -- schema management -----------------------------------------------------

    def create_schema(self) -> None:
        """Create tables and indices in one transaction; nothing is kept on failure."""
        with self.transaction() as conn:
            for stmt in iter_statements(SCHEMA_DDL):
                conn.execute(stmt)

    def create_views(self) -> None:
        """Drop and recreate every export view."""
        with self.transaction() as conn:
            for stmt in view_statements():
                conn.execute(stmt)

    # -- transaction helpers ---------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Commit on success, roll back on exception; nests as savepoints."""
        conn = self.connection()
        if conn.in_transaction:
            self._savepoints += 1
            name = f"sp_{self._savepoints}"
            conn.execute(f"SAVEPOINT {name}")
            try:
                yield conn
            except sqlite3.Error as exc:
                conn.execute(f"ROLLBACK TO {name}")
                conn.execute(f"RELEASE {name}")
                raise translate_error(exc) from exc
            except BaseException:
                conn.execute(f"ROLLBACK TO {name}")
                conn.execute(f"RELEASE {name}")
                raise
            else:
                conn.execute(f"RELEASE {name}")
            return

        try:
            conn.execute("BEGIN")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise translate_error(exc) from exc
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    # -- low-level query helpers -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            return self.connection().execute(sql, params)
        except sqlite3.Error as exc:
            raise translate_error(exc) from exc

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[dict[str, Any]]:
        try:
            row = self.connection().execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise translate_error(exc) from exc
        return dict(row) if row else None

    def fetchall(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        try:
            rows = self.connection().execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise translate_error(exc) from exc
        return [dict(r) for r in rows]

    # -- backup / restore ------------------------------------------------------

    def backup(self) -> bytes:
        """Serialize the whole database to a single image."""
        try:
            return self.connection().serialize()
        except sqlite3.Error as exc:
            raise translate_error(exc) from exc

    def restore(self, data: bytes) -> None:
        """Replace the entire content of this database with ``data``.

        Must not run while another operation on this handle is in flight.
        """
        conn = self.connection()
        if not data.startswith(SQLITE_HEADER):
            raise ValidationError("Backup image is not a SQLite database")
        if conn.in_transaction:
            raise StoreError("Cannot restore while a transaction is open")
        source = sqlite3.connect(MEMORY)
        try:
            source.deserialize(data)
            source.execute("PRAGMA schema_version").fetchone()
            source.backup(conn)
        except sqlite3.Error as exc:
            raise translate_error(exc) from exc
        finally:
            source.close()
        conn.execute("PRAGMA foreign_keys = ON")
        logger.info(f"Database restored from a {len(data)} byte image")


# -- startup loading -----------------------------------------------------------

@dataclass
class CatalogHandle:
    """Result of :func:`open_catalog`; ``fallback`` means the image was not loaded."""
    db: Database
    source: str
    fallback: bool = False
    error: Optional[str] = None


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def fetch_image(url: str, timeout: float = 30.0) -> bytes:
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.content


def open_catalog(source: Optional[str] = None, timeout: Optional[float] = None) -> CatalogHandle:
    """
    Open the catalog database from a path, URL or ``":memory:"``.

    When the image cannot be loaded the error is logged and a fresh, empty
    in-memory schema is returned instead, flagged with ``fallback=True`` so
    callers can warn that data may be missing.
    """
    from omnibus.config import get_settings
    settings = get_settings()
    source = source or settings.database_source
    timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    db: Optional[Database] = None
    try:
        if _is_url(source):
            logger.info(f"Loading database image from {source}")
            db = Database.from_bytes(fetch_image(source, timeout))
        else:
            db = Database(source)
        db.init()
        return CatalogHandle(db=db, source=source)
    except (OmnibusError, requests.RequestException, OSError) as exc:
        logger.error(f"Failed to load database from {source}: {exc}")
        if db is not None:
            db.close()
        logger.warning("Creating a new, empty database")
        fresh = Database(MEMORY)
        fresh.init()
        return CatalogHandle(db=fresh, source=source, fallback=True, error=str(exc))
