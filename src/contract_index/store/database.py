"""Database engine and bulk writer.

This module provides:
- Database: Connection manager with WAL mode for concurrent access
- BulkWriter: Core-SQL batch inserts with insert-or-ignore semantics

The hybrid pattern:
- Use ORM sessions for reads (pages, lookups)
- Use BulkWriter for high-volume writes (contracts, functions)
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = structlog.get_logger()

DEFAULT_BUSY_TIMEOUT_MS = 30000


class Database:
    """SQLite connection manager with WAL mode for concurrent access.

    Usage::

        db = Database(Path("contracts.db"))
        db.create_all()

        with db.session() as session:
            row = session.get(ContractRecord, contract_id)

        with db.bulk_writer() as writer:
            writer.insert_many_ignore(FunctionRecord, rows)
    """

    def __init__(self, db_path: Path, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
        self.db_path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self.engine = self._create_engine()

    def _create_engine(self) -> Engine:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            pool_pre_ping=True,
        )
        busy_timeout_ms = self._busy_timeout_ms

        def _on_connect(dbapi_conn: Any, connection_record: Any) -> None:
            _configure_pragmas(dbapi_conn, connection_record, busy_timeout_ms)

        event.listen(engine, "connect", _on_connect)
        return engine

    def create_all(self) -> None:
        """Create all tables from SQLModel metadata."""
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """ORM session for low-volume operations."""
        with Session(self.engine) as session:
            yield session

    @contextmanager
    def bulk_writer(self) -> Generator[BulkWriter, None, None]:
        """
        Bulk writer for high-volume inserts.

        Auto-commits on successful exit, rolls back on exception.
        """
        writer = BulkWriter(self.engine)
        try:
            yield writer
            writer.commit()
        except Exception:
            writer.rollback()
            raise
        finally:
            writer.close()

    def dispose(self) -> None:
        """Close pooled connections."""
        self.engine.dispose()


def _configure_pragmas(dbapi_conn: Any, _connection_record: Any, busy_timeout_ms: int) -> None:
    """Configure SQLite for concurrent access and performance."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
    cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA cache_size=-64000")  # 64MB cache
    cursor.close()


class BulkWriter:
    """High-performance bulk insert using Core SQL, bypassing ORM overhead."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.conn = engine.connect()
        self.transaction = self.conn.begin()

    def insert_many_ignore(self, model_class: type[SQLModel], records: list[dict[str, Any]]) -> int:
        """Bulk ``INSERT OR IGNORE``; returns the number of rows actually inserted.

        Rows whose primary key already exists (in the table or earlier in
        ``records``) are skipped without error.
        """
        if not records:
            return 0

        table = model_class.__table__  # type: ignore[attr-defined]
        stmt = table.insert().prefix_with("OR IGNORE")
        inserted = 0
        # rowcount is 0 for an ignored row
        for record in records:
            result = self.conn.execute(stmt, record)
            inserted += max(int(result.rowcount), 0)
        logger.debug(
            "bulk_insert_ignore",
            table=table.name,
            rows=len(records),
            inserted=inserted,
        )
        return inserted

    def commit(self) -> None:
        self.transaction.commit()

    def rollback(self) -> None:
        self.transaction.rollback()

    def close(self) -> None:
        self.conn.close()
