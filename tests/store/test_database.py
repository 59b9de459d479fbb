"""Tests for the SQLite engine wrapper and bulk writer."""

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import inspect, text

from contract_index.store.database import Database
from contract_index.store.indexes import create_additional_indexes
from contract_index.store.tables import ContractRecord


def _row(contract_id: str) -> dict[str, str]:
    return {
        "id": contract_id,
        "name": "C",
        "metadata": "{}",
        "source": "{}",
        "source_type": "solidity_single",
    }


@pytest.fixture
def db(tmp_path: Path) -> Iterator[Database]:
    database = Database(tmp_path / "nested" / "index.db")
    database.create_all()
    yield database
    database.dispose()


class TestDatabase:
    def test_creates_parent_directory(self, db: Database, tmp_path: Path) -> None:
        assert (tmp_path / "nested").is_dir()

    def test_tables_created(self, db: Database) -> None:
        names = set(inspect(db.engine).get_table_names())

        assert {"contract", "function"} <= names

    def test_wal_and_foreign_keys_enabled(self, db: Database) -> None:
        with db.engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_function_indexes_created(self, db: Database) -> None:
        create_additional_indexes(db.engine)
        create_additional_indexes(db.engine)

        inspector = inspect(db.engine)
        indexes = {ix["name"]: ix["column_names"] for ix in inspector.get_indexes("function")}
        assert indexes["idx_function_composite"] == ["contract_id", "selector", "signature"]
        assert indexes["idx_function_selector"] == ["selector", "contract_id"]

    def test_selector_lookup_uses_selector_index(self, db: Database) -> None:
        create_additional_indexes(db.engine)

        with db.engine.connect() as conn:
            plan = conn.execute(
                text(
                    'EXPLAIN QUERY PLAN SELECT * FROM "function" '
                    "WHERE selector = :s ORDER BY contract_id"
                ),
                {"s": "0xa9059cbb"},
            ).all()

        assert any("idx_function_selector" in str(row[-1]) for row in plan)


class TestBulkWriter:
    def test_insert_or_ignore_counts_new_rows_only(self, db: Database) -> None:
        with db.bulk_writer() as writer:
            first = writer.insert_many_ignore(ContractRecord, [_row("a"), _row("b")])
        with db.bulk_writer() as writer:
            second = writer.insert_many_ignore(ContractRecord, [_row("b"), _row("c"), _row("c")])

        assert first == 2
        assert second == 1

    def test_rolls_back_on_error(self, db: Database) -> None:
        with pytest.raises(RuntimeError), db.bulk_writer() as writer:
            writer.insert_many_ignore(ContractRecord, [_row("x")])
            raise RuntimeError("abort")

        with db.session() as session:
            assert session.get(ContractRecord, "x") is None

    def test_empty_records(self, db: Database) -> None:
        with db.bulk_writer() as writer:
            assert writer.insert_many_ignore(ContractRecord, []) == 0
