"""
Tests for database.py - engine setup and the query client.
"""

import pytest
from sqlalchemy import event, inspect
from sqlalchemy.exc import IntegrityError, OperationalError

from jobboard.database import (
    Company,
    Database,
    create_db_engine,
    get_session,
    init_database,
    to_named_binds,
)


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(create_db_engine(f"sqlite:///{db_path}"))

        assert db_path.exists()

    def test_init_creates_tables(self, engine):
        """Test that init_database creates the jobs and companies tables."""
        tables = set(inspect(engine).get_table_names())
        assert {"jobs", "companies"} <= tables

    def test_init_creates_parent_directories(self, tmp_path):
        """Test that create_db_engine creates parent directories if missing."""
        db_path = tmp_path / "nested" / "dir" / "test.db"
        assert not db_path.parent.exists()

        init_database(create_db_engine(f"sqlite:///{db_path}"))

        assert db_path.exists()

    def test_init_is_idempotent(self, engine):
        init_database(engine)
        init_database(engine)

    def test_session_reads_companies(self, engine, companies):
        session = get_session(engine)
        assert session.query(Company).count() == 3
        session.close()


class TestNamedBinds:
    """Test $n placeholder translation."""

    def test_rewrites_placeholders(self):
        statement, binds = to_named_binds("SELECT * FROM jobs WHERE a = $1 AND b >= $2", ["x", 5])
        assert statement == "SELECT * FROM jobs WHERE a = :p1 AND b >= :p2"
        assert binds == {"p1": "x", "p2": 5}

    def test_multi_digit_positions(self):
        params = list(range(12))
        statement, binds = to_named_binds("VALUES ($1, $10, $12)", params)
        assert statement == "VALUES (:p1, :p10, :p12)"
        assert binds["p12"] == 11

    def test_no_params(self):
        assert to_named_binds("SELECT 1", []) == ("SELECT 1", {})


class TestDatabaseQuery:
    """Test the query client against SQLite."""

    def test_query_returns_dicts(self, db, companies):
        rows = db.query(
            "SELECT handle, name FROM companies WHERE num_employees >= $1 ORDER BY handle",
            [2],
        )
        assert rows == [{"handle": "c2", "name": "C2"}, {"handle": "c3", "name": "C3"}]

    def test_statement_without_rows(self, db, companies):
        assert db.query("UPDATE companies SET description = $1", ["x"]) == []

    def test_ilike_works_on_sqlite(self, db, companies):
        rows = db.query("SELECT handle FROM companies WHERE name ILIKE $1", ["%c1%"])
        assert rows == [{"handle": "c1"}]

    def test_foreign_keys_enforced(self, db):
        with pytest.raises(IntegrityError):
            db.query(
                "INSERT INTO jobs (title, company_handle) VALUES ($1, $2)",
                ["orphan", "missing"],
            )

    def test_failed_statement_is_rolled_back(self, db, companies):
        with pytest.raises(IntegrityError):
            db.query(
                "INSERT INTO companies (handle, name, description) VALUES ($1, $2, $3)",
                ["c1", "dup", "x"],
            )
        assert len(db.query("SELECT handle FROM companies")) == 3

    def test_driver_errors_propagate(self, db):
        with pytest.raises(OperationalError):
            db.query("SELECT * FROM missing_table")

    def test_queries_counted(self, db, test_logger, companies):
        db.query("SELECT 1")
        db.query("SELECT 2")
        assert test_logger.metrics["queries_executed"] == 2

    def test_dialect(self, db):
        assert db.dialect == "sqlite"


class TestTransaction:
    """Several statements on one connection."""

    def test_statements_share_one_transaction(self, db, engine, companies):
        begins = []

        def listener(conn):
            begins.append(conn)

        event.listen(engine, "begin", listener)
        try:
            with db.transaction() as tx:
                tx.query("UPDATE companies SET description = $1 WHERE handle = $2", ["x", "c1"])
                rows = tx.query("SELECT description FROM companies WHERE handle = $1", ["c1"])
        finally:
            event.remove(engine, "begin", listener)

        assert rows == [{"description": "x"}]
        assert len(begins) == 1

    def test_error_rolls_back_every_statement(self, db, companies):
        with pytest.raises(IntegrityError):
            with db.transaction() as tx:
                tx.query("UPDATE companies SET description = $1", ["changed"])
                tx.query(
                    "INSERT INTO companies (handle, name, description) VALUES ($1, $2, $3)",
                    ["c1", "dup", "x"],
                )

        rows = db.query("SELECT description FROM companies ORDER BY handle")
        assert [r["description"] for r in rows] == ["Desc1", "Desc2", "Desc3"]

    def test_queries_counted(self, db, test_logger, companies):
        with db.transaction() as tx:
            tx.query("SELECT 1")
            tx.query("SELECT 2")
        assert test_logger.metrics["queries_executed"] == 2


def test_engine_for_memory_database():
    engine = create_db_engine("sqlite://")
    init_database(engine)
    assert Database(engine).query("SELECT 1 AS one") == [{"one": 1}]
