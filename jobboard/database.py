"""
Database schema and connection management.

Uses SQLAlchemy for the relational store (SQLite by default, PostgreSQL
via ``JOBBOARD_DATABASE_URL``). Statements are written with PostgreSQL
positional placeholders (``$1``, ``$2``, ...) and executed through
``Database.query``.
"""

import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    text,
)
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from .logger import StructuredLogger, get_logger

Base = declarative_base()

_PLACEHOLDER = re.compile(r"\$(\d+)")


class Company(Base):
    """Company model. Owned elsewhere; jobs reference it by handle."""

    __tablename__ = "companies"

    handle = Column(String(25), primary_key=True)
    name = Column(Text, nullable=False, unique=True)
    num_employees = Column(Integer, CheckConstraint("num_employees >= 0"))
    description = Column(Text, nullable=False, default="")
    logo_url = Column(Text)


class Job(Base):
    """Job posting model."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False, unique=True)
    salary = Column(Integer, CheckConstraint("salary >= 0"))
    equity = Column(Numeric, CheckConstraint("equity >= 0 AND equity <= 1.0"))
    company_handle = Column(
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign key enforcement off
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    For SQLite, the parent directory of the database file is created and
    foreign key enforcement is switched on for every connection.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        SQLAlchemy engine
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(url)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(url, pool_pre_ping=True)


def init_database(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)


def get_session(engine: Engine):
    """
    Get database session.

    Args:
        engine: Engine returned by create_db_engine

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=engine)
    return Session()


def to_named_binds(sql: str, params: Sequence[Any]):
    """
    Rewrite ``$n`` placeholders into SQLAlchemy ``:pn`` binds.

    Returns:
        Tuple of (statement text, bind dict)
    """
    statement = _PLACEHOLDER.sub(lambda m: f":p{m.group(1)}", sql)
    binds = {f"p{idx}": value for idx, value in enumerate(params, start=1)}
    return statement, binds


class Transaction:
    """Statements run on one borrowed connection inside one transaction."""

    def __init__(self, database: "Database", connection: Connection):
        self.database = database
        self.connection = connection

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """
        Execute ``sql`` with positional ``params``.

        Returns:
            List of rows as dicts (empty for statements without results)
        """
        statement, binds = to_named_binds(sql, params)
        if self.database.dialect == "sqlite":
            statement = statement.replace(" ILIKE ", " LIKE ")

        logger = self.database.logger
        logger.debug("Executing query", sql=" ".join(sql.split()), params=len(binds))
        logger.record_query()

        result = self.connection.execute(text(statement), binds)
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]


class Database:
    """
    Query client over a SQLAlchemy engine.

    ``query`` runs a single statement in its own transaction.
    ``transaction()`` borrows one pooled connection for several statements;
    it commits when the block exits cleanly and rolls back otherwise.
    SQLAlchemy exceptions propagate to the caller unchanged.
    """

    def __init__(self, engine: Engine, logger: Optional[StructuredLogger] = None):
        self.engine = engine
        self.logger = logger or get_logger()

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        with self.engine.begin() as conn:
            yield Transaction(self, conn)

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        with self.transaction() as tx:
            return tx.query(sql, params)
