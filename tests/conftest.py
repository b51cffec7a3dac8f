"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Dict, Any, List

from jobboard.database import Company, Database, create_db_engine, get_session, init_database
from jobboard.logger import StructuredLogger
from jobboard.repositories import JobRepository


@pytest.fixture
def engine(tmp_path):
    """Empty SQLite database with tables created."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'jobs.db'}")
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def test_logger() -> StructuredLogger:
    """Quiet logger with fresh metrics."""
    return StructuredLogger(name="jobboard-test", level="DEBUG", enable_console=False)


@pytest.fixture
def db(engine, test_logger) -> Database:
    return Database(engine, logger=test_logger)


@pytest.fixture
def companies(engine) -> List[str]:
    """Seed companies c1..c3."""
    session = get_session(engine)
    for n in (1, 2, 3):
        session.add(
            Company(
                handle=f"c{n}",
                name=f"C{n}",
                num_employees=n,
                description=f"Desc{n}",
                logo_url=f"http://c{n}.img",
            )
        )
    session.commit()
    session.close()
    return ["c1", "c2", "c3"]


@pytest.fixture
def repo(db, test_logger, companies) -> JobRepository:
    return JobRepository(db, logger=test_logger)


@pytest.fixture
def new_job() -> Dict[str, Any]:
    """Valid job payload."""
    return {
        "title": "new",
        "salary": 150,
        "equity": "0.05",
        "companyHandle": "c1",
    }


@pytest.fixture
def seeded_jobs(repo) -> List[Dict[str, Any]]:
    """Jobs j1..j3 with salaries 100..300 and equity 0.1..0.3."""
    return [
        repo.create({"title": "j1", "salary": 100, "equity": "0.1", "companyHandle": "c1"}),
        repo.create({"title": "j2", "salary": 200, "equity": "0.2", "companyHandle": "c2"}),
        repo.create({"title": "j3", "salary": 300, "equity": "0.3", "companyHandle": "c3"}),
    ]
