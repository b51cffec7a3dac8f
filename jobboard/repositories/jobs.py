"""
Jobs Repository.

Responsibilities:
- CRUD operations for jobs table.
- Translate missing rows and constraint violations into domain errors.

Non-Responsibilities:
- No authorization.
- No payload type validation (see jobboard.schema).

Invariant:
Every statement is parameterized; column names come only from JOB_COLUMNS.
"""

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..database import Database
from ..errors import (
    ConflictError,
    InvalidArgumentError,
    JobBoardError,
    NotFoundError,
    UnexpectedError,
)
from ..logger import StructuredLogger, get_logger
from ..schema import validate_job_search
from ..sql import sql_for_job_filters, sql_for_partial_update

# Logical field name -> jobs column
JOB_COLUMNS = {
    "title": "title",
    "salary": "salary",
    "equity": "equity",
    "companyHandle": "company_handle",
}

JOB_RETURNING = 'id, title, salary, equity, company_handle AS "companyHandle"'

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"
CHECK_VIOLATION = "23514"


def _sqlstate(exc: IntegrityError) -> Optional[str]:
    orig = exc.orig
    # psycopg2 exposes pgcode, psycopg 3 sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    return "UNIQUE constraint failed" in str(exc.orig)


def describe_integrity_error(exc: IntegrityError) -> str:
    code = _sqlstate(exc)
    message = str(exc.orig)
    if code == FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in message:
        return "Unknown company"
    if code == NOT_NULL_VIOLATION or "NOT NULL constraint failed" in message:
        return "Missing required field"
    if code == CHECK_VIOLATION or "CHECK constraint failed" in message:
        return "Value out of range"
    return "Constraint violated"


def format_equity(value: Any) -> Optional[str]:
    """Render equity as a plain decimal string regardless of driver type."""
    if value is None:
        return None
    # SQLite hands back floats; str(1e-07) would use exponent notation
    return format(Decimal(str(value)), "f")


def _job_from_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    job = dict(row)
    job["equity"] = format_equity(job.get("equity"))
    return job


class JobRepository:
    """Related functions for jobs."""

    def __init__(self, db: Database, logger: Optional[StructuredLogger] = None):
        self.db = db
        self.logger = logger or get_logger()

    @contextmanager
    def _db_errors(self, operation: str, context: str = "") -> Iterator[None]:
        """Map driver failures raised inside the block to domain errors."""
        try:
            yield
        except IntegrityError as e:
            if is_unique_violation(e):
                error: JobBoardError = ConflictError(f"Duplicate job: {context}")
            else:
                error = InvalidArgumentError(f"{describe_integrity_error(e)}: {context}")
            self.logger.warning(f"{operation} rejected", reason=error.message)
            self.logger.record_failure(operation, type(error).__name__)
            raise error from e
        except SQLAlchemyError as e:
            self.logger.error(f"{operation} failed", error=str(e))
            self.logger.record_failure(operation, type(e).__name__)
            raise UnexpectedError(f"Database error during {operation}") from e

    def _execute(self, operation: str, sql: str, params, context: str = "") -> List[Dict[str, Any]]:
        """Run one statement in its own transaction."""
        with self._db_errors(operation, context):
            return self.db.query(sql, params)

    def _not_found(self, operation: str, job_id: Any) -> NotFoundError:
        self.logger.record_failure(operation, NotFoundError.__name__)
        return NotFoundError(f"No job: {job_id}")

    def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Create a job (from data), update db, return new job data.

        data should be { title, salary, equity, companyHandle }

        Returns { id, title, salary, equity, companyHandle }

        Raises:
            ConflictError: If a job with this title already exists
            InvalidArgumentError: If companyHandle does not exist
        """
        self.logger.record_operation("create")
        rows = self._execute(
            "create",
            f"""INSERT INTO jobs
                    (title, salary, equity, company_handle)
                VALUES ($1, $2, $3, $4)
                RETURNING {JOB_RETURNING}""",
            [data.get("title"), data.get("salary"), data.get("equity"), data.get("companyHandle")],
            context=str(data.get("title")),
        )
        job = _job_from_row(rows[0])
        self.logger.info("Job created", id=job["id"], title=job["title"])
        return job

    def find_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Find all jobs, optionally filtered.

        Filters (all optional):
        - title (case-insensitive, partial match)
        - minSalary
        - hasEquity (if True, only jobs with a non-zero equity)

        Returns [{ id, title, salary, equity, companyHandle, companyName }, ...]
        """
        self.logger.record_operation("find_all")
        filters = dict(filters or {})
        errors = validate_job_search(filters)
        if errors:
            self.logger.record_failure("find_all", InvalidArgumentError.__name__)
            raise InvalidArgumentError("; ".join(errors))
        where, values = sql_for_job_filters(filters)

        query = """SELECT j.id,
                          j.title,
                          j.salary,
                          j.equity,
                          j.company_handle AS "companyHandle",
                          c.name AS "companyName"
                   FROM jobs j
                   LEFT JOIN companies AS c ON j.company_handle = c.handle"""
        if where:
            query += " WHERE " + where
        query += " ORDER BY title"

        rows = self._execute("find_all", query, values)
        return [_job_from_row(row) for row in rows]

    def get(self, job_id: int) -> Dict[str, Any]:
        """
        Given a job id, return data about job.

        Returns { id, title, salary, equity, companyHandle, company }
          where company is { handle, name, description, numEmployees, logoUrl }
          (None if the company row is gone)

        Raises:
            NotFoundError: If no job has this id
        """
        self.logger.record_operation("get")
        # both lookups share one connection and one transaction
        with self._db_errors("get"), self.db.transaction() as tx:
            rows = tx.query(
                f"""SELECT {JOB_RETURNING}
                    FROM jobs
                    WHERE id = $1""",
                [job_id],
            )
            if not rows:
                raise self._not_found("get", job_id)
            job = _job_from_row(rows[0])

            companies = tx.query(
                """SELECT handle,
                          name,
                          description,
                          num_employees AS "numEmployees",
                          logo_url AS "logoUrl"
                   FROM companies
                   WHERE handle = $1""",
                [job["companyHandle"]],
            )
        job["company"] = companies[0] if companies else None
        return job

    def update(self, job_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Update job data with `data`.

        This is a "partial update": only the provided fields change.

        Data can include: { title, salary, equity, companyHandle }

        Returns { id, title, salary, equity, companyHandle }

        Raises:
            InvalidArgumentError: If data is empty or names an unknown field
            NotFoundError: If no job has this id
            ConflictError: If the new title is taken
        """
        self.logger.record_operation("update")
        unknown = [key for key in data if key not in JOB_COLUMNS]
        if unknown:
            self.logger.record_failure("update", InvalidArgumentError.__name__)
            raise InvalidArgumentError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        try:
            set_cols, values = sql_for_partial_update(data, JOB_COLUMNS)
        except InvalidArgumentError:
            self.logger.record_failure("update", InvalidArgumentError.__name__)
            raise
        id_var_idx = f"${len(values) + 1}"

        rows = self._execute(
            "update",
            f"""UPDATE jobs
                SET {set_cols}
                WHERE id = {id_var_idx}
                RETURNING {JOB_RETURNING}""",
            [*values, job_id],
            context=str(data.get("title", job_id)),
        )
        if not rows:
            raise self._not_found("update", job_id)

        job = _job_from_row(rows[0])
        self.logger.info("Job updated", id=job_id, fields=sorted(data))
        return job

    def remove(self, job_id: int) -> None:
        """
        Delete given job from database.

        Raises:
            NotFoundError: If no job has this id
        """
        self.logger.record_operation("remove")
        rows = self._execute(
            "remove",
            """DELETE
               FROM jobs
               WHERE id = $1
               RETURNING id""",
            [job_id],
        )
        if not rows:
            raise self._not_found("remove", job_id)
        self.logger.info("Job removed", id=job_id)
