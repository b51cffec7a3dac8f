"""
SQL fragment builders.

Responsibilities:
- Compile a partial update into a parameterized SET clause.
- Compose optional job search predicates into a parameterized WHERE clause.

Non-Responsibilities:
- No database access.
- No type validation of values (done upstream by jobboard.schema).

Invariant:
Values only ever travel as bound parameters; the Nth ``$n`` placeholder
binds the Nth value of the returned list.
"""

from typing import Any, List, Mapping, Optional, Tuple

from .errors import InvalidArgumentError

JOB_FILTER_KEYS = ("title", "minSalary", "hasEquity")


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def sql_for_partial_update(
    data: Mapping[str, Any],
    js_to_sql: Optional[Mapping[str, str]] = None,
) -> Tuple[str, List[Any]]:
    """
    Build the SET clause of a partial update.

    Args:
        data: Logical field name -> new value, in the order to emit
        js_to_sql: Logical field name -> column name; unmapped keys are used as is

    Returns:
        Tuple of (set_cols, values)

    Raises:
        InvalidArgumentError: If data is empty

    Example:
        >>> sql_for_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})
        ('"first_name"=$1, "age"=$2', ['Aliya', 32])
    """
    if not data:
        raise InvalidArgumentError("No data to update")

    js_to_sql = js_to_sql or {}
    cols = [
        f"{quote_identifier(js_to_sql.get(key, key))}=${idx}"
        for idx, key in enumerate(data, start=1)
    ]
    return ", ".join(cols), list(data.values())


def sql_for_job_filters(filters: Optional[Mapping[str, Any]] = None) -> Tuple[str, List[Any]]:
    """
    Build the WHERE fragment (without the keyword) for a job search.

    Supported filters:
    - title: case-insensitive substring match
    - minSalary: inclusive lower bound, 0 included
    - hasEquity: only True restricts (to equity > 0)

    A None value is treated as absent. An empty result means no restriction.

    Raises:
        InvalidArgumentError: If an unsupported filter key is passed
    """
    filters = filters or {}
    unknown = [key for key in filters if key not in JOB_FILTER_KEYS]
    if unknown:
        raise InvalidArgumentError(f"Unsupported job filter(s): {', '.join(sorted(unknown))}")

    where_expressions: List[str] = []
    values: List[Any] = []

    title = filters.get("title")
    if title is not None:
        values.append(f"%{title}%")
        where_expressions.append(f"title ILIKE ${len(values)}")

    min_salary = filters.get("minSalary")
    if min_salary is not None:
        values.append(min_salary)
        where_expressions.append(f"salary >= ${len(values)}")

    if filters.get("hasEquity") is True:
        # constant, no parameter
        where_expressions.append("equity > 0")

    return " AND ".join(where_expressions), values

