from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

JOB_FIELDS = ["title", "salary", "equity", "companyHandle"]
REQUIRED_NEW_JOB_FIELDS = ["title", "companyHandle"]
SEARCH_FIELDS = ["title", "minSalary", "hasEquity"]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_non_negative_int(v: Any) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(v, int) and not isinstance(v, bool) and v >= 0


def _valid_equity(v: Any) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float, str, Decimal)):
        return False
    try:
        amount = Decimal(str(v))
    except InvalidOperation:
        return False
    return amount.is_finite() and Decimal(0) <= amount <= Decimal(1)


def _check_job_fields(data: Dict[str, Any], errors: List[str]) -> None:
    for f in data:
        if f not in JOB_FIELDS:
            errors.append(f"Unknown field: {f}")

    if "title" in data and not _is_non_empty_str(data["title"]):
        errors.append("Field 'title' must be a non-empty string")
    if "companyHandle" in data and not _is_non_empty_str(data["companyHandle"]):
        errors.append("Field 'companyHandle' must be a non-empty string")
    if data.get("salary") is not None and not _is_non_negative_int(data["salary"]):
        errors.append("Field 'salary' must be a non-negative integer")
    if data.get("equity") is not None and not _valid_equity(data["equity"]):
        errors.append("Field 'equity' must be a number between 0 and 1")


def validate_new_job(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Payload shape: { title, salary?, equity?, companyHandle }
    """
    errors: List[str] = []
    for f in REQUIRED_NEW_JOB_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
    _check_job_fields(data, errors)
    return errors


def validate_job_update(data: Dict[str, Any]) -> List[str]:
    """Same field rules as a new job, all optional; id is immutable."""
    errors: List[str] = []
    if not data:
        errors.append("No data to update")
    if "id" in data:
        errors.append("Field 'id' cannot be changed")
    _check_job_fields({k: v for k, v in data.items() if k != "id"}, errors)
    return errors


def validate_job_search(filters: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    for f in filters:
        if f not in SEARCH_FIELDS:
            errors.append(f"Unknown filter: {f}")
    if filters.get("title") is not None and not isinstance(filters["title"], str):
        errors.append("Filter 'title' must be a string")
    if filters.get("minSalary") is not None and not _is_non_negative_int(filters["minSalary"]):
        errors.append("Filter 'minSalary' must be a non-negative integer")
    if filters.get("hasEquity") is not None and not isinstance(filters["hasEquity"], bool):
        errors.append("Filter 'hasEquity' must be a boolean")
    return errors


def coerce_search_args(
    title: Optional[str] = None,
    min_salary: Optional[str] = None,
    has_equity: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Turn raw text search arguments (query string, CLI) into typed filters.
    Absent arguments are left out; unparseable ones are kept as-is so
    validate_job_search reports them.
    """
    filters: Dict[str, Any] = {}
    if title is not None:
        filters["title"] = title
    if min_salary is not None:
        try:
            filters["minSalary"] = int(min_salary)
        except (TypeError, ValueError):
            filters["minSalary"] = min_salary
    if has_equity is not None:
        filters["hasEquity"] = str(has_equity).strip().lower() == "true"
    return filters
