import argparse
import json
from typing import Any, Dict, List, Optional

from . import __version__
from .database import Database, create_db_engine, init_database
from .env import get_database_url, get_log_dir, get_log_level, load_env
from .errors import JobBoardError
from .logger import get_logger, reset_logger
from .repositories import JobRepository
from .schema import (
    coerce_search_args,
    validate_job_search,
    validate_job_update,
    validate_new_job,
)


def _fail_validation(errors: List[str]) -> None:
    print("Invalid:")
    for e in errors:
        print(f" - {e}")
    raise SystemExit(2)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _job_payload(args: argparse.Namespace) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if args.title is not None:
        payload["title"] = args.title
    if args.salary is not None:
        payload["salary"] = args.salary
    if args.equity is not None:
        payload["equity"] = args.equity
    if args.company_handle is not None:
        payload["companyHandle"] = args.company_handle
    return payload


def _repository(args: argparse.Namespace) -> JobRepository:
    engine = create_db_engine(args.database_url)
    return JobRepository(Database(engine))


def cmd_init_db(args: argparse.Namespace) -> None:
    engine = create_db_engine(args.database_url)
    init_database(engine)
    get_logger().info("Database initialized", url=engine.url.render_as_string(hide_password=True))
    print("Database ready.")


def cmd_create(args: argparse.Namespace) -> None:
    payload = _job_payload(args)
    errors = validate_new_job(payload)
    if errors:
        _fail_validation(errors)
    _print_json({"job": _repository(args).create(payload)})


def cmd_list(args: argparse.Namespace) -> None:
    filters = coerce_search_args(
        title=args.title,
        min_salary=args.min_salary,
        has_equity="true" if args.has_equity else None,
    )
    errors = validate_job_search(filters)
    if errors:
        _fail_validation(errors)
    _print_json({"jobs": _repository(args).find_all(filters)})


def cmd_get(args: argparse.Namespace) -> None:
    _print_json({"job": _repository(args).get(args.id)})


def cmd_update(args: argparse.Namespace) -> None:
    payload = _job_payload(args)
    errors = validate_job_update(payload)
    if errors:
        _fail_validation(errors)
    _print_json({"job": _repository(args).update(args.id, payload)})


def cmd_delete(args: argparse.Namespace) -> None:
    _repository(args).remove(args.id)
    _print_json({"deleted": args.id})


def _add_job_fields(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--title", required=required, help="Job title")
    parser.add_argument("--salary", type=int, help="Salary (non-negative integer)")
    parser.add_argument("--equity", help="Equity as a decimal between 0 and 1, e.g. 0.05")
    parser.add_argument("--company-handle", required=required, help="Handle of an existing company")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobboard", description="Job postings store")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy database URL (or set JOBBOARD_DATABASE_URL; default: sqlite:///data/jobs.db)",
    )

    subparsers = parser.add_subparsers(dest="command")
    init = subparsers.add_parser("init-db", help="Create the jobs and companies tables")
    init.set_defaults(func=cmd_init_db)

    crt = subparsers.add_parser("create", help="Create a job")
    _add_job_fields(crt, required=True)
    crt.set_defaults(func=cmd_create)

    lst = subparsers.add_parser("list", help="List jobs, optionally filtered")
    lst.add_argument("--title", help="Case-insensitive partial title match")
    lst.add_argument("--min-salary", help="Minimum salary (inclusive)")
    lst.add_argument("--has-equity", action="store_true", help="Only jobs with non-zero equity")
    lst.set_defaults(func=cmd_list)

    get = subparsers.add_parser("get", help="Show a job by id")
    get.add_argument("id", type=int, help="Job id")
    get.set_defaults(func=cmd_get)

    upd = subparsers.add_parser("update", help="Partially update a job by id")
    upd.add_argument("id", type=int, help="Job id")
    _add_job_fields(upd, required=False)
    upd.set_defaults(func=cmd_update)

    dlt = subparsers.add_parser("delete", help="Delete a job by id")
    dlt.add_argument("id", type=int, help="Job id")
    dlt.set_defaults(func=cmd_delete)
    return parser


def main(argv: Optional[List[str]] = None):
    # Load .env if present (JOBBOARD_DATABASE_URL, JOBBOARD_LOG_LEVEL, ...)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if args.database_url is None:
        args.database_url = get_database_url()

    reset_logger()
    get_logger(level=get_log_level(), log_dir=get_log_dir())

    if hasattr(args, "func"):
        try:
            args.func(args)
        except JobBoardError as e:
            raise SystemExit(e.message)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
