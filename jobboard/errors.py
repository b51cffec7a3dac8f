"""
Domain errors raised by the job repository and query builders.

Each error carries a ``status`` hint so an outer layer (CLI, HTTP routes)
can map it to its own transport code without inspecting messages.
"""


class JobBoardError(Exception):
    """Base class for all jobboard errors."""

    status = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(JobBoardError):
    """Caller sent something unusable (empty update, bad field, broken reference)."""

    status = 400


class NotFoundError(JobBoardError):
    """Lookup matched zero rows."""

    status = 404


class ConflictError(JobBoardError):
    """Uniqueness constraint violated."""

    status = 409


class UnexpectedError(JobBoardError):
    """Any other database failure."""

    status = 500
