"""Error taxonomy shared by the lifecycle, admission and results code.

Every error carries the HTTP status the API answers with, so the routes
never have to translate them one by one.
"""


class ElectionError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ElectionError):
    status_code = 404


class InvalidStateError(ElectionError):
    status_code = 400


class InvalidArgumentError(ElectionError):
    status_code = 400


class ConflictError(ElectionError):
    status_code = 409


class ForbiddenError(ElectionError):
    status_code = 403


class UnauthorizedError(ElectionError):
    status_code = 401


class TransientError(ElectionError):
    """Storage was unreachable or timed out; the caller may retry."""

    status_code = 503
