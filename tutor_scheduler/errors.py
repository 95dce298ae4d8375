from __future__ import annotations


class SchedulerError(RuntimeError):
    """Base class for classified failures.

    `status_code` and `title` drive the HTTP error body built in the server.
    """

    status_code: int = 500
    title: str = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulerError):
    status_code = 400
    title = "Bad Request"


class NotFoundError(SchedulerError):
    status_code = 404
    title = "Not Found"


class UpstreamUnavailable(SchedulerError):
    """Embedding provider or vector index failed. Recovered by the fallback chain."""

    status_code = 503
    title = "Upstream Unavailable"

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class InternalError(SchedulerError):
    pass
