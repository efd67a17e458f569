"""HTTP-aware errors for Google Cloud Functions.

AppError carries the status code a handler should answer with, a message
that is safe to show to clients, and an optional detail that only ever
reaches server-side logs. The status survives any number of wrap() calls
so the outermost handler can still answer with the right code.
"""
import json
from enum import Enum
from typing import Optional

INTERNAL_ERROR_STATUS = 500
INTERNAL_ERROR_MESSAGE = "internal server error"


class ErrorKind(str, Enum):
    """Coarse classification of an AppError by its status code."""

    INFORMATIONAL = "informational"
    CLIENT = "client"
    SERVER = "server"


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected at startup, never sent to clients."""


class WrappedError(Exception):
    """Generic error produced by wrap() around a non-AppError."""


class AppError(Exception):
    """Error carrying an HTTP status, client message and server-only detail."""

    def __init__(self, status: int, message: str, detail: Optional[str] = None):
        if not isinstance(status, int) or not 100 <= status <= 599:
            raise ValueError(f"invalid HTTP status: {status!r}")
        super().__init__(message)
        self._status = status
        self._message = message
        self._detail = detail

    @property
    def status(self) -> int:
        return self._status

    @property
    def message(self) -> str:
        return self._message

    @property
    def detail(self) -> Optional[str]:
        return self._detail

    @property
    def kind(self) -> ErrorKind:
        if self._status >= 500:
            return ErrorKind.SERVER
        if self._status >= 400:
            return ErrorKind.CLIENT
        return ErrorKind.INFORMATIONAL

    def __str__(self) -> str:
        return self._message

    def __repr__(self) -> str:
        return f"AppError(status={self._status}, message={self._message!r})"

    def json_response(self) -> str:
        """Render the client-facing error envelope.

        Returns:
            JSON string of the form {"error": {"message": ...}}, or the bare
            message when it cannot be serialized
        """
        try:
            return json.dumps({"error": {"message": self._message}})
        except (TypeError, ValueError):
            return self._message


def new(status: int, message: str) -> AppError:
    """Create an AppError without detail."""
    return AppError(status, message)


def new_with_detail(status: int, message: str, detail: str) -> AppError:
    """Create an AppError with a server-only diagnostic detail."""
    return AppError(status, message, detail)


def _with_cause(message: str, cause: Optional[BaseException]) -> str:
    if cause is None:
        return message
    return f"{message}: {cause}"


def new_bad_request(
    message: str,
    cause: Optional[BaseException] = None,
    detail: Optional[str] = None
) -> AppError:
    """Create a 400 error, appending the cause to the message if given.

    Args:
        message: Client-facing message
        cause: Underlying error whose text is appended as "message: cause"
        detail: Optional server-only detail

    Returns:
        AppError with status 400
    """
    return AppError(400, _with_cause(message, cause), detail)


def new_not_found(
    message: str,
    cause: Optional[BaseException] = None,
    detail: Optional[str] = None
) -> AppError:
    """Create a 404 error, appending the cause to the message if given."""
    return AppError(404, _with_cause(message, cause), detail)


def wrap(message: str, err: BaseException) -> Exception:
    """Prefix an error with context while keeping its HTTP status.

    Args:
        message: Context to prepend
        err: Error to wrap

    Returns:
        A new AppError with the same status and detail when err is one,
        otherwise a WrappedError chained to err
    """
    if isinstance(err, AppError):
        wrapped = AppError(err.status, f"{message}: {err.message}", err.detail)
    else:
        wrapped = WrappedError(f"{message}: {err}")
    wrapped.__cause__ = err
    return wrapped


def status_of(err: BaseException) -> int:
    """Return the HTTP status for err; anything but an AppError is a 500."""
    if isinstance(err, AppError):
        return err.status
    return INTERNAL_ERROR_STATUS


def detail_of(err: BaseException) -> str:
    """Return the server-only detail of err, or an empty string."""
    if isinstance(err, AppError) and err.detail:
        return err.detail
    return ""


def to_json(err: BaseException) -> str:
    """Render the error envelope sent to clients.

    Non-AppErrors render a generic message so internal error text never
    reaches the response body.
    """
    if isinstance(err, AppError):
        return err.json_response()
    return AppError(INTERNAL_ERROR_STATUS, INTERNAL_ERROR_MESSAGE).json_response()


# Common errors.
METHOD_NOT_ALLOWED = new(405, "method not allowed")
NOT_FOUND = new(404, "not found")
UNAUTHORIZED = new(401, "unauthorized")
SERVICE_UNAVAILABLE = new(503, "service unavailable")
BAD_REQUEST = new(400, "bad request")
