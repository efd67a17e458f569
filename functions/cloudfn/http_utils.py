"""Shared HTTP utilities for Google Cloud Functions.

Handlers receive a Flask request and build their answer on a Flask
Response, which the helpers here fill in: CORS headers, decoded and
validated payloads, and JSON success or error bodies.

Example:
    httper = FnHttper(["https://app.example.com"])

    @functions_framework.http
    def create_campaign(request):
        response = Response()
        if httper.cors_middleware(request, response):
            return response
        try:
            req = get_post_data(request, CreateCampaignReq)
        except AppError as err:
            return write_err(response, err)
        return write_res(response, save(req.campaign), 201)
"""
import dataclasses
import functools
import threading
from typing import Any, Callable, Iterable, List, Sequence, Set

import pydantic
import pydantic_core
from flask import Request, Response
from pydantic import BaseModel
from werkzeug.exceptions import HTTPException

from . import errors
from .logging_config import CloudFunctionLogger
from .schema import BinaryCodec, describe_validation_error
from .validation import ValidationError, check_required

logger = CloudFunctionLogger("cloudfn")

DEFAULT_CORS_METHODS = "GET, POST, PUT, DELETE, PATCH, OPTIONS"
CORS_MAX_AGE = "3600"
JSON_MIMETYPE = "application/json"
BINARY_MIMETYPE = "application/octet-stream"
TRACE_HEADER = "X-Cloud-Trace-Context"


def parse_origins(value: str) -> List[str]:
    """Split a comma separated origin list, dropping blank entries.

    Args:
        value: e.g. the CORS_ORIGINS environment variable

    Returns:
        Origins in their configured order
    """
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class FnHttper:
    """CORS policy shared by the handlers of one function instance.

    Request origins that matched an allowed origin are remembered so later
    requests from them take the exact-match path. The cache only grows and
    is guarded by a lock, since the framework serves requests on threads.
    """

    def __init__(
        self,
        cors_origins: Iterable[str],
        cors_methods: str = DEFAULT_CORS_METHODS
    ):
        """Initialize the CORS policy.

        Args:
            cors_origins: Allowed origins; the first one is the default
                Access-Control-Allow-Origin value
            cors_methods: Access-Control-Allow-Methods value, "*" or a list

        Raises:
            ConfigurationError: If no origins are given or one is blank
        """
        self.cors_origins = tuple(cors_origins)
        if not self.cors_origins:
            raise errors.ConfigurationError("cloudfn: missing allowed cors origins")
        if any(not origin for origin in self.cors_origins):
            raise errors.ConfigurationError("cloudfn: blank cors origin")
        self.cors_methods = cors_methods
        self._seen_origins: Set[str] = set()
        self._lock = threading.Lock()

    def allowed_origin(self, request_origin: str) -> str:
        """Pick the Access-Control-Allow-Origin value for a request origin.

        Any configured origin contained in the request origin lets the
        request origin through, so "example.com" also admits
        "https://app.example.com" (and "example.com.evil.net").
        """
        with self._lock:
            if request_origin in self._seen_origins:
                return request_origin

        for allowed in self.cors_origins:
            if allowed in request_origin:
                with self._lock:
                    self._seen_origins.add(request_origin)
                return request_origin

        return self.cors_origins[0]

    def cors_middleware(self, request: Request, response: Response) -> bool:
        """Set CORS headers and answer preflight requests.

        Args:
            request: Incoming request
            response: Response being built for it

        Returns:
            True if the request was a preflight and response is complete
        """
        origin = self.allowed_origin(request.headers.get("Origin", ""))

        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Headers"] = "*"
        response.headers["Access-Control-Allow-Methods"] = self.cors_methods
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
        response.headers["Vary"] = "Origin"

        if request.method == "OPTIONS":
            response.status_code = 204
            return True

        return False

    def handler(self, methods: Sequence[str] = ("POST",), status: int = 200):
        """Decorate a view taking a request and returning a result.

        The wrapped function applies CORS, answers preflights, rejects
        methods not listed with 405, and writes the view's return value
        with write_res() or whatever it raises with write_err().

        Args:
            methods: HTTP methods the view accepts
            status: Status code for successful responses
        """
        allowed = {method.upper() for method in methods}

        def decorator(view: Callable[[Request], Any]) -> Callable[[Request], Response]:
            @functools.wraps(view)
            def wrapper(request: Request) -> Response:
                response = Response()
                if self.cors_middleware(request, response):
                    return response
                if request.method not in allowed:
                    return write_err(response, errors.METHOD_NOT_ALLOWED)
                try:
                    result = view(request)
                except Exception as err:
                    return write_err(response, err)
                return write_res(response, result, status)

            return wrapper

        return decorator


def handle_options_request_and_cors(request: Request, response: Response) -> bool:
    """Apply wildcard CORS headers, answering preflight requests with 204.

    Returns:
        True if the request was a preflight and response is complete
    """
    response.headers["Access-Control-Allow-Credentials"] = "true"
    response.headers["Access-Control-Allow-Origin"] = "*"
    if request.method == "OPTIONS":
        response.headers["Access-Control-Allow-Headers"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
        response.status_code = 204
        return True
    return False


def get_post_data(request: Request, schema: type) -> Any:
    """Decode and validate the request body into a payload.

    BinaryCodec subclasses decode themselves; pydantic models are
    validated from JSON, which also rejects values of the wrong type.
    Required fields are then checked. The body stays cached on the
    request, so request.get_data() still returns it.

    Args:
        request: Incoming request
        schema: BaseModel or BinaryCodec subclass to decode into

    Returns:
        The populated payload

    Raises:
        AppError: 400 for unreadable, empty, undecodable or incomplete bodies
        TypeError: If schema is neither a pydantic model nor a BinaryCodec
    """
    is_class = isinstance(schema, type)
    binary = is_class and issubclass(schema, BinaryCodec)
    if not binary and not (is_class and issubclass(schema, BaseModel)):
        raise TypeError(f"{schema!r} is neither a pydantic model nor a BinaryCodec")

    try:
        body = request.get_data(cache=True)
    except (HTTPException, OSError) as e:
        raise errors.new_bad_request("read body", e) from e

    if not body:
        raise errors.new(400, "missing body")

    if binary:
        try:
            payload = schema.unmarshal_binary(body)
        except Exception as e:
            raise errors.new_bad_request("binary decode", e) from e
    else:
        try:
            payload = schema.model_validate_json(body)
        except pydantic.ValidationError as e:
            raise errors.new(
                400, f"json decode: {describe_validation_error(e)}") from e

    if isinstance(payload, BaseModel):
        try:
            check_required(payload)
        except ValidationError as e:
            raise errors.new(400, str(e)) from e

    return payload


def write_res(response: Response, result: Any, status: int = 200) -> Response:
    """Write a successful result as JSON, or via its BinaryCodec.

    pydantic models (also nested in lists or dicts) are written by alias.
    Serialization failures are answered as a 500 whose cause only reaches
    the logs.

    Args:
        response: Response being built
        result: Value to serialize
        status: HTTP status code (default: 200)

    Returns:
        The same response, for returning from the handler
    """
    try:
        if isinstance(result, BinaryCodec):
            body = result.marshal_binary()
            mimetype = BINARY_MIMETYPE
        elif isinstance(result, BaseModel):
            body = result.model_dump_json(by_alias=True).encode("utf-8")
            mimetype = JSON_MIMETYPE
        else:
            body = pydantic_core.to_json(result, by_alias=True)
            mimetype = JSON_MIMETYPE
    except Exception as e:
        return write_err(response, errors.new_with_detail(
            500, errors.INTERNAL_ERROR_MESSAGE, f"encode response: {e}"))

    response.status_code = status
    response.mimetype = mimetype
    response.set_data(body + b"\n")
    return response


def write_err(response: Response, err: BaseException) -> Response:
    """Write err as a JSON error envelope with its HTTP status.

    Returns:
        The same response, for returning from the handler
    """
    status = errors.status_of(err)
    fields = {"status": status, "error": str(err)}
    detail = errors.detail_of(err)
    if detail:
        fields["detail"] = detail

    if status >= 500:
        if not isinstance(err, errors.AppError):
            fields["error_type"] = type(err).__name__
        logger.error("Request failed", **fields)
    else:
        logger.warning("Request rejected", **fields)

    response.status_code = status
    response.mimetype = JSON_MIMETYPE
    response.set_data(errors.to_json(err) + "\n")
    return response


def get_path_id(request: Request) -> str:
    """Return the id from a path of the form "/<id>"."""
    path = request.path
    return path[1:] if path.startswith("/") else path


@dataclasses.dataclass(frozen=True)
class RequestCtx:
    """Per-request values handlers commonly log or branch on."""

    method: str
    path: str
    origin: str
    trace_id: str


def new_ctx(request: Request) -> RequestCtx:
    # TODO: extract the caller identity once auth headers are settled.
    trace = request.headers.get(TRACE_HEADER, "")
    return RequestCtx(
        method=request.method,
        path=request.path,
        origin=request.headers.get("Origin", ""),
        trace_id=trace.split("/", 1)[0],
    )
