"""Helpers for HTTP handlers deployed as Google Cloud Functions.

Error mapping lives in cloudfn.errors, CORS and request/response helpers
in cloudfn.http_utils, payload declarations in cloudfn.schema and the
required-field check in cloudfn.validation.
"""
from .errors import AppError, ConfigurationError, WrappedError
from .logging_config import CloudFunctionLogger
from .http_utils import (
    FnHttper,
    RequestCtx,
    get_path_id,
    get_post_data,
    handle_options_request_and_cors,
    new_ctx,
    parse_origins,
    write_err,
    write_res,
)
from .schema import BinaryCodec, Payload, optional_field, required_field
from .validation import Requirement, ValidationError, check_required

__all__ = [
    "AppError",
    "ConfigurationError",
    "WrappedError",
    "CloudFunctionLogger",
    "FnHttper",
    "RequestCtx",
    "get_path_id",
    "get_post_data",
    "handle_options_request_and_cors",
    "new_ctx",
    "parse_origins",
    "write_err",
    "write_res",
    "BinaryCodec",
    "Payload",
    "optional_field",
    "required_field",
    "Requirement",
    "ValidationError",
    "check_required",
]
