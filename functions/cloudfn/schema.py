"""Declarative request/response payload schemas.

Payloads are pydantic models. Fields declared with required_field() are
checked by cloudfn.validation after decoding, in addition to the type
validation pydantic performs; optional_field() only attaches an alias.
A payload that needs its own wire format subclasses BinaryCodec instead.

Example:
    class CreateCampaignReq(Payload):
        campaign: Campaign | None = required_field()
        dry_run: bool = optional_field(alias="dryRun", default=False)
"""
import abc
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.fields import FieldInfo

# Marker stored in a field's json_schema_extra
TAG_KEY = "cloudfn"
REQUIRED_TAG = "required"


class Payload(BaseModel):
    """Base model for payloads; fields accept their alias or their name."""

    model_config = ConfigDict(populate_by_name=True)


class BinaryCodec(abc.ABC):
    """Capability for payloads that (de)serialize themselves.

    get_post_data() and write_res() check for this base class explicitly
    and fall back to JSON for everything else.
    """

    @classmethod
    @abc.abstractmethod
    def unmarshal_binary(cls, data: bytes) -> "BinaryCodec":
        """Build an instance from raw request bytes."""

    @abc.abstractmethod
    def marshal_binary(self) -> bytes:
        """Serialize the instance for a response body."""


def _field(tags: str, alias: Optional[str], kwargs: Dict[str, Any]) -> Any:
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    if tags:
        extra[TAG_KEY] = tags
    if "default" not in kwargs and "default_factory" not in kwargs:
        kwargs["default"] = None
    return Field(alias=alias, json_schema_extra=extra or None, **kwargs)


def required_field(alias: Optional[str] = None, **kwargs: Any) -> Any:
    """Declare a model field that must be non-zero after decoding.

    The field defaults to None so a missing key is reported by the
    required-field check, naming the field, rather than by pydantic.

    Args:
        alias: JSON key for the field (defaults to the attribute name)
        **kwargs: Passed through to pydantic.Field(); default is None

    Returns:
        A pydantic FieldInfo tagged as required
    """
    return _field(REQUIRED_TAG, alias, kwargs)


def optional_field(alias: Optional[str] = None, **kwargs: Any) -> Any:
    """Declare a model field with an optional JSON alias."""
    return _field("", alias, kwargs)


def field_alias(name: str, info: FieldInfo) -> str:
    """Return the JSON key of a field, falling back to its name."""
    return info.alias or name


def is_required(info: FieldInfo) -> bool:
    extra = info.json_schema_extra
    if not isinstance(extra, dict):
        return False
    return REQUIRED_TAG in str(extra.get(TAG_KEY, ""))


def describe_validation_error(err: ValidationError) -> str:
    """Summarize a pydantic ValidationError on one line.

    Args:
        err: Error raised while validating a payload

    Returns:
        "<loc>: <msg>" entries joined by "; ", located by JSON key
    """
    parts = []
    for issue in err.errors():
        loc = ".".join(str(part) for part in issue.get("loc", ()))
        msg = issue.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)
