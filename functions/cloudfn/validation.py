"""Required-field validation for decoded request payloads.

Requirements are either declared on a pydantic model with
cloudfn.schema.required_field() or passed explicitly as a list of
Requirement(name, accessor) pairs. Only the top level of a payload is
checked; nested values are not inspected.
"""
import dataclasses
import functools
import operator
from typing import Any, Callable, Optional, Sequence, Tuple

from pydantic import BaseModel

from .schema import field_alias, is_required


class ValidationError(ValueError):
    """Raised when a required field holds its zero value."""

    def __init__(self, field_name: str):
        super().__init__(f'missing required field: "{field_name}"')
        self.field_name = field_name


@dataclasses.dataclass(frozen=True)
class Requirement:
    """A required field: the name reported to clients and how to read it."""

    name: str
    accessor: Callable[[Any], Any]


def is_zero(value: Any) -> bool:
    """Report whether value is the zero value for its type.

    None, False, numeric zero and empty strings, bytes or containers are
    zero. Any other object counts as set.
    """
    if value is None:
        return True
    if isinstance(value, (bool, int, float, complex)):
        return value == 0
    if isinstance(value, (str, bytes, bytearray, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


@functools.lru_cache(maxsize=None)
def requirements_for(schema: type) -> Tuple[Requirement, ...]:
    """Collect the required fields declared on a pydantic model.

    Args:
        schema: BaseModel subclass

    Returns:
        Requirements in field declaration order, named by JSON alias

    Raises:
        TypeError: If schema is not a pydantic model
    """
    if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
        raise TypeError(f"{schema!r} is not a pydantic model")
    return tuple(
        Requirement(field_alias(name, info), operator.attrgetter(name))
        for name, info in schema.model_fields.items()
        if is_required(info)
    )


def check_required(
    value: Any,
    requirements: Optional[Sequence[Requirement]] = None
) -> None:
    """Check that every required field of value is populated.

    Args:
        value: Decoded payload
        requirements: Explicit requirements; derived from the model
            declaration of value when omitted

    Raises:
        ValidationError: Naming the first required field left at zero
    """
    if requirements is None:
        requirements = requirements_for(type(value))
    for requirement in requirements:
        if is_zero(requirement.accessor(value)):
            raise ValidationError(requirement.name)
