"""Tests for required-field validation."""
from typing import Dict, List, Optional

import pytest

from cloudfn.schema import Payload, optional_field, required_field
from cloudfn.validation import (
    Requirement,
    ValidationError,
    check_required,
    is_zero,
    requirements_for,
)


class Foo(Payload):
    label: str = ""


class FooReq(Payload):
    foo: Foo | None = required_field()


class SignupReq(Payload):
    email: Optional[str] = required_field(alias="emailAddress")
    age: Optional[int] = required_field()
    tags: List[str] = required_field(default_factory=list)
    nickname: str = optional_field(default="")


class TestIsZero:
    """Tests for is_zero()."""

    @pytest.mark.parametrize("value", [
        None, "", b"", 0, 0.0, False, [], (), {}, set(),
    ])
    def test_zero_values(self, value):
        assert is_zero(value) is True

    @pytest.mark.parametrize("value", [
        "x", b"x", 1, -1, 0.5, True, [0], (None,), {"a": None}, Foo(),
    ])
    def test_non_zero_values(self, value):
        assert is_zero(value) is False


class TestCheckRequired:
    """Tests for check_required()."""

    def test_populated_nested_reference(self):
        # An empty nested object is still a set reference
        check_required(FooReq(foo=Foo()))

    def test_missing_nested_reference(self):
        with pytest.raises(ValidationError) as exc_info:
            check_required(FooReq())
        assert exc_info.value.field_name == "foo"
        assert str(exc_info.value) == 'missing required field: "foo"'

    def test_all_required_populated(self):
        check_required(SignupReq(email="a@b.c", age=30, tags=["x"]))

    def test_names_field_by_alias(self):
        with pytest.raises(ValidationError) as exc_info:
            check_required(SignupReq(age=30, tags=["x"]))
        assert exc_info.value.field_name == "emailAddress"

    def test_zero_number_is_missing(self):
        with pytest.raises(ValidationError, match='"age"'):
            check_required(SignupReq(email="a@b.c", age=0, tags=["x"]))

    def test_empty_container_is_missing(self):
        with pytest.raises(ValidationError, match='"tags"'):
            check_required(SignupReq(email="a@b.c", age=1))

    def test_optional_fields_ignored(self):
        check_required(SignupReq(email="a@b.c", age=1, tags=["x"], nickname=""))

    def test_reports_first_missing_field(self):
        with pytest.raises(ValidationError) as exc_info:
            check_required(SignupReq())
        assert exc_info.value.field_name == "emailAddress"

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            check_required(FooReq())


class TestExplicitRequirements:
    """Tests for check_required() with explicit requirements."""

    def test_checks_plain_objects(self):
        payload: Dict[str, str] = {"campaign": ""}
        requirements = [Requirement("campaign", lambda p: p.get("campaign"))]
        with pytest.raises(ValidationError, match='"campaign"'):
            check_required(payload, requirements)

    def test_passes_when_populated(self):
        requirements = [Requirement("campaign", lambda p: p["campaign"])]
        check_required({"campaign": {"name": "spring"}}, requirements)

    def test_overrides_declared_requirements(self):
        check_required(FooReq(), requirements=[])


class TestRequirementsFor:
    """Tests for requirements_for()."""

    def test_declaration_order_and_aliases(self):
        names = [r.name for r in requirements_for(SignupReq)]
        assert names == ["emailAddress", "age", "tags"]

    def test_plain_fields_not_required(self):
        class Plain(Payload):
            a: str = ""

        assert requirements_for(Plain) == ()

    def test_rejects_non_model(self):
        with pytest.raises(TypeError):
            requirements_for(dict)
