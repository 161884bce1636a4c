"""Unit tests for sigmodel.extraction.substitution module."""

import pytest

from sigmodel.errors import UnsupportedType
from sigmodel.extraction import contains_type_parameter, substitute
from sigmodel.models import (
    ArrayParserModel,
    MemberParserModel,
    NumberParserModel,
    ObjectParserModel,
    ReferenceParserModel,
    StringParserModel,
    TypeParameterParserModel,
    UnionParserModel,
)

T = TypeParameterParserModel(name="T", position=0)
U = TypeParameterParserModel(name="U", position=1)


class TestContainsTypeParameter:
    """Tests for placeholder detection."""

    def test_bare_placeholder(self):
        assert contains_type_parameter(T)

    def test_nested_placeholder(self):
        """Test placeholders inside objects, unions and arrays."""
        model = ObjectParserModel(
            members=[
                MemberParserModel(
                    name="items",
                    parser=ArrayParserModel(element=UnionParserModel(one_of=[StringParserModel(), T])),
                )
            ]
        )
        assert contains_type_parameter(model)

    def test_reference_arguments(self):
        """Test placeholders passed as type arguments."""
        assert contains_type_parameter(ReferenceParserModel(type_name="Wrap", type_arguments=[T]))
        assert not contains_type_parameter(ReferenceParserModel(type_name="Wrap"))

    def test_concrete_model(self):
        assert not contains_type_parameter(ArrayParserModel(element=NumberParserModel()))


class TestSubstitute:
    """Tests for positional substitution."""

    def test_replaces_by_position(self):
        """Test that each placeholder takes the argument at its position."""
        template = ObjectParserModel(
            members=[
                MemberParserModel(name="first", parser=T),
                MemberParserModel(name="second", optional=True, parser=ArrayParserModel(element=U)),
            ]
        )
        result = substitute(template, [StringParserModel(), NumberParserModel()])
        assert result == ObjectParserModel(
            members=[
                MemberParserModel(name="first", parser=StringParserModel()),
                MemberParserModel(
                    name="second",
                    optional=True,
                    parser=ArrayParserModel(element=NumberParserModel()),
                ),
            ]
        )

    def test_idempotent(self):
        """Test that substituting a substituted model is a no-op."""
        template = UnionParserModel(one_of=[T, StringParserModel()])
        once = substitute(template, [NumberParserModel()])
        twice = substitute(once, [StringParserModel()])
        assert once == twice
        assert twice is once

    def test_missing_position_raises(self):
        """Test that every placeholder needs an argument."""
        with pytest.raises(UnsupportedType):
            substitute(U, [StringParserModel()])

    def test_reference_instantiated_through_callback(self):
        """Test that references with concrete arguments are handed back."""
        requests = []

        def instantiate(identity, arguments):
            requests.append((identity, arguments))
            return ReferenceParserModel(type_name=f"{identity}<number>", type_arguments=arguments)

        template = ArrayParserModel(element=ReferenceParserModel(type_name="Wrap", type_arguments=[T]))
        result = substitute(template, [NumberParserModel()], instantiate)

        assert requests == [("Wrap", [NumberParserModel()])]
        assert result == ArrayParserModel(
            element=ReferenceParserModel(type_name="Wrap<number>", type_arguments=[NumberParserModel()])
        )

    def test_reference_without_callback_keeps_name(self):
        """Test substitution of reference arguments without instantiation."""
        template = ReferenceParserModel(type_name="Wrap", type_arguments=[T])
        result = substitute(template, [StringParserModel()])
        assert result == ReferenceParserModel(type_name="Wrap", type_arguments=[StringParserModel()])
