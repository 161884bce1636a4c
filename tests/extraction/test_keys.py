"""Unit tests for sigmodel.extraction.keys module."""

from sigmodel.extraction import serialize_model, template_key, type_key
from sigmodel.models import (
    ArrayParserModel,
    BooleanLiteralParserModel,
    MemberParserModel,
    NumberLiteralParserModel,
    NumberParserModel,
    ObjectParserModel,
    ReferenceParserModel,
    StringLiteralParserModel,
    StringParserModel,
    TypeParameterParserModel,
    UnionParserModel,
)


class TestTypeKey:
    """Tests for identity keys."""

    def test_plain_identity(self):
        """Test that non-generic types are keyed by name."""
        assert type_key("Aad") == "Aad"
        assert type_key("Aad", []) == "Aad"

    def test_primitive_argument(self):
        """Test a primitive instantiation."""
        assert type_key("Wrap", [NumberParserModel()]) == "Wrap<number>"

    def test_string_literal_argument_is_quoted(self):
        """Test that string literals render as JSON strings."""
        assert type_key("Bug", [StringLiteralParserModel(literal="kaas")]) == 'Bug<"kaas">'

    def test_multiple_arguments(self):
        """Test references and literals together."""
        key = type_key(
            "Bug",
            [ReferenceParserModel(type_name="Aad"), StringLiteralParserModel(literal="kaas")],
        )
        assert key == 'Bug<Aad, "kaas">'

    def test_distinct_arguments_distinct_keys(self):
        """Test that different instantiations never share a key."""
        assert type_key("Wrap", [NumberParserModel()]) != type_key("Wrap", [StringParserModel()])

    def test_template_key(self):
        """Test declaration body keys."""
        assert template_key("Bug", ["X", "Y"]) == "Bug<X, Y>"


class TestSerializeModel:
    """Tests for canonical model rendering."""

    def test_literals(self):
        """Test literal rendering."""
        assert serialize_model(NumberLiteralParserModel(literal=2)) == "2"
        assert serialize_model(BooleanLiteralParserModel(literal=False)) == "false"

    def test_union_and_array(self):
        """Test composite rendering."""
        union = UnionParserModel(
            one_of=[StringLiteralParserModel(literal="a"), StringLiteralParserModel(literal="b")]
        )
        assert serialize_model(union) == '"a" | "b"'
        assert serialize_model(ArrayParserModel(element=union)) == '("a" | "b")[]'

    def test_object(self):
        """Test object rendering with optional members."""
        model = ObjectParserModel(
            members=[
                MemberParserModel(name="a", parser=StringParserModel()),
                MemberParserModel(name="b", optional=True, parser=NumberParserModel()),
            ]
        )
        assert serialize_model(model) == '{ "a": string; "b"?: number }'
        assert serialize_model(ObjectParserModel()) == "{}"

    def test_reference_with_placeholder_arguments(self):
        """Test that unresolved references keep their arguments."""
        model = ReferenceParserModel(
            type_name="Wrap",
            type_arguments=[TypeParameterParserModel(name="T", position=0)],
        )
        assert serialize_model(model) == "Wrap<T>"

    def test_resolved_reference_uses_key(self):
        """Test that resolved references render as their key."""
        model = ReferenceParserModel(type_name="Wrap<number>", type_arguments=[NumberParserModel()])
        assert serialize_model(model) == "Wrap<number>"

    def test_structurally_equal_models_render_identically(self):
        """Test that rendering is deterministic."""
        a = ObjectParserModel(members=[MemberParserModel(name="x", parser=StringParserModel())])
        b = ObjectParserModel(members=[MemberParserModel(name="x", parser=StringParserModel())])
        assert serialize_model(a) == serialize_model(b)
