"""Unit tests for sigmodel.compiler.codegen module.

Generated modules are loaded and run against real values: the tests state
which values are accepted and which violations are reported for the rest.
"""

import pytest

from sigmodel.compiler import ValidatorCompiler, ValueLocation, load_validators
from sigmodel.config import CompilerConfig
from sigmodel.errors import CompilationError, UnknownModelVariant
from sigmodel.models import (
    ArrayParserModel,
    BooleanLiteralParserModel,
    BooleanParserModel,
    GenericParserModel,
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

CATEGORY = ObjectParserModel(
    members=[
        MemberParserModel(name="name", parser=StringParserModel()),
        MemberParserModel(
            name="children",
            optional=True,
            parser=ArrayParserModel(element=ReferenceParserModel(type_name="Category")),
        ),
    ]
)


def violations(model, value, deps=None) -> list[tuple[str, str]]:
    """Compile ``model`` as the root, validate ``value`` and list violations."""
    source = ValidatorCompiler(deps or {}).compile_module(root=model)
    result = load_validators(source).validate(value)
    return [(v.path, v.expected) for v in result.violations]


class TestPrimitives:
    """Tests for primitive and literal rules."""

    def test_string(self):
        assert violations(StringParserModel(), "x") == []
        assert violations(StringParserModel(), 1) == [("$", "string")]

    def test_number_rejects_bool(self):
        """Test that booleans are not numbers."""
        assert violations(NumberParserModel(), 1.5) == []
        assert violations(NumberParserModel(), 3) == []
        assert violations(NumberParserModel(), True) == [("$", "number")]
        assert violations(NumberParserModel(), "3") == [("$", "number")]

    def test_boolean(self):
        assert violations(BooleanParserModel(), False) == []
        assert violations(BooleanParserModel(), 0) == [("$", "boolean")]

    def test_literals(self):
        """Test exact equality against the stored literal."""
        assert violations(StringLiteralParserModel(literal="a"), "a") == []
        assert violations(StringLiteralParserModel(literal="a"), "b") == [("$", '"a"')]
        assert violations(NumberLiteralParserModel(literal=1), 1) == []
        assert violations(NumberLiteralParserModel(literal=1), True) == [("$", "1")]
        assert violations(BooleanLiteralParserModel(literal=True), True) == []
        assert violations(BooleanLiteralParserModel(literal=True), 1) == [("$", "true")]


class TestObjects:
    """Tests for object and member rules."""

    MODEL = ObjectParserModel(
        members=[
            MemberParserModel(name="x", parser=NumberParserModel()),
            MemberParserModel(name="label", optional=True, parser=StringParserModel()),
        ]
    )

    def test_accepts_without_optional_member(self):
        assert violations(self.MODEL, {"x": 1}) == []

    def test_optional_member_checked_when_present(self):
        assert violations(self.MODEL, {"x": 1, "label": 2}) == [("$.label", "string")]

    def test_missing_required_member(self):
        """Test that absence of a required member is a violation."""
        assert violations(self.MODEL, {}) == [("$.x", "number")]

    def test_not_an_object(self):
        assert violations(self.MODEL, [1]) == [("$", "object")]

    def test_all_violations_reported(self):
        """Test that validation does not stop at the first mismatch."""
        assert violations(self.MODEL, {"x": "1", "label": False}) == [
            ("$.x", "number"),
            ("$.label", "string"),
        ]

    def test_empty_object(self):
        assert violations(ObjectParserModel(), {"anything": 1}) == []
        assert violations(ObjectParserModel(), "x") == [("$", "object")]


class TestArrays:
    """Tests for array rules."""

    def test_element_paths(self):
        model = ArrayParserModel(element=StringParserModel())
        assert violations(model, []) == []
        assert violations(model, ["a", 1, "b", None]) == [("$[1]", "string"), ("$[3]", "string")]

    def test_not_a_list(self):
        model = ArrayParserModel(element=StringParserModel())
        assert violations(model, "abc") == [("$", "string[]")]

    def test_nested_arrays(self):
        model = ArrayParserModel(element=ArrayParserModel(element=NumberParserModel()))
        assert violations(model, [[1], [2, "x"]]) == [("$[1][1]", "number")]


class TestUnions:
    """Tests for union rules."""

    def test_string_literal_union(self):
        """Test the single-membership check for string literal unions."""
        model = UnionParserModel(
            one_of=[StringLiteralParserModel(literal="EUR"), StringLiteralParserModel(literal="USD")]
        )
        assert violations(model, "USD") == []
        assert violations(model, "GBP") == [("$", '"EUR" | "USD"')]
        assert violations(model, ["EUR"]) == [("$", '"EUR" | "USD"')]

    def test_any_alternative_accepts(self):
        model = UnionParserModel(one_of=[StringParserModel(), NumberParserModel()])
        assert violations(model, "x") == []
        assert violations(model, 2) == []
        assert violations(model, None) == [("$", "string | number")]

    def test_alternative_violations_are_not_reported(self):
        """Test that a rejected union reports one violation at its own path."""
        model = UnionParserModel(
            one_of=[
                ObjectParserModel(members=[MemberParserModel(name="kind", parser=StringLiteralParserModel(literal="a"))]),
                ObjectParserModel(
                    members=[
                        MemberParserModel(name="kind", parser=StringLiteralParserModel(literal="b")),
                        MemberParserModel(name="n", parser=NumberParserModel()),
                    ]
                ),
            ]
        )
        assert violations(model, {"kind": "b", "n": 1}) == []
        assert violations(model, {"kind": "b"}) == [("$", "object | object")]


class TestReferences:
    """Tests for calls into named validators."""

    def test_recursive_model(self):
        """Test that a self-referential model validates at any depth."""
        deps = {"Category": CATEGORY}
        root = ReferenceParserModel(type_name="Category")
        value = {"name": "root", "children": [{"name": "a"}, {"name": "b", "children": [{"name": 3}]}]}

        assert violations(root, {"name": "root"}, deps) == []
        assert violations(root, value, deps) == [("$.children[1].children[0].name", "string")]

    def test_named_body_reports_its_key(self):
        """Test that a shape mismatch of a named body names the type."""
        deps = {"Category": CATEGORY}
        assert violations(ReferenceParserModel(type_name="Category"), 7, deps) == [("$", "Category")]

    def test_generic_entry(self):
        deps = {
            "Wrap<number>": GenericParserModel(
                type_name="Wrap<number>",
                type_arguments=[NumberParserModel()],
                parser=ObjectParserModel(members=[MemberParserModel(name="value", parser=NumberParserModel())]),
            )
        }
        root = ReferenceParserModel(type_name="Wrap<number>", type_arguments=[NumberParserModel()])
        assert violations(root, {"value": 1}, deps) == []
        assert violations(root, {"value": "1"}, deps) == [("$.value", "number")]

    def test_body_generated_once(self):
        """Test that every reference calls the one generated function."""
        compiler = ValidatorCompiler({"Category": CATEGORY})
        root = ObjectParserModel(
            members=[
                MemberParserModel(name="a", parser=ReferenceParserModel(type_name="Category")),
                MemberParserModel(name="b", parser=ReferenceParserModel(type_name="Category")),
            ]
        )
        source = compiler.compile_module(root=root)
        assert source.count("def validate_Category(") == 1
        assert source.count("validate_Category(") == 4

    def test_unknown_reference(self):
        with pytest.raises(CompilationError):
            ValidatorCompiler({}).compile_module(root=ReferenceParserModel(type_name="Missing"))


class TestUnknownVariants:
    """Tests for models no compiler rule handles."""

    def test_type_parameter(self):
        """Test that an uninstantiated parameter cannot be compiled."""
        with pytest.raises(UnknownModelVariant):
            ValidatorCompiler({}).compile(
                TypeParameterParserModel(name="T", position=0),
                ValueLocation("value", "path"),
            )

    def test_stray_member(self):
        with pytest.raises(UnknownModelVariant):
            ValidatorCompiler({}).compile_module(
                root=MemberParserModel(name="x", parser=StringParserModel())
            )


class TestModuleLayout:
    """Tests for names and tables of generated modules."""

    def test_header_and_tables(self):
        source = ValidatorCompiler({"Category": CATEGORY}).compile_module(root=StringParserModel())
        assert source.startswith("# Generated by sigmodel. Do not edit.\n")
        assert "VALIDATORS = {\n    'Category': validate_Category,\n}" in source
        assert "ENTRIES = {\n    'validate': validate,\n}" in source

        validators = load_validators(source)
        assert validators.keys == ["Category"]
        assert validators.entries == ["validate"]

    def test_function_names_are_unique(self):
        """Test that keys sanitizing to the same name get suffixes."""
        deps = {
            "Page<Product>": ObjectParserModel(),
            "Page_Product": ObjectParserModel(),
            "parameters": ObjectParserModel(),
        }
        compiler = ValidatorCompiler(deps)
        assert compiler.function_names == {
            "Page<Product>": "validate_Page_Product",
            "Page_Product": "validate_Page_Product_2",
            "parameters": "validate_parameters_2",
        }

    def test_quoted_keys(self):
        """Test that literal arguments in keys produce valid code."""
        deps = {'Bug<Aad, "kaas">': StringLiteralParserModel(literal="kaas")}
        validators = load_validators(ValidatorCompiler(deps).compile_module())
        assert validators.validate_type('Bug<Aad, "kaas">', "kaas").is_ok

    def test_configured_names(self):
        config = CompilerConfig(function_prefix="check_", entry_name="check", root_path="body")
        compiler = ValidatorCompiler({"Category": CATEGORY}, config)
        source = compiler.compile_module(root=ReferenceParserModel(type_name="Category"))

        assert "def check_Category(value, path, errors):" in source
        result = load_validators(source).validate({}, entry="check")
        assert [(v.path, v.expected) for v in result.violations] == [("body.name", "string")]

    def test_entry_name_must_be_identifier(self):
        with pytest.raises(CompilationError):
            ValidatorCompiler({}).compile_module(entries={"not valid": StringParserModel()})

    def test_deterministic(self):
        """Test that compiling twice gives identical text."""
        deps = {"Category": CATEGORY}
        root = ArrayParserModel(element=ReferenceParserModel(type_name="Category"))
        assert ValidatorCompiler(deps).compile_module(root=root) == ValidatorCompiler(deps).compile_module(root=root)
