"""Unit tests for keyof and utility-type reduction during extraction.

Utility operators (pick, omit, exclude, mapped, conditional) have no
identity of their own: the named type using them holds the fully reduced
model.
"""

import pytest

from sigmodel.errors import OracleError
from sigmodel.models import (
    BooleanParserModel,
    MemberParserModel,
    NumberParserModel,
    ObjectParserModel,
    ReferenceParserModel,
    StringLiteralParserModel,
    StringParserModel,
    UnionParserModel,
)

AAD_KAAS = "{name: Aad, body: {kind: object, members: [{name: kaas, type: {kind: string}}]}}"
AAD_KAAS_KOOS = (
    "{name: Aad, body: {kind: object, members: "
    "[{name: kaas, type: {kind: string}}, {name: koos, type: {kind: string}}]}}"
)


def mapped_unit(*declarations: str, body: str) -> str:
    """YAML unit declaring ``MyMappedType`` and a function returning it."""
    lines = ["declarations:"]
    lines.extend(f"  - {declaration}" for declaration in declarations)
    lines.append(f"  - {{name: MyMappedType, body: {body}}}")
    lines.append("functions:")
    lines.append("  - {name: test, return_type: {kind: ref, name: MyMappedType}}")
    return "\n".join(lines)


def string_literals(*names: str) -> UnionParserModel:
    return UnionParserModel(one_of=[StringLiteralParserModel(literal=name) for name in names])


class TestKeyOf:
    """Tests for keyof reduction."""

    def test_single_key_of_literal_type(self, extract_ir):
        """Test that one key collapses to a single literal."""
        model_map = extract_ir(
            mapped_unit(body="{kind: keyof, target: {kind: object, members: [{name: kaas, type: {kind: string}}]}}")
        )
        assert model_map.root == ReferenceParserModel(type_name="MyMappedType")
        assert model_map.deps == {"MyMappedType": StringLiteralParserModel(literal="kaas")}

    def test_single_key_of_named_type(self, extract_ir):
        """Test keyof Aad with one member."""
        model_map = extract_ir(mapped_unit(AAD_KAAS, body="{kind: keyof, target: {kind: ref, name: Aad}}"))
        assert model_map.deps == {"MyMappedType": StringLiteralParserModel(literal="kaas")}

    def test_multiple_keys_in_declaration_order(self, extract_ir):
        """Test that several keys become a union in member order."""
        model_map = extract_ir(
            mapped_unit(
                "{name: Aad, body: {kind: object, members: "
                "[{name: kaas, type: {kind: string}}, {name: aap, type: {kind: string}}]}}",
                body="{kind: keyof, target: {kind: ref, name: Aad}}",
            )
        )
        assert model_map.deps == {"MyMappedType": string_literals("kaas", "aap")}

    def test_keyof_never_yields_bare_string(self, extract_ir):
        """Test that keyof results are always literals."""
        model_map = extract_ir(mapped_unit(AAD_KAAS_KOOS, body="{kind: keyof, target: {kind: ref, name: Aad}}"))
        assert not isinstance(model_map.deps["MyMappedType"], StringParserModel)


class TestPickOmitExclude:
    """Tests for structural utility reduction."""

    def test_pick(self, extract_ir):
        """Test Pick<Aad, "kaas"> reduces to an object."""
        model_map = extract_ir(
            mapped_unit(
                AAD_KAAS_KOOS,
                body="{kind: pick, target: {kind: ref, name: Aad}, keys: {kind: literal, value: kaas}}",
            )
        )
        assert model_map.deps == {
            "MyMappedType": ObjectParserModel(
                members=[MemberParserModel(name="kaas", parser=StringParserModel())]
            )
        }

    def test_pick_inline_target(self, extract_ir):
        """Test Pick over an anonymous object leaves no utility reference."""
        model_map = extract_ir(
            mapped_unit(
                body="{kind: pick, target: {kind: object, members: "
                "[{name: kaas, type: {kind: string}}, {name: koos, type: {kind: string}}]}, "
                "keys: {kind: literal, value: kaas}}"
            )
        )
        assert list(model_map.deps) == ["MyMappedType"]
        assert model_map.deps["MyMappedType"].members[0].name == "kaas"

    def test_pick_missing_key(self, extract_ir):
        """Test that picking an absent member is rejected."""
        with pytest.raises(OracleError):
            extract_ir(
                mapped_unit(
                    AAD_KAAS,
                    body="{kind: pick, target: {kind: ref, name: Aad}, keys: {kind: literal, value: nope}}",
                )
            )

    def test_omit(self, extract_ir):
        """Test Omit<Aad, "koos">."""
        model_map = extract_ir(
            mapped_unit(
                AAD_KAAS_KOOS,
                body="{kind: omit, target: {kind: ref, name: Aad}, keys: {kind: literal, value: koos}}",
            )
        )
        assert model_map.deps == {
            "MyMappedType": ObjectParserModel(
                members=[MemberParserModel(name="kaas", parser=StringParserModel())]
            )
        }

    def test_omit_recursive_target(self, extract_ir):
        """Test that members referring to the target register it after the alias."""
        model_map = extract_ir(
            mapped_unit(
                "{name: Aad, body: {kind: object, members: ["
                "{name: kaas, optional: true, type: {kind: ref, name: Aad}}, "
                "{name: koos, type: {kind: string}}]}}",
                body="{kind: omit, target: {kind: ref, name: Aad}, keys: {kind: literal, value: koos}}",
            )
        )
        aad = ReferenceParserModel(type_name="Aad")
        assert list(model_map.deps) == ["MyMappedType", "Aad"]
        assert model_map.deps["MyMappedType"] == ObjectParserModel(
            members=[MemberParserModel(name="kaas", optional=True, parser=aad)]
        )
        assert model_map.deps["Aad"] == ObjectParserModel(
            members=[
                MemberParserModel(name="kaas", optional=True, parser=aad),
                MemberParserModel(name="koos", parser=StringParserModel()),
            ]
        )

    def test_exclude(self, extract_ir):
        """Test Exclude<keyof Aad, "koos"> leaves the single remaining key."""
        model_map = extract_ir(
            mapped_unit(
                AAD_KAAS_KOOS,
                body="{kind: exclude, source: {kind: keyof, target: {kind: ref, name: Aad}}, "
                "excluded: {kind: literal, value: koos}}",
            )
        )
        assert model_map.deps == {"MyMappedType": StringLiteralParserModel(literal="kaas")}

    def test_exclude_keeps_several_alternatives(self, extract_ir):
        """Test that exclusion keeps the remaining order."""
        model_map = extract_ir(
            mapped_unit(
                body="{kind: exclude, source: {kind: union, types: ["
                "{kind: literal, value: a}, {kind: literal, value: b}, {kind: literal, value: c}]}, "
                "excluded: {kind: literal, value: b}}"
            )
        )
        assert model_map.deps == {"MyMappedType": string_literals("a", "c")}

    def test_pick_of_excluded_keys(self, extract_ir):
        """Test Pick<Aad, Exclude<keyof Aad, "b">>."""
        model_map = extract_ir(
            mapped_unit(
                "{name: Aad, body: {kind: object, members: "
                "[{name: a, type: {kind: string}}, {name: b, type: {kind: string}}]}}",
                body="{kind: pick, target: {kind: ref, name: Aad}, keys: {kind: exclude, "
                "source: {kind: keyof, target: {kind: ref, name: Aad}}, "
                "excluded: {kind: literal, value: b}}}",
            )
        )
        assert model_map.deps == {
            "MyMappedType": ObjectParserModel(
                members=[MemberParserModel(name="a", parser=StringParserModel())]
            )
        }


class TestMappedAndConditional:
    """Tests for mapped and conditional types."""

    def test_mapped_over_keys(self, extract_ir):
        """Test {[key in keyof Aad]: string | number}."""
        model_map = extract_ir(
            mapped_unit(
                "{name: Aad, body: {kind: object, members: "
                "[{name: a, type: {kind: string}}, {name: b, type: {kind: string}}]}}",
                body="{kind: mapped, key_parameter: key, keys: {kind: keyof, target: {kind: ref, name: Aad}}, "
                "value: {kind: union, types: [{kind: string}, {kind: number}]}}",
            )
        )
        value = UnionParserModel(one_of=[StringParserModel(), NumberParserModel()])
        assert model_map.deps == {
            "MyMappedType": ObjectParserModel(
                members=[
                    MemberParserModel(name="a", parser=value),
                    MemberParserModel(name="b", parser=value),
                ]
            )
        }

    def test_mapped_value_uses_key(self, extract_ir):
        """Test that the key parameter is bound per member."""
        model_map = extract_ir(
            mapped_unit(
                body="{kind: mapped, key_parameter: K, optional: true, keys: {kind: union, types: "
                "[{kind: literal, value: a}, {kind: literal, value: b}]}, value: {kind: ref, name: K}}"
            )
        )
        assert model_map.deps == {
            "MyMappedType": ObjectParserModel(
                members=[
                    MemberParserModel(name="a", optional=True, parser=StringLiteralParserModel(literal="a")),
                    MemberParserModel(name="b", optional=True, parser=StringLiteralParserModel(literal="b")),
                ]
            )
        }

    def test_conditional_on_concrete_types(self, extract_ir):
        """Test a conditional that can be decided immediately."""
        model_map = extract_ir(
            mapped_unit(
                body="{kind: conditional, check_type: {kind: literal, value: a}, "
                "extends_type: {kind: string}, true_type: {kind: number}, false_type: {kind: boolean}}"
            )
        )
        assert model_map.deps == {"MyMappedType": NumberParserModel()}

    def test_conditional_extends_keyof(self, extract_ir):
        """Test a conditional whose extends clause is keyof Aad."""
        for check, expected in (("kaas", NumberParserModel()), ("nope", BooleanParserModel())):
            model_map = extract_ir(
                mapped_unit(
                    AAD_KAAS_KOOS,
                    body=f"{{kind: conditional, check_type: {{kind: literal, value: {check}}}, "
                    "extends_type: {kind: keyof, target: {kind: ref, name: Aad}}, "
                    "true_type: {kind: number}, false_type: {kind: boolean}}",
                )
            )
            assert model_map.deps == {"MyMappedType": expected}


class TestKeyOfOperands:
    """Tests for keyof used as an operand of other utilities."""

    def test_exclude_of_aliased_keyof(self, extract_ir):
        """Test Exclude<K, "kaas"> where K is an alias for keyof Aad."""
        model_map = extract_ir(
            mapped_unit(
                AAD_KAAS_KOOS,
                "{name: K, body: {kind: keyof, target: {kind: ref, name: Aad}}}",
                body="{kind: exclude, source: {kind: ref, name: K}, excluded: {kind: literal, value: kaas}}",
            )
        )
        assert model_map.deps == {"MyMappedType": StringLiteralParserModel(literal="koos")}

    def test_pick_all_keys(self, extract_ir):
        """Test Pick<Aad, keyof Aad> keeps every member."""
        model_map = extract_ir(
            mapped_unit(
                AAD_KAAS_KOOS,
                body="{kind: pick, target: {kind: ref, name: Aad}, "
                "keys: {kind: keyof, target: {kind: ref, name: Aad}}}",
            )
        )
        assert [member.name for member in model_map.deps["MyMappedType"].members] == ["kaas", "koos"]

    def test_mapped_over_aliased_keys(self, extract_ir):
        """Test {[K in Keys]: number} where Keys is keyof Aad."""
        model_map = extract_ir(
            mapped_unit(
                AAD_KAAS_KOOS,
                "{name: Keys, body: {kind: keyof, target: {kind: ref, name: Aad}}}",
                body="{kind: mapped, keys: {kind: ref, name: Keys}, value: {kind: number}}",
            )
        )
        assert model_map.deps == {
            "MyMappedType": ObjectParserModel(
                members=[
                    MemberParserModel(name="kaas", parser=NumberParserModel()),
                    MemberParserModel(name="koos", parser=NumberParserModel()),
                ]
            )
        }
