"""
Identity keys.

A non-generic named type is keyed by its identity. A generic
instantiation is keyed by its identity plus its resolved argument models,
rendered like a type expression, so ``Wrap<number>`` and ``Wrap<string>``
are distinct entries while two uses of ``Wrap<number>`` share one.
"""

import json

from sigmodel.models import (
    ArrayParserModel,
    BooleanLiteralParserModel,
    BooleanParserModel,
    GenericParserModel,
    MemberParserModel,
    NumberLiteralParserModel,
    NumberParserModel,
    ObjectParserModel,
    ParserModel,
    ReferenceParserModel,
    StringLiteralParserModel,
    StringParserModel,
    TypeParameterParserModel,
    UnionParserModel,
)
from sigmodel.extraction.substitution import contains_type_parameter


def type_key(identity: str, arguments: list[ParserModel] | None = None) -> str:
    """Key of a named type instantiated with the given argument models.

    Args:
        identity: Declared name
        arguments: Resolved type argument models

    Returns:
        ``identity`` alone, or ``identity<arg, ...>``
    """
    if not arguments:
        return identity
    return f"{identity}<{', '.join(serialize_model(argument) for argument in arguments)}>"


def template_key(identity: str, parameter_names: list[str]) -> str:
    """Key of a generic declaration body, e.g. ``Wrap<T>``."""
    return f"{identity}<{', '.join(parameter_names)}>"


def serialize_model(model: ParserModel) -> str:
    """Render a model as a canonical type expression.

    Structurally equal models render identically.
    """
    if isinstance(model, (StringParserModel, NumberParserModel, BooleanParserModel)):
        return model.type
    if isinstance(model, (StringLiteralParserModel, NumberLiteralParserModel)):
        return json.dumps(model.literal)
    if isinstance(model, BooleanLiteralParserModel):
        return "true" if model.literal else "false"
    if isinstance(model, ArrayParserModel):
        element = serialize_model(model.element)
        if isinstance(model.element, UnionParserModel):
            element = f"({element})"
        return f"{element}[]"
    if isinstance(model, ObjectParserModel):
        if not model.members:
            return "{}"
        return "{ " + "; ".join(serialize_model(member) for member in model.members) + " }"
    if isinstance(model, MemberParserModel):
        marker = "?" if model.optional else ""
        return f"{json.dumps(model.name)}{marker}: {serialize_model(model.parser)}"
    if isinstance(model, UnionParserModel):
        return " | ".join(serialize_model(alternative) for alternative in model.one_of)
    if isinstance(model, ReferenceParserModel):
        # Unresolved references inside templates still carry their arguments
        if model.type_arguments and any(contains_type_parameter(a) for a in model.type_arguments):
            return type_key(model.type_name, model.type_arguments)
        return model.type_name
    if isinstance(model, GenericParserModel):
        return model.type_name
    if isinstance(model, TypeParameterParserModel):
        return model.name
    raise TypeError(f"Not a parser model: {model!r}")
