"""
Type-parameter substitution.

A generic declaration body is extracted once as a template in which its
parameters appear as ``type-parameter`` placeholders. Instantiating it
replaces each placeholder by the argument model at its position.
"""

from typing import Callable, Optional

from sigmodel.errors import UnsupportedType
from sigmodel.models import (
    ArrayParserModel,
    GenericParserModel,
    MemberParserModel,
    ObjectParserModel,
    ParserModel,
    ReferenceParserModel,
    TypeParameterParserModel,
    UnionParserModel,
)

# Resolves a generic reference whose arguments became concrete: (identity, arguments) -> model
InstantiateCallback = Callable[[str, list[ParserModel]], ParserModel]


def contains_type_parameter(model: ParserModel) -> bool:
    """Whether a model still contains a ``type-parameter`` placeholder."""
    if isinstance(model, TypeParameterParserModel):
        return True
    if isinstance(model, ArrayParserModel):
        return contains_type_parameter(model.element)
    if isinstance(model, ObjectParserModel):
        return any(contains_type_parameter(member) for member in model.members)
    if isinstance(model, MemberParserModel):
        return contains_type_parameter(model.parser)
    if isinstance(model, UnionParserModel):
        return any(contains_type_parameter(alternative) for alternative in model.one_of)
    if isinstance(model, ReferenceParserModel):
        return any(contains_type_parameter(argument) for argument in model.type_arguments or [])
    if isinstance(model, GenericParserModel):
        return contains_type_parameter(model.parser) or any(
            contains_type_parameter(argument) for argument in model.type_arguments
        )
    return False


def substitute(
    model: ParserModel,
    arguments: list[ParserModel],
    instantiate: Optional[InstantiateCallback] = None,
) -> ParserModel:
    """Replace type-parameter placeholders by argument models.

    Substitution is idempotent: models without placeholders are returned
    unchanged, so substituting an already substituted model is a no-op.

    Args:
        model: Template model
        arguments: Argument model per parameter position
        instantiate: Called for references whose arguments contained
            placeholders; returns the reference to the concrete
            instantiation. Without it such references keep the declared
            name with substituted arguments.

    Returns:
        Model without placeholders (provided every position is bound)

    Raises:
        UnsupportedType: If a placeholder position has no argument
    """
    if not contains_type_parameter(model):
        return model

    if isinstance(model, TypeParameterParserModel):
        if model.position >= len(arguments):
            raise UnsupportedType(
                f"No type argument for parameter {model.name} at position {model.position}",
                classification=model,
            )
        return arguments[model.position]
    if isinstance(model, ArrayParserModel):
        return ArrayParserModel(element=substitute(model.element, arguments, instantiate))
    if isinstance(model, ObjectParserModel):
        return ObjectParserModel(
            members=[substitute(member, arguments, instantiate) for member in model.members]
        )
    if isinstance(model, MemberParserModel):
        return MemberParserModel(
            name=model.name,
            optional=model.optional,
            parser=substitute(model.parser, arguments, instantiate),
        )
    if isinstance(model, UnionParserModel):
        return UnionParserModel(
            one_of=[substitute(alternative, arguments, instantiate) for alternative in model.one_of]
        )
    if isinstance(model, ReferenceParserModel):
        substituted = [substitute(argument, arguments, instantiate) for argument in model.type_arguments]
        if instantiate is not None and not any(contains_type_parameter(a) for a in substituted):
            return instantiate(model.type_name, substituted)
        return ReferenceParserModel(type_name=model.type_name, type_arguments=substituted)
    if isinstance(model, GenericParserModel):
        return GenericParserModel(
            type_name=model.type_name,
            type_arguments=[substitute(a, arguments, instantiate) for a in model.type_arguments],
            parser=substitute(model.parser, arguments, instantiate),
        )
    return model
