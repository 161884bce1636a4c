"""
Parser model data types.

A parser model is the normalized, serializable description of the shape a
value must have. It is a tagged variant discriminated on the ``type``
field; the tags and the camelCase field names (``oneOf``, ``typeName``,
``typeArguments``) form the wire contract of the serialized document.

Models are created once during extraction and are immutable afterwards.
"""

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, TypeAdapter


class _ParserModelBase(BaseModel):
    """Shared configuration for every parser model variant."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-representable wire form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StringParserModel(_ParserModelBase):
    """Unconstrained string."""

    type: Literal["string"] = "string"


class NumberParserModel(_ParserModelBase):
    """Unconstrained number."""

    type: Literal["number"] = "number"


class BooleanParserModel(_ParserModelBase):
    """Unconstrained boolean."""

    type: Literal["boolean"] = "boolean"


class StringLiteralParserModel(_ParserModelBase):
    """Exactly one string value."""

    type: Literal["string-literal"] = "string-literal"
    literal: str


class NumberLiteralParserModel(_ParserModelBase):
    """Exactly one number value."""

    type: Literal["number-literal"] = "number-literal"
    literal: Union[int, FiniteFloat]


class BooleanLiteralParserModel(_ParserModelBase):
    """Exactly ``true`` or exactly ``false``."""

    type: Literal["boolean-literal"] = "boolean-literal"
    literal: bool


class ArrayParserModel(_ParserModelBase):
    """Homogeneous sequence.

    Attributes:
        element: Model every element must satisfy
    """

    type: Literal["array"] = "array"
    element: "ParserModel"


class MemberParserModel(_ParserModelBase):
    """One field of an object model.

    Attributes:
        name: Field name
        optional: Whether the field may be absent
        parser: Model of the field value
    """

    type: Literal["member"] = "member"
    name: str = Field(..., min_length=1)
    optional: bool = False
    parser: "ParserModel"


class ObjectParserModel(_ParserModelBase):
    """Fixed-shape structure with members in declaration order."""

    type: Literal["object"] = "object"
    members: list[MemberParserModel] = Field(default_factory=list)


class UnionParserModel(_ParserModelBase):
    """Value must satisfy one of the alternatives.

    Alternatives keep declaration order; validators try them in that order.
    """

    type: Literal["union"] = "union"
    one_of: list["ParserModel"] = Field(..., alias="oneOf", min_length=1)


class ReferenceParserModel(_ParserModelBase):
    """Pointer into the dependency map.

    Attributes:
        type_name: Identity key of the referenced entry
        type_arguments: Resolved type arguments of a generic instantiation
    """

    type: Literal["reference"] = "reference"
    type_name: str = Field(..., alias="typeName", min_length=1)
    type_arguments: Optional[list["ParserModel"]] = Field(
        default=None,
        alias="typeArguments",
    )


class GenericParserModel(_ParserModelBase):
    """A named, fully instantiated (monomorphized) generic body."""

    type: Literal["generic"] = "generic"
    type_name: str = Field(..., alias="typeName", min_length=1)
    type_arguments: list["ParserModel"] = Field(default_factory=list, alias="typeArguments")
    parser: "ParserModel"


class TypeParameterParserModel(_ParserModelBase):
    """Placeholder inside a generic body that is not yet instantiated."""

    type: Literal["type-parameter"] = "type-parameter"
    name: str = Field(..., min_length=1)
    position: int = Field(..., ge=0)


ParserModel = Annotated[
    Union[
        StringParserModel,
        NumberParserModel,
        BooleanParserModel,
        StringLiteralParserModel,
        NumberLiteralParserModel,
        BooleanLiteralParserModel,
        ArrayParserModel,
        ObjectParserModel,
        MemberParserModel,
        UnionParserModel,
        ReferenceParserModel,
        GenericParserModel,
        TypeParameterParserModel,
    ],
    Field(discriminator="type"),
]

class ParserModelMap(BaseModel):
    """Result of one extraction: a root model plus the named dependencies.

    Attributes:
        root: Model of the extracted type (usually a reference)
        deps: Named models keyed by identity key, in registry order
    """

    model_config = ConfigDict(frozen=True)

    root: ParserModel
    deps: dict[str, ParserModel] = Field(default_factory=dict)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-representable wire form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_json_dict(), indent=indent)

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "ParserModelMap":
        """Load a model map from its wire form."""
        return cls.model_validate(data)


class FunctionParserModels(BaseModel):
    """Models of a complete function signature extracted in one pass.

    Attributes:
        name: Function name
        parameters: Object model whose members are the parameters
        returns: Model of the return type
        deps: Named models shared by parameters and return type
    """

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: ObjectParserModel
    returns: ParserModel
    deps: dict[str, ParserModel] = Field(default_factory=dict)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-representable wire form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_json_dict(), indent=indent)

    def returns_map(self) -> ParserModelMap:
        """View the return type as a standalone model map."""
        return ParserModelMap(root=self.returns, deps=self.deps)


for _model in (
    ArrayParserModel,
    MemberParserModel,
    ObjectParserModel,
    UnionParserModel,
    ReferenceParserModel,
    GenericParserModel,
    ParserModelMap,
    FunctionParserModels,
):
    _model.model_rebuild()

_parser_model_adapter: TypeAdapter = TypeAdapter(ParserModel)


def parse_parser_model(data: Any) -> ParserModel:
    """Validate a wire-form dict into the matching parser model variant."""
    return _parser_model_adapter.validate_python(data)


def describe_model(model: ParserModel) -> str:
    """Render the expected shape of a model for violation messages.

    Args:
        model: Model to describe

    Returns:
        Short, type-expression-like description
    """
    if isinstance(model, (StringParserModel, NumberParserModel, BooleanParserModel)):
        return model.type
    if isinstance(model, StringLiteralParserModel):
        return json.dumps(model.literal)
    if isinstance(model, NumberLiteralParserModel):
        return repr(model.literal)
    if isinstance(model, BooleanLiteralParserModel):
        return "true" if model.literal else "false"
    if isinstance(model, ArrayParserModel):
        element = describe_model(model.element)
        if isinstance(model.element, UnionParserModel):
            element = f"({element})"
        return f"{element}[]"
    if isinstance(model, ObjectParserModel):
        return "object"
    if isinstance(model, MemberParserModel):
        return describe_model(model.parser)
    if isinstance(model, UnionParserModel):
        return " | ".join(describe_model(alternative) for alternative in model.one_of)
    if isinstance(model, (ReferenceParserModel, GenericParserModel)):
        return model.type_name
    if isinstance(model, TypeParameterParserModel):
        return model.name
    raise TypeError(f"Not a parser model: {model!r}")
