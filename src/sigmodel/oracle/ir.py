"""
Neutral type IR.

A language-independent description of type declarations and function
signatures, produced upstream by a separate front end and read by the
``IRTypeOracle``. The IR is plain data: it can be written by hand in YAML
or JSON and validated with Pydantic.

Example (YAML):
    declarations:
      - name: Aad
        body:
          kind: object
          members:
            - {name: kaas, type: {kind: string}}
      - name: MyMappedType
        body: {kind: keyof, target: {kind: ref, name: Aad}}
    functions:
      - name: test
        return_type: {kind: ref, name: MyMappedType}
"""

import json
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, model_validator


class _TypeExprBase(BaseModel):
    """Shared configuration for every IR node."""

    model_config = ConfigDict(frozen=True)


class StringTypeExpr(_TypeExprBase):
    kind: Literal["string"] = "string"


class NumberTypeExpr(_TypeExprBase):
    kind: Literal["number"] = "number"


class BooleanTypeExpr(_TypeExprBase):
    kind: Literal["boolean"] = "boolean"


class LiteralTypeExpr(_TypeExprBase):
    """Exact constant value."""

    kind: Literal["literal"] = "literal"
    value: Union[bool, int, FiniteFloat, str]


class UnionTypeExpr(_TypeExprBase):
    """Alternatives in declaration order."""

    kind: Literal["union"] = "union"
    types: list["TypeExpr"] = Field(..., min_length=1)


class ArrayTypeExpr(_TypeExprBase):
    """Homogeneous sequence. A missing element is kept as None."""

    kind: Literal["array"] = "array"
    element: Optional["TypeExpr"] = None


class MemberExpr(_TypeExprBase):
    """One member of an object type."""

    name: str = Field(..., min_length=1)
    optional: bool = False
    type: "TypeExpr"


class ObjectTypeExpr(_TypeExprBase):
    """Anonymous object type with members in declaration order."""

    kind: Literal["object"] = "object"
    members: list[MemberExpr] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_member_names(self) -> "ObjectTypeExpr":
        """Member names must be unique."""
        names = [member.name for member in self.members]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate member names: {names}")
        return self


class RefTypeExpr(_TypeExprBase):
    """Reference to a declaration or to a type parameter in scope."""

    kind: Literal["ref"] = "ref"
    name: str = Field(..., min_length=1)
    arguments: list["TypeExpr"] = Field(default_factory=list)


class KeyOfTypeExpr(_TypeExprBase):
    """The member names of ``target``."""

    kind: Literal["keyof"] = "keyof"
    target: "TypeExpr"


class PickTypeExpr(_TypeExprBase):
    """The members of ``target`` whose names are in ``keys``."""

    kind: Literal["pick"] = "pick"
    target: "TypeExpr"
    keys: "TypeExpr"


class OmitTypeExpr(_TypeExprBase):
    """The members of ``target`` whose names are not in ``keys``."""

    kind: Literal["omit"] = "omit"
    target: "TypeExpr"
    keys: "TypeExpr"


class ExcludeTypeExpr(_TypeExprBase):
    """The alternatives of ``source`` not assignable to ``excluded``."""

    kind: Literal["exclude"] = "exclude"
    source: "TypeExpr"
    excluded: "TypeExpr"


class MappedTypeExpr(_TypeExprBase):
    """``{[key_parameter in keys]: value}``.

    ``key_parameter`` is bound to each key as a string literal while
    ``value`` is evaluated.
    """

    kind: Literal["mapped"] = "mapped"
    keys: "TypeExpr"
    value: "TypeExpr"
    optional: bool = False
    key_parameter: Optional[str] = None


class ConditionalTypeExpr(_TypeExprBase):
    """``check_type extends extends_type ? true_type : false_type``.

    Distributes over unions when ``check_type`` is a bare type parameter.
    """

    kind: Literal["conditional"] = "conditional"
    check_type: "TypeExpr"
    extends_type: "TypeExpr"
    true_type: "TypeExpr"
    false_type: "TypeExpr"


class UnknownTypeExpr(_TypeExprBase):
    """A type the front end could not express (``any``, ``null``, ...)."""

    kind: Literal["unknown"] = "unknown"
    description: str = "unknown"


TypeExpr = Annotated[
    Union[
        StringTypeExpr,
        NumberTypeExpr,
        BooleanTypeExpr,
        LiteralTypeExpr,
        UnionTypeExpr,
        ArrayTypeExpr,
        ObjectTypeExpr,
        RefTypeExpr,
        KeyOfTypeExpr,
        PickTypeExpr,
        OmitTypeExpr,
        ExcludeTypeExpr,
        MappedTypeExpr,
        ConditionalTypeExpr,
        UnknownTypeExpr,
    ],
    Field(discriminator="kind"),
]


class TypeParameterDecl(BaseModel):
    """Declared type parameter with an optional default."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    default: Optional[TypeExpr] = None


class TypeDeclaration(BaseModel):
    """Named type alias or interface.

    Attributes:
        name: Declared name (the identity of the type)
        type_parameters: Generic parameters in order
        body: Type expression the name stands for
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type_parameters: list[TypeParameterDecl] = Field(default_factory=list)
    body: TypeExpr

    @model_validator(mode="after")
    def check_defaults_are_trailing(self) -> "TypeDeclaration":
        """Parameters with defaults must follow the ones without."""
        seen_default = False
        for parameter in self.type_parameters:
            if parameter.default is not None:
                seen_default = True
            elif seen_default:
                raise ValueError(
                    f"Type parameter {parameter.name} of {self.name} "
                    "has no default but follows one that does"
                )
        return self

    @property
    def is_generic(self) -> bool:
        """Whether the declaration has type parameters."""
        return bool(self.type_parameters)


class ParameterDecl(BaseModel):
    """One function parameter."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    optional: bool = False
    type: TypeExpr


class FunctionDeclaration(BaseModel):
    """Declared function signature.

    Attributes:
        name: Function name
        parameters: Parameters in order
        return_type: Declared return type, None when not resolvable
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    parameters: list[ParameterDecl] = Field(default_factory=list)
    return_type: Optional[TypeExpr] = None


class SourceUnit(BaseModel):
    """All declarations of one source unit.

    Attributes:
        name: Name of the unit (usually the source file)
        declarations: Type declarations
        functions: Function declarations
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="unit")
    declarations: list[TypeDeclaration] = Field(default_factory=list)
    functions: list[FunctionDeclaration] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_names(self) -> "SourceUnit":
        """Declaration and function names must be unique."""
        for label, names in (
            ("declaration", [d.name for d in self.declarations]),
            ("function", [f.name for f in self.functions]),
        ):
            duplicates = sorted({n for n in names if names.count(n) > 1})
            if duplicates:
                raise ValueError(f"Duplicate {label} names: {duplicates}")
        return self

    def get_declaration(self, name: str) -> Optional[TypeDeclaration]:
        """Find a type declaration by name."""
        for declaration in self.declarations:
            if declaration.name == name:
                return declaration
        return None

    def get_function(self, name: str) -> Optional[FunctionDeclaration]:
        """Find a function declaration by name."""
        for function in self.functions:
            if function.name == name:
                return function
        return None

    @classmethod
    def from_yaml(cls, text: str, name: str = "unit") -> "SourceUnit":
        """Parse a unit from YAML text."""
        data: dict[str, Any] = yaml.safe_load(text) or {}
        data.setdefault("name", name)
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "SourceUnit":
        """Load a unit from a ``.json``, ``.yaml`` or ``.yml`` file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the extension is not supported
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Type IR file not found: {path}")
        text = path.read_text(encoding="utf-8")
        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(text, name=path.stem)
        if path.suffix == ".json":
            data = json.loads(text)
            data.setdefault("name", path.stem)
            return cls.model_validate(data)
        raise ValueError(f"Unsupported type IR file extension: {path.suffix}")


for _node in (
    UnionTypeExpr,
    ArrayTypeExpr,
    MemberExpr,
    ObjectTypeExpr,
    RefTypeExpr,
    KeyOfTypeExpr,
    PickTypeExpr,
    OmitTypeExpr,
    ExcludeTypeExpr,
    MappedTypeExpr,
    ConditionalTypeExpr,
):
    _node.model_rebuild()
