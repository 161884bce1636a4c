"""
Type Resolution Oracle.

Defines the capability interface the extractor consumes to answer
structural questions about declared types. Implementations either own a
static type system (see ``PythonTypeOracle``) or read a neutral type IR
produced upstream by a separate front end (see ``IRTypeOracle``).

Type handles are opaque to the extractor: it only passes them back to the
oracle that produced them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Union


class TypeKind(str, Enum):
    """Closed set of structural classifications."""

    LITERAL = "literal"
    PRIMITIVE = "primitive"
    UNION = "union"
    ARRAY = "array"
    OBJECT = "object"
    KEYOF = "keyof"
    NAMED = "named"
    TYPE_PARAMETER = "type-parameter"
    DEFERRED = "deferred"  # Depends on an unbound type parameter
    UNKNOWN = "unknown"


class PrimitiveKind(str, Enum):
    """Unconstrained primitive types."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class TypeClassification:
    """Base of the classification variants returned by ``classify``."""

    kind: ClassVar[TypeKind]


@dataclass(frozen=True)
class LiteralType(TypeClassification):
    """Exact string, number or boolean constant."""

    kind: ClassVar[TypeKind] = TypeKind.LITERAL
    value: Union[str, int, float, bool]


@dataclass(frozen=True)
class PrimitiveType(TypeClassification):
    """Unconstrained primitive.

    ``BOOLEAN`` is reported for anything the host type system flags as
    boolean-like, even when it is internally a union of the two literals.
    """

    kind: ClassVar[TypeKind] = TypeKind.PRIMITIVE
    primitive: PrimitiveKind


@dataclass(frozen=True)
class UnionType(TypeClassification):
    """Union without an identity of its own, members in declared order."""

    kind: ClassVar[TypeKind] = TypeKind.UNION
    members: tuple[Any, ...]


@dataclass(frozen=True)
class ArrayType(TypeClassification):
    """Homogeneous sequence; ``element`` is None when unavailable."""

    kind: ClassVar[TypeKind] = TypeKind.ARRAY
    element: Any = None


@dataclass(frozen=True)
class ObjectType(TypeClassification):
    """Object-shaped type; members are available through ``members_of``.

    Includes the results of structural utility transforms (pick, omit,
    mapped constructions).
    """

    kind: ClassVar[TypeKind] = TypeKind.OBJECT


@dataclass(frozen=True)
class KeyOfType(TypeClassification):
    """One of the member names of ``target``."""

    kind: ClassVar[TypeKind] = TypeKind.KEYOF
    target: Any


@dataclass(frozen=True)
class TypeParameterInfo:
    """A declared type parameter of a generic declaration.

    Attributes:
        name: Parameter name
        position: Zero-based position in the parameter list
        has_default: Whether the declaration provides a default
    """

    name: str
    position: int
    has_default: bool = False


@dataclass(frozen=True)
class NamedType(TypeClassification):
    """Reference to a named declaration (alias, interface or class).

    Attributes:
        identity: Stable declared name
        type_arguments: Explicitly supplied type arguments
        parameters: Declared type parameters (empty when not generic)
        parametric: Whether the body can be represented with
            ``type-parameter`` placeholders and instantiated by substitution
    """

    kind: ClassVar[TypeKind] = TypeKind.NAMED
    identity: str
    type_arguments: tuple[Any, ...] = ()
    parameters: tuple[TypeParameterInfo, ...] = ()
    parametric: bool = True

    @property
    def is_generic(self) -> bool:
        """Whether the declaration has type parameters."""
        return bool(self.parameters)


@dataclass(frozen=True)
class TypeParameterType(TypeClassification):
    """Bare type parameter inside a body that is not yet instantiated."""

    kind: ClassVar[TypeKind] = TypeKind.TYPE_PARAMETER
    name: str
    position: int


@dataclass(frozen=True)
class DeferredType(TypeClassification):
    """Construct that can only be evaluated once its parameters are bound."""

    kind: ClassVar[TypeKind] = TypeKind.DEFERRED
    reason: str


@dataclass(frozen=True)
class UnknownType(TypeClassification):
    """Anything the oracle cannot place in the closed set."""

    kind: ClassVar[TypeKind] = TypeKind.UNKNOWN
    raw: str


@dataclass(frozen=True)
class Slot:
    """Placeholder bound to a type parameter of a template body.

    Oracles classify a parameter bound to a slot as ``TYPE_PARAMETER``.
    """

    name: str
    position: int


@dataclass(frozen=True)
class MemberInfo:
    """One resolved member of an object-shaped type.

    Attributes:
        name: Member name
        optional: The member's own optionality flag
        type: Type handle of the member value
    """

    name: str
    optional: bool
    type: Any


@dataclass(frozen=True)
class ParameterInfo:
    """One parameter of a resolved function signature."""

    name: str
    optional: bool
    type: Any


@dataclass
class ResolvedSignature:
    """Parameter and return types of a declared function.

    Attributes:
        name: Function name
        parameters: Parameters in declaration order
        return_type: Return type handle, None when not resolvable
    """

    name: str
    parameters: list[ParameterInfo] = field(default_factory=list)
    return_type: Optional[Any] = None


class TypeResolutionOracle(ABC):
    """Abstract interface answering structural questions about types.

    The oracle works on an immutable snapshot of type information taken
    at the start of one extraction pass.

    Usage:
        oracle = ConcreteOracle(...)
        signature = oracle.resolve_signature(declaration)
        classification = oracle.classify(signature.return_type)
        if isinstance(classification, ObjectType):
            members = oracle.members_of(signature.return_type)
    """

    @abstractmethod
    def resolve_signature(self, declaration: Any) -> ResolvedSignature:
        """Resolve the parameter and return types of a declaration.

        Args:
            declaration: Function declaration understood by this oracle

        Returns:
            Resolved signature

        Raises:
            OracleError: If the declaration is unknown
        """
        pass

    @abstractmethod
    def classify(self, type_: Any) -> TypeClassification:
        """Classify a type into the closed set of structural outcomes.

        Args:
            type_: Type handle

        Returns:
            One of the ``TypeClassification`` variants
        """
        pass

    @abstractmethod
    def members_of(self, type_: Any) -> list[MemberInfo]:
        """Get the resolved members of an object-shaped type.

        Args:
            type_: Type handle classified as object, or a named type whose
                body is object-shaped

        Returns:
            Members in declaration order

        Raises:
            OracleError: If the type is not object-shaped
        """
        pass

    @abstractmethod
    def identity_of(self, type_: Any) -> Optional[str]:
        """Get the stable identity of a named type.

        Args:
            type_: Type handle

        Returns:
            Declared name, or None for types without identity
        """
        pass

    @abstractmethod
    def declaration_body(self, type_: Any, arguments: Optional[list[Any]] = None) -> Any:
        """Get the body of a named declaration.

        Args:
            type_: Type handle classified as named
            arguments: Concrete type argument handles, one per declared
                parameter; None binds every parameter to a placeholder
                that classifies as a type parameter

        Returns:
            Type handle of the body
        """
        pass

    @abstractmethod
    def default_argument(self, type_: Any, position: int, arguments: list[Any]) -> Any:
        """Evaluate the default of a type parameter.

        Args:
            type_: Type handle classified as named
            position: Position of the parameter
            arguments: Handles bound to the parameters before ``position``

        Returns:
            Type handle of the default

        Raises:
            OracleError: If the parameter has no default
        """
        pass
