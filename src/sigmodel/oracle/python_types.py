"""
Python Typing Oracle.

Reflects the annotations of ordinary Python callables, so RPC handlers
written in Python can be validated without an upstream front end:

    class Address(TypedDict):
        street: str
        number: NotRequired[int]

    def get_address(user_id: str) -> Address: ...

    models = generate_function_models(get_address, PythonTypeOracle())

Named declarations are TypedDicts, dataclasses, pydantic models, Enums and
PEP 695 ``type`` aliases; their identity is the qualified name.
"""

import collections.abc
import dataclasses
import enum
import inspect
import logging
import types
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import (
    Annotated,
    Any,
    Literal,
    NotRequired,
    Optional,
    Required,
    TypeAliasType,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)

from pydantic import BaseModel

from sigmodel.errors import OracleError
from sigmodel.oracle.base import (
    ArrayType,
    LiteralType,
    MemberInfo,
    NamedType,
    ObjectType,
    ParameterInfo,
    PrimitiveKind,
    PrimitiveType,
    ResolvedSignature,
    Slot,
    TypeClassification,
    TypeParameterInfo,
    TypeParameterType,
    TypeResolutionOracle,
    UnionType,
    UnknownType,
)

logger = logging.getLogger(__name__)

_SEQUENCE_ORIGINS = (
    list,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.Collection,
    collections.abc.Iterable,
)

_QUALIFIERS = (Annotated, NotRequired, Required)


@dataclass(frozen=True, eq=False)
class PyType:
    """Type handle: an annotation and the type variables bound in scope.

    Attributes:
        annotation: Annotation object (class, typing construct, TypeVar)
        env: Type variable -> bound handle or placeholder
        is_body: The handle denotes the member layout of a declared class
            rather than a reference to it
    """

    annotation: Any
    env: Mapping[TypeVar, Union["PyType", Slot]] = field(default_factory=dict)
    is_body: bool = False

    def __repr__(self) -> str:
        return f"PyType({self.annotation!r})"


def _strip_qualifiers(annotation: Any) -> Any:
    """Remove ``Annotated``, ``Required`` and ``NotRequired`` wrappers."""
    while get_origin(annotation) in _QUALIFIERS:
        annotation = get_args(annotation)[0]
    return annotation


def _is_declaration(cls: Any) -> bool:
    if not isinstance(cls, type):
        return False
    return (
        is_typeddict(cls)
        or dataclasses.is_dataclass(cls)
        or (issubclass(cls, BaseModel) and cls is not BaseModel)
        or (issubclass(cls, enum.Enum) and cls is not enum.Enum)
    )


def _type_parameters(declaration: Any) -> tuple[TypeVar, ...]:
    parameters = getattr(declaration, "__type_params__", ()) or ()
    if not parameters:
        metadata = getattr(declaration, "__pydantic_generic_metadata__", None)
        if metadata:
            parameters = metadata.get("parameters", ())
    if not parameters:
        parameters = getattr(declaration, "__parameters__", ()) or ()
    for parameter in parameters:
        if not isinstance(parameter, TypeVar):
            raise OracleError(f"Unsupported type parameter {parameter!r} of {declaration!r}")
    return tuple(parameters)


def _has_default(parameter: TypeVar) -> bool:
    # PEP 696 defaults exist from Python 3.13
    has_default = getattr(parameter, "has_default", None)
    return bool(has_default and has_default())


def _identity(declaration: Any) -> str:
    if isinstance(declaration, TypeAliasType):
        return declaration.__name__
    return declaration.__qualname__


def _literal_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        value = value.value
    if not isinstance(value, (str, int, float, bool)):
        raise OracleError(f"Unsupported literal value: {value!r}")
    return value


class PythonTypeOracle(TypeResolutionOracle):
    """Oracle over Python type annotations.

    Usage:
        oracle = PythonTypeOracle()
        signature = oracle.resolve_signature(handler)
    """

    def resolve_signature(self, declaration: Any) -> ResolvedSignature:
        """Resolve the annotations of a callable."""
        if not callable(declaration):
            raise OracleError(f"Not a callable: {declaration!r}")
        try:
            hints = get_type_hints(declaration, include_extras=True)
            signature = inspect.signature(declaration)
        except (NameError, TypeError, ValueError) as e:
            raise OracleError(f"Cannot resolve annotations of {declaration!r}: {e}") from e

        parameters = []
        for name, parameter in signature.parameters.items():
            if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                raise OracleError(f"Variadic parameter {name} cannot be described")
            parameters.append(
                ParameterInfo(
                    name=name,
                    optional=parameter.default is not inspect.Parameter.empty,
                    type=PyType(hints.get(name, Any)),
                )
            )

        return_type = PyType(hints["return"]) if "return" in hints else None
        name = getattr(declaration, "__qualname__", getattr(declaration, "__name__", repr(declaration)))
        return ResolvedSignature(name=name, parameters=parameters, return_type=return_type)

    def classify(self, type_: PyType) -> TypeClassification:
        type_ = self._reduce(type_)
        if not type_.is_body and get_origin(type_.annotation) in _QUALIFIERS:
            return self.classify(PyType(_strip_qualifiers(type_.annotation), type_.env))
        annotation = type_.annotation

        if isinstance(annotation, TypeVar):
            bound = type_.env.get(annotation)
            if isinstance(bound, Slot):
                return TypeParameterType(bound.name, bound.position)
            return UnknownType(f"unbound type variable {annotation!r}")
        if type_.is_body:
            return ObjectType()

        # bool is a subclass of int
        if annotation is bool:
            return PrimitiveType(PrimitiveKind.BOOLEAN)
        if annotation is str:
            return PrimitiveType(PrimitiveKind.STRING)
        if annotation in (int, float):
            return PrimitiveType(PrimitiveKind.NUMBER)

        origin = get_origin(annotation)
        args = get_args(annotation)

        if origin is Literal:
            values = [_literal_value(arg) for arg in args]
            if len(values) == 1:
                return LiteralType(values[0])
            return UnionType(tuple(PyType(Literal[value], type_.env) for value in values))
        if origin in (Union, types.UnionType):
            return UnionType(tuple(PyType(arg, type_.env) for arg in args))
        if annotation in _SEQUENCE_ORIGINS or annotation is tuple:
            return ArrayType(None)
        if origin in _SEQUENCE_ORIGINS:
            return ArrayType(PyType(args[0], type_.env) if args else None)
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return ArrayType(PyType(args[0], type_.env))
            return UnknownType(f"fixed-length tuple {annotation!r}")

        named = self._named(annotation)
        if named is not None:
            declaration, arguments = named
            parameters = _type_parameters(declaration)
            if len(arguments) > len(parameters):
                raise OracleError(f"Too many type arguments for {_identity(declaration)}")
            return NamedType(
                identity=_identity(declaration),
                type_arguments=tuple(PyType(argument, type_.env) for argument in arguments),
                parameters=tuple(
                    TypeParameterInfo(p.__name__, position, _has_default(p))
                    for position, p in enumerate(parameters)
                ),
            )

        return UnknownType(repr(annotation))

    def members_of(self, type_: PyType) -> list[MemberInfo]:
        type_ = self._reduce(type_)
        if not type_.is_body:
            if self._named(_strip_qualifiers(type_.annotation)) is None:
                raise OracleError(f"Not an object-shaped type: {type_.annotation!r}")
            return self.members_of(self.declaration_body(type_, self._full_arguments(type_)))

        cls = type_.annotation
        if is_typeddict(cls):
            hints = get_type_hints(cls, include_extras=True)
            return [
                MemberInfo(
                    name=name,
                    optional=name in cls.__optional_keys__,
                    type=PyType(_strip_qualifiers(hint), type_.env),
                )
                for name, hint in hints.items()
            ]
        if dataclasses.is_dataclass(cls):
            hints = get_type_hints(cls, include_extras=True)
            return [
                MemberInfo(
                    name=f.name,
                    optional=(
                        f.default is not dataclasses.MISSING
                        or f.default_factory is not dataclasses.MISSING
                    ),
                    type=PyType(hints.get(f.name, Any), type_.env),
                )
                for f in dataclasses.fields(cls)
                if f.init
            ]
        if issubclass(cls, BaseModel):
            return [
                MemberInfo(
                    name=info.alias or name,
                    optional=not info.is_required(),
                    type=PyType(info.annotation, type_.env),
                )
                for name, info in cls.model_fields.items()
            ]
        raise OracleError(f"Not an object-shaped type: {cls!r}")

    def identity_of(self, type_: PyType) -> Optional[str]:
        type_ = self._reduce(type_)
        if type_.is_body:
            return None
        named = self._named(_strip_qualifiers(type_.annotation))
        return _identity(named[0]) if named is not None else None

    def declaration_body(self, type_: PyType, arguments: Optional[list[PyType]] = None) -> PyType:
        declaration, _ = self._declaration_of(type_)
        parameters = _type_parameters(declaration)

        if arguments is None:
            env: dict[TypeVar, Union[PyType, Slot]] = {
                p: Slot(p.__name__, position) for position, p in enumerate(parameters)
            }
        else:
            if len(arguments) != len(parameters):
                raise OracleError(
                    f"{_identity(declaration)} expects {len(parameters)} type arguments, "
                    f"got {len(arguments)}"
                )
            env = dict(zip(parameters, arguments))

        if isinstance(declaration, TypeAliasType):
            return PyType(declaration.__value__, env)
        if issubclass(declaration, enum.Enum):
            values = tuple(_literal_value(member) for member in declaration)
            if not values:
                raise OracleError(f"Enum {_identity(declaration)} has no members")
            return PyType(Literal[values])
        return PyType(declaration, env, is_body=True)

    def default_argument(self, type_: PyType, position: int, arguments: list[PyType]) -> PyType:
        declaration, _ = self._declaration_of(type_)
        parameters = _type_parameters(declaration)
        if position >= len(parameters) or not _has_default(parameters[position]):
            raise OracleError(f"Type parameter {position} of {_identity(declaration)} has no default")
        env = dict(zip(parameters[:position], arguments))
        return PyType(parameters[position].__default__, env)

    def _reduce(self, type_: PyType) -> PyType:
        """Follow type variables bound to concrete handles."""
        while isinstance(type_.annotation, TypeVar):
            bound = type_.env.get(type_.annotation)
            if not isinstance(bound, PyType):
                break
            type_ = bound
        return type_

    def _named(self, annotation: Any) -> Optional[tuple[Any, tuple[Any, ...]]]:
        """Declaration and explicit type arguments of a named annotation."""
        if isinstance(annotation, TypeAliasType):
            return annotation, ()
        origin = get_origin(annotation)
        if isinstance(origin, TypeAliasType):
            return origin, get_args(annotation)
        if _is_declaration(annotation):
            metadata = getattr(annotation, "__pydantic_generic_metadata__", None)
            if metadata and metadata.get("origin") is not None:
                return metadata["origin"], tuple(metadata["args"])
            return annotation, ()
        if _is_declaration(origin):
            return origin, get_args(annotation)
        return None

    def _declaration_of(self, type_: PyType) -> tuple[Any, tuple[Any, ...]]:
        type_ = self._reduce(type_)
        named = self._named(_strip_qualifiers(type_.annotation)) if not type_.is_body else None
        if named is None:
            raise OracleError(f"Not a named declaration: {type_!r}")
        return named

    def _full_arguments(self, type_: PyType) -> list[PyType]:
        type_ = self._reduce(type_)
        declaration, explicit = self._declaration_of(type_)
        arguments = [PyType(argument, type_.env) for argument in explicit]
        for position in range(len(arguments), len(_type_parameters(declaration))):
            arguments.append(self.default_argument(type_, position, arguments))
        return arguments
