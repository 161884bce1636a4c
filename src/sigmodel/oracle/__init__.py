"""
Type resolution oracles.

The extractor asks an oracle structural questions about types instead of
inspecting a type system directly. Two implementations are provided:

- IRTypeOracle: reads a neutral type IR produced by an upstream front end
- PythonTypeOracle: reflects Python type annotations
"""

from sigmodel.oracle.base import (
    ArrayType,
    DeferredType,
    KeyOfType,
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
    TypeKind,
    TypeParameterInfo,
    TypeParameterType,
    TypeResolutionOracle,
    UnionType,
    UnknownType,
)
from sigmodel.oracle.ir import FunctionDeclaration, SourceUnit, TypeDeclaration
from sigmodel.oracle.ir_oracle import IRType, IRTypeOracle
from sigmodel.oracle.python_types import PythonTypeOracle, PyType

__all__ = [
    # Interface
    "TypeResolutionOracle",
    "TypeKind",
    "PrimitiveKind",
    "TypeClassification",
    "LiteralType",
    "PrimitiveType",
    "UnionType",
    "ArrayType",
    "ObjectType",
    "KeyOfType",
    "NamedType",
    "TypeParameterType",
    "DeferredType",
    "UnknownType",
    "TypeParameterInfo",
    "MemberInfo",
    "ParameterInfo",
    "ResolvedSignature",
    "Slot",
    # Type IR
    "SourceUnit",
    "TypeDeclaration",
    "FunctionDeclaration",
    "IRType",
    "IRTypeOracle",
    # Python annotations
    "PyType",
    "PythonTypeOracle",
]
