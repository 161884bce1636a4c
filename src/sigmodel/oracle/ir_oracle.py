"""
Type-IR Oracle.

Answers structural questions about a ``SourceUnit`` of the neutral type IR.
Type handles are ``IRType`` values: an expression plus the environment that
binds the type parameters in scope, either to concrete handles or to
placeholder ``Slot`` values while a generic body is walked as a template.

Utility operators (pick, omit, exclude, mapped, conditional) have no
identity and always reduce fully once their operands are concrete. An
operator whose operands still mention a placeholder is reported as
``DEFERRED``.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from sigmodel.errors import OracleError
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
    TypeParameterInfo,
    TypeParameterType,
    TypeResolutionOracle,
    UnionType,
    UnknownType,
)
from sigmodel.oracle.ir import (
    ArrayTypeExpr,
    BooleanTypeExpr,
    ConditionalTypeExpr,
    ExcludeTypeExpr,
    FunctionDeclaration,
    KeyOfTypeExpr,
    LiteralTypeExpr,
    MappedTypeExpr,
    MemberExpr,
    NumberTypeExpr,
    ObjectTypeExpr,
    OmitTypeExpr,
    PickTypeExpr,
    RefTypeExpr,
    SourceUnit,
    StringTypeExpr,
    TypeDeclaration,
    UnionTypeExpr,
    UnknownTypeExpr,
)

logger = logging.getLogger(__name__)

# Guards structural comparison of recursive declarations
_MAX_COMPARISON_DEPTH = 64


@dataclass(frozen=True, eq=False)
class IRType:
    """Type handle: an IR expression and the bindings in scope.

    Attributes:
        expr: Type expression
        env: Type parameter name -> bound handle or placeholder
    """

    expr: Any
    env: Mapping[str, Union["IRType", Slot]] = field(default_factory=dict)

    def bind(self, name: str, value: Union["IRType", Slot]) -> dict[str, Union["IRType", Slot]]:
        """Copy of the environment with one more binding."""
        env = dict(self.env)
        env[name] = value
        return env

    def __repr__(self) -> str:
        return f"IRType({self.expr.kind})"


def _literal(value: Union[str, int, float, bool]) -> IRType:
    return IRType(LiteralTypeExpr(value=value))


def _literal_matches(value: Any, primitive: PrimitiveKind) -> bool:
    if isinstance(value, bool):
        return primitive == PrimitiveKind.BOOLEAN
    if isinstance(value, str):
        return primitive == PrimitiveKind.STRING
    return primitive == PrimitiveKind.NUMBER


def _same_literal(a: Any, b: Any) -> bool:
    # 1 == True in Python, but not as literal types
    if isinstance(a, bool) != isinstance(b, bool) or isinstance(a, str) != isinstance(b, str):
        return False
    return a == b


def _operator_operands(expr: Any) -> Optional[list[Any]]:
    """Operands an operator must inspect to be evaluated, None for non-operators."""
    if isinstance(expr, KeyOfTypeExpr):
        return [expr.target]
    if isinstance(expr, (PickTypeExpr, OmitTypeExpr)):
        return [expr.target, expr.keys]
    if isinstance(expr, ExcludeTypeExpr):
        return [expr.source, expr.excluded]
    if isinstance(expr, MappedTypeExpr):
        return [expr.keys]
    if isinstance(expr, ConditionalTypeExpr):
        return [expr.check_type, expr.extends_type]
    return None


def _mentions(expr: Any, names: frozenset[str]) -> bool:
    """Whether an expression refers to any of the given parameter names."""
    return any(isinstance(node, RefTypeExpr) and node.name in names for node in _walk(expr))


def _walk(expr: Any) -> Iterator[Any]:
    """Yield every node of an expression tree, depth first."""
    if expr is None:
        return
    yield expr
    if isinstance(expr, UnionTypeExpr):
        for member in expr.types:
            yield from _walk(member)
    elif isinstance(expr, ArrayTypeExpr):
        yield from _walk(expr.element)
    elif isinstance(expr, ObjectTypeExpr):
        for member in expr.members:
            yield from _walk(member.type)
    elif isinstance(expr, RefTypeExpr):
        for argument in expr.arguments:
            yield from _walk(argument)
    elif isinstance(expr, KeyOfTypeExpr):
        yield from _walk(expr.target)
    elif isinstance(expr, (PickTypeExpr, OmitTypeExpr)):
        yield from _walk(expr.target)
        yield from _walk(expr.keys)
    elif isinstance(expr, ExcludeTypeExpr):
        yield from _walk(expr.source)
        yield from _walk(expr.excluded)
    elif isinstance(expr, MappedTypeExpr):
        yield from _walk(expr.keys)
        yield from _walk(expr.value)
    elif isinstance(expr, ConditionalTypeExpr):
        for part in (expr.check_type, expr.extends_type, expr.true_type, expr.false_type):
            yield from _walk(part)


class IRTypeOracle(TypeResolutionOracle):
    """Oracle over a neutral type-IR source unit.

    Usage:
        unit = SourceUnit.from_file("api.yaml")
        oracle = IRTypeOracle(unit)
        model_map = generate_parser_model("getUser", oracle)
    """

    def __init__(self, unit: SourceUnit) -> None:
        """Initialize the oracle.

        Args:
            unit: Declarations to answer questions about
        """
        self._unit = unit
        self._declarations: dict[str, TypeDeclaration] = {d.name: d for d in unit.declarations}
        self._parametric = self._compute_parametric()
        logger.debug(
            f"Loaded type IR unit {unit.name}: {len(self._declarations)} declarations, "
            f"{len(unit.functions)} functions"
        )

    @property
    def unit(self) -> SourceUnit:
        """The source unit being answered about."""
        return self._unit

    # -------------------------------------------------------------------------
    # Interface
    # -------------------------------------------------------------------------

    def resolve_signature(self, declaration: Any) -> ResolvedSignature:
        """Resolve a function declaration or a function name."""
        if isinstance(declaration, str):
            function = self._unit.get_function(declaration)
            if function is None:
                raise OracleError(
                    f"Unknown function: {declaration}",
                    context={"available": [f.name for f in self._unit.functions]},
                )
        elif isinstance(declaration, FunctionDeclaration):
            function = declaration
        else:
            raise OracleError(f"Not a function declaration: {declaration!r}")

        return ResolvedSignature(
            name=function.name,
            parameters=[
                ParameterInfo(name=p.name, optional=p.optional, type=IRType(p.type))
                for p in function.parameters
            ],
            return_type=IRType(function.return_type) if function.return_type is not None else None,
        )

    def classify(self, type_: IRType) -> TypeClassification:
        type_ = self._reduce(type_)
        expr = type_.expr

        if isinstance(expr, StringTypeExpr):
            return PrimitiveType(PrimitiveKind.STRING)
        if isinstance(expr, NumberTypeExpr):
            return PrimitiveType(PrimitiveKind.NUMBER)
        if isinstance(expr, BooleanTypeExpr):
            return PrimitiveType(PrimitiveKind.BOOLEAN)
        if isinstance(expr, LiteralTypeExpr):
            return LiteralType(expr.value)
        if isinstance(expr, UnionTypeExpr):
            return UnionType(tuple(IRType(member, type_.env) for member in expr.types))
        if isinstance(expr, ArrayTypeExpr):
            element = IRType(expr.element, type_.env) if expr.element is not None else None
            return ArrayType(element)
        if isinstance(expr, ObjectTypeExpr):
            return ObjectType()
        if isinstance(expr, RefTypeExpr):
            return self._classify_ref(type_)
        if isinstance(expr, UnknownTypeExpr):
            return UnknownType(expr.description)

        deferred = self._deferred_reason(type_)
        if deferred is not None:
            return DeferredType(deferred)
        if isinstance(expr, KeyOfTypeExpr):
            return KeyOfType(IRType(expr.target, type_.env))
        if isinstance(expr, (PickTypeExpr, OmitTypeExpr, MappedTypeExpr)):
            return ObjectType()
        if isinstance(expr, (ExcludeTypeExpr, ConditionalTypeExpr)):
            # _reduce already collapsed single results
            alternatives = self._operator_results(type_)
            if not alternatives:
                return UnknownType(f"{expr.kind} reduces to no alternatives")
            return UnionType(tuple(alternatives))

        return UnknownType(repr(expr))

    def members_of(self, type_: IRType) -> list[MemberInfo]:
        return self._members_of(type_, depth=0)

    def identity_of(self, type_: IRType) -> Optional[str]:
        type_ = self._reduce(type_)
        if isinstance(type_.expr, RefTypeExpr) and type_.expr.name in self._declarations:
            return type_.expr.name
        return None

    def declaration_body(self, type_: IRType, arguments: Optional[list[IRType]] = None) -> IRType:
        declaration, _ = self._declaration_of(type_)
        parameters = declaration.type_parameters

        if arguments is None:
            env: dict[str, Union[IRType, Slot]] = {
                p.name: Slot(p.name, position) for position, p in enumerate(parameters)
            }
        else:
            if len(arguments) != len(parameters):
                raise OracleError(
                    f"{declaration.name} expects {len(parameters)} type arguments, "
                    f"got {len(arguments)}"
                )
            env = {p.name: argument for p, argument in zip(parameters, arguments)}
        return IRType(declaration.body, env)

    def default_argument(self, type_: IRType, position: int, arguments: list[IRType]) -> IRType:
        declaration, _ = self._declaration_of(type_)
        parameters = declaration.type_parameters
        if position >= len(parameters) or parameters[position].default is None:
            raise OracleError(
                f"Type parameter {position} of {declaration.name} has no default",
            )
        env = {p.name: argument for p, argument in zip(parameters[:position], arguments)}
        return IRType(parameters[position].default, env)

    # -------------------------------------------------------------------------
    # Reduction
    # -------------------------------------------------------------------------

    def _reduce(self, type_: IRType) -> IRType:
        """Follow bound parameters and collapse single-result operators."""
        while True:
            expr = type_.expr
            if isinstance(expr, RefTypeExpr) and expr.name in type_.env:
                bound = type_.env[expr.name]
                if isinstance(bound, Slot):
                    return type_
                if expr.arguments:
                    raise OracleError(f"Type parameter {expr.name} cannot take type arguments")
                type_ = bound
                continue
            if isinstance(expr, (ExcludeTypeExpr, ConditionalTypeExpr)):
                if self._deferred_reason(type_) is not None:
                    return type_
                results = self._operator_results(type_)
                if len(results) == 1:
                    type_ = results[0]
                    continue
            return type_

    def _classify_ref(self, type_: IRType) -> TypeClassification:
        expr: RefTypeExpr = type_.expr
        bound = type_.env.get(expr.name)
        if isinstance(bound, Slot):
            return TypeParameterType(bound.name, bound.position)

        declaration = self._declarations.get(expr.name)
        if declaration is None:
            return UnknownType(f"unresolved reference {expr.name}")
        if len(expr.arguments) > len(declaration.type_parameters):
            raise OracleError(
                f"Too many type arguments for {expr.name}",
                context={"expected": len(declaration.type_parameters)},
            )
        return NamedType(
            identity=declaration.name,
            type_arguments=tuple(IRType(argument, type_.env) for argument in expr.arguments),
            parameters=tuple(
                TypeParameterInfo(p.name, position, p.default is not None)
                for position, p in enumerate(declaration.type_parameters)
            ),
            parametric=declaration.name in self._parametric,
        )

    def _declaration_of(self, type_: IRType) -> tuple[TypeDeclaration, IRType]:
        reduced = self._reduce(type_)
        expr = reduced.expr
        if isinstance(expr, RefTypeExpr) and expr.name in self._declarations:
            return self._declarations[expr.name], reduced
        raise OracleError(f"Not a named declaration: {reduced!r}")

    def _full_arguments(self, type_: IRType) -> list[IRType]:
        """Explicit type arguments completed with evaluated defaults."""
        declaration, reduced = self._declaration_of(type_)
        arguments = [IRType(argument, reduced.env) for argument in reduced.expr.arguments]
        for position in range(len(arguments), len(declaration.type_parameters)):
            arguments.append(self.default_argument(reduced, position, arguments))
        return arguments

    def _instantiated_body(self, type_: IRType) -> IRType:
        return self.declaration_body(type_, self._full_arguments(type_))

    def _deferred_reason(self, type_: IRType) -> Optional[str]:
        """Why an operator cannot be evaluated yet, None when it can."""
        operands = _operator_operands(type_.expr)
        if operands is None:
            return None
        for operand in operands:
            slot = self._placeholder_in(IRType(operand, type_.env))
            if slot is not None:
                return f"{type_.expr.kind} over type parameter {slot.name}"
        return None

    def _placeholder_in(self, type_: IRType) -> Optional[Slot]:
        """First placeholder an expression depends on, if any."""
        for node in _walk(type_.expr):
            if isinstance(node, RefTypeExpr) and node.name in type_.env:
                bound = type_.env[node.name]
                if isinstance(bound, Slot):
                    return bound
                slot = self._placeholder_in(bound)
                if slot is not None:
                    return slot
        return None

    def _operator_results(self, type_: IRType) -> list[IRType]:
        expr = type_.expr
        if isinstance(expr, ExcludeTypeExpr):
            excluded = self._alternatives(IRType(expr.excluded, type_.env))
            return [
                alternative
                for alternative in self._alternatives(IRType(expr.source, type_.env))
                if not any(self._assignable(alternative, e, 0) for e in excluded)
            ]
        if isinstance(expr, ConditionalTypeExpr):
            return self._conditional_results(type_)
        return [type_]

    def _conditional_results(self, type_: IRType) -> list[IRType]:
        expr: ConditionalTypeExpr = type_.expr
        check = expr.check_type
        extends = IRType(expr.extends_type, type_.env)

        naked = isinstance(check, RefTypeExpr) and not check.arguments and check.name in type_.env
        if not naked:
            chosen = (
                expr.true_type
                if self._assignable(IRType(check, type_.env), extends, 0)
                else expr.false_type
            )
            return self._alternatives(IRType(chosen, type_.env))

        # Distributes over the alternatives bound to the naked parameter
        results: list[IRType] = []
        for alternative in self._alternatives(IRType(check, type_.env)):
            chosen = expr.true_type if self._assignable(alternative, extends, 0) else expr.false_type
            branch_env = dict(type_.env)
            branch_env[check.name] = alternative
            results.extend(self._alternatives(IRType(chosen, branch_env)))
        return results

    def _alternatives(self, type_: IRType) -> list[IRType]:
        """Flatten a type into its union alternatives."""
        type_ = self._reduce(type_)
        expr = type_.expr
        if isinstance(expr, UnionTypeExpr):
            alternatives: list[IRType] = []
            for member in expr.types:
                alternatives.extend(self._alternatives(IRType(member, type_.env)))
            return alternatives
        if isinstance(expr, (ExcludeTypeExpr, ConditionalTypeExpr)) and self._deferred_reason(type_) is None:
            return self._operator_results(type_)
        if isinstance(expr, KeyOfTypeExpr) and self._deferred_reason(type_) is None:
            members = self._members_of(IRType(expr.target, type_.env), 0)
            return [_literal(member.name) for member in members]
        if isinstance(expr, RefTypeExpr) and expr.name in self._declarations:
            body = self._reduce(self._instantiated_body(type_))
            if isinstance(body.expr, (UnionTypeExpr, KeyOfTypeExpr, ExcludeTypeExpr, ConditionalTypeExpr)):
                return self._alternatives(body)
        return [type_]

    # -------------------------------------------------------------------------
    # Members and keys
    # -------------------------------------------------------------------------

    def _members_of(self, type_: IRType, depth: int) -> list[MemberInfo]:
        if depth > _MAX_COMPARISON_DEPTH:
            raise OracleError("Member resolution does not terminate")
        type_ = self._reduce(type_)
        expr = type_.expr

        if isinstance(expr, ObjectTypeExpr):
            return [self._member(member, type_.env) for member in expr.members]
        if isinstance(expr, RefTypeExpr) and expr.name in self._declarations:
            return self._members_of(self._instantiated_body(type_), depth + 1)
        if isinstance(expr, (PickTypeExpr, OmitTypeExpr)):
            keys = set(self._key_names(IRType(expr.keys, type_.env), depth + 1))
            members = self._members_of(IRType(expr.target, type_.env), depth + 1)
            if isinstance(expr, PickTypeExpr):
                missing = keys - {member.name for member in members}
                if missing:
                    raise OracleError(f"Cannot pick missing members: {sorted(missing)}")
                return [member for member in members if member.name in keys]
            return [member for member in members if member.name not in keys]
        if isinstance(expr, MappedTypeExpr):
            members = []
            for name in self._key_names(IRType(expr.keys, type_.env), depth + 1):
                env = type_.env
                if expr.key_parameter is not None:
                    env = type_.bind(expr.key_parameter, _literal(name))
                members.append(MemberInfo(name=name, optional=expr.optional, type=IRType(expr.value, env)))
            return members

        raise OracleError(f"Not an object-shaped type: {expr.kind}")

    @staticmethod
    def _member(member: MemberExpr, env: Mapping[str, Union[IRType, Slot]]) -> MemberInfo:
        return MemberInfo(name=member.name, optional=member.optional, type=IRType(member.type, env))

    def _key_names(self, type_: IRType, depth: int) -> list[str]:
        """Member names denoted by a key-set type (literals, keyof, unions)."""
        names: list[str] = []
        for alternative in self._alternatives(type_):
            expr = alternative.expr
            if isinstance(expr, KeyOfTypeExpr):
                candidates = [m.name for m in self._members_of(IRType(expr.target, alternative.env), depth + 1)]
            elif isinstance(expr, LiteralTypeExpr) and isinstance(expr.value, str):
                candidates = [expr.value]
            else:
                raise OracleError(f"Not a set of member names: {expr.kind}")
            names.extend(name for name in candidates if name not in names)
        return names

    # -------------------------------------------------------------------------
    # Assignability
    # -------------------------------------------------------------------------

    def _assignable(self, source: IRType, target: IRType, depth: int) -> bool:
        """Structural assignability of fully concrete types."""
        if depth > _MAX_COMPARISON_DEPTH:
            return False

        targets = self._alternatives(target)
        if len(targets) > 1:
            return any(self._assignable(source, t, depth + 1) for t in targets)
        sources = self._alternatives(source)
        if len(sources) > 1:
            return all(self._assignable(s, target, depth + 1) for s in sources)

        source, target = sources[0], targets[0]
        s, t = self.classify(source), self.classify(target)

        if isinstance(s, NamedType):
            return self._assignable(self._instantiated_body(source), target, depth + 1)
        if isinstance(t, NamedType):
            return self._assignable(source, self._instantiated_body(target), depth + 1)
        if isinstance(t, PrimitiveType):
            if isinstance(s, PrimitiveType):
                return s.primitive == t.primitive
            return isinstance(s, LiteralType) and _literal_matches(s.value, t.primitive)
        if isinstance(t, LiteralType):
            return isinstance(s, LiteralType) and _same_literal(s.value, t.value)
        if isinstance(t, ArrayType):
            if not isinstance(s, ArrayType) or s.element is None or t.element is None:
                return False
            return self._assignable(s.element, t.element, depth + 1)
        if isinstance(t, ObjectType):
            if not isinstance(s, ObjectType):
                return False
            return self._object_assignable(source, target, depth + 1)
        return False

    def _object_assignable(self, source: IRType, target: IRType, depth: int) -> bool:
        available = {member.name: member for member in self._members_of(source, depth)}
        for wanted in self._members_of(target, depth):
            member = available.get(wanted.name)
            if member is None:
                if wanted.optional:
                    continue
                return False
            if member.optional and not wanted.optional:
                return False
            if not self._assignable(member.type, wanted.type, depth + 1):
                return False
        return True

    # -------------------------------------------------------------------------
    # Parametricity
    # -------------------------------------------------------------------------

    def _compute_parametric(self) -> set[str]:
        """Generic declarations whose bodies can be walked as templates.

        A declaration is not parametric when an operator inspects one of
        its parameters, or when it passes a parameter to a declaration that
        is not parametric or whose defaults would have to be evaluated.
        Computed as a greatest fixpoint.
        """
        generic = {name: d for name, d in self._declarations.items() if d.is_generic}
        blocked: set[str] = set()
        edges: dict[str, set[str]] = {name: set() for name in generic}

        for name, declaration in generic.items():
            parameters = frozenset(p.name for p in declaration.type_parameters)
            for node in _walk(declaration.body):
                operands = _operator_operands(node)
                if operands is not None:
                    if any(_mentions(operand, parameters) for operand in operands):
                        blocked.add(name)
                elif isinstance(node, RefTypeExpr) and node.name in generic and node.name not in parameters:
                    if not any(_mentions(argument, parameters) for argument in node.arguments):
                        continue
                    target = generic[node.name]
                    if len(node.arguments) < len(target.type_parameters):
                        blocked.add(name)
                    else:
                        edges[name].add(node.name)

        changed = True
        while changed:
            changed = False
            for name, targets in edges.items():
                if name not in blocked and targets & blocked:
                    blocked.add(name)
                    changed = True

        parametric = set(generic) - blocked
        if blocked:
            logger.debug(f"Non-parametric generic declarations: {sorted(blocked)}")
        return parametric
