"""
Type Model Extractor.

Walks a declared type through a ``TypeResolutionOracle`` and produces its
parser model plus the named models it depends on. Named types are stored
once in the pass's ``ModelRegistry`` and referenced everywhere else, which
is what lets recursive and mutually recursive types terminate.

Generic instantiations are monomorphized: each distinct set of resolved
argument models gets its own entry. Their bodies are built after the
current walk finishes, from a queue drained before the outermost
``extract`` call returns.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

from sigmodel.config.models import ExtractionConfig
from sigmodel.errors import MissingArrayElement, MissingFunctionReturnType, UnsupportedType
from sigmodel.extraction.keys import template_key, type_key
from sigmodel.extraction.registry import ModelRegistry
from sigmodel.extraction.substitution import contains_type_parameter, substitute
from sigmodel.models import (
    ArrayParserModel,
    BooleanLiteralParserModel,
    BooleanParserModel,
    FunctionParserModels,
    GenericParserModel,
    MemberParserModel,
    NumberLiteralParserModel,
    NumberParserModel,
    ObjectParserModel,
    ParserModel,
    ParserModelMap,
    ReferenceParserModel,
    StringLiteralParserModel,
    StringParserModel,
    TypeParameterParserModel,
    UnionParserModel,
)
from sigmodel.oracle.base import (
    ArrayType,
    DeferredType,
    KeyOfType,
    LiteralType,
    NamedType,
    ObjectType,
    PrimitiveKind,
    PrimitiveType,
    TypeParameterType,
    TypeResolutionOracle,
    UnionType,
)

logger = logging.getLogger(__name__)


@dataclass
class _Instantiation:
    """A queued generic instantiation.

    Attributes:
        key: Registry key of the instance
        identity: Declared name of the generic
        arguments: Resolved argument models
        handle: Oracle handle of a use of the declaration
        named: Classification of that use
        argument_handles: Oracle handles of the arguments, None when the
            instantiation was requested by substitution
        depth: Number of instantiations that led to this one
    """

    key: str
    identity: str
    arguments: list[ParserModel]
    handle: Any
    named: NamedType
    argument_handles: Optional[list[Any]]
    depth: int


class ModelExtractor:
    """Turns oracle type handles into parser models.

    One extractor serves one extraction pass; every model it returns may
    reference entries of its registry.

    Usage:
        extractor = ModelExtractor(oracle)
        root = extractor.extract(signature.return_type)
        deps = extractor.registry.deps()
    """

    def __init__(
        self,
        oracle: TypeResolutionOracle,
        registry: Optional[ModelRegistry] = None,
        config: Optional[ExtractionConfig] = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            oracle: Oracle answering structural questions
            registry: Registry of the pass (a fresh one by default)
            config: Extraction configuration
        """
        self._oracle = oracle
        self._registry = registry if registry is not None else ModelRegistry()
        self._config = config or ExtractionConfig()
        self._queue: deque[_Instantiation] = deque()
        self._walk_depth = 0
        self._instantiation_depth = 0
        # Key of the template whose body is being walked, None outside templates
        self._template: Optional[str] = None
        # A handle per generic declaration, used to build its template
        self._generic_uses: dict[str, tuple[Any, NamedType]] = {}

    @property
    def registry(self) -> ModelRegistry:
        """Registry of this pass."""
        return self._registry

    def extract(self, type_: Any) -> ParserModel:
        """Extract the parser model of a type.

        Queued generic instantiations are completed before the outermost
        call returns, so every key the result references is resolved.

        Args:
            type_: Oracle type handle

        Returns:
            Parser model of the type

        Raises:
            ExtractionError: If the type cannot be represented
        """
        self._walk_depth += 1
        try:
            model = self._extract(type_)
        finally:
            self._walk_depth -= 1
        if self._walk_depth == 0:
            self._drain()
        return model

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _extract(self, type_: Any) -> ParserModel:
        classification = self._oracle.classify(type_)

        if isinstance(classification, LiteralType):
            return self._literal(classification.value)
        if isinstance(classification, PrimitiveType):
            return self._primitive(classification.primitive)
        if isinstance(classification, NamedType):
            if classification.is_generic:
                return self._generic(type_, classification)
            return self._named(type_, classification)
        if isinstance(classification, UnionType):
            return self._union(classification)
        if isinstance(classification, ArrayType):
            if classification.element is None:
                raise MissingArrayElement(type_)
            return ArrayParserModel(element=self._extract(classification.element))
        if isinstance(classification, ObjectType):
            return self._object(type_)
        if isinstance(classification, KeyOfType):
            return self._keyof(classification)
        if isinstance(classification, TypeParameterType):
            if self._template is None:
                raise UnsupportedType(
                    f"Type parameter {classification.name} outside a generic declaration",
                    classification,
                )
            return TypeParameterParserModel(name=classification.name, position=classification.position)
        if isinstance(classification, DeferredType):
            raise UnsupportedType(f"Cannot evaluate type: {classification.reason}", classification)

        raise UnsupportedType(f"Unsupported type: {type_!r}", classification)

    @staticmethod
    def _literal(value: Any) -> ParserModel:
        # bool before int: True is an int
        if isinstance(value, bool):
            return BooleanLiteralParserModel(literal=value)
        if isinstance(value, str):
            return StringLiteralParserModel(literal=value)
        if isinstance(value, (int, float)):
            if not math.isfinite(value):
                raise UnsupportedType(f"Non-finite number literal: {value!r}", value)
            return NumberLiteralParserModel(literal=value)
        raise UnsupportedType(f"Unsupported literal value: {value!r}", value)

    @staticmethod
    def _primitive(primitive: PrimitiveKind) -> ParserModel:
        if primitive == PrimitiveKind.STRING:
            return StringParserModel()
        if primitive == PrimitiveKind.NUMBER:
            return NumberParserModel()
        return BooleanParserModel()

    def _union(self, classification: UnionType) -> ParserModel:
        alternatives = [self._extract(member) for member in classification.members]
        if (
            self._config.fold_boolean_unions
            and len(alternatives) == 2
            and all(isinstance(a, BooleanLiteralParserModel) for a in alternatives)
            and alternatives[0].literal != alternatives[1].literal
        ):
            return BooleanParserModel()
        return UnionParserModel(one_of=alternatives)

    def _object(self, type_: Any) -> ObjectParserModel:
        return ObjectParserModel(
            members=[
                MemberParserModel(
                    name=member.name,
                    optional=member.optional,
                    parser=self._extract(member.type),
                )
                for member in self._oracle.members_of(type_)
            ]
        )

    def _keyof(self, classification: KeyOfType) -> ParserModel:
        names = [member.name for member in self._oracle.members_of(classification.target)]
        if not names:
            raise UnsupportedType("keyof a type without members", classification)
        if len(names) == 1:
            return StringLiteralParserModel(literal=names[0])
        return UnionParserModel(one_of=[StringLiteralParserModel(literal=name) for name in names])

    # -------------------------------------------------------------------------
    # Named types
    # -------------------------------------------------------------------------

    def _named(self, type_: Any, classification: NamedType) -> ReferenceParserModel:
        identity = self._oracle.identity_of(type_) or classification.identity
        if identity in self._registry:
            self._registry.stats.hits += 1
            return self._registry.reference(identity)
        logger.debug(f"Extracting {identity}")
        return self._registry.get_or_create(identity, lambda: self._body(type_))

    def _body(self, type_: Any) -> ParserModel:
        # A non-generic body never mentions the parameters of an enclosing template
        saved, self._template = self._template, None
        try:
            return self._extract(self._oracle.declaration_body(type_, []))
        finally:
            self._template = saved

    def _generic(self, type_: Any, classification: NamedType) -> ReferenceParserModel:
        identity = self._oracle.identity_of(type_) or classification.identity
        self._generic_uses.setdefault(identity, (type_, classification))

        handles = list(classification.type_arguments)
        arguments = [self._extract(handle) for handle in handles]
        for parameter in classification.parameters[len(handles):]:
            if not parameter.has_default:
                raise UnsupportedType(
                    f"Missing type argument {parameter.name} for {identity}",
                    classification,
                )
            default = self._oracle.default_argument(type_, parameter.position, handles)
            handles.append(default)
            arguments.append(self._extract(default))

        if any(contains_type_parameter(argument) for argument in arguments):
            # Resolved when the enclosing template is substituted
            if not classification.parametric:
                raise UnsupportedType(
                    f"{identity} cannot be instantiated with type parameters of an enclosing generic",
                    classification,
                )
            return ReferenceParserModel(type_name=identity, type_arguments=arguments)

        return self._request(
            _Instantiation(
                key=type_key(identity, arguments),
                identity=identity,
                arguments=arguments,
                handle=type_,
                named=classification,
                argument_handles=handles,
                depth=self._instantiation_depth,
            )
        )

    def _request(self, job: _Instantiation) -> ReferenceParserModel:
        """Reference an instantiation, queueing it on first use."""
        if job.key in self._registry:
            self._registry.stats.hits += 1
        else:
            if job.depth >= self._config.max_instantiation_depth:
                raise UnsupportedType(
                    f"Generic instantiation of {job.key} nests deeper than "
                    f"{self._config.max_instantiation_depth} levels",
                    job.named,
                )
            self._registry.stats.misses += 1
            self._registry.reserve(job.key)
            self._queue.append(job)
        return self._registry.reference(job.key, job.arguments)

    def _drain(self) -> None:
        while self._queue:
            job = self._queue.popleft()
            logger.debug(f"Instantiating {job.key}")
            saved = self._instantiation_depth
            self._instantiation_depth = job.depth + 1
            try:
                body = self._instantiate(job)
            finally:
                self._instantiation_depth = saved
            self._registry.complete(
                job.key,
                GenericParserModel(type_name=job.key, type_arguments=job.arguments, parser=body),
            )

    def _instantiate(self, job: _Instantiation) -> ParserModel:
        if job.named.parametric:
            return substitute(self._template_of(job.identity), job.arguments, self._instantiate_reference)

        if job.argument_handles is None:
            raise UnsupportedType(f"{job.identity} cannot be instantiated by substitution", job.named)
        saved, self._template = self._template, None
        try:
            return self._extract(self._oracle.declaration_body(job.handle, job.argument_handles))
        finally:
            self._template = saved

    def _instantiate_reference(self, identity: str, arguments: list[ParserModel]) -> ParserModel:
        handle, named = self._generic_uses[identity]
        return self._request(
            _Instantiation(
                key=type_key(identity, arguments),
                identity=identity,
                arguments=arguments,
                handle=handle,
                named=named,
                argument_handles=None,
                depth=self._instantiation_depth,
            )
        )

    def _template_of(self, identity: str) -> ParserModel:
        """Body of a generic declaration with its parameters as placeholders."""
        handle, named = self._generic_uses[identity]
        key = template_key(identity, [p.name for p in named.parameters])

        def build() -> ParserModel:
            saved, self._template = self._template, key
            try:
                return self._extract(self._oracle.declaration_body(handle, None))
            finally:
                self._template = saved

        return self._registry.template(key, build)


def generate_parser_model(
    declaration: Any,
    oracle: TypeResolutionOracle,
    config: Optional[ExtractionConfig] = None,
) -> ParserModelMap:
    """Extract the model of a function's return type.

    Args:
        declaration: Function declaration understood by the oracle
        oracle: Oracle answering structural questions
        config: Extraction configuration

    Returns:
        Model map whose root is the return type model

    Raises:
        MissingFunctionReturnType: If the return type cannot be resolved
        ExtractionError: If any reachable type cannot be represented
    """
    signature = oracle.resolve_signature(declaration)
    if signature.return_type is None:
        raise MissingFunctionReturnType(signature.name)

    extractor = ModelExtractor(oracle, config=config)
    root = extractor.extract(signature.return_type)
    deps = extractor.registry.deps()
    logger.info(f"Extracted return type of {signature.name}: {len(deps)} named models")
    return ParserModelMap(root=root, deps=deps)


def generate_function_models(
    declaration: Any,
    oracle: TypeResolutionOracle,
    config: Optional[ExtractionConfig] = None,
) -> FunctionParserModels:
    """Extract the models of a function's parameters and return type.

    Parameters and return type share one registry, so a type used by both
    appears once in ``deps``.

    Args:
        declaration: Function declaration understood by the oracle
        oracle: Oracle answering structural questions
        config: Extraction configuration

    Returns:
        Parameter object model, return model and shared deps

    Raises:
        MissingFunctionReturnType: If the return type cannot be resolved
        ExtractionError: If any reachable type cannot be represented
    """
    signature = oracle.resolve_signature(declaration)
    if signature.return_type is None:
        raise MissingFunctionReturnType(signature.name)

    extractor = ModelExtractor(oracle, config=config)
    parameters = ObjectParserModel(
        members=[
            MemberParserModel(
                name=parameter.name,
                optional=parameter.optional,
                parser=extractor.extract(parameter.type),
            )
            for parameter in signature.parameters
        ]
    )
    returns = extractor.extract(signature.return_type)
    deps = extractor.registry.deps()
    logger.info(
        f"Extracted {signature.name}: {len(signature.parameters)} parameters, "
        f"{len(deps)} named models"
    )
    return FunctionParserModels(name=signature.name, parameters=parameters, returns=returns, deps=deps)
