"""
sigmodel: Parser models and validators from declared types.

Reduces the declared parameter and return types of RPC functions to a
serializable, normalized parser model and generates validators that check
untrusted input against it.

Example:
    from sigmodel import IRTypeOracle, SourceUnit, generate_parser_model

    oracle = IRTypeOracle(SourceUnit.from_file("api.yaml"))
    model_map = generate_parser_model("getUser", oracle)
    print(model_map.to_json())
"""

from sigmodel.compiler import CompiledValidators, ValidatorCompiler, ValueLocation, load_validators
from sigmodel.errors import (
    CompilationError,
    ExtractionError,
    MissingArrayElement,
    MissingFunctionReturnType,
    OracleError,
    PendingKeyMisuse,
    SigmodelError,
    UnknownModelVariant,
    UnknownValidator,
    UnsupportedType,
)
from sigmodel.extraction import (
    ModelExtractor,
    ModelRegistry,
    generate_function_models,
    generate_parser_model,
)
from sigmodel.models import FunctionParserModels, ParserModelMap, ValidationResult, Violation
from sigmodel.oracle import IRTypeOracle, PythonTypeOracle, SourceUnit, TypeResolutionOracle
from sigmodel.pipeline import ExtractionPass, PassArtifacts, write_artifacts
from sigmodel.version import __version__

__all__ = [
    "__version__",
    # Extraction
    "ModelExtractor",
    "ModelRegistry",
    "generate_parser_model",
    "generate_function_models",
    "ParserModelMap",
    "FunctionParserModels",
    # Oracles
    "TypeResolutionOracle",
    "IRTypeOracle",
    "PythonTypeOracle",
    "SourceUnit",
    # Compilation
    "ValidatorCompiler",
    "ValueLocation",
    "CompiledValidators",
    "load_validators",
    "ValidationResult",
    "Violation",
    # Passes
    "ExtractionPass",
    "PassArtifacts",
    "write_artifacts",
    # Errors
    "SigmodelError",
    "ExtractionError",
    "MissingFunctionReturnType",
    "MissingArrayElement",
    "UnsupportedType",
    "PendingKeyMisuse",
    "CompilationError",
    "UnknownModelVariant",
    "UnknownValidator",
    "OracleError",
]
