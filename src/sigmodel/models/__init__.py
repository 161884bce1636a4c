"""
Parser model and validation result data types.

This module provides the Pydantic models forming the wire contract between
extraction, compilation and the RPC layer. All models support JSON
serialization.
"""

from sigmodel.models.base import ParserModelType, ValidationStatus
from sigmodel.models.parser_model import (
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
    describe_model,
    parse_parser_model,
)
from sigmodel.models.validation import ValidationResult, Violation

__all__ = [
    # Enums
    "ParserModelType",
    "ValidationStatus",
    # Parser model variants
    "ParserModel",
    "StringParserModel",
    "NumberParserModel",
    "BooleanParserModel",
    "StringLiteralParserModel",
    "NumberLiteralParserModel",
    "BooleanLiteralParserModel",
    "ArrayParserModel",
    "ObjectParserModel",
    "MemberParserModel",
    "UnionParserModel",
    "ReferenceParserModel",
    "GenericParserModel",
    "TypeParameterParserModel",
    # Documents
    "ParserModelMap",
    "FunctionParserModels",
    # Helpers
    "describe_model",
    "parse_parser_model",
    # Validation results
    "Violation",
    "ValidationResult",
]
