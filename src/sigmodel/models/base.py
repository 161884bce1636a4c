"""
Base enumerations used throughout the data models.

These enums provide type-safe values for the variant tags of the parser
model wire format and for the status of a validation result.
"""

from enum import Enum


class ParserModelType(str, Enum):
    """Variant tag of a parser model node.

    The string values are the wire contract of the serialized model
    document and must never change.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING_LITERAL = "string-literal"
    NUMBER_LITERAL = "number-literal"
    BOOLEAN_LITERAL = "boolean-literal"
    ARRAY = "array"
    OBJECT = "object"
    MEMBER = "member"
    UNION = "union"
    REFERENCE = "reference"
    GENERIC = "generic"
    TYPE_PARAMETER = "type-parameter"


class ValidationStatus(str, Enum):
    """Outcome of running a generated validator against a value."""

    OK = "ok"
    BAD_REQUEST = "bad-request"  # Value does not match the expected shape
