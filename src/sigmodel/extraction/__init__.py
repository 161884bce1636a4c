"""
Type model extraction.

Reduces declared types to parser models:
- ModelExtractor: walks types through an oracle
- ModelRegistry: per-pass store of named models
- substitute: instantiates generic templates
"""

from sigmodel.extraction.extractor import (
    ModelExtractor,
    generate_function_models,
    generate_parser_model,
)
from sigmodel.extraction.keys import serialize_model, template_key, type_key
from sigmodel.extraction.registry import (
    EntryKind,
    EntryState,
    ModelRegistry,
    RegistryEntry,
    RegistryStats,
)
from sigmodel.extraction.substitution import contains_type_parameter, substitute

__all__ = [
    "ModelExtractor",
    "generate_parser_model",
    "generate_function_models",
    "ModelRegistry",
    "RegistryEntry",
    "RegistryStats",
    "EntryKind",
    "EntryState",
    "type_key",
    "template_key",
    "serialize_model",
    "substitute",
    "contains_type_parameter",
]
