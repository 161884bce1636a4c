"""
Configuration Data Models.

Defines all configuration schemas using Pydantic for validation
and type safety.
"""

import keyword
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging verbosity."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _check_identifier(value: str, allow_prefix: bool = False) -> str:
    candidate = f"{value}x" if allow_prefix else value
    if not candidate.isidentifier() or keyword.iskeyword(value):
        raise ValueError(f"Not a valid Python identifier: {value!r}")
    return value


class ExtractionConfig(BaseModel):
    """Configuration for type model extraction.

    Attributes:
        max_instantiation_depth: Nesting limit for generic instantiations
            created while instantiating other generics
        fold_boolean_unions: Fold a union of exactly the two boolean
            literals into ``boolean``
    """

    max_instantiation_depth: int = Field(
        default=32,
        ge=1,
        le=1024,
        description="Nesting limit for generic instantiations",
    )
    fold_boolean_unions: bool = Field(
        default=True,
        description="Fold true | false into boolean",
    )


class CompilerConfig(BaseModel):
    """Configuration for validator code generation.

    Attributes:
        function_prefix: Prefix of the generated per-type validator functions
        entry_name: Name of the root entry validator
        parameters_entry: Name of the function parameters entry validator
        returns_entry: Name of the return type entry validator
        root_path: Path reported for the root value
        header: Comment placed at the top of generated modules
    """

    function_prefix: str = Field(
        default="validate_",
        description="Prefix of per-type validator functions",
    )
    entry_name: str = Field(
        default="validate",
        description="Root entry validator name",
    )
    parameters_entry: str = Field(
        default="validate_parameters",
        description="Parameters entry validator name",
    )
    returns_entry: str = Field(
        default="validate_returns",
        description="Return type entry validator name",
    )
    root_path: str = Field(
        default="$",
        min_length=1,
        description="Path of the root value in violations",
    )
    header: str = Field(
        default="Generated by sigmodel. Do not edit.",
        description="Header comment of generated modules",
    )

    @field_validator("function_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """Ensure the prefix can start a function name."""
        return _check_identifier(v, allow_prefix=True)

    @field_validator("entry_name", "parameters_entry", "returns_entry")
    @classmethod
    def validate_entry(cls, v: str) -> str:
        """Ensure entry names are valid function names."""
        return _check_identifier(v)


class OutputConfig(BaseModel):
    """Configuration for output paths.

    Attributes:
        base_dir: Base output directory
        model_suffix: Suffix of serialized model files
        validators_suffix: Suffix of generated validator modules
        create_dirs: Create directories if they don't exist
    """

    base_dir: str = Field(
        default="./generated",
        description="Base output directory",
    )
    model_suffix: str = Field(
        default=".model.json",
        description="Model file suffix",
    )
    validators_suffix: str = Field(
        default="_validators.py",
        description="Validator module suffix",
    )
    create_dirs: bool = Field(
        default=True,
        description="Create output directories",
    )

    def get_path(self, name: str, suffix_attr: str) -> Path:
        """Get full path for an output file.

        Args:
            name: Base name of the artifact (usually the function name)
            suffix_attr: Attribute name for the suffix

        Returns:
            Full Path object
        """
        suffix = getattr(self, suffix_attr)
        return Path(self.base_dir) / f"{name}{suffix}"


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level of the ``sigmodel`` logger
        file: Optional log file
    """

    level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Log level",
    )
    file: Optional[str] = Field(
        default=None,
        description="Log file path",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lowercase level names."""
        if isinstance(v, str):
            return v.upper()
        return v


class SigmodelConfig(BaseModel):
    """Root configuration for the entire system.

    This is the main configuration class that aggregates all
    configuration sections.

    Attributes:
        extraction: Extraction configuration
        compiler: Compiler configuration
        output: Output paths configuration
        logging: Logging configuration
        debug: Enable debug mode
    """

    extraction: ExtractionConfig = Field(
        default_factory=ExtractionConfig,
        description="Extraction configuration",
    )
    compiler: CompilerConfig = Field(
        default_factory=CompilerConfig,
        description="Compiler configuration",
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Output configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    def to_yaml_dict(self) -> dict[str, Any]:
        """Convert to YAML-friendly dictionary.

        Returns:
            Dict suitable for YAML serialization
        """
        return self.model_dump(mode="json", exclude_none=True)
