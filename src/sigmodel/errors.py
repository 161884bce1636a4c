"""
Error taxonomy.

Every error defined here is fatal to the current extraction pass: the pass
is aborted and no partial model or partially generated validator is
returned. Shape mismatches found in user input are not errors; generated
validators report them as ``Violation`` values.
"""

from typing import Any, Optional


class SigmodelError(Exception):
    """Base class for all sigmodel errors."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        """Initialize the error.

        Args:
            message: Error message
            context: Extra diagnostic details
        """
        super().__init__(message)
        self.context = context or {}

    def __str__(self) -> str:
        """Format error message with details."""
        msg = super().__str__()
        if self.context:
            details = ", ".join(f"{key}={value!r}" for key, value in self.context.items())
            msg = f"{msg} ({details})"
        return msg


# =============================================================================
# Extraction phase
# =============================================================================


class ExtractionError(SigmodelError):
    """Raised when a type cannot be reduced to a parser model."""


class MissingFunctionReturnType(ExtractionError):
    """The signature has no resolvable return type."""

    def __init__(self, function_name: str) -> None:
        super().__init__(
            f"Function has no resolvable return type: {function_name}",
            context={"function": function_name},
        )
        self.function_name = function_name


class MissingArrayElement(ExtractionError):
    """An array-shaped type has no element type."""

    def __init__(self, raw: Any = None) -> None:
        super().__init__("Array type has no element type", context={"type": raw})
        self.raw = raw


class UnsupportedType(ExtractionError):
    """A type matches none of the extraction rules.

    Attributes:
        classification: The oracle's raw classification, for diagnostics
    """

    def __init__(self, message: str, classification: Any = None) -> None:
        super().__init__(message, context={"classification": classification})
        self.classification = classification


class PendingKeyMisuse(ExtractionError):
    """A pending registry entry was read before it resolved.

    This indicates mis-ordered extraction, never a user input problem.
    """

    def __init__(self, key: str) -> None:
        super().__init__(f"Registry entry is still pending: {key}", context={"key": key})
        self.key = key


# =============================================================================
# Compilation phase
# =============================================================================


class CompilationError(SigmodelError):
    """Raised when validation code cannot be generated."""


class UnknownModelVariant(CompilationError):
    """A model node matches no compiler rule."""

    def __init__(self, variant: Any, reason: str = "no compiler rule") -> None:
        super().__init__(f"Cannot compile model variant {variant!r}: {reason}")
        self.variant = variant


class UnknownValidator(CompilationError):
    """A loaded validator module has no entry with the requested name."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            f"No validator named {name!r}",
            context={"available": available},
        )
        self.name = name


# =============================================================================
# Oracle input
# =============================================================================


class OracleError(SigmodelError):
    """Raised when the oracle cannot answer a structural question."""
