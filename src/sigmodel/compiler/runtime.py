"""
Generated validator loading.

Executes a generated validator module in a fresh namespace and wraps its
entry validators so they return ``ValidationResult`` values.
"""

import logging
from typing import Any, Callable

from sigmodel.compiler.codegen import ENTRIES_TABLE, VALIDATORS_TABLE
from sigmodel.errors import CompilationError, UnknownValidator
from sigmodel.models import ValidationResult, Violation

logger = logging.getLogger(__name__)


class CompiledValidators:
    """Entry validators of one loaded module.

    Usage:
        validators = load_validators(source)
        result = validators.validate({"kaas": "x"})
        if not result.is_ok:
            return result.to_response()
    """

    def __init__(self, source: str, namespace: dict[str, Any]) -> None:
        """Initialize from an executed module namespace.

        Args:
            source: Module source text
            namespace: Globals of the executed module
        """
        self._source = source
        self._entries: dict[str, Callable] = dict(namespace.get(ENTRIES_TABLE, {}))
        self._validators: dict[str, Callable] = dict(namespace.get(VALIDATORS_TABLE, {}))

    @property
    def source(self) -> str:
        """Generated source text."""
        return self._source

    @property
    def entries(self) -> list[str]:
        """Entry validator names."""
        return list(self._entries)

    @property
    def keys(self) -> list[str]:
        """Dependency keys with a named validator."""
        return list(self._validators)

    def validate(self, value: Any, entry: str = "validate") -> ValidationResult:
        """Validate a value with an entry validator.

        Args:
            value: Untrusted value (decoded JSON)
            entry: Entry validator name

        Returns:
            Accepting result, or a result listing every violation

        Raises:
            UnknownValidator: If the module has no such entry
        """
        function = self._entries.get(entry)
        if function is None:
            raise UnknownValidator(entry, self.entries)
        return self._result(function(value))

    def validate_type(self, key: str, value: Any, path: str = "$") -> ValidationResult:
        """Validate a value against one named dependency model.

        Raises:
            UnknownValidator: If no dependency has that key
        """
        function = self._validators.get(key)
        if function is None:
            raise UnknownValidator(key, self.keys)
        errors: list[tuple[str, str]] = []
        function(value, path, errors)
        return self._result(errors)

    @staticmethod
    def _result(errors: list[tuple[str, str]]) -> ValidationResult:
        if not errors:
            return ValidationResult.ok()
        return ValidationResult.bad_request(
            [Violation(path=path, expected=expected) for path, expected in errors]
        )


def load_validators(source: str, name: str = "sigmodel_validators") -> CompiledValidators:
    """Execute generated validator source.

    Args:
        source: Module text from ``ValidatorCompiler.compile_module``
        name: Module name used in tracebacks

    Returns:
        Loaded validators

    Raises:
        CompilationError: If the source does not compile
    """
    try:
        code = compile(source, f"<{name}>", "exec")
    except SyntaxError as e:
        raise CompilationError(f"Generated validator module does not compile: {e}") from e

    namespace: dict[str, Any] = {"__name__": name}
    exec(code, namespace)
    validators = CompiledValidators(source, namespace)
    logger.debug(f"Loaded {len(validators.entries)} entry validators from {name}")
    return validators
