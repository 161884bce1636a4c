"""
Validation result models.

A generated validator either accepts a value or reports a non-empty list of
violations. Violations are the expected-path outcome for malformed user
input and are never raised as exceptions.
"""

from typing import Any

from pydantic import BaseModel, Field, computed_field, model_validator

from sigmodel.models.base import ValidationStatus


class Violation(BaseModel):
    """A single shape mismatch found in a validated value.

    Attributes:
        path: Location of the offending value, e.g. ``$.items[2].name``
        expected: Description of the shape that was expected there
    """

    path: str = Field(..., min_length=1, description="Location of the offending value")
    expected: str = Field(..., min_length=1, description="Expected shape")

    @computed_field
    @property
    def message(self) -> str:
        """Human-readable message."""
        return f"{self.path}: expected {self.expected}"


class ValidationResult(BaseModel):
    """Outcome of validating a value.

    Attributes:
        status: ``ok`` when accepted, ``bad-request`` otherwise
        violations: Shape mismatches (empty when accepted)
    """

    status: ValidationStatus = Field(default=ValidationStatus.OK)
    violations: list[Violation] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_status_matches_violations(self) -> "ValidationResult":
        """A rejected value must carry at least one violation and vice versa."""
        if self.status == ValidationStatus.OK and self.violations:
            raise ValueError("An accepted value cannot carry violations")
        if self.status == ValidationStatus.BAD_REQUEST and not self.violations:
            raise ValueError("A rejected value needs at least one violation")
        return self

    @property
    def is_ok(self) -> bool:
        """Whether the value was accepted."""
        return self.status == ValidationStatus.OK

    @classmethod
    def ok(cls) -> "ValidationResult":
        """Accepting result."""
        return cls(status=ValidationStatus.OK)

    @classmethod
    def bad_request(cls, violations: list[Violation]) -> "ValidationResult":
        """Rejecting result with the given violations."""
        return cls(status=ValidationStatus.BAD_REQUEST, violations=violations)

    def to_response(self) -> dict[str, Any]:
        """Client-facing response body for the RPC layer."""
        if self.is_ok:
            return {"status": self.status.value}
        return {
            "status": self.status.value,
            "errors": [
                {"path": violation.path, "expected": violation.expected}
                for violation in self.violations
            ],
        }
