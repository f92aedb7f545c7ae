"""
Validation results - findings collected by the structural validators.

Validators never raise. They return a ValidationResult; callers that want
an exception call raise_for_errors().
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from rubato_notation.errors import StructuralError


class ValidationSeverity(str, Enum):
    """Severity level for validation issues."""

    ERROR = "error"  # Document is structurally invalid
    WARNING = "warning"  # Usable but suspicious
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single finding, located by the entity it concerns."""

    severity: ValidationSeverity
    code: str
    message: str
    entity: str | None = None

    def __str__(self) -> str:
        prefix = f"[{self.severity.value.upper()}]"
        entity = f" at {self.entity}" if self.entity else ""
        return f"{prefix} {self.code}: {self.message}{entity}"

    def to_dict(self) -> dict[str, str | None]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "entity": self.entity,
        }


class ValidationResult:
    """Result of validating a score or one of its parts."""

    def __init__(self) -> None:
        self.issues: list[ValidationIssue] = []

    def add_error(self, code: str, message: str, entity: str | None = None) -> None:
        self.issues.append(ValidationIssue(ValidationSeverity.ERROR, code, message, entity))

    def add_warning(self, code: str, message: str, entity: str | None = None) -> None:
        self.issues.append(ValidationIssue(ValidationSeverity.WARNING, code, message, entity))

    def add_info(self, code: str, message: str, entity: str | None = None) -> None:
        self.issues.append(ValidationIssue(ValidationSeverity.INFO, code, message, entity))

    def merge(self, other: ValidationResult) -> None:
        self.issues.extend(other.issues)

    @property
    def is_valid(self) -> bool:
        """Return True if no errors (warnings/info are OK)."""
        return not any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ValidationSeverity.WARNING]

    def messages(self, severity: ValidationSeverity | None = None) -> list[str]:
        return [i.message for i in self.issues if severity is None or i.severity == severity]

    def raise_for_errors(self) -> None:
        """
        Raise if any error was found.

        Raises:
            StructuralError: carrying the error findings
        """
        if not self.is_valid:
            raise StructuralError(self.errors)

    def __bool__(self) -> bool:
        return self.is_valid

    def __str__(self) -> str:
        if not self.issues:
            return "Validation passed: no issues found"
        return "\n".join(str(issue) for issue in self.issues)
