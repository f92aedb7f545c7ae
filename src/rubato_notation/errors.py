"""
Exception taxonomy.

Validators never raise; they return findings. These exceptions are for
callers that receive malformed input or explicitly opt into raising.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rubato_notation.validation.result import ValidationIssue


class FormatError(ValueError):
    """A pitch string, note name, key or time signature token is malformed."""


class ValidationError(ValueError):
    """Exercise parameters violate one or more constraints."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Invalid exercise parameters: " + "; ".join(self.errors))


class StructuralError(ValueError):
    """A score failed structural validation and the caller asked to raise."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = list(issues)
        super().__init__("Invalid score: " + "; ".join(str(i) for i in self.issues))
