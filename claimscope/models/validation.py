"""Validation result models for ClaimScope.

The engine only reports; a workflow layer decides whether a finding blocks
phase advance or export.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from claimscope.models.companion import CompanionSuggestion


class Severity(str, Enum):
    """Severity of a validation finding."""

    ERROR = "error"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class CompanionValidationIssue(BaseModel):
    """A finding from companion validation."""

    item_id: Optional[int] = None
    severity: Severity
    message: str


class CompanionValidationResult(BaseModel):
    """Result of validate_companion_items; valid is False only on errors."""

    valid: bool = True
    issues: List[CompanionValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> List[CompanionValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]


class ValidationIssue(BaseModel):
    """A finding from scope validation."""

    category: str
    severity: Severity
    message: str
    room_id: Optional[int] = None
    scope_item_id: Optional[int] = None
    code: Optional[str] = None


class ScopeValidationReport(BaseModel):
    """Structured report of scope completeness and consistency."""

    valid: bool = True
    score: int = Field(default=100, ge=0, le=100)
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    suggestions: List[ValidationIssue] = Field(default_factory=list)

    @property
    def issues(self) -> List[ValidationIssue]:
        return [*self.errors, *self.warnings, *self.suggestions]

    def categories(self) -> List[str]:
        return sorted({issue.category for issue in self.issues})


class SessionValidation(BaseModel):
    """Scope and companion validation for one inspection session."""

    session_id: int
    scope: ScopeValidationReport
    companions: CompanionValidationResult
    suggestions: List[CompanionSuggestion] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return self.scope.valid and self.companions.valid
