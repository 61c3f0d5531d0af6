"""Core data models for the handoff pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Stage(str, Enum):
    """Specialist stages in execution order."""
    CONTENT = "content"
    DESIGN = "design"
    QUALITY = "quality"
    DELIVERY = "delivery"


STAGE_ORDER: Tuple[Stage, ...] = (Stage.CONTENT, Stage.DESIGN, Stage.QUALITY, Stage.DELIVERY)


class PipelineState(str, Enum):
    """Per-campaign state machine states."""
    PENDING = "pending"
    CONTENT_ACTIVE = "content_active"
    CONTENT_VALIDATED = "content_validated"
    DESIGN_ACTIVE = "design_active"
    DESIGN_VALIDATED = "design_validated"
    QUALITY_ACTIVE = "quality_active"
    QUALITY_VALIDATED = "quality_validated"
    DELIVERY_ACTIVE = "delivery_active"
    COMPLETED = "completed"
    COMPLETED_DEGRADED = "completed_degraded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    PipelineState.COMPLETED,
    PipelineState.COMPLETED_DEGRADED,
    PipelineState.FAILED,
    PipelineState.CANCELLED,
})

ACTIVE_STATE = {
    Stage.CONTENT: PipelineState.CONTENT_ACTIVE,
    Stage.DESIGN: PipelineState.DESIGN_ACTIVE,
    Stage.QUALITY: PipelineState.QUALITY_ACTIVE,
    Stage.DELIVERY: PipelineState.DELIVERY_ACTIVE,
}

VALIDATED_STATE = {
    Stage.CONTENT: PipelineState.CONTENT_VALIDATED,
    Stage.DESIGN: PipelineState.DESIGN_VALIDATED,
    Stage.QUALITY: PipelineState.QUALITY_VALIDATED,
    Stage.DELIVERY: PipelineState.COMPLETED,
}


class ErrorType(str, Enum):
    """Kind of a validation issue."""
    INVALID_VALUE = "invalid_value"
    MISSING = "missing"
    SIZE_LIMIT = "size_limit"
    FORMAT_ERROR = "format_error"
    CONSISTENCY_ERROR = "consistency_error"


class Severity(str, Enum):
    """Critical issues abort the campaign; the rest may be corrected."""
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class ApprovalStatus(str, Enum):
    """Quality gate verdict derived from the composite score."""
    APPROVED = "approved"
    NEEDS_REVISION = "needs_revision"
    REJECTED = "rejected"


# ===================================================================
# VALIDATION RESULTS
# ===================================================================

@dataclass(frozen=True)
class ValidationIssue:
    """One problem found in a package. Field paths use dot notation."""

    field: str
    error_type: ErrorType
    message: str
    severity: Severity = Severity.MINOR
    current_value: Any = None
    expected_value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "error_type": self.error_type.value,
            "message": self.message,
            "severity": self.severity.value,
            "current_value": self.current_value,
            "expected_value": self.expected_value,
        }


@dataclass(frozen=True)
class CorrectionSuggestion:
    """Hint handed to the corrector for one failing field."""

    field: str
    suggestion: str
    issue: str = ""
    priority: str = "low"

    def to_dict(self) -> Dict[str, str]:
        return {
            "field": self.field,
            "suggestion": self.suggestion,
            "issue": self.issue,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of a single validation call.

    Constructed fresh per call and never mutated afterwards. Carries every
    issue that was found, not just the first one.
    """

    is_valid: bool
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[str, ...] = ()
    correction_suggestions: Tuple[CorrectionSuggestion, ...] = ()
    validated_data: Any = None
    """Parsed package; only set when is_valid is True"""

    handoff_type: str = ""

    @property
    def critical_errors(self) -> Tuple[ValidationIssue, ...]:
        return tuple(e for e in self.errors if e.severity == Severity.CRITICAL)

    @property
    def has_critical(self) -> bool:
        return any(e.severity == Severity.CRITICAL for e in self.errors)

    @property
    def error_fields(self) -> Tuple[str, ...]:
        return tuple(e.field for e in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "handoff_type": self.handoff_type,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
            "correction_suggestions": [s.to_dict() for s in self.correction_suggestions],
        }


# ===================================================================
# CORRECTION
# ===================================================================

@dataclass(frozen=True)
class CorrectionResponse:
    """What an AICorrector returns for one correction pass."""

    success: bool
    corrected_data: Any = None
    corrections: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Corrected:
    """Correction loop succeeded: result is valid and carries the package."""

    result: ValidationResult
    attempts: int
    corrections: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Exhausted:
    """Correction loop gave up; error holds the post-last-attempt errors."""

    error: Exception
    attempts: int

    @property
    def errors(self) -> Tuple[ValidationIssue, ...]:
        return tuple(getattr(self.error, "errors", ()))


# ===================================================================
# PRODUCER OUTPUT
# ===================================================================

@dataclass(frozen=True)
class StageOutput:
    """
    Optional wrapper a producer returns around its raw candidate.

    degraded=True marks synthetic/fallback data so the orchestrator can
    surface it instead of reporting an ordinary success.
    """

    candidate: Any
    degraded: bool = False
    degraded_reason: Optional[str] = None


@dataclass(frozen=True)
class StageContext:
    """Input handed to a stage producer."""

    campaign_id: str
    trace_id: str
    stage: Stage
    brief: Dict[str, Any] = field(default_factory=dict)
    previous_package: Any = None
    """Validated output of the previous stage (None for content)"""

    history: Tuple[Any, ...] = ()
