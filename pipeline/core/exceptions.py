"""
Custom exceptions for handoff pipeline execution.

Validators never raise for bad package data; they return a ValidationResult
carrying every issue. These exceptions surface the outcome to the
orchestrator and to callers once a campaign has to stop.
"""

from typing import Optional, Sequence


class PipelineExecutionError(Exception):
    """
    Base exception for pipeline execution failures.

    All handoff-specific exceptions inherit from this.
    """
    pass


class StepExecutionError(PipelineExecutionError):
    """
    Raised when a pipeline stage fails.

    Attributes:
        step_name: Name of the failed stage
        original_error: The underlying exception
    """

    def __init__(self, step_name: str, original_error: Exception):
        self.step_name = step_name
        self.original_error = original_error
        error_message = f"Step '{step_name}' failed: {str(original_error)}"
        super().__init__(error_message)


class HandoffValidationError(PipelineExecutionError):
    """
    Base for errors raised from an invalid ValidationResult.

    Attributes:
        errors: Every ValidationIssue of the failed validation
    """

    def __init__(self, message: str, errors: Optional[Sequence] = None):
        self.errors = tuple(errors or ())
        super().__init__(message)


class SchemaError(HandoffValidationError):
    """Package is structurally malformed (missing sections, wrong types)."""
    pass


class InvalidValueError(HandoffValidationError, ValueError):
    """Out-of-range number or value outside an enumerated set."""
    pass


class SizeLimitError(HandoffValidationError):
    """Byte/KB ceilings exceeded (rendered email or delivery package)."""
    pass


class ConsistencyError(HandoffValidationError):
    """Trace identifiers or cross-package references disagree across a chain."""
    pass


class CorrectionExhaustedError(PipelineExecutionError):
    """
    Raised (or returned inside Exhausted) when the bounded correction loop
    runs out of attempts.

    Attributes:
        errors: Final, post-last-attempt ValidationIssue list
        attempts: Number of correction passes that were made
        stage: Stage value whose package could not be corrected
    """

    def __init__(self, errors: Sequence, attempts: int, stage: Optional[str] = None):
        self.errors = tuple(errors)
        self.attempts = attempts
        self.stage = stage
        where = f" for stage '{stage}'" if stage else ""
        super().__init__(
            f"Correction exhausted{where} after {attempts} attempt(s) "
            f"with {len(self.errors)} unresolved error(s)"
        )


class ExternalServiceError(PipelineExecutionError):
    """
    Raised when a producer, corrector or artifact store call fails or times out.

    Not retried beyond the configured correction bound.
    """

    def __init__(self, service: str, message: str):
        self.service = service
        super().__init__(f"{service}: {message}")


class InvalidTransitionError(PipelineExecutionError):
    """Raised when a campaign is asked to move along an edge the state machine does not have."""

    def __init__(self, campaign_id: str, current: str, target: str):
        self.campaign_id = campaign_id
        self.current = current
        self.target = target
        super().__init__(f"Campaign '{campaign_id}' cannot move from '{current}' to '{target}'")


class CampaignNotFoundError(PipelineExecutionError, KeyError):
    """Raised when a campaign id is not known to the orchestrator."""

    def __init__(self, campaign_id: str):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign '{campaign_id}' not found")

    def __str__(self) -> str:
        return self.args[0]


_ERROR_TYPE_TO_EXCEPTION = {
    "consistency_error": ConsistencyError,
    "size_limit": SizeLimitError,
    "invalid_value": InvalidValueError,
    "missing": SchemaError,
    "format_error": SchemaError,
}

# Most specific first: a chain mismatch outranks a size overrun, etc.
_ERROR_TYPE_PRECEDENCE = ("consistency_error", "size_limit", "missing", "format_error", "invalid_value")


def raise_for_result(result) -> None:
    """
    Raise the exception matching the dominant error type of an invalid result.

    Does nothing for a valid result.
    """
    if result.is_valid:
        return

    present = {issue.error_type.value for issue in result.errors}
    for error_type in _ERROR_TYPE_PRECEDENCE:
        if error_type in present:
            exc_class = _ERROR_TYPE_TO_EXCEPTION[error_type]
            break
    else:
        exc_class = HandoffValidationError

    summary = "; ".join(f"{issue.field}: {issue.message}" for issue in result.errors[:5])
    raise exc_class(
        f"{result.handoff_type or 'handoff'} validation failed with "
        f"{len(result.errors)} error(s): {summary}",
        errors=result.errors,
    )
