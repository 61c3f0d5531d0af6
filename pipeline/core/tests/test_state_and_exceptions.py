"""
Tests for the campaign state machine table and exception mapping.

Run with:
    pytest pipeline/core/tests/test_state_and_exceptions.py -v
"""

import pytest

from pipeline.core.exceptions import (
    ConsistencyError,
    CorrectionExhaustedError,
    ExternalServiceError,
    HandoffValidationError,
    InvalidTransitionError,
    InvalidValueError,
    SchemaError,
    SizeLimitError,
    StepExecutionError,
    raise_for_result,
)
from pipeline.core.state import TRANSITIONS, CampaignRun, can_transition
from pipeline.models.core import (
    ACTIVE_STATE,
    ErrorType,
    PipelineState,
    Severity,
    TERMINAL_STATES,
    ValidationIssue,
    ValidationResult,
)


def _result(*error_types):
    return ValidationResult(
        is_valid=not error_types,
        errors=tuple(ValidationIssue(f"f{i}", t, "bad", Severity.MAJOR) for i, t in enumerate(error_types)),
        handoff_type="design-to-quality",
    )


# ===================================================================
# STATE MACHINE
# ===================================================================

@pytest.mark.unit
def test_every_state_has_a_transition_entry():
    assert set(TRANSITIONS) == set(PipelineState)


@pytest.mark.unit
def test_terminal_states_have_no_exits():
    for state in TERMINAL_STATES:
        assert TRANSITIONS[state] == frozenset()
        assert state.is_terminal


@pytest.mark.unit
def test_failed_reachable_from_every_active_state():
    for state in ACTIVE_STATE.values():
        assert can_transition(state, PipelineState.FAILED)


@pytest.mark.unit
def test_validated_only_from_matching_active_state():
    assert can_transition(PipelineState.CONTENT_ACTIVE, PipelineState.CONTENT_VALIDATED)
    assert not can_transition(PipelineState.PENDING, PipelineState.CONTENT_VALIDATED)
    assert not can_transition(PipelineState.CONTENT_VALIDATED, PipelineState.QUALITY_ACTIVE)
    assert not can_transition(PipelineState.PENDING, PipelineState.FAILED)


@pytest.mark.unit
def test_campaign_run_rejects_illegal_transition():
    run = CampaignRun(campaign_id="c-1", trace_id="abc-123")

    with pytest.raises(InvalidTransitionError) as exc_info:
        run.transition(PipelineState.COMPLETED)

    assert exc_info.value.current == "pending"
    assert run.state == PipelineState.PENDING


@pytest.mark.unit
def test_snapshot_is_a_copy():
    run = CampaignRun(campaign_id="c-1", trace_id="abc-123")
    snapshot = run.snapshot()

    run.history.append("package")

    assert snapshot.history == ()
    assert snapshot.to_dict()["state"] == "pending"


# ===================================================================
# EXCEPTIONS
# ===================================================================

@pytest.mark.unit
def test_raise_for_valid_result_is_noop():
    raise_for_result(_result())


@pytest.mark.unit
@pytest.mark.parametrize("error_types, expected", [
    ((ErrorType.SIZE_LIMIT,), SizeLimitError),
    ((ErrorType.INVALID_VALUE,), InvalidValueError),
    ((ErrorType.MISSING,), SchemaError),
    ((ErrorType.FORMAT_ERROR, ErrorType.INVALID_VALUE), SchemaError),
    ((ErrorType.INVALID_VALUE, ErrorType.CONSISTENCY_ERROR), ConsistencyError),
])
def test_raise_for_result_picks_dominant_error(error_types, expected):
    with pytest.raises(expected) as exc_info:
        raise_for_result(_result(*error_types))

    assert isinstance(exc_info.value, HandoffValidationError)
    assert len(exc_info.value.errors) == len(error_types)


@pytest.mark.unit
def test_invalid_value_error_is_a_value_error():
    with pytest.raises(ValueError):
        raise_for_result(_result(ErrorType.INVALID_VALUE))


@pytest.mark.unit
def test_exception_messages():
    exhausted = CorrectionExhaustedError([ValidationIssue("a", ErrorType.MISSING, "m")], attempts=2, stage="design")
    assert "design" in str(exhausted) and "2 attempt" in str(exhausted)

    assert str(ExternalServiceError("corrector", "timed out")) == "corrector: timed out"

    wrapped = StepExecutionError("design_stage", ValueError("boom"))
    assert wrapped.step_name == "design_stage"
    assert "boom" in str(wrapped)
