"""
Per-campaign state machine.

pending -> content_active -> content_validated -> design_active ->
design_validated -> quality_active -> quality_validated -> delivery_active ->
completed | completed_degraded

failed is reachable from every active state; cancelled from every
non-terminal state. Terminal states have no outgoing edges.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pipeline.core.exceptions import InvalidTransitionError
from pipeline.models.core import (
    PipelineState,
    Stage,
    STAGE_ORDER,
    TERMINAL_STATES,
    ValidationIssue,
)
from pipeline.validation.schema_errors import as_mapping

S = PipelineState

TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    S.PENDING: frozenset({S.CONTENT_ACTIVE, S.CANCELLED}),
    S.CONTENT_ACTIVE: frozenset({S.CONTENT_VALIDATED, S.FAILED, S.CANCELLED}),
    S.CONTENT_VALIDATED: frozenset({S.DESIGN_ACTIVE, S.CANCELLED}),
    S.DESIGN_ACTIVE: frozenset({S.DESIGN_VALIDATED, S.FAILED, S.CANCELLED}),
    S.DESIGN_VALIDATED: frozenset({S.QUALITY_ACTIVE, S.CANCELLED}),
    S.QUALITY_ACTIVE: frozenset({S.QUALITY_VALIDATED, S.FAILED, S.CANCELLED}),
    S.QUALITY_VALIDATED: frozenset({S.DELIVERY_ACTIVE, S.CANCELLED}),
    S.DELIVERY_ACTIVE: frozenset({S.COMPLETED, S.COMPLETED_DEGRADED, S.FAILED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.COMPLETED_DEGRADED: frozenset(),
    S.FAILED: frozenset(),
    S.CANCELLED: frozenset(),
}

# Stage that runs next from each resting (non-active, non-terminal) state
NEXT_STAGE: Dict[PipelineState, Stage] = {
    S.PENDING: Stage.CONTENT,
    S.CONTENT_VALIDATED: Stage.DESIGN,
    S.DESIGN_VALIDATED: Stage.QUALITY,
    S.QUALITY_VALIDATED: Stage.DELIVERY,
}


def can_transition(current: PipelineState, target: PipelineState) -> bool:
    return target in TRANSITIONS[current]


@dataclass(frozen=True)
class PipelineSnapshot:
    """Read-only view of one campaign."""

    campaign_id: str
    trace_id: str
    state: PipelineState
    errors: Tuple[ValidationIssue, ...] = ()
    history: Tuple[Any, ...] = ()
    quality_report: Any = None
    degraded_stages: Tuple[Stage, ...] = ()
    failed_stage: Optional[Stage] = None
    failure_reason: Optional[str] = None
    correction_attempts: Dict[str, int] = field(default_factory=dict)

    @property
    def last_validated_package(self) -> Any:
        return self.history[-1] if self.history else None

    @property
    def approval_status(self):
        return self.quality_report.approval_status if self.quality_report is not None else None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign_id": self.campaign_id,
            "trace_id": self.trace_id,
            "state": self.state.value,
            "errors": [e.to_dict() for e in self.errors],
            "stages_completed": [STAGE_ORDER[i].value for i in range(len(self.history))],
            "last_validated_package": as_mapping(self.last_validated_package) or None,
            "quality_report": self.quality_report.to_dict() if self.quality_report is not None else None,
            "degraded_stages": [s.value for s in self.degraded_stages],
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "failure_reason": self.failure_reason,
            "correction_attempts": dict(self.correction_attempts),
        }


@dataclass
class CampaignRun:
    """
    Mutable record owned by the orchestrator for one campaign.

    Only mutated while the campaign's lock is held; callers only ever see
    PipelineSnapshot copies.
    """

    campaign_id: str
    trace_id: str
    brief: Dict[str, Any] = field(default_factory=dict)
    state: PipelineState = PipelineState.PENDING
    history: List[Any] = field(default_factory=list)
    errors: Tuple[ValidationIssue, ...] = ()
    quality_report: Any = None
    degraded_stages: List[Stage] = field(default_factory=list)
    failed_stage: Optional[Stage] = None
    failure_reason: Optional[str] = None
    correction_attempts: Dict[str, int] = field(default_factory=dict)
    cancel_requested: bool = False

    def transition(self, target: PipelineState) -> None:
        if not can_transition(self.state, target):
            raise InvalidTransitionError(self.campaign_id, self.state.value, target.value)
        self.state = target

    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            campaign_id=self.campaign_id,
            trace_id=self.trace_id,
            state=self.state,
            errors=self.errors,
            history=tuple(self.history),
            quality_report=self.quality_report,
            degraded_stages=tuple(self.degraded_stages),
            failed_stage=self.failed_stage,
            failure_reason=self.failure_reason,
            correction_attempts=dict(self.correction_attempts),
        )
