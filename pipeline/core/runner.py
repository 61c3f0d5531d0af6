"""
Core pipeline infrastructure.

BaseHandoffStage: Abstract base class for the four stage tools
PipelineOrchestrator: Drives campaigns through the stage state machine
"""

import asyncio
import time
import uuid
from abc import ABC
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Type

import logfire
from pydantic import BaseModel

from pipeline.capacity import estimate_active_workers
from pipeline.core.correction import CorrectionLoop
from pipeline.core.exceptions import (
    CampaignNotFoundError,
    ExternalServiceError,
    InvalidTransitionError,
    PipelineExecutionError,
    StepExecutionError,
)
from pipeline.core.state import NEXT_STAGE, CampaignRun, PipelineSnapshot
from pipeline.models.core import (
    ACTIVE_STATE,
    ApprovalStatus,
    Corrected,
    ErrorType,
    PipelineState,
    Severity,
    Stage,
    STAGE_ORDER,
    StageContext,
    StageOutput,
    VALIDATED_STATE,
    ValidationIssue,
    ValidationResult,
)
from pipeline.scoring.quality_scorer import QualityScorer
from pipeline.validation.handoff_validator import HandoffValidator


class GenerativeProducer(Protocol):
    """External generator of raw stage candidates."""

    async def produce(self, context: StageContext) -> Any:
        ...


class BaseHandoffStage(ABC):
    """
    Abstract base class for all stage tools.

    Each stage must define:
    - stage / package_model: which handoff it produces
    - Optionally: _validate_input(), artifacts()

    The execute() method wraps the producer call with:
    - Logfire observability spans
    - Input prerequisite checks
    - A timeout on the external call
    - Normalisation of the producer's answer into a StageOutput
    """

    stage: Stage
    package_model: Type[BaseModel]

    def __init__(self, producer: GenerativeProducer, validator: HandoffValidator):
        self.producer = producer
        self.validator = validator

    @property
    def name(self) -> str:
        return f"{self.stage.value}_stage"

    def validate(self, candidate: Any) -> ValidationResult:
        return self.validator.validate_for_stage(self.stage, candidate)

    def build_context(self, run: CampaignRun) -> StageContext:
        return StageContext(
            campaign_id=run.campaign_id,
            trace_id=run.trace_id,
            stage=self.stage,
            brief=dict(run.brief),
            previous_package=run.history[-1] if run.history else None,
            history=tuple(run.history),
        )

    async def execute(self, context: StageContext, timeout_seconds: float) -> StageOutput:
        """
        Ask the producer for a candidate package.

        Raises:
            StepExecutionError: If the context does not satisfy the stage's prerequisites
            ExternalServiceError: If the producer fails or times out
        """
        start_time = time.perf_counter()

        with logfire.span(
            f"pipeline.{self.name}",
            campaign_id=context.campaign_id,
            trace_id=context.trace_id,
            stage=self.stage.value,
        ):
            validation_error = await self._validate_input(context)
            if validation_error:
                raise StepExecutionError(self.name, ValueError(f"Input validation failed: {validation_error}"))

            try:
                raw = await asyncio.wait_for(self.producer.produce(context), timeout=timeout_seconds)
            except asyncio.TimeoutError as e:
                raise ExternalServiceError(
                    f"{self.stage.value} producer", f"timed out after {timeout_seconds}s"
                ) from e
            except PipelineExecutionError:
                raise
            except Exception as e:
                raise ExternalServiceError(f"{self.stage.value} producer", str(e)) from e

            output = raw if isinstance(raw, StageOutput) else StageOutput(candidate=raw)
            output = StageOutput(
                candidate=self._stamp(output.candidate, context),
                degraded=output.degraded,
                degraded_reason=output.degraded_reason,
            )

            logfire.info(
                f"{self.name} produced candidate",
                campaign_id=context.campaign_id,
                degraded=output.degraded,
                duration=time.perf_counter() - start_time,
            )
            return output

    @staticmethod
    def _stamp(candidate: Any, context: StageContext) -> Any:
        """Fill trace_id/timestamp on a raw mapping that omits them (never overwrites)."""
        if not isinstance(candidate, dict):
            return candidate
        stamped = dict(candidate)
        if not stamped.get("trace_id"):
            stamped["trace_id"] = context.trace_id
        if not stamped.get("timestamp"):
            stamped["timestamp"] = datetime.now(timezone.utc).isoformat()
        return stamped

    async def _validate_input(self, context: StageContext) -> Optional[str]:
        """
        Validate that prerequisites for this stage are met.

        Returns:
            Error message if validation fails, None if valid
        """
        return None

    def artifacts(self, package: Any) -> Dict[str, Tuple[bytes, str]]:
        """Files to persist for a validated package: {relative_path: (bytes, content_type)}."""
        return {}


class PipelineOrchestrator:
    """
    Runs campaigns through content -> design -> quality -> delivery.

    Responsibilities:
    - Own the per-campaign state machine (the only place state changes)
    - Validate every candidate, correct non-critical failures, fail closed
    - Gate delivery on the composite quality verdict
    - Persist validated design/delivery artifacts

    Campaigns run concurrently; each one is serialised by its own lock and
    nothing mutable is shared between them.
    """

    def __init__(
        self,
        stages: Iterable[BaseHandoffStage],
        validator: HandoffValidator,
        scorer: QualityScorer,
        correction_loop: CorrectionLoop,
        artifact_store=None,
        external_call_timeout_seconds: float = 30.0,
        require_approval: bool = False,
    ):
        self.stages: Dict[Stage, BaseHandoffStage] = {tool.stage: tool for tool in stages}
        missing = [s.value for s in STAGE_ORDER if s not in self.stages]
        if missing:
            raise ValueError(f"Missing stage tools: {', '.join(missing)}")

        self.validator = validator
        self.scorer = scorer
        self.correction_loop = correction_loop
        self.artifact_store = artifact_store
        self.external_call_timeout_seconds = external_call_timeout_seconds
        self.require_approval = require_approval

        self._runs: Dict[str, CampaignRun] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    # ===================================================================
    # CAMPAIGN LIFECYCLE
    # ===================================================================

    def start_campaign(
        self,
        brief: Optional[Mapping[str, Any]] = None,
        campaign_id: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> PipelineSnapshot:
        """Register a new campaign in the pending state."""
        campaign_id = campaign_id or str(uuid.uuid4())
        if campaign_id in self._runs:
            raise InvalidTransitionError(campaign_id, self._runs[campaign_id].state.value, PipelineState.PENDING.value)

        run = CampaignRun(
            campaign_id=campaign_id,
            trace_id=trace_id or f"trace-{uuid.uuid4()}",
            brief=dict(brief or {}),
        )
        self._runs[campaign_id] = run
        self._locks[campaign_id] = asyncio.Lock()

        logfire.info("Campaign started", campaign_id=campaign_id, trace_id=run.trace_id)
        return run.snapshot()

    def get_state(self, campaign_id: str) -> PipelineSnapshot:
        return self._get_run(campaign_id).snapshot()

    async def advance(self, campaign_id: str) -> PipelineSnapshot:
        """
        Run the next stage of a campaign.

        Raises:
            CampaignNotFoundError: Unknown campaign id
            InvalidTransitionError: The campaign is already in a terminal state
                or has no stage left to run
        """
        run = self._get_run(campaign_id)

        async with self._locks[campaign_id]:
            if run.state not in NEXT_STAGE:
                raise InvalidTransitionError(campaign_id, run.state.value, "next stage")

            stage = NEXT_STAGE[run.state]
            with logfire.span(
                "pipeline.advance",
                campaign_id=campaign_id,
                trace_id=run.trace_id,
                stage=stage.value,
            ):
                try:
                    await self._run_stage(run, stage)
                except asyncio.CancelledError:
                    # The awaiting task went away mid-stage; the campaign must not stay active
                    if not run.state.is_terminal:
                        run.cancel_requested = True
                        run.transition(PipelineState.CANCELLED)
                        logfire.warning(
                            "Stage interrupted, campaign cancelled",
                            campaign_id=campaign_id,
                            stage=stage.value,
                        )
                    raise

            return run.snapshot()

    async def run(self, campaign_id: str) -> PipelineSnapshot:
        """
        Advance a campaign until it reaches a terminal state.

        A cancel that lands between two stages ends the loop with the
        cancelled snapshot.
        """
        snapshot = self.get_state(campaign_id)
        while not snapshot.is_terminal:
            try:
                snapshot = await self.advance(campaign_id)
            except InvalidTransitionError:
                snapshot = self.get_state(campaign_id)
                if not snapshot.is_terminal:
                    raise
        return snapshot

    async def run_many(self, campaign_ids: Sequence[str]) -> List[PipelineSnapshot]:
        """Run several campaigns concurrently; results keep the input order."""
        with logfire.span("pipeline.run_many", campaign_count=len(campaign_ids)):
            return list(await asyncio.gather(*(self.run(cid) for cid in campaign_ids)))

    async def cancel(self, campaign_id: str) -> PipelineSnapshot:
        """
        Cancel a campaign at the next stage boundary.

        An in-flight stage is allowed to finish producing but its candidate
        is discarded, so the visible artifact stays the last validated one.

        Raises:
            InvalidTransitionError: The campaign already completed or failed
        """
        run = self._get_run(campaign_id)
        run.cancel_requested = True

        async with self._locks[campaign_id]:
            if run.state == PipelineState.CANCELLED:
                return run.snapshot()
            run.transition(PipelineState.CANCELLED)

        logfire.info(
            "Campaign cancelled",
            campaign_id=campaign_id,
            stages_completed=len(run.history),
        )
        return run.snapshot()

    def submit(
        self,
        raw_candidate: Any,
        stage: Stage,
        campaign_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Validate a candidate for a stage without changing any campaign state.

        With a campaign_id, a schema-valid candidate is also checked for chain
        consistency against that campaign's validated history.
        """
        stage = Stage(stage)
        result = self.validator.validate_for_stage(stage, raw_candidate)

        if campaign_id is not None and result.is_valid:
            run = self._get_run(campaign_id)
            integrity = self.validator.validate_handoff_integrity([*run.history, result.validated_data])
            if not integrity.is_valid:
                result = ValidationResult(
                    is_valid=False,
                    errors=integrity.errors,
                    warnings=result.warnings + integrity.warnings,
                    correction_suggestions=integrity.correction_suggestions,
                    handoff_type=result.handoff_type,
                )

        logfire.info(
            "Candidate submitted",
            stage=stage.value,
            campaign_id=campaign_id,
            is_valid=result.is_valid,
            error_count=len(result.errors),
        )
        return result

    def capacity(self) -> Dict[str, int]:
        in_flight = sum(1 for lock in self._locks.values() if lock.locked())
        processing = sum(1 for run in self._runs.values() if not run.state.is_terminal)
        return {
            "active_workers": estimate_active_workers(in_flight, processing),
            "in_flight_stages": in_flight,
            "processing_campaigns": processing,
            "total_campaigns": len(self._runs),
        }

    # ===================================================================
    # STAGE EXECUTION
    # ===================================================================

    async def _run_stage(self, run: CampaignRun, stage: Stage) -> None:
        tool = self.stages[stage]
        run.transition(ACTIVE_STATE[stage])

        try:
            output = await tool.execute(tool.build_context(run), self.external_call_timeout_seconds)
        except PipelineExecutionError as e:
            self._fail(run, stage, reason=str(e))
            return

        if self._discard_if_cancelled(run, stage):
            return

        result = tool.validate(output.candidate)
        if not result.is_valid:
            result = await self._correct(run, stage, tool, output.candidate, result)
            if result is None:
                return

        package = result.validated_data

        integrity = self.validator.validate_handoff_integrity([*run.history, package])
        chain_errors = integrity.errors + self._trace_mismatch(run, package)
        if chain_errors:
            self._fail(run, stage, errors=chain_errors, reason="Handoff chain integrity check failed")
            return

        if stage == Stage.QUALITY and not self._passes_quality_gate(run, package, integrity):
            return

        if self._discard_if_cancelled(run, stage):
            return

        try:
            await self._store_artifacts(run, tool, package)
        except ExternalServiceError as e:
            self._fail(run, stage, reason=str(e))
            return

        if self._discard_if_cancelled(run, stage):
            return

        if output.degraded:
            run.degraded_stages.append(stage)
            logfire.warning(
                "Stage produced degraded output",
                campaign_id=run.campaign_id,
                stage=stage.value,
                reason=output.degraded_reason,
            )

        run.history.append(package)
        run.errors = ()

        target = VALIDATED_STATE[stage]
        if target == PipelineState.COMPLETED and run.degraded_stages:
            target = PipelineState.COMPLETED_DEGRADED
        run.transition(target)

        logfire.info(
            f"{stage.value} stage validated",
            campaign_id=run.campaign_id,
            state=run.state.value,
            warning_count=len(result.warnings),
        )

    async def _correct(
        self,
        run: CampaignRun,
        stage: Stage,
        tool: BaseHandoffStage,
        candidate: Any,
        result: ValidationResult,
    ) -> Optional[ValidationResult]:
        """Return the corrected valid result, or None after failing the campaign."""
        if result.has_critical:
            self._fail(run, stage, errors=result.errors, reason="Critical validation errors")
            return None

        outcome = await self.correction_loop.run(stage, candidate, result, tool.validate)
        run.correction_attempts[stage.value] = outcome.attempts

        if isinstance(outcome, Corrected):
            logfire.info(
                "Candidate corrected",
                campaign_id=run.campaign_id,
                stage=stage.value,
                attempts=outcome.attempts,
                corrections=list(outcome.corrections),
            )
            return outcome.result

        self._fail(run, stage, errors=outcome.errors, reason=str(outcome.error))
        return None

    def _passes_quality_gate(self, run: CampaignRun, package: Any, integrity: ValidationResult) -> bool:
        report = self.scorer.score_quality_package(package, integrity)
        run.quality_report = report

        logfire.info(
            "Quality report generated",
            campaign_id=run.campaign_id,
            overall_score=report.overall_score,
            approval_status=report.approval_status.value,
            recommendations=list(report.recommendations),
        )

        rejected = report.approval_status == ApprovalStatus.REJECTED
        if self.require_approval:
            rejected = report.approval_status != ApprovalStatus.APPROVED

        if rejected:
            issue = ValidationIssue(
                field="quality_report.overall_score",
                error_type=ErrorType.INVALID_VALUE,
                message=f"Quality verdict '{report.approval_status.value}' with composite score {report.overall_score}",
                severity=Severity.CRITICAL,
                current_value=report.overall_score,
                expected_value=report.approval_status.value,
            )
            self._fail(run, Stage.QUALITY, errors=(issue,), reason="Quality gate rejected the package")
            return False
        return True

    async def _store_artifacts(self, run: CampaignRun, tool: BaseHandoffStage, package: Any) -> None:
        if self.artifact_store is None:
            return

        for path, (data, content_type) in tool.artifacts(package).items():
            full_path = f"{run.campaign_id}/{path}"
            try:
                await asyncio.wait_for(
                    self.artifact_store.put(full_path, data, content_type),
                    timeout=self.external_call_timeout_seconds,
                )
            except asyncio.TimeoutError as e:
                raise ExternalServiceError("artifact store", f"timed out writing {full_path}") from e
            except Exception as e:
                raise ExternalServiceError("artifact store", f"failed writing {full_path}: {e}") from e

    @staticmethod
    def _trace_mismatch(run: CampaignRun, package: Any) -> Tuple[ValidationIssue, ...]:
        trace_id = getattr(package, "trace_id", None)
        if trace_id == run.trace_id:
            return ()
        return (ValidationIssue(
            field="trace_id",
            error_type=ErrorType.CONSISTENCY_ERROR,
            message="Package trace_id does not match the campaign trace",
            severity=Severity.CRITICAL,
            current_value=trace_id,
            expected_value=run.trace_id,
        ),)

    def _discard_if_cancelled(self, run: CampaignRun, stage: Stage) -> bool:
        if not run.cancel_requested:
            return False
        run.transition(PipelineState.CANCELLED)
        logfire.info(
            "Discarded candidate of cancelled campaign",
            campaign_id=run.campaign_id,
            stage=stage.value,
        )
        return True

    def _fail(
        self,
        run: CampaignRun,
        stage: Stage,
        errors: Sequence[ValidationIssue] = (),
        reason: Optional[str] = None,
    ) -> None:
        run.errors = tuple(errors)
        run.failed_stage = stage
        run.failure_reason = reason
        run.transition(PipelineState.FAILED)

        logfire.error(
            "Campaign failed",
            campaign_id=run.campaign_id,
            trace_id=run.trace_id,
            stage=stage.value,
            reason=reason,
            error_count=len(run.errors),
            errors=[e.to_dict() for e in run.errors[:10]],
        )

    def _get_run(self, campaign_id: str) -> CampaignRun:
        try:
            return self._runs[campaign_id]
        except KeyError:
            raise CampaignNotFoundError(campaign_id) from None
