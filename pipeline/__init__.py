"""
Pipeline factory function.

This module provides create_handoff_pipeline() which wires the validator,
scorer, correction loop and the four stage tools into an orchestrator.
"""

from typing import Mapping, Optional

from config.settings import HandoffLimits, Settings, get_settings
from pipeline.core.correction import AICorrector, CorrectionLoop
from pipeline.core.runner import GenerativeProducer, PipelineOrchestrator
from pipeline.models.core import Stage
from pipeline.scoring.quality_scorer import QualityScorer
from pipeline.validation.handoff_validator import HandoffValidator


def create_handoff_pipeline(
    producers: Optional[Mapping[Stage, GenerativeProducer]] = None,
    corrector: Optional[AICorrector] = None,
    artifact_store=None,
    settings: Optional[Settings] = None,
) -> PipelineOrchestrator:
    """
    Factory function to create a fully configured handoff pipeline.

    Stages are registered in execution order:
    1. ContentStage: copy, metadata, design requirements
    2. DesignStage: HTML/MJML template
    3. QualityStage: tests and scores (followed by the approval gate)
    4. DeliveryStage: final package, assets and documentation

    Args:
        producers: Producer per stage; stages without one get a pydantic-ai
            AgentProducer using settings.producer_model
        corrector: AICorrector; defaults to a pydantic-ai AgentCorrector
            using settings.corrector_model
        artifact_store: Where validated design/delivery files are written
        settings: Defaults to the application settings singleton

    Example:
        ```python
        from pipeline import create_handoff_pipeline

        orchestrator = create_handoff_pipeline(producers=my_producers)
        snapshot = orchestrator.start_campaign({"topic": "Summer in Sochi"})
        snapshot = await orchestrator.run(snapshot.campaign_id)
        print(snapshot.state, snapshot.approval_status)
        ```
    """
    settings = settings or get_settings()
    timeout = settings.external_call_timeout_seconds

    validator = HandoffValidator(HandoffLimits.from_settings(settings))

    # Import stage tools lazily to avoid circular imports at package import time
    from pipeline.steps.content.main import ContentStage
    from pipeline.steps.design.main import DesignStage
    from pipeline.steps.quality.main import QualityStage
    from pipeline.steps.delivery.main import DeliveryStage

    producers = dict(producers or {})
    missing = [s for s in (Stage.CONTENT, Stage.DESIGN, Stage.QUALITY, Stage.DELIVERY) if s not in producers]
    if missing:
        producers.update(_agent_producers(missing, settings))

    if corrector is None:
        from services.ai_corrector import AgentCorrector

        corrector = AgentCorrector(settings.corrector_model, timeout=timeout)

    stage_tools = [
        ContentStage(producers[Stage.CONTENT], validator),
        DesignStage(producers[Stage.DESIGN], validator),
        QualityStage(producers[Stage.QUALITY], validator),
        DeliveryStage(producers[Stage.DELIVERY], validator),
    ]

    return PipelineOrchestrator(
        stages=stage_tools,
        validator=validator,
        scorer=QualityScorer(),
        correction_loop=CorrectionLoop(corrector, settings.max_correction_attempts, timeout),
        artifact_store=artifact_store,
        external_call_timeout_seconds=timeout,
        require_approval=settings.require_approval,
    )


def _agent_producers(stages, settings: Settings):
    from services.ai_producer import AgentProducer
    from pipeline.steps.content import prompts as content_prompts
    from pipeline.steps.design import prompts as design_prompts
    from pipeline.steps.quality import prompts as quality_prompts
    from pipeline.steps.delivery import prompts as delivery_prompts

    prompt_modules = {
        Stage.CONTENT: content_prompts,
        Stage.DESIGN: design_prompts,
        Stage.QUALITY: quality_prompts,
        Stage.DELIVERY: delivery_prompts,
    }
    return {
        stage: AgentProducer.for_stage(
            stage,
            settings.producer_model,
            prompt_modules[stage].SYSTEM_PROMPT,
            prompt_modules[stage].create_user_prompt,
            timeout=settings.external_call_timeout_seconds,
        )
        for stage in stages
    }
