"""
pydantic-ai backed AICorrector.

Sends the invalid package, the validation errors and the correction
suggestions to a model and asks for the full corrected package back.
"""

import json
from typing import Any, Dict, Optional, Sequence, Tuple, Type

import logfire
from pydantic import BaseModel
from pydantic_ai import Agent

from pipeline.models.core import (
    CorrectionResponse,
    CorrectionSuggestion,
    Stage,
    ValidationIssue,
)
from pipeline.models.packages import PACKAGE_MODELS, stage_of
from pipeline.validation.schema_errors import as_mapping, get_path
from utils.llm_agent import ModelLike, create_agent


SYSTEM_PROMPT = """You fix email campaign handoff packages that failed validation.

You receive the package as JSON, the list of validation errors and a list of
suggestions. Return the complete corrected package:
- change only what is needed to resolve the listed errors
- never change trace_id, timestamp or original_content
- keep every other field exactly as it was"""


def create_correction_prompt(
    invalid_package: Any,
    errors: Sequence[ValidationIssue],
    suggestions: Sequence[CorrectionSuggestion],
) -> str:
    package_json = json.dumps(as_mapping(invalid_package), ensure_ascii=False, indent=2)
    error_lines = "\n".join(
        f"- [{e.severity.value}] {e.field} ({e.error_type.value}): {e.message}" for e in errors
    )
    suggestion_lines = "\n".join(f"- {s.field}: {s.suggestion}" for s in suggestions) or "- none"
    return f"""Correct this package.

PACKAGE (JSON):
{package_json}

ERRORS:
{error_lines}

SUGGESTIONS:
{suggestion_lines}"""


def changed_fields(
    before: Any,
    after: Any,
    errors: Sequence[ValidationIssue],
) -> Tuple[str, ...]:
    """Error fields whose value differs between the invalid and the returned package."""
    old, new = as_mapping(before), as_mapping(after)
    fields = dict.fromkeys(e.field for e in errors)
    return tuple(
        f"{path}: {get_path(old, path)!r} -> {get_path(new, path)!r}"
        for path in fields
        if get_path(old, path) != get_path(new, path)
    )


class AgentCorrector:
    """
    AICorrector implementation with one agent per package type.

    Agents are created lazily the first time a stage needs correction.
    """

    def __init__(self, model: ModelLike, timeout: Optional[float] = None):
        self.model = model
        self.timeout = timeout
        self._agents: Dict[Stage, Agent] = {}

    def agent_for(self, stage: Stage) -> Agent:
        if stage not in self._agents:
            output_type: Type[BaseModel] = PACKAGE_MODELS[stage]
            self._agents[stage] = create_agent(
                model=self.model,
                output_type=output_type,
                system_prompt=SYSTEM_PROMPT,
                temperature=0.1,
                timeout=self.timeout,
            )
        return self._agents[stage]

    async def correct(
        self,
        invalid_package: Any,
        errors: Sequence[ValidationIssue],
        suggestions: Sequence[CorrectionSuggestion],
    ) -> CorrectionResponse:
        stage = stage_of(invalid_package)
        if stage is None:
            logfire.warning("Corrector could not identify the package type")
            return CorrectionResponse(success=False)

        result = await self.agent_for(stage).run(
            create_correction_prompt(invalid_package, errors, suggestions)
        )

        logfire.info(
            "Corrector returned package",
            stage=stage.value,
            error_count=len(errors),
        )
        return CorrectionResponse(
            success=True,
            corrected_data=result.output,
            corrections=changed_fields(invalid_package, result.output, errors),
        )
