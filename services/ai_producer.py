"""
pydantic-ai backed GenerativeProducer.

One AgentProducer per stage; the agent's structured output is the stage's
package model, so pydantic-ai already rejects obviously malformed answers
before the handoff validator sees them.
"""

from typing import Callable, Optional

import logfire
from pydantic_ai import Agent

from pipeline.models.core import Stage, StageContext
from pipeline.models.packages import PACKAGE_MODELS
from utils.llm_agent import ModelLike, create_agent

PromptBuilder = Callable[[StageContext], str]


class AgentProducer:
    """Produces a raw candidate for one stage with a pydantic-ai agent."""

    def __init__(self, stage: Stage, agent: Agent, prompt_builder: PromptBuilder):
        self.stage = Stage(stage)
        self.agent = agent
        self.prompt_builder = prompt_builder

    @classmethod
    def for_stage(
        cls,
        stage: Stage,
        model: ModelLike,
        system_prompt: str,
        prompt_builder: PromptBuilder,
        timeout: Optional[float] = None,
    ) -> "AgentProducer":
        agent = create_agent(
            model=model,
            output_type=PACKAGE_MODELS[Stage(stage)],
            system_prompt=system_prompt,
            timeout=timeout,
        )
        return cls(stage, agent, prompt_builder)

    async def produce(self, context: StageContext):
        logfire.info(
            "Running producer agent",
            stage=self.stage.value,
            campaign_id=context.campaign_id,
        )
        result = await self.agent.run(self.prompt_builder(context))
        return result.output
