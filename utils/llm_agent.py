"""Factory for the pydantic-ai agents behind stage producers and the corrector."""

import logging
from typing import Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.models import Model

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

ModelLike = Union[str, Model]


def create_agent(
    model: ModelLike,
    output_type: Type[T],
    system_prompt: str,
    temperature: float = 0.4,
    max_tokens: int = 8000,
    retries: int = 1,
    timeout: Optional[float] = None,
) -> Agent[None, T]:
    """
    Create a pydantic-ai Agent whose output is validated as output_type.

    Args:
        model: Model name ("anthropic:...") or a pydantic-ai Model instance
        output_type: Pydantic package model the agent must return
        system_prompt: Stage-specific instructions
        retries: Output validation retries inside pydantic-ai; handoff
            correction is bounded separately by CorrectionLoop
    """
    if not (isinstance(output_type, type) and issubclass(output_type, BaseModel)):
        raise ValueError(f"output_type must be a Pydantic BaseModel subclass, got {output_type}")

    model_settings = {
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if timeout is not None:
        model_settings["timeout"] = timeout

    agent = Agent(
        model=model,
        output_type=output_type,
        system_prompt=system_prompt,
        retries=retries,
        model_settings=model_settings,
    )

    logger.debug(
        "Created agent: model=%s, output_type=%s, temperature=%s, max_tokens=%s, retries=%s",
        model if isinstance(model, str) else type(model).__name__,
        output_type.__name__,
        temperature,
        max_tokens,
        retries,
    )

    return agent
