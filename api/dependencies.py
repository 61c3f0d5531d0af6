"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from pipeline.core.runner import PipelineOrchestrator


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    """
    Return the orchestrator created at startup.

    Raises:
        HTTPException: 503 if the pipeline was not initialised
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline is not initialised",
        )
    return orchestrator


# Type alias for dependency injection
Orchestrator = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]
