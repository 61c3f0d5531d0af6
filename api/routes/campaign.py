"""
Campaign pipeline API endpoints.

Thin layer over PipelineOrchestrator: start, advance and inspect campaigns,
validate single handoff candidates, report capacity.
"""

from fastapi import APIRouter, HTTPException, status
import logfire

from api.dependencies import Orchestrator
from pipeline.core.exceptions import CampaignNotFoundError, InvalidTransitionError
from pipeline.models.core import Stage
from schemas.pipeline import (
    CampaignResponse,
    CapacityResponse,
    StartCampaignRequest,
    ValidateHandoffRequest,
    ValidationResponse,
)


router = APIRouter(prefix="/api", tags=["Campaign Pipeline"])


def _not_found(e: CampaignNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _conflict(e: InvalidTransitionError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/campaigns", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
async def start_campaign(request: StartCampaignRequest, orchestrator: Orchestrator):
    """
    Register a campaign and optionally run it to a terminal state.

    Raises:
        HTTPException 409: If the campaign id is already in use
    """
    with logfire.span("api.start_campaign", campaign_id=request.campaign_id):
        try:
            snapshot = orchestrator.start_campaign(
                request.brief,
                campaign_id=request.campaign_id,
                trace_id=request.trace_id,
            )
        except InvalidTransitionError as e:
            raise _conflict(e)

        if request.run_to_completion:
            snapshot = await orchestrator.run(snapshot.campaign_id)

        return snapshot.to_dict()


@router.post("/campaigns/{campaign_id}/advance", response_model=CampaignResponse)
async def advance_campaign(campaign_id: str, orchestrator: Orchestrator):
    """
    Run the next stage of a campaign.

    Raises:
        HTTPException 404: Unknown campaign
        HTTPException 409: Campaign already completed, failed or cancelled
    """
    with logfire.span("api.advance_campaign", campaign_id=campaign_id):
        try:
            snapshot = await orchestrator.advance(campaign_id)
        except CampaignNotFoundError as e:
            raise _not_found(e)
        except InvalidTransitionError as e:
            raise _conflict(e)
        return snapshot.to_dict()


@router.post("/campaigns/{campaign_id}/cancel", response_model=CampaignResponse)
async def cancel_campaign(campaign_id: str, orchestrator: Orchestrator):
    with logfire.span("api.cancel_campaign", campaign_id=campaign_id):
        try:
            snapshot = await orchestrator.cancel(campaign_id)
        except CampaignNotFoundError as e:
            raise _not_found(e)
        except InvalidTransitionError as e:
            raise _conflict(e)
        return snapshot.to_dict()


@router.get("/campaigns/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(campaign_id: str, orchestrator: Orchestrator):
    try:
        return orchestrator.get_state(campaign_id).to_dict()
    except CampaignNotFoundError as e:
        raise _not_found(e)


@router.post("/handoffs/{stage}/validate", response_model=ValidationResponse)
async def validate_handoff(stage: Stage, request: ValidateHandoffRequest, orchestrator: Orchestrator):
    """
    Validate a candidate package for a stage without changing any campaign.

    Invalid packages return 200 with is_valid=false and the full error list.
    """
    with logfire.span("api.validate_handoff", stage=stage.value, campaign_id=request.campaign_id):
        try:
            result = orchestrator.submit(request.package, stage, campaign_id=request.campaign_id)
        except CampaignNotFoundError as e:
            raise _not_found(e)
        return result.to_dict()


@router.get("/capacity", response_model=CapacityResponse)
async def get_capacity(orchestrator: Orchestrator):
    return orchestrator.capacity()
