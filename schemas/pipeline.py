"""
Pydantic schemas for campaign pipeline API endpoints.

These models validate API requests and responses for starting, advancing
and inspecting campaigns, and for stateless handoff validation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field



# ===================================================================
# REQUEST SCHEMAS
# ===================================================================

class StartCampaignRequest(BaseModel):
    """
    Request body for POST /api/campaigns

    Registers a campaign; stages run on /advance.
    """

    brief: Dict[str, Any] = Field(
        ...,
        description="Campaign brief handed to the content stage (topic, audience, language, ...)"
    )

    campaign_id: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Optional caller-chosen campaign id"
    )

    trace_id: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Optional trace identifier shared by every package of the run"
    )

    run_to_completion: bool = Field(
        default=False,
        description="Advance through every stage before responding"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "brief": {
                    "topic": "Summer flights to Sochi",
                    "target_audience": "families",
                    "language": "en",
                },
                "run_to_completion": False,
            }
        }
    )


class ValidateHandoffRequest(BaseModel):
    """Request body for POST /api/handoffs/{stage}/validate"""

    package: Dict[str, Any] = Field(..., description="Raw candidate package")
    campaign_id: Optional[str] = Field(
        default=None,
        description="Check chain consistency against this campaign's validated history"
    )


# ===================================================================
# RESPONSE SCHEMAS
# ===================================================================

class ValidationIssueResponse(BaseModel):
    field: str
    error_type: str
    message: str
    severity: str
    current_value: Any = None
    expected_value: Any = None


class CorrectionSuggestionResponse(BaseModel):
    field: str
    suggestion: str
    issue: str = ""
    priority: str = "low"


class ValidationResponse(BaseModel):
    """Result of validating one candidate package."""

    is_valid: bool
    handoff_type: str
    errors: List[ValidationIssueResponse] = []
    warnings: List[str] = []
    correction_suggestions: List[CorrectionSuggestionResponse] = []


class QualityReportResponse(BaseModel):
    overall_score: int
    approval_status: str
    sub_scores: Dict[str, int]
    recommendations: List[str] = []
    summary_stats: Dict[str, int] = {}


class CampaignResponse(BaseModel):
    """
    Read-only campaign view.

    A failed campaign exposes its complete final errors list; a completed
    one exposes the delivery package and its approval verdict.
    """

    campaign_id: str
    trace_id: str
    state: str
    errors: List[ValidationIssueResponse] = []
    stages_completed: List[str] = []
    last_validated_package: Optional[Dict[str, Any]] = None
    quality_report: Optional[QualityReportResponse] = None
    degraded_stages: List[str] = []
    failed_stage: Optional[str] = None
    failure_reason: Optional[str] = None
    correction_attempts: Dict[str, int] = {}


class CapacityResponse(BaseModel):
    active_workers: int = Field(..., ge=4, le=8)
    in_flight_stages: int
    processing_campaigns: int
    total_campaigns: int
