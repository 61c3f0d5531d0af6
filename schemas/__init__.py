"""
Pydantic schemas for request/response validation.
"""

from schemas.pipeline import (
    CampaignResponse,
    CapacityResponse,
    StartCampaignRequest,
    ValidateHandoffRequest,
    ValidationResponse,
)

__all__ = [
    "CampaignResponse",
    "CapacityResponse",
    "StartCampaignRequest",
    "ValidateHandoffRequest",
    "ValidationResponse",
]
