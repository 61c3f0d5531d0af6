"""
API route handlers.
"""

from api.routes.campaign import router as campaign_router

__all__ = ["campaign_router"]
