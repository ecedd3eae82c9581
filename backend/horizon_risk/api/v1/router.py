"""
Main API router for v1 endpoints.
"""

from fastapi import APIRouter

from horizon_risk.api.v1.endpoints import moderation, trust

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(trust.router, prefix="/trust-score", tags=["trust-score"])
api_router.include_router(
    moderation.router, prefix="/moderate-campaign", tags=["moderation"]
)
