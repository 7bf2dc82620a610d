"""
API v1 router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import adaptation, analytics, planning, sessions

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(
    analytics.router, prefix="/analytics", tags=["Analytics"]
)
api_router.include_router(
    planning.router, prefix="/planning", tags=["Planning"]
)
api_router.include_router(
    sessions.router, prefix="/sessions", tags=["Sessions"]
)
api_router.include_router(
    adaptation.router, prefix="/adaptation", tags=["Adaptation"]
)
