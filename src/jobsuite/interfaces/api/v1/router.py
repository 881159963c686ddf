"""
API v1 router configuration.
"""

from fastapi import APIRouter

from jobsuite.domains.interview.interfaces.api.interview_endpoints import router as interview_router


def create_v1_router() -> APIRouter:
    """Create the v1 API router with all endpoints."""
    router = APIRouter()

    router.include_router(interview_router)  # Already has /interviews prefix

    return router
