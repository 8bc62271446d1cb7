"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from ielts_mock.api.v1 import admin, evaluation, health, results, sessions

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_router.include_router(
    evaluation.router, prefix="/evaluations", tags=["evaluations"]
)
api_router.include_router(results.router, prefix="/results", tags=["results"])
api_router.include_router(admin.router, prefix="/admin")
