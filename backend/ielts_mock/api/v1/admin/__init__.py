"""
Admin API endpoints.

All endpoints require an instructor or admin bearer token.

Submodules:
    - band_ranges: Per-test raw score to band conversion tables
"""
from fastapi import APIRouter

from . import band_ranges

router = APIRouter()

router.include_router(
    band_ranges.router,
    tags=["Admin - Band Ranges"],
)
