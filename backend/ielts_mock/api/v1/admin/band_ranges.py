"""
Band table admin endpoints.

Each test carries its own raw score to band conversion table. Replacing a
table drops the cached copy so the next submission scores against it.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_mock.api.v1.sessions import get_test_or_404
from ielts_mock.core.scoring import DEFAULT_BAND_SCORE_RANGES, BandRange
from ielts_mock.models import User, get_db
from ielts_mock.schemas.results import (
    BandRangeItem,
    BandRangeTable,
    BandRangeTableResponse,
)
from ielts_mock.services import scoring_service

from ._dependencies import logger, require_test_author

router = APIRouter()


def _table_response(test_id: int, ranges) -> BandRangeTableResponse:
    return BandRangeTableResponse(
        test_id=test_id,
        ranges=[
            BandRangeItem(min_score=entry.min_score, band=entry.band)
            for entry in ranges
        ],
    )


@router.get(
    "/tests/{test_id}/band-ranges",
    response_model=BandRangeTableResponse,
)
async def get_band_ranges(
    test_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_test_author),
):
    """Get a test's band table, highest threshold first."""
    await get_test_or_404(db, test_id)
    ranges = await scoring_service.get_band_score_ranges(db, test_id)
    return _table_response(test_id, ranges)


@router.put(
    "/tests/{test_id}/band-ranges",
    response_model=BandRangeTableResponse,
)
async def replace_band_ranges(
    test_id: int,
    request: BandRangeTable,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_test_author),
):
    """
    Replace a test's band table.

    Thresholds must be unique. The table is stored highest threshold first;
    a raw score below every threshold gets band 0.

    Example:
        ```
        curl -X PUT ".../v1/admin/tests/1/band-ranges" \
          -H "Authorization: Bearer $TOKEN" \
          -d '{"ranges": [{"min_score": 39, "band": 9.0}, {"min_score": 37, "band": 8.5}]}'
        ```
    """
    test = await get_test_or_404(db, test_id)
    ranges = [
        BandRange(min_score=item.min_score, band=item.band) for item in request.ranges
    ]
    stored = await scoring_service.replace_band_score_ranges(db, test, ranges)
    logger.info(
        f"User {current_user.id} replaced band table for test {test_id}",
        extra={"test_id": test_id},
    )
    return _table_response(test_id, stored)


@router.post(
    "/tests/{test_id}/band-ranges/defaults",
    response_model=BandRangeTableResponse,
)
async def apply_default_band_ranges(
    test_id: int,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(require_test_author),
):
    """Replace a test's band table with the standard 40-question table."""
    test = await get_test_or_404(db, test_id)
    stored = await scoring_service.replace_band_score_ranges(
        db, test, DEFAULT_BAND_SCORE_RANGES
    )
    return _table_response(test_id, stored)
