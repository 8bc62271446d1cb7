"""
Liveness and readiness endpoints.

/health runs a trivial query so a deployment can tell an API that is up
from one that can actually record results. /ping never touches the
database.
"""
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ielts_mock.core import settings
from ielts_mock.core.datetime_utils import utc_now
from ielts_mock.models import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Health check could not reach the database: {e}")
        return "unavailable"
    return "ok"


@router.get("/health")
async def health_check(response: Response, db: AsyncSession = Depends(get_db)):
    """
    Report service identity and database reachability.

    Answers 503 with status "degraded" while the database is unreachable.
    """
    database = await _database_status(db)
    if database != "ok":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "database": database,
        "environment": settings.ENV,
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@router.get("/ping")
async def ping():
    return {"message": "pong"}
