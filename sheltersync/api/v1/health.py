"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from sheltersync.api import deps
from sheltersync.core.config import get_settings

router = APIRouter()


@router.get("", summary="Service health status")
async def healthcheck(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> dict[str, str]:
    """Return application health metadata and database reachability."""
    settings = get_settings()
    await session.execute(text("SELECT 1"))
    return {
        "status": "ok",
        "service": settings.app_name,
        "database": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.app_env,
    }
