"""Health check endpoint.

Simple GET endpoint that reports the process is alive and whether its
dependencies (database, Redis) are reachable. Never requires auth and
always answers 200 while the process is up.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from docvault import __version__
from docvault.db.engine import get_db
from docvault.schemas.common import Envelope, ok

router = APIRouter()


@router.get("/health", response_model=Envelope[dict])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    # Redis is optional; only rate limiting uses it
    try:
        from docvault.db.redis import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"unavailable: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return ok({"status": status, **checks})
