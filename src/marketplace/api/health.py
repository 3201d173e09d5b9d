"""
marketplace/api/health.py — Health check endpoint.

GET /api/v1/health — checks that the users store is PostgreSQL and reachable.
"""

from fastapi import APIRouter, Depends

from marketplace.dependencies import get_user_repo

router = APIRouter(tags=["health"])


@router.get("/health", summary="Marketplace health check")
async def health(users=Depends(get_user_repo)):
    """Reports ``degraded`` when the DB is down or the memory store is active."""
    db_ok = await users.ping()
    if db_ok:
        database = "connected"
    elif users.backend == "memory":
        database = "memory"
    else:
        database = "disconnected"
    return {
        "status": "healthy" if db_ok else "degraded",
        "database": database,
        "service": "marketplace",
    }
