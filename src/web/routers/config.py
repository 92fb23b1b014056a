"""
Config Router
Exposes the active scoring configuration.
"""
from fastapi import APIRouter

from src.automation.cache import score_cache
from src.core.config import settings
from src.core.scoring import scoring

router = APIRouter(
    prefix="/config",
    tags=["Config"]
)


@router.get("/scoring")
async def get_scoring_config():
    """
    Get the active automation scoring configuration.
    Returns component weights, tier weights, description tiers and modules.
    """
    return scoring.to_summary()


@router.get("/cache")
async def get_cache_stats():
    return {"environment": settings.environment, **score_cache.stats()}
