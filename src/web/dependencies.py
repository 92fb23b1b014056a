"""Shared dependencies for the DMPHQ API routers."""

import logging

from fastapi import Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.automation.cache import AutomationScoreCache, score_cache
from src.core.database import get_db
from src.operations.database import BusinessEntity
from src.operations.service import get_entity

logger = logging.getLogger(__name__)


def get_score_cache() -> AutomationScoreCache:
    return score_cache


async def resolve_entity(entity_id: int, session: AsyncSession) -> BusinessEntity:
    entity = await get_entity(session, entity_id)
    if entity is None:
        raise HTTPException(status_code=404, detail=f"Business entity {entity_id} not found")
    return entity


async def get_business_entity(
    business_entity_id: int = Query(..., alias="businessEntityId", ge=1),
    session: AsyncSession = Depends(get_db),
) -> BusinessEntity:
    """Resolve the ``businessEntityId`` query parameter or 404."""
    return await resolve_entity(business_entity_id, session)
