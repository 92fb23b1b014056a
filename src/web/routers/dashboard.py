"""Dashboard router: stats and activity feed."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.schemas import StandardResponse
from src.operations import service
from src.operations.database import BusinessEntity
from src.web.dependencies import get_business_entity

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/dashboard",
    tags=["Dashboard"]
)


@router.get("/stats", response_model=StandardResponse[dict], summary="Dashboard Stats")
async def get_dashboard_stats(
    entity: BusinessEntity = Depends(get_business_entity),
    session: AsyncSession = Depends(get_db),
):
    """Totals, per-category tool counts/costs and the automation score summary."""
    return StandardResponse(data=await service.get_dashboard_stats(session, entity.id))


@router.get("/activity", response_model=StandardResponse[list], summary="Recent Activity")
async def get_dashboard_activity(
    limit: int = 10,
    entity: BusinessEntity = Depends(get_business_entity),
    session: AsyncSession = Depends(get_db),
):
    return StandardResponse(data=await service.get_recent_activity(session, entity.id, limit))
