"""
Automation Router
Automation score, module breakdown and recommendation status updates.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from src.automation.cache import AutomationScoreCache
from src.automation.engine import RecommendationNotFound, compute_automation_score
from src.automation.types import (
    AutomationRecommendation,
    AutomationScoreDetails,
    AutomationScoreResult,
    DimensionInputs,
    RecommendationUpdate,
)
from src.core.database import get_db
from src.operations import service
from src.operations.database import BusinessEntity
from src.web.dependencies import get_business_entity, get_score_cache
from src.web.responses import success

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Automation"]
)


class ComputeScoreRequest(DimensionInputs):
    """Stateless scoring request; at least one category is required."""

    @model_validator(mode="after")
    def validate_categories(self):
        if self.tools_coverage.total_categories <= 0:
            raise ValueError("toolsCoverage.totalCategories must be greater than 0")
        return self


@router.get("/automation-score", response_model=AutomationScoreDetails)
async def get_automation_score(
    entity: BusinessEntity = Depends(get_business_entity),
    session: AsyncSession = Depends(get_db),
):
    """
    Get the automation score breakdown for a business entity.

    Computed on first request and served from the per-entity cache until
    the entity's tools, SOPs, integrations or processes change.
    """
    return await service.get_entity_details(session, entity.id)


@router.post("/automation-score/compute", response_model=AutomationScoreResult)
async def compute_score(request: ComputeScoreRequest):
    """Score a set of dimension counts without touching the database."""
    return compute_automation_score(request)


@router.post("/automation-score/invalidate")
async def invalidate_score(
    entity: BusinessEntity = Depends(get_business_entity),
    cache: AutomationScoreCache = Depends(get_score_cache),
):
    removed = cache.invalidate(entity.id)
    return success(
        "Cache invalidated" if removed else "Nothing cached",
        business_entity_id=entity.id,
        invalidated=removed,
    )


@router.patch("/automation-recommendations/{recommendation_id}", response_model=AutomationRecommendation)
async def update_automation_recommendation(
    recommendation_id: str,
    update: RecommendationUpdate,
    entity: BusinessEntity = Depends(get_business_entity),
    session: AsyncSession = Depends(get_db),
    cache: AutomationScoreCache = Depends(get_score_cache),
):
    """Mark a recommendation implemented or in progress."""
    details = await service.get_entity_details(session, entity.id)

    try:
        recommendation = cache.update_recommendation(
            entity.id, recommendation_id, update, details=details
        )
    except RecommendationNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        await service.save_recommendation_status(session, entity.id, recommendation)

        if recommendation.implemented:
            await service.record_activity(
                session,
                entity.id,
                "automation",
                f"Implemented automation: {recommendation.title}",
                {"recommendationId": recommendation.id, "moduleId": recommendation.module_id},
            )
        elif recommendation.in_progress:
            await service.record_activity(
                session,
                entity.id,
                "automation",
                f"Started automation: {recommendation.title}",
                {"recommendationId": recommendation.id, "moduleId": recommendation.module_id},
            )

        await session.commit()
    except Exception as e:
        await session.rollback()
        # The cached copy already carries the unsaved flags
        cache.invalidate(entity.id)
        logger.exception(f"Failed to persist status of recommendation {recommendation_id}")
        raise HTTPException(status_code=500, detail=f"Failed to save recommendation status: {e}")
    logger.info(
        f"Recommendation {recommendation_id} for entity {entity.id}: "
        f"implemented={recommendation.implemented} inProgress={recommendation.in_progress}"
    )
    return recommendation
