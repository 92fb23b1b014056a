"""
Operations Router
Business entities, categories and the per-entity counts behind the
automation score (tools, SOPs, integrations, module processes).
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.models import DataFlow, IntegrationStatus, ProcessHandler
from src.core.schemas import StandardResponse
from src.operations import service
from src.web.dependencies import resolve_entity

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Operations"]
)


# --- Schemas ---

class EntityCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    industry: Optional[str] = None
    description: Optional[str] = None


class CategoryCreate(BaseModel):
    slug: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    module_id: str = Field(..., min_length=1)


class ToolCreate(BaseModel):
    category_id: int
    name: str = Field(..., min_length=1)
    tier_slug: str = "free"
    monthly_price: Optional[float] = Field(default=None, ge=0)


class SopCreate(BaseModel):
    category_id: int
    title: str = Field(..., min_length=1)
    steps: List[dict] = Field(default_factory=list)
    is_ai_generated: bool = False


class IntegrationCreate(BaseModel):
    source_tool_id: int
    target_tool_id: int
    status: IntegrationStatus = IntegrationStatus.ACTIVE
    data_flow: DataFlow = DataFlow.ONE_WAY


class ProcessCreate(BaseModel):
    module_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    handled_by: ProcessHandler = ProcessHandler.TEAM


async def _require_category(session: AsyncSession, category_id: int):
    category = await service.get_category(session, category_id)
    if category is None:
        raise HTTPException(status_code=404, detail=f"Category {category_id} not found")
    return category


# --- Entities ---

@router.get("/entities", response_model=StandardResponse[list])
async def list_entities(session: AsyncSession = Depends(get_db)):
    entities = await service.list_entities(session)
    return StandardResponse(data=[e.to_dict() for e in entities])


@router.post("/entities", response_model=StandardResponse[dict])
async def create_entity(request: EntityCreate, session: AsyncSession = Depends(get_db)):
    try:
        entity = await service.create_entity(
            session, request.name, request.slug, request.industry, request.description
        )
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail=f"Entity slug '{request.slug}' already exists")

    logger.info(f"Created business entity {entity.id} ({entity.slug})")
    return StandardResponse(data=entity.to_dict(), message="Entity created")


@router.get("/entities/{entity_id}/activity", response_model=StandardResponse[list])
async def get_entity_activity(entity_id: int, limit: int = 10, session: AsyncSession = Depends(get_db)):
    await resolve_entity(entity_id, session)
    return StandardResponse(data=await service.get_recent_activity(session, entity_id, limit))


# --- Categories ---

@router.get("/categories", response_model=StandardResponse[list])
async def list_categories(session: AsyncSession = Depends(get_db)):
    categories = await service.list_categories(session)
    return StandardResponse(data=[c.to_dict() for c in categories])


@router.post("/categories", response_model=StandardResponse[dict])
async def create_category(request: CategoryCreate, session: AsyncSession = Depends(get_db)):
    try:
        category = await service.create_category(session, request.slug, request.name, request.module_id)
        await session.commit()
    except ValueError as e:
        await session.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail=f"Category slug '{request.slug}' already exists")
    return StandardResponse(data=category.to_dict(), message="Category created")


# --- Tech stack ---

@router.post("/entities/{entity_id}/tools", response_model=StandardResponse[dict])
async def add_tool(entity_id: int, request: ToolCreate, session: AsyncSession = Depends(get_db)):
    """Adopt a tool into the entity's tech stack."""
    await resolve_entity(entity_id, session)
    await _require_category(session, request.category_id)

    tool = await service.add_tool(
        session, entity_id, request.category_id, request.name, request.tier_slug, request.monthly_price
    )
    await session.commit()
    return StandardResponse(data=tool.to_dict(), message="Tool added")


@router.delete("/entities/{entity_id}/tools/{tool_id}", response_model=StandardResponse[dict])
async def remove_tool(entity_id: int, tool_id: int, session: AsyncSession = Depends(get_db)):
    await resolve_entity(entity_id, session)
    if not await service.remove_tool(session, entity_id, tool_id):
        raise HTTPException(status_code=404, detail=f"Tool {tool_id} not found")
    await session.commit()
    return StandardResponse(data={"tool_id": tool_id}, message="Tool removed")


@router.post("/entities/{entity_id}/sops", response_model=StandardResponse[dict])
async def add_sop(entity_id: int, request: SopCreate, session: AsyncSession = Depends(get_db)):
    await resolve_entity(entity_id, session)
    await _require_category(session, request.category_id)

    sop = await service.add_sop(
        session, entity_id, request.category_id, request.title, request.steps, request.is_ai_generated
    )
    await session.commit()
    return StandardResponse(data=sop.to_dict(), message="SOP created")


@router.post("/entities/{entity_id}/integrations", response_model=StandardResponse[dict])
async def add_integration(entity_id: int, request: IntegrationCreate, session: AsyncSession = Depends(get_db)):
    await resolve_entity(entity_id, session)
    try:
        record = await service.add_integration(
            session,
            entity_id,
            request.source_tool_id,
            request.target_tool_id,
            request.status.value,
            request.data_flow.value,
        )
        await session.commit()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail="Integration between these tools already exists")
    return StandardResponse(data=record.to_dict(), message="Integration recorded")


@router.post("/entities/{entity_id}/processes", response_model=StandardResponse[dict])
async def add_process(entity_id: int, request: ProcessCreate, session: AsyncSession = Depends(get_db)):
    await resolve_entity(entity_id, session)
    process = await service.add_process(
        session, entity_id, request.module_id, request.name, request.handled_by.value
    )
    await session.commit()
    return StandardResponse(data=process.to_dict(), message="Process recorded")
