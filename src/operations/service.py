"""Public service interface for the Operations store.

Routers and the CLI import from here, not from operations.database
directly. Functions take an AsyncSession and never commit; the caller
owns the transaction. Every mutation of the counts behind the
automation score invalidates that entity's cached result.
"""
import logging
import re
from collections import Counter, defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, event, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.automation.cache import score_cache
from src.automation.engine import compute_automation_score, compute_automation_score_details
from src.automation.recommendations import CROSS_FUNCTIONAL_MODULE
from src.automation.types import (
    AutomationRecommendation,
    AutomationScoreDetails,
    AutomationScoreResult,
    CategoryToolCount,
    DimensionInputs,
    ModuleInput,
    ToolIntegration,
)
from src.core.models import DataFlow, IntegrationStatus, ProcessHandler
from src.core.scoring import ScoringConfig, scoring as default_scoring
from src.operations.database import (
    Activity,
    BusinessEntity,
    Category,
    ModuleProcess,
    RecommendationStatus,
    Sop,
    Tool,
    ToolIntegrationRecord,
)

logger = logging.getLogger(__name__)

# Business categories per module, seeded on a fresh install
DEFAULT_CATEGORIES = {
    "finance": ["Cash Flow", "Accounting", "Budgeting", "Financial Planning"],
    "operations": ["Project Management", "HR & Team", "Procurement", "Logistics"],
    "marketing": ["Content Creation", "Social Media", "SEO & Analytics", "Email Marketing"],
    "sales": ["CRM", "Lead Generation", "Sales Funnel", "Conversion Optimization"],
    "customer": ["Support Systems", "Customer Feedback", "Loyalty Programs", "User Experience"],
}


# --- Cache invalidation tied to the session's transaction ---

_PENDING_INVALIDATIONS = "pending_score_invalidations"
_ALL_ENTITIES = None


def _invalidate_after_transaction(sync_session):
    pending = sync_session.info.get(_PENDING_INVALIDATIONS)
    if not pending:
        return
    entity_ids = set(pending)
    pending.clear()
    if _ALL_ENTITIES in entity_ids:
        score_cache.invalidate_all()
        return
    for entity_id in entity_ids:
        score_cache.invalidate(entity_id)


def invalidate_score(session: AsyncSession, entity_id: Optional[int] = _ALL_ENTITIES):
    """
    Drop cached scores for ``entity_id`` (every entity when omitted).

    The drop happens now, so this session's own reads recompute, and again
    when the transaction commits or rolls back, so a result another session
    cached from the previously committed rows is not served afterwards.
    """
    info = session.sync_session.info
    pending = info.get(_PENDING_INVALIDATIONS)
    if pending is None:
        pending = info[_PENDING_INVALIDATIONS] = set()
        event.listen(session.sync_session, "after_commit", _invalidate_after_transaction)
        event.listen(session.sync_session, "after_rollback", _invalidate_after_transaction)
    pending.add(entity_id)

    if entity_id is _ALL_ENTITIES:
        score_cache.invalidate_all()
    else:
        score_cache.invalidate(entity_id)


# --- Entities & categories ---

async def create_entity(
    session: AsyncSession,
    name: str,
    slug: str,
    industry: Optional[str] = None,
    description: Optional[str] = None,
) -> BusinessEntity:
    entity = BusinessEntity(name=name, slug=slug, industry=industry, description=description)
    session.add(entity)
    await session.flush()
    return entity


async def get_entity(session: AsyncSession, entity_id: int) -> Optional[BusinessEntity]:
    result = await session.execute(select(BusinessEntity).where(BusinessEntity.id == entity_id))
    return result.scalar_one_or_none()


async def list_entities(session: AsyncSession) -> List[BusinessEntity]:
    result = await session.execute(select(BusinessEntity).order_by(BusinessEntity.id))
    return list(result.scalars().all())


async def create_category(session: AsyncSession, slug: str, name: str, module_id: str) -> Category:
    if module_id == CROSS_FUNCTIONAL_MODULE:
        raise ValueError(f"Module id '{module_id}' is reserved")
    category = Category(slug=slug, name=name, module_id=module_id)
    session.add(category)
    await session.flush()
    invalidate_score(session)
    return category


async def get_category(session: AsyncSession, category_id: int) -> Optional[Category]:
    return await session.get(Category, category_id)


async def list_categories(session: AsyncSession) -> List[Category]:
    result = await session.execute(select(Category).order_by(Category.id))
    return list(result.scalars().all())


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


async def seed_default_categories(session: AsyncSession) -> int:
    """Insert any missing DEFAULT_CATEGORIES. Returns the number created."""
    existing = {c.slug for c in await list_categories(session)}
    created = 0
    for module_id, names in DEFAULT_CATEGORIES.items():
        for name in names:
            slug = slugify(name)
            if slug in existing:
                continue
            session.add(Category(slug=slug, name=name, module_id=module_id))
            created += 1
    if created:
        await session.flush()
        invalidate_score(session)
        logger.info(f"Seeded {created} default categories")
    return created


# --- Counts behind the score (each mutation invalidates the cache) ---

async def add_tool(
    session: AsyncSession,
    entity_id: int,
    category_id: int,
    name: str,
    tier_slug: str = "free",
    monthly_price: Optional[float] = None,
) -> Tool:
    tool = Tool(
        entity_id=entity_id,
        category_id=category_id,
        name=name,
        tier_slug=tier_slug.strip().lower(),
        monthly_price=monthly_price,
    )
    session.add(tool)
    await session.flush()
    invalidate_score(session, entity_id)
    return tool


async def remove_tool(session: AsyncSession, entity_id: int, tool_id: int) -> bool:
    result = await session.execute(
        select(Tool).where(Tool.id == tool_id, Tool.entity_id == entity_id)
    )
    tool = result.scalar_one_or_none()
    if tool is None:
        return False

    await session.execute(
        delete(ToolIntegrationRecord).where(
            or_(
                ToolIntegrationRecord.source_tool_id == tool_id,
                ToolIntegrationRecord.target_tool_id == tool_id,
            )
        )
    )
    await session.delete(tool)
    await session.flush()
    invalidate_score(session, entity_id)
    return True


async def add_sop(
    session: AsyncSession,
    entity_id: int,
    category_id: int,
    title: str,
    steps: Optional[List[dict]] = None,
    is_ai_generated: bool = False,
) -> Sop:
    sop = Sop(
        entity_id=entity_id,
        category_id=category_id,
        title=title,
        steps=list(steps or []),
        is_ai_generated=is_ai_generated,
    )
    session.add(sop)
    await session.flush()
    invalidate_score(session, entity_id)
    return sop


async def add_integration(
    session: AsyncSession,
    entity_id: int,
    source_tool_id: int,
    target_tool_id: int,
    status: str = IntegrationStatus.ACTIVE.value,
    data_flow: str = DataFlow.ONE_WAY.value,
) -> ToolIntegrationRecord:
    """Record an integration between two of the entity's tools."""
    if source_tool_id == target_tool_id:
        raise ValueError("A tool cannot be integrated with itself")

    result = await session.execute(
        select(func.count(Tool.id)).where(
            Tool.entity_id == entity_id,
            Tool.id.in_([source_tool_id, target_tool_id]),
        )
    )
    if result.scalar() != 2:
        raise ValueError(f"Both tools must belong to entity {entity_id}")

    record = ToolIntegrationRecord(
        entity_id=entity_id,
        source_tool_id=source_tool_id,
        target_tool_id=target_tool_id,
        status=IntegrationStatus(status).value,
        data_flow=DataFlow(data_flow).value,
    )
    session.add(record)
    await session.flush()
    invalidate_score(session, entity_id)
    return record


async def add_process(
    session: AsyncSession,
    entity_id: int,
    module_id: str,
    name: str,
    handled_by: str = ProcessHandler.TEAM.value,
) -> ModuleProcess:
    process = ModuleProcess(
        entity_id=entity_id,
        module_id=module_id,
        name=name,
        handled_by=ProcessHandler(handled_by).value,
    )
    session.add(process)
    await session.flush()
    invalidate_score(session, entity_id)
    return process


# --- Engine inputs ---

async def _load_tools(session: AsyncSession, entity_id: int) -> List[Tool]:
    result = await session.execute(select(Tool).where(Tool.entity_id == entity_id).order_by(Tool.id))
    return list(result.scalars().all())


async def _load_sops(session: AsyncSession, entity_id: int) -> List[Sop]:
    result = await session.execute(select(Sop).where(Sop.entity_id == entity_id).order_by(Sop.id))
    return list(result.scalars().all())


async def _load_integrations(session: AsyncSession, entity_id: int) -> List[ToolIntegrationRecord]:
    result = await session.execute(
        select(ToolIntegrationRecord)
        .where(ToolIntegrationRecord.entity_id == entity_id)
        .order_by(ToolIntegrationRecord.id)
    )
    return list(result.scalars().all())


def _average_steps(sops: List[Sop]) -> float:
    if not sops:
        return 0.0
    return sum(len(s.steps or []) for s in sops) / len(sops)


async def build_dimension_inputs(session: AsyncSession, entity_id: int) -> DimensionInputs:
    """Aggregate an entity's rows into tenant-wide dimension inputs."""
    categories = await list_categories(session)
    tools = await _load_tools(session, entity_id)
    sops = await _load_sops(session, entity_id)
    integrations = await _load_integrations(session, entity_id)

    per_category = Counter(t.category_id for t in tools)
    category_counts = [
        CategoryToolCount(name=c.name, tool_count=per_category.get(c.id, 0), module_id=c.module_id)
        for c in categories
    ]

    return DimensionInputs.from_counts(
        total_tools=len(tools),
        total_categories=len(categories),
        categories_with_tools=sum(1 for c in category_counts if c.tool_count > 0),
        integrated_pairs=sum(1 for i in integrations if i.status == IntegrationStatus.ACTIVE.value),
        tools_by_tier=dict(Counter(t.tier_slug for t in tools)),
        sop_count=len(sops),
        average_sop_steps=_average_steps(sops),
        categories=category_counts,
    )


async def build_module_inputs(
    session: AsyncSession, entity_id: int, config: Optional[ScoringConfig] = None
) -> List[ModuleInput]:
    """One ModuleInput per configured module plus any module named only by categories."""
    config = config or default_scoring
    categories = await list_categories(session)
    tools = await _load_tools(session, entity_id)
    sops = await _load_sops(session, entity_id)
    integrations = await _load_integrations(session, entity_id)

    result = await session.execute(select(ModuleProcess).where(ModuleProcess.entity_id == entity_id))
    processes = list(result.scalars().all())

    module_of_category = {c.id: c.module_id for c in categories}
    module_of_tool = {t.id: module_of_category.get(t.category_id) for t in tools}

    module_ids = [m.id for m in config.modules]
    for category in categories:
        if category.module_id not in module_ids:
            module_ids.append(category.module_id)

    tools_per_category = Counter(t.category_id for t in tools)
    tiers_per_module: Dict[str, Counter] = defaultdict(Counter)
    for tool in tools:
        tiers_per_module[module_of_tool[tool.id]][tool.tier_slug] += 1

    sops_per_module: Dict[str, List[Sop]] = defaultdict(list)
    for sop in sops:
        sops_per_module[module_of_category.get(sop.category_id)].append(sop)

    # Integrations count towards the module of their source tool
    pairs_per_module: Counter = Counter(
        module_of_tool.get(i.source_tool_id)
        for i in integrations
        if i.status == IntegrationStatus.ACTIVE.value
    )

    automated: Counter = Counter()
    manual: Counter = Counter()
    for process in processes:
        if process.handled_by == ProcessHandler.TEAM.value:
            manual[process.module_id] += 1
        else:
            automated[process.module_id] += 1

    modules = []
    for module_id in module_ids:
        module_sops = sops_per_module.get(module_id, [])
        modules.append(ModuleInput(
            module_id=module_id,
            module_name=config.module_name(module_id),
            categories=[
                CategoryToolCount(
                    name=c.name, tool_count=tools_per_category.get(c.id, 0), module_id=module_id
                )
                for c in categories if c.module_id == module_id
            ],
            tools_by_tier=dict(tiers_per_module.get(module_id, {})),
            integrated_pairs=pairs_per_module.get(module_id, 0),
            sop_count=len(module_sops),
            average_sop_steps=_average_steps(module_sops),
            automated_process_count=automated.get(module_id, 0),
            manual_process_count=manual.get(module_id, 0),
        ))
    return modules


async def build_integration_map(session: AsyncSession, entity_id: int) -> List[ToolIntegration]:
    integrations = await _load_integrations(session, entity_id)
    tools = {t.id: t for t in await _load_tools(session, entity_id)}

    edges = []
    for record in integrations:
        source = tools.get(record.source_tool_id)
        target = tools.get(record.target_tool_id)
        if source is None or target is None:
            continue
        edges.append(ToolIntegration(
            source_tool_id=f"tool-{source.id}",
            source_tool_name=source.name,
            target_tool_id=f"tool-{target.id}",
            target_tool_name=target.name,
            integration_status=record.status,
            data_flow=record.data_flow,
        ))
    return edges


# --- Scoring ---

async def compute_entity_score(session: AsyncSession, entity_id: int) -> AutomationScoreResult:
    inputs = await build_dimension_inputs(session, entity_id)
    return compute_automation_score(inputs)


async def compute_entity_details(session: AsyncSession, entity_id: int) -> AutomationScoreDetails:
    """Fresh breakdown with persisted recommendation statuses applied."""
    modules = await build_module_inputs(session, entity_id)
    integration_map = await build_integration_map(session, entity_id)
    details = compute_automation_score_details(modules, integration_map)
    await apply_saved_statuses(session, entity_id, details)
    return details


async def get_entity_details(session: AsyncSession, entity_id: int) -> AutomationScoreDetails:
    """Cached breakdown for an entity, computed on first use."""
    details = score_cache.get(entity_id)
    if details is None:
        version = score_cache.version(entity_id)
        details = score_cache.set(
            entity_id, await compute_entity_details(session, entity_id), version=version
        )
    return details


async def apply_saved_statuses(session: AsyncSession, entity_id: int, details: AutomationScoreDetails) -> int:
    """Overlay stored flags on recommendations whose id and title both still match."""
    result = await session.execute(
        select(RecommendationStatus).where(RecommendationStatus.entity_id == entity_id)
    )
    applied = 0
    for row in result.scalars().all():
        for rec in details.iter_recommendation_copies(row.recommendation_id):
            if rec.title != row.title:
                continue
            rec.apply_status(implemented=row.implemented, in_progress=row.in_progress)
            applied += 1
    return applied


async def save_recommendation_status(
    session: AsyncSession, entity_id: int, recommendation: AutomationRecommendation
) -> RecommendationStatus:
    result = await session.execute(
        select(RecommendationStatus).where(
            RecommendationStatus.entity_id == entity_id,
            RecommendationStatus.recommendation_id == recommendation.id,
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = RecommendationStatus(entity_id=entity_id, recommendation_id=recommendation.id)
        session.add(row)
    row.title = recommendation.title
    row.implemented = recommendation.implemented
    row.in_progress = recommendation.in_progress
    await session.flush()
    return row


async def record_activity(
    session: AsyncSession,
    entity_id: Optional[int],
    activity_type: str,
    description: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> Activity:
    activity = Activity(
        entity_id=entity_id, type=activity_type, description=description, metadata_json=metadata
    )
    session.add(activity)
    await session.flush()
    return activity


async def get_recent_activity(session: AsyncSession, entity_id: int, limit: int = 10) -> List[Dict[str, Any]]:
    result = await session.execute(
        select(Activity)
        .where(Activity.entity_id == entity_id)
        .order_by(Activity.id.desc())
        .limit(limit)
    )
    return [a.to_dict() for a in result.scalars().all()]


# --- Dashboard ---

async def get_dashboard_stats(session: AsyncSession, entity_id: int) -> Dict[str, Any]:
    """Totals, per-category tool counts/costs and the automation score summary."""
    categories = await list_categories(session)
    tools = await _load_tools(session, entity_id)
    sop_count = await session.scalar(select(func.count(Sop.id)).where(Sop.entity_id == entity_id))

    tools_by_category = {}
    for category in categories:
        in_category = [t for t in tools if t.category_id == category.id]
        tools_by_category[category.slug] = {
            "count": len(in_category),
            "cost": round(sum(t.monthly_price or 0 for t in in_category), 2),
        }

    result = await compute_entity_score(session, entity_id)

    return {
        "stats": {
            "totalTools": len(tools),
            "totalMonthlyCost": round(sum(t.monthly_price or 0 for t in tools), 2),
            "totalSops": sop_count or 0,
            "automationScore": result.score,
            "automationScoreDescription": result.description,
        },
        "componentScores": result.component_scores.to_json_dict(),
        "explanations": result.explanations,
        "toolsByCategory": tools_by_category,
        "automationRecommendations": [r.to_json_dict() for r in result.recommendations],
    }
