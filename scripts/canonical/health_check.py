import sys
import os
sys.path.append(os.getcwd())

import asyncio
import logging
from sqlalchemy import select, func

from src.automation.cache import score_cache
from src.core.config import settings
from src.core.database import async_session_factory, init_db
from src.core.scoring import scoring
from src.operations.database import (
    BusinessEntity, Category, RecommendationStatus, Sop, Tool, ToolIntegrationRecord,
)
from src.operations.service import compute_entity_details

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def _pct(part, total):
    if not total:
        return "0%"
    return f"{100 * part / total:.0f}%"


async def run_health_check():
    print("\nXXX DMPHQ AUTOMATION HEALTH CHECK XXX\n")

    print("--- CONFIGURATION ---")
    print(f"Environment:     {settings.environment}")
    print(f"Database:        {settings.database_url.split('@')[-1]}")
    print(f"Scoring config:  {scoring.name} v{scoring.version}")
    print(f"Weights:         {scoring.component_weights}")
    print(f"Cache enabled:   {score_cache.enabled}")

    await init_db()

    async with async_session_factory() as session:
        print("\n--- OPERATIONS STORE ---")
        entities = await session.scalar(select(func.count(BusinessEntity.id)))
        categories = await session.scalar(select(func.count(Category.id)))
        tools = await session.scalar(select(func.count(Tool.id)))
        sops = await session.scalar(select(func.count(Sop.id)))
        integrations = await session.scalar(select(func.count(ToolIntegrationRecord.id)))
        statuses = await session.scalar(select(func.count(RecommendationStatus.id)))

        print(f"Business Entities:  {entities}")
        print(f"Categories:         {categories}")
        print(f"Tools:              {tools}")
        print(f"SOPs:               {sops}")
        print(f"Integrations:       {integrations}")
        print(f"Tracked Recs:       {statuses}")

        if categories == 0:
            print("  [!] WARNING: No categories. Run scripts/canonical/seed_categories.py first.")

        print("\n--- AUTOMATION SCORES ---")
        result = await session.execute(select(BusinessEntity).order_by(BusinessEntity.id))
        for entity in result.scalars().all():
            try:
                details = await compute_entity_details(session, entity.id)
            except Exception as e:
                print(f"  Error scoring {entity.slug}: {e}")
                continue
            done = sum(1 for r in details.recommendations if r.implemented)
            print(
                f"{entity.slug:<24} overall={details.overall_score:>3} "
                f"dimension={details.dimension_score:>3} {details.description:<22} "
                f"recs={len(details.recommendations)} implemented={done} "
                f"({_pct(done, len(details.recommendations))})"
            )

    print("\nXXX END OF REPORT XXX\n")


if __name__ == "__main__":
    asyncio.run(run_health_check())
