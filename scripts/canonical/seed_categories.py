import asyncio
import sys
import os
import logging

sys.path.append(os.getcwd())

from src.core.config import settings
from src.core.database import get_async_db, init_db
from src.operations.service import seed_default_categories

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(settings.logs_dir / "seed_categories.log", mode="a"),
    ],
)
logger = logging.getLogger("dmphq.seed_categories")


async def main():
    await init_db()
    async with get_async_db() as session:
        created = await seed_default_categories(session)
    logger.info(f"Done. {created} categories created.")


if __name__ == "__main__":
    asyncio.run(main())
