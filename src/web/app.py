from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import contextlib
import logging

from src.core.config import settings
from src.core.database import init_db
from src.core.scoring import scoring

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="DMPHQ Automation Score",
    description="Automation score, module breakdown and recommendations for business entities",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Automation", "description": "Automation score and recommendations"},
        {"name": "Dashboard", "description": "Dashboard statistics and activity feed"},
        {"name": "Operations", "description": "Entities, categories, tools, SOPs and integrations"},
        {"name": "Config", "description": "Active scoring configuration"},
    ]
)

from src.web.routers import register_routers

register_routers(app)

@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize Database Tables
    await init_db()
    logger.info(f"Scoring config loaded: {scoring.name} v{scoring.version}")

    yield

app.router.lifespan_context = lifespan

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Config"])
async def health():
    return {"status": "ok", "environment": settings.environment}
