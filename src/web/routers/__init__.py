from fastapi import FastAPI

from src.web.routers.automation import router as automation_router
from src.web.routers.dashboard import router as dashboard_routes_router
from src.web.routers.operations import router as operations_router
from src.web.routers.config import router as config_router

def register_routers(app: FastAPI):
    """Register all routers with the application."""
    app.include_router(automation_router)
    app.include_router(dashboard_routes_router)
    app.include_router(operations_router)
    app.include_router(config_router)
