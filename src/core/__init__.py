"""
Core Module - Shared Infrastructure.
"""

from src.core.config import settings, Settings
from src.core.database import Base, get_db, get_async_db
from src.core.models import Difficulty, IntegrationStatus, DataFlow, ProcessHandler
from src.core.scoring import scoring, ScoringConfig

__all__ = [
    "settings",
    "Settings",
    "Base",
    "get_db",
    "get_async_db",
    "Difficulty",
    "IntegrationStatus",
    "DataFlow",
    "ProcessHandler",
    "scoring",
    "ScoringConfig",
]
