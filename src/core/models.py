"""
Core enums for DMPHQ.

NOTE: These are NOT database models. For SQLAlchemy ORM models, see
src/operations/database.py (entities, categories, tools, SOPs, integrations).

The enums below are shared by the scoring engine, the storage layer and
the API so that the same string values flow through all three.
"""
from enum import Enum


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    COMPLEX = "complex"

    @property
    def rank(self) -> int:
        return _DIFFICULTY_RANK[self]


_DIFFICULTY_RANK = {Difficulty.EASY: 0, Difficulty.MEDIUM: 1, Difficulty.COMPLEX: 2}


class IntegrationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PARTIAL = "partial"


class DataFlow(str, Enum):
    ONE_WAY = "one-way"
    BI_DIRECTIONAL = "bi-directional"


class ProcessHandler(str, Enum):
    """Who runs a business process: fully automated, mixed, or people."""
    AI = "ai"
    HYBRID = "hybrid"
    TEAM = "team"
