"""
Operations Module - tenants, adopted tools, SOPs, integrations and processes.
"""

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

__all__ = [
    "Activity",
    "BusinessEntity",
    "Category",
    "ModuleProcess",
    "RecommendationStatus",
    "Sop",
    "Tool",
    "ToolIntegrationRecord",
]
