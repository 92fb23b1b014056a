"""
Automation Module - Automation Score & Recommendation Engine.
"""

from src.automation.engine import (
    RecommendationNotFound,
    compute_automation_score,
    compute_automation_score_details,
    update_recommendation,
)
from src.automation.cache import AutomationScoreCache, score_cache
from src.automation.types import (
    AutomationRecommendation,
    AutomationScoreDetails,
    AutomationScoreResult,
    CategoryToolCount,
    DimensionInputs,
    ModuleAutomationScore,
    ModuleInput,
    RecommendationUpdate,
    ToolIntegration,
)

__all__ = [
    "RecommendationNotFound",
    "compute_automation_score",
    "compute_automation_score_details",
    "update_recommendation",
    "AutomationScoreCache",
    "score_cache",
    "AutomationRecommendation",
    "AutomationScoreDetails",
    "AutomationScoreResult",
    "CategoryToolCount",
    "DimensionInputs",
    "ModuleAutomationScore",
    "ModuleInput",
    "RecommendationUpdate",
    "ToolIntegration",
]
