"""
Score component calculators.

Each calculator is a pure function returning an integer in [0, 100].
All-zero inputs yield exactly 0 and every division is guarded with
``max(1, denominator)`` so malformed-but-validated inputs never produce
NaN or negative scores.
"""
from typing import Optional

from src.automation.types import (
    AutomationSophisticationInput,
    ProcessDocumentationInput,
    ToolCoverageInput,
    ToolIntegrationInput,
)
from src.core.scoring import ScoringConfig, scoring as default_scoring


def clamp_score(value: float) -> int:
    """Round to the nearest integer and clamp to [0, 100]."""
    return max(0, min(100, int(round(value))))


def calculate_tools_coverage(data: ToolCoverageInput, config: Optional[ScoringConfig] = None) -> int:
    """Blend category breadth with tool depth (~2 tools per category is full depth)."""
    config = config or default_scoring
    categories = max(1, data.total_categories)

    breadth = 100.0 * data.categories_with_tools / categories
    depth_target = max(1.0, data.total_categories * config.coverage.tools_per_category_target)
    depth = min(100.0, 100.0 * data.total_tools / depth_target)

    weight = config.coverage.breadth_weight
    return clamp_score(weight * breadth + (1 - weight) * depth)


def calculate_tools_integration(data: ToolIntegrationInput, config: Optional[ScoringConfig] = None) -> int:
    """Saturates once there is roughly one active integration per tool."""
    if data.total_tools == 0 or data.integrated_pairs == 0:
        return 0
    return clamp_score(100.0 * min(1.0, data.integrated_pairs / max(1, data.total_tools)))


def calculate_automation_sophistication(
    data: AutomationSophisticationInput, config: Optional[ScoringConfig] = None
) -> int:
    """Average tier weight across adopted tools."""
    config = config or default_scoring
    weighted_sum = sum(
        count * config.get_tier_weight(tier)
        for tier, count in sorted(data.tools_by_tier.items())
    )
    return clamp_score(100.0 * weighted_sum / max(1, data.total_tools))


def calculate_process_documentation(
    data: ProcessDocumentationInput, config: Optional[ScoringConfig] = None
) -> int:
    """Blend SOP coverage per category with SOP step depth."""
    config = config or default_scoring
    docs = config.documentation

    coverage_target = max(1.0, data.total_categories * docs.sops_per_category_target)
    coverage = min(100.0, 100.0 * data.sop_count / coverage_target)
    depth = min(100.0, 100.0 * data.average_sop_steps / docs.steps_target)

    return clamp_score(docs.coverage_weight * coverage + (1 - docs.coverage_weight) * depth)
