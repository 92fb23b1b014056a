"""
Composite score aggregation.

The composite is a fixed-weight blend of the four integer component
scores, so it is fully determined by them and by the active
ScoringConfig weights.
"""
import logging
from typing import Dict, Optional

from src.automation.calculators import (
    calculate_automation_sophistication,
    calculate_process_documentation,
    calculate_tools_coverage,
    calculate_tools_integration,
    clamp_score,
)
from src.automation.types import ComponentScores, DimensionInputs
from src.core.scoring import ScoringConfig, scoring as default_scoring

logger = logging.getLogger(__name__)


def calculate_component_scores(inputs: DimensionInputs, config: Optional[ScoringConfig] = None) -> ComponentScores:
    config = config or default_scoring
    return ComponentScores(
        tools_coverage=calculate_tools_coverage(inputs.tools_coverage, config),
        tools_integration=calculate_tools_integration(inputs.tools_integration, config),
        automation_sophistication=calculate_automation_sophistication(
            inputs.automation_sophistication, config
        ),
        process_documentation=calculate_process_documentation(inputs.process_documentation, config),
    )


def aggregate_score(components: ComponentScores, config: Optional[ScoringConfig] = None) -> int:
    """Weighted sum of component scores, rounded and clamped to [0, 100]."""
    config = config or default_scoring
    weights = config.component_weights
    values = components.as_dict()
    score = clamp_score(sum(weights[key] * values[key] for key in weights))
    logger.debug(f"Composite score {score} from components {values}")
    return score


def describe_score(score: int, config: Optional[ScoringConfig] = None) -> str:
    return (config or default_scoring).describe(score)


def _band(score: int) -> int:
    """Five insight bands: 0 (<=20) .. 4 (>80)."""
    if score > 80:
        return 4
    if score > 60:
        return 3
    if score > 40:
        return 2
    if score > 20:
        return 1
    return 0


_COVERAGE_INSIGHTS = (
    "Very limited coverage, most business functions are manual.",
    "Limited coverage, many business areas lack automation.",
    "Moderate coverage, consider expanding tools to underserved areas.",
    "Good coverage, but some areas could benefit from more automation tools.",
    "Excellent coverage across business functions.",
)

_INTEGRATION_INSIGHTS = (
    "Very limited integration, creating data silos and duplicated work.",
    "Limited integration, most tools operate in isolation.",
    "Moderate integration, consider connecting more systems.",
    "Good integration, but some tools remain siloed.",
    "Excellent integration between systems.",
)

_SOPHISTICATION_INSIGHTS = (
    "very basic with primarily free tools",
    "basic with mostly entry-level tools",
    "moderately sophisticated",
    "fairly sophisticated with mid-tier solutions",
    "advanced with powerful enterprise-grade solutions",
)

_DOCUMENTATION_INSIGHTS = (
    "Very limited documentation, creating dependency on tribal knowledge.",
    "Limited documentation, many processes lack SOPs.",
    "Moderate documentation, consider expanding SOP coverage.",
    "Good documentation, but some processes could be better defined.",
    "Excellent documentation of processes.",
)


def explain_components(
    inputs: DimensionInputs,
    components: ComponentScores,
    config: Optional[ScoringConfig] = None,
) -> Dict[str, str]:
    """One plain-language sentence per component for the dashboard tooltips.

    Tier shares go through the configured tier weights, so "Enterprise" and
    "advanced" both count as enterprise-tier and "basic" as free-tier.
    """
    config = config or default_scoring
    coverage = inputs.tools_coverage
    integration = inputs.tools_integration
    sophistication = inputs.automation_sophistication
    documentation = inputs.process_documentation

    tier_total = max(1, sophistication.total_tools)
    top_weight = max(config.tier_weights.values(), default=config.default_tier_weight)
    free_count = enterprise_count = 0
    for tier, count in sophistication.tools_by_tier.items():
        weight = config.get_tier_weight(tier)
        if weight <= config.default_tier_weight:
            free_count += count
        elif weight >= top_weight:
            enterprise_count += count
    free_pct = 100 * free_count / tier_total
    enterprise_pct = 100 * enterprise_count / tier_total

    return {
        "toolsCoverage": (
            f"{coverage.categories_with_tools} out of {coverage.total_categories} business "
            f"categories have automation tools. {_COVERAGE_INSIGHTS[_band(components.tools_coverage)]}"
        ),
        "toolsIntegration": (
            f"{integration.integrated_pairs} tool integrations exist out of "
            f"{integration.max_possible_pairs} possible connections. "
            f"{_INTEGRATION_INSIGHTS[_band(components.tools_integration)]}"
        ),
        "automationSophistication": (
            f"Your tool mix is {_SOPHISTICATION_INSIGHTS[_band(components.automation_sophistication)]}. "
            f"{free_pct:.0f}% free-tier and {enterprise_pct:.0f}% enterprise-tier tools."
        ),
        "processDocumentation": (
            f"{documentation.sop_count} SOPs documented with an average of "
            f"{documentation.average_sop_steps:.1f} steps per SOP. "
            f"{_DOCUMENTATION_INSIGHTS[_band(components.process_documentation)]}"
        ),
    }
