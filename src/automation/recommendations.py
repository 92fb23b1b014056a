"""
Recommendation Generator.

Inspects component scores and the underlying counts and emits a ranked,
de-duplicated list of improvement actions. Generation is deterministic:
the same inputs always produce the same recommendations, ids and order.

Rule groups:
  - dimension rules: one or more actions per component scoring below
    the "good" threshold
  - category rules: one action per category with zero or one tool
  - cross-functional rules: workflow/data actions spanning departments

Difficulty heuristic: adding a tool is easy, connecting tools is medium,
cross-department workflow automation is complex. Impact grows with the
gap between the related component score and the configured target.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from src.automation.types import AutomationRecommendation, ComponentScores, DimensionInputs
from src.core.models import Difficulty
from src.core.scoring import ScoringConfig, scoring as default_scoring

logger = logging.getLogger(__name__)

CROSS_FUNCTIONAL_MODULE = "cross-functional"


@dataclass
class _Draft:
    title: str
    description: str
    difficulty: Difficulty
    impact_score: int
    time_to_implement: str
    tools_required: Optional[List[str]] = None
    cost_estimate: Optional[str] = None


def rank_recommendations(recommendations: List[AutomationRecommendation]) -> List[AutomationRecommendation]:
    """Highest impact first; quick wins (easier) first among equal impact."""
    return sorted(
        recommendations,
        key=lambda r: (-r.impact_score, Difficulty(r.difficulty).rank),
    )


class RecommendationGenerator:
    """Builds recommendations for one scope (a tenant or a single module)."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or default_scoring
        self.settings = self.config.recommendations

    def impact_for(self, score: int) -> int:
        """1-10 impact proportional to how far a score sits below the target."""
        gap = max(0, self.settings.impact_target - score)
        return max(1, min(10, math.ceil(gap / 10)))

    def generate(
        self,
        inputs: DimensionInputs,
        components: ComponentScores,
        module_id: str = "overall",
        include_dimensions: bool = True,
        include_categories: bool = True,
        include_cross_functional: bool = True,
    ) -> List[AutomationRecommendation]:
        drafts: List[_Draft] = []
        if include_dimensions:
            drafts.extend(self._coverage_rules(inputs, components))
            drafts.extend(self._integration_rules(inputs, components))
            drafts.extend(self._sophistication_rules(inputs, components))
            drafts.extend(self._documentation_rules(inputs, components))
        if include_categories:
            drafts.extend(self._category_rules(inputs, components))
        if include_cross_functional:
            drafts.extend(self._cross_functional_rules(inputs, components))

        recommendations = []
        seen = set()
        sequence = 0
        for draft in drafts:
            key = (module_id, draft.title.strip().lower())
            if key in seen:
                continue
            seen.add(key)
            sequence += 1
            recommendations.append(AutomationRecommendation(
                id=f"{module_id}-rec-{sequence}",
                module_id=module_id,
                title=draft.title,
                description=draft.description,
                difficulty=draft.difficulty,
                impact_score=draft.impact_score,
                time_to_implement=draft.time_to_implement,
                tools_required=draft.tools_required,
                cost_estimate=draft.cost_estimate,
            ))

        logger.debug(f"Generated {len(recommendations)} recommendations for {module_id}")
        return rank_recommendations(recommendations)

    # =================================================================
    # DIMENSION RULES
    # =================================================================

    def _coverage_rules(self, inputs: DimensionInputs, components: ComponentScores) -> List[_Draft]:
        data = inputs.tools_coverage
        score = components.tools_coverage
        if data.total_categories == 0 or score >= self.settings.good_threshold:
            return []

        missing = data.total_categories - data.categories_with_tools
        if missing > 0:
            uncovered = [c.name for c in inputs.categories if c.tool_count == 0][:3]
            detail = ""
            if uncovered:
                more = " and others" if len(uncovered) < missing else ""
                detail = f" Specifically in: {', '.join(uncovered)}{more}."
            return [_Draft(
                title="Expand your automation coverage",
                description=(
                    f"{missing} out of {data.total_categories} business categories have no "
                    f"automation tools.{detail} Adding tools to these areas could "
                    f"significantly improve efficiency."
                ),
                difficulty=Difficulty.EASY,
                impact_score=self.impact_for(score),
                time_to_implement="1-2 weeks",
                cost_estimate="$0-$50/month per category (free or low-cost tiers)",
            )]

        return [_Draft(
            title="Deepen tooling in thinly covered categories",
            description=(
                f"Every category has at least one tool, but {data.total_tools} tools across "
                f"{data.total_categories} categories leaves most areas with a single point "
                f"of automation. Add a second tool where work is still done by hand."
            ),
            difficulty=Difficulty.EASY,
            impact_score=self.impact_for(score),
            time_to_implement="1-2 weeks",
        )]

    def _integration_rules(self, inputs: DimensionInputs, components: ComponentScores) -> List[_Draft]:
        data = inputs.tools_integration
        score = components.tools_integration
        if data.total_tools < 2 or score >= self.settings.good_threshold:
            return []

        return [_Draft(
            title="Connect your most-used tools",
            description=(
                f"Only {data.integrated_pairs} active integrations exist across {data.total_tools} "
                f"tools ({data.density:.0%} of {data.max_possible_pairs} possible connections). "
                f"Map where data is re-keyed by hand and use native integrations or middleware "
                f"to connect those tools first."
            ),
            difficulty=Difficulty.MEDIUM,
            impact_score=self.impact_for(score),
            time_to_implement="4-8 hours",
            tools_required=["Zapier", "Make.com"],
            cost_estimate="$0-$29/month",
        )]

    def _sophistication_rules(self, inputs: DimensionInputs, components: ComponentScores) -> List[_Draft]:
        data = inputs.automation_sophistication
        score = components.automation_sophistication
        if data.total_tools == 0:
            return []

        drafts = []
        if score < self.settings.good_threshold:
            basic = sum(
                count for tier, count in data.tools_by_tier.items()
                if self.config.get_tier_weight(tier) <= self.config.default_tier_weight
            )
            basic_share = basic / max(1, data.total_tools)
            drafts.append(_Draft(
                title="Upgrade critical business tools",
                description=(
                    f"{basic_share:.0%} of your tools are on basic tiers, which limits the "
                    f"automation features available. Upgrading the 2-3 tools behind your core "
                    f"business functions unlocks workflows, triggers and reporting."
                ),
                difficulty=Difficulty.MEDIUM,
                impact_score=self.impact_for(score),
                time_to_implement="1-2 weeks",
                cost_estimate="$50-$300/month (paid tiers)",
            ))

        enterprise = sum(
            count for tier, count in data.tools_by_tier.items()
            if self.config.get_tier_weight(tier) >= 1.0
        )
        enterprise_share = enterprise / max(1, data.total_tools)
        if enterprise_share > 0.7 and data.total_tools > 5:
            drafts.append(_Draft(
                title="Optimize tool cost-effectiveness",
                description=(
                    f"{enterprise_share:.0%} of your tools are enterprise-tier. Audit which "
                    f"advanced features are actually used and right-size underused tools."
                ),
                difficulty=Difficulty.EASY,
                impact_score=self.impact_for(100 - round(100 * (enterprise_share - 0.7))),
                time_to_implement="4-6 hours",
            ))
        return drafts

    def _documentation_rules(self, inputs: DimensionInputs, components: ComponentScores) -> List[_Draft]:
        data = inputs.process_documentation
        score = components.process_documentation
        if data.total_categories == 0 or score >= self.settings.good_threshold:
            return []

        docs = self.config.documentation
        drafts = []
        target = math.ceil(data.total_categories * docs.sops_per_category_target)
        undocumented = max(0, target - data.sop_count)
        if undocumented > 0:
            batch = min(3, undocumented)
            drafts.append(_Draft(
                title=f"Document your top {batch} undocumented processes",
                description=(
                    f"You have {data.sop_count} SOPs for {data.total_categories} business "
                    f"categories. Start with the most frequently performed processes and the "
                    f"ones that depend on a single team member."
                ),
                difficulty=Difficulty.EASY,
                impact_score=self.impact_for(score),
                time_to_implement="2-4 hours",
                tools_required=["SOP Builder"],
                cost_estimate="$0 (using existing tools)",
            ))

        if data.sop_count > 0 and data.average_sop_steps < docs.steps_target / 2:
            drafts.append(_Draft(
                title="Add detail to existing SOPs",
                description=(
                    f"Your SOPs average {data.average_sop_steps:.1f} steps. Breaking them into "
                    f"at least {docs.steps_target / 2:.0f} concrete steps makes them usable as "
                    f"a blueprint for automation."
                ),
                difficulty=Difficulty.EASY,
                impact_score=max(1, self.impact_for(score) - 1),
                time_to_implement="1-2 hours per SOP",
            ))
        return drafts

    # =================================================================
    # CATEGORY RULES
    # =================================================================

    def _category_rules(self, inputs: DimensionInputs, components: ComponentScores) -> List[_Draft]:
        drafts = []
        impact = self.impact_for(components.tools_coverage)
        for category in inputs.categories:
            if category.tool_count == 0:
                drafts.append(_Draft(
                    title=f"Adopt a {category.name} tool",
                    description=(
                        f"No tools are in use for {category.name}. Start with a free trial or "
                        f"low-cost option before committing."
                    ),
                    difficulty=Difficulty.EASY,
                    impact_score=impact,
                    time_to_implement="1-2 hours",
                    cost_estimate="$0-$50/month",
                ))
            elif category.tool_count <= self.settings.minimal_tool_count:
                drafts.append(_Draft(
                    title=f"Strengthen {category.name} tooling",
                    description=(
                        f"{category.name} relies on a single tool. Add a complementary tool "
                        f"to cover the steps still handled manually."
                    ),
                    difficulty=Difficulty.EASY,
                    impact_score=max(1, impact - 2),
                    time_to_implement="2-4 hours",
                ))
        return drafts

    # =================================================================
    # CROSS-FUNCTIONAL RULES
    # =================================================================

    def _cross_functional_rules(self, inputs: DimensionInputs, components: ComponentScores) -> List[_Draft]:
        coverage = inputs.tools_coverage
        integration = inputs.tools_integration
        score = components.tools_integration
        if score >= self.settings.cross_functional_threshold:
            return []

        drafts = []
        if coverage.categories_with_tools >= 3:
            drafts.append(_Draft(
                title="Implement cross-department workflow automation",
                description=(
                    f"{coverage.categories_with_tools} departments run their own tools with little "
                    f"connection between them. Connect project management, CRM and communication "
                    f"tools so information flows across departments automatically."
                ),
                difficulty=Difficulty.COMPLEX,
                impact_score=self.impact_for(score),
                time_to_implement="10-15 hours",
                tools_required=["Zapier", "Slack", "Asana", "Salesforce"],
                cost_estimate="$49-$99/month",
            ))
        if integration.total_tools > 5:
            drafts.append(_Draft(
                title="Centralize business data across tools",
                description=(
                    "You have several tools but limited integration, which suggests data silos. "
                    "Identify data maintained in more than one system and sync it from a single "
                    "source of truth or a central reporting dashboard."
                ),
                difficulty=Difficulty.COMPLEX,
                impact_score=max(1, self.impact_for(score) - 1),
                time_to_implement="2-3 weeks",
            ))
        return drafts
