"""
Unit tests for composite score aggregation and the dashboard explanations.
"""
import pytest

from src.automation.aggregator import (
    aggregate_score,
    calculate_component_scores,
    describe_score,
    explain_components,
)
from src.automation.engine import compute_automation_score
from src.automation.types import ComponentScores, DimensionInputs


def _components(coverage=0, integration=0, sophistication=0, documentation=0):
    return ComponentScores(
        tools_coverage=coverage,
        tools_integration=integration,
        automation_sophistication=sophistication,
        process_documentation=documentation,
    )


class TestAggregateScore:

    def test_all_zero(self, scoring_config):
        assert aggregate_score(_components(), scoring_config) == 0

    def test_all_full(self, scoring_config):
        assert aggregate_score(_components(100, 100, 100, 100), scoring_config) == 100

    @pytest.mark.parametrize("components,expected", [
        (_components(coverage=100), 30),
        (_components(integration=100), 20),
        (_components(sophistication=100), 25),
        (_components(documentation=100), 25),
    ])
    def test_component_weights(self, components, expected, scoring_config):
        assert aggregate_score(components, scoring_config) == expected

    def test_good_progress_components(self, good_progress_inputs, scoring_config):
        components = calculate_component_scores(good_progress_inputs, scoring_config)
        assert components.as_dict() == {
            "tools_coverage": 100,
            "tools_integration": 30,
            "automation_sophistication": 56,
            "process_documentation": 84,
        }
        assert aggregate_score(components, scoring_config) == 71

    def test_describe_score(self, scoring_config):
        assert describe_score(71, scoring_config) == "Good Progress"
        assert describe_score(0, scoring_config) == "Needs Improvement"


class TestComputeAutomationScore:

    def test_good_progress_scenario(self, good_progress_inputs, scoring_config):
        result = compute_automation_score(good_progress_inputs, scoring_config)

        assert 50 <= result.score <= 74
        assert result.description == "Good Progress"
        titles = [r.title for r in result.recommendations]
        assert "Connect your most-used tools" in titles

    def test_empty_scenario(self, empty_inputs, scoring_config):
        result = compute_automation_score(empty_inputs, scoring_config)

        assert result.score == 0
        assert result.description == "Needs Improvement"
        adopt = [r for r in result.recommendations if r.title.startswith("Adopt a ")]
        assert len(adopt) == 5

    def test_empty_scenario_without_category_names(self, scoring_config):
        inputs = DimensionInputs.from_counts(total_categories=5)
        result = compute_automation_score(inputs, scoring_config)
        assert result.score == 0
        assert result.recommendations

    def test_deterministic(self, good_progress_inputs, scoring_config):
        first = compute_automation_score(good_progress_inputs, scoring_config)
        second = compute_automation_score(good_progress_inputs.model_copy(deep=True), scoring_config)
        assert first.to_json_dict() == second.to_json_dict()

    def test_more_integrations_never_lower_the_score(self, scoring_config):
        previous = -1
        for pairs in range(0, 15):
            inputs = DimensionInputs.from_counts(
                total_tools=10, total_categories=5, categories_with_tools=5,
                integrated_pairs=pairs, tools_by_tier={"free": 10}, sop_count=2,
                average_sop_steps=4,
            )
            score = compute_automation_score(inputs, scoring_config).score
            assert score >= previous
            previous = score

    def test_more_covered_categories_never_lower_the_score(self, scoring_config):
        previous = -1
        for covered in range(0, 6):
            inputs = DimensionInputs.from_counts(
                total_tools=covered, total_categories=5, categories_with_tools=covered,
                tools_by_tier={"free": covered},
            )
            score = compute_automation_score(inputs, scoring_config).score
            assert score >= previous
            previous = score

    def test_scores_stay_in_range(self, scoring_config):
        inputs = DimensionInputs.from_counts(
            total_tools=500, total_categories=1, categories_with_tools=1,
            integrated_pairs=10_000, tools_by_tier={"enterprise": 500},
            sop_count=300, average_sop_steps=80,
        )
        result = compute_automation_score(inputs, scoring_config)
        assert result.score == 100
        for value in result.component_scores.as_dict().values():
            assert 0 <= value <= 100

    def test_camel_case_json(self, good_progress_inputs, scoring_config):
        payload = compute_automation_score(good_progress_inputs, scoring_config).to_json_dict()
        assert set(payload["componentScores"]) == {
            "toolsCoverage", "toolsIntegration",
            "automationSophistication", "processDocumentation",
        }
        assert "impactScore" in payload["recommendations"][0]
        assert "inProgress" in payload["recommendations"][0]

    def test_accepts_camel_case_input(self, scoring_config):
        inputs = DimensionInputs.model_validate({
            "toolsCoverage": {"totalTools": 10, "totalCategories": 5, "categoriesWithTools": 5},
            "toolsIntegration": {"totalTools": 10, "integratedPairs": 3},
            "automationSophistication": {
                "totalTools": 10, "toolsByTier": {"free": 4, "low-cost": 4, "enterprise": 2},
            },
            "processDocumentation": {"sopCount": 5, "totalCategories": 5, "averageSopSteps": 6},
        })
        assert compute_automation_score(inputs, scoring_config).score == 71


class TestExplanations:

    def test_keys_and_content(self, good_progress_inputs, scoring_config):
        components = calculate_component_scores(good_progress_inputs, scoring_config)
        explanations = explain_components(good_progress_inputs, components)

        assert set(explanations) == {
            "toolsCoverage", "toolsIntegration",
            "automationSophistication", "processDocumentation",
        }
        assert explanations["toolsCoverage"].startswith("5 out of 5 business categories")
        assert "3 tool integrations exist out of 45 possible" in explanations["toolsIntegration"]
        assert "40% free-tier and 20% enterprise-tier" in explanations["automationSophistication"]
        assert "average of 6.0 steps" in explanations["processDocumentation"]

    def test_zero_inputs(self, scoring_config):
        inputs = DimensionInputs()
        explanations = explain_components(inputs, calculate_component_scores(inputs, scoring_config))
        assert "Very limited coverage" in explanations["toolsCoverage"]
        assert "0% free-tier" in explanations["automationSophistication"]

    def test_tier_names_follow_tier_weights(self, scoring_config):
        inputs = DimensionInputs.from_counts(
            total_tools=4, total_categories=2, categories_with_tools=2,
            tools_by_tier={"Enterprise": 1, "advanced": 1, "Basic": 1, "low-cost": 1},
        )
        components = calculate_component_scores(inputs, scoring_config)
        explanations = explain_components(inputs, components, scoring_config)
        assert "25% free-tier and 50% enterprise-tier" in explanations["automationSophistication"]


class TestDocumentationMonotonicity:

    def test_more_sops_never_lower_the_score(self, scoring_config):
        previous = -1
        for sops in range(0, 12):
            inputs = DimensionInputs.from_counts(
                total_tools=4, total_categories=5, categories_with_tools=3,
                integrated_pairs=1, tools_by_tier={"low-cost": 4},
                sop_count=sops, average_sop_steps=5,
            )
            score = compute_automation_score(inputs, scoring_config).score
            assert score >= previous
            previous = score
