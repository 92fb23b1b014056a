"""
Module/Category Breakdown Builder ("Automation Score 2.0").

Runs the scoring pipeline once per business module and once on the
merged counts of all modules. Two composites come out of the same counts:

  - overall_score: unweighted mean of the module scores
  - dimension_score: the weighted composite of the global component scores

The integration map is carried through for display only; scoring sees
nothing of it beyond the integrated pair counts already in the inputs.
"""
import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from src.automation.aggregator import aggregate_score, calculate_component_scores
from src.automation.recommendations import (
    CROSS_FUNCTIONAL_MODULE,
    RecommendationGenerator,
    rank_recommendations,
)
from src.automation.types import (
    AutomationScoreDetails,
    DimensionInputs,
    ModuleAutomationScore,
    ModuleInput,
    ToolIntegration,
)
from src.core.scoring import ScoringConfig, scoring as default_scoring

logger = logging.getLogger(__name__)


def merge_module_inputs(modules: Sequence[ModuleInput]) -> DimensionInputs:
    """Sum per-module counts into one tenant-wide set of dimension inputs."""
    tiers: Counter = Counter()
    for module in modules:
        tiers.update(module.tools_by_tier)

    sop_count = sum(m.sop_count for m in modules)
    step_total = sum(m.sop_count * m.average_sop_steps for m in modules)

    categories = []
    for module in modules:
        for category in module.categories:
            categories.append(category.model_copy(update={"module_id": module.module_id}))

    return DimensionInputs.from_counts(
        total_tools=sum(m.total_tools for m in modules),
        total_categories=sum(m.total_categories for m in modules),
        categories_with_tools=sum(m.categories_with_tools for m in modules),
        integrated_pairs=sum(m.integrated_pairs for m in modules),
        tools_by_tier=dict(tiers),
        sop_count=sop_count,
        average_sop_steps=step_total / max(1, sop_count),
        categories=categories,
    )


def validate_module_ids(modules: Iterable[ModuleInput]) -> None:
    counts = Counter(m.module_id for m in modules)
    duplicates = sorted(module_id for module_id, n in counts.items() if n > 1)
    if duplicates:
        raise ValueError(f"Duplicate module ids: {duplicates}")
    if CROSS_FUNCTIONAL_MODULE in counts:
        raise ValueError(f"Module id '{CROSS_FUNCTIONAL_MODULE}' is reserved")


def build_module_score(
    module: ModuleInput,
    config: Optional[ScoringConfig] = None,
    generator: Optional[RecommendationGenerator] = None,
) -> ModuleAutomationScore:
    """Score one module on its own counts and attach its scoped recommendations."""
    config = config or default_scoring
    generator = generator or RecommendationGenerator(config)

    inputs = module.to_dimension_inputs()
    components = calculate_component_scores(inputs, config)
    score = aggregate_score(components, config)
    recommendations = generator.generate(
        inputs,
        components,
        module_id=module.module_id,
        include_cross_functional=False,
    )

    return ModuleAutomationScore(
        module_id=module.module_id,
        module_name=module.module_name or config.module_name(module.module_id),
        score=score,
        color=config.color_for(score),
        automated_process_count=module.automated_process_count,
        manual_process_count=module.manual_process_count,
        total_processes=module.automated_process_count + module.manual_process_count,
        recommendations=recommendations,
    )


def build_automation_score_details(
    modules: Sequence[ModuleInput],
    integration_map: Iterable[ToolIntegration] = (),
    config: Optional[ScoringConfig] = None,
) -> AutomationScoreDetails:
    """
    Score every module, the merged counts and the cross-functional rules.

    Raises:
        ValueError: two modules share an id, or a module uses the id reserved
            for cross-functional recommendations. Recommendation ids are
            scoped by module id and would collide.
    """
    validate_module_ids(modules)
    config = config or default_scoring
    generator = RecommendationGenerator(config)

    module_scores: List[ModuleAutomationScore] = [
        build_module_score(module, config, generator) for module in modules
    ]

    merged = merge_module_inputs(modules)
    components = calculate_component_scores(merged, config)
    dimension_score = aggregate_score(components, config)

    if module_scores:
        overall_score = int(round(sum(m.score for m in module_scores) / len(module_scores)))
    else:
        overall_score = 0

    cross_functional = generator.generate(
        merged,
        components,
        module_id=CROSS_FUNCTIONAL_MODULE,
        include_dimensions=False,
        include_categories=False,
        include_cross_functional=True,
    )

    # Flat list shares the module-scoped recommendation objects
    flat = [rec for module in module_scores for rec in module.recommendations]
    flat.extend(cross_functional)

    logger.info(
        f"Automation breakdown: {len(module_scores)} modules, overall={overall_score}, "
        f"dimension={dimension_score}, {len(flat)} recommendations"
    )

    return AutomationScoreDetails(
        overall_score=overall_score,
        dimension_score=dimension_score,
        description=config.describe(overall_score),
        module_scores=module_scores,
        tools_coverage_score=components.tools_coverage,
        tools_integration_score=components.tools_integration,
        automation_sophistication_score=components.automation_sophistication,
        process_documentation_score=components.process_documentation,
        integration_map=list(integration_map),
        recommendations=rank_recommendations(flat),
    )
