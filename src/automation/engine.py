"""
Automation scoring engine: the public call shapes.

    compute_automation_score(inputs)            -> AutomationScoreResult
    compute_automation_score_details(modules)   -> AutomationScoreDetails
    update_recommendation(details, id, update)  -> AutomationRecommendation

Everything here is synchronous and pure apart from update_recommendation,
which mutates the recommendation records of a previously computed
details object in place. Caching belongs to the caller (see cache.py).
"""
import logging
from typing import Iterable, Optional, Sequence, Union

from src.automation.aggregator import aggregate_score, calculate_component_scores, explain_components
from src.automation.breakdown import build_automation_score_details
from src.automation.recommendations import RecommendationGenerator
from src.automation.types import (
    AutomationRecommendation,
    AutomationScoreDetails,
    AutomationScoreResult,
    DimensionInputs,
    ModuleInput,
    RecommendationUpdate,
    ToolIntegration,
)
from src.core.scoring import ScoringConfig, scoring as default_scoring

logger = logging.getLogger(__name__)


class RecommendationNotFound(LookupError):
    """No recommendation with the requested id exists in the scored result."""

    def __init__(self, recommendation_id: str):
        self.recommendation_id = recommendation_id
        super().__init__(f"Recommendation with ID {recommendation_id} not found")


def compute_automation_score(
    inputs: DimensionInputs,
    config: Optional[ScoringConfig] = None,
    module_id: str = "overall",
) -> AutomationScoreResult:
    """Score one tenant from its dimension counts (dashboard summary)."""
    config = config or default_scoring
    components = calculate_component_scores(inputs, config)
    score = aggregate_score(components, config)
    recommendations = RecommendationGenerator(config).generate(inputs, components, module_id=module_id)

    return AutomationScoreResult(
        score=score,
        component_scores=components,
        description=config.describe(score),
        explanations=explain_components(inputs, components, config),
        recommendations=recommendations,
    )


def compute_automation_score_details(
    modules: Sequence[ModuleInput],
    integration_map: Iterable[ToolIntegration] = (),
    config: Optional[ScoringConfig] = None,
) -> AutomationScoreDetails:
    """Per-module breakdown plus tenant-wide component scores."""
    return build_automation_score_details(modules, integration_map, config)


def update_recommendation(
    details: AutomationScoreDetails,
    recommendation_id: str,
    update: Union[RecommendationUpdate, dict],
) -> AutomationRecommendation:
    """
    Set implemented / in-progress on every copy of a recommendation.

    The flat list and the module-scoped list may hold the same object or
    separate copies (e.g. after a cache round-trip); both are updated.

    Raises:
        RecommendationNotFound: if no copy carries ``recommendation_id``.
    """
    if isinstance(update, dict):
        update = RecommendationUpdate.model_validate(update)

    copies = list(details.iter_recommendation_copies(recommendation_id))
    if not copies:
        raise RecommendationNotFound(recommendation_id)

    for rec in copies:
        rec.apply_status(implemented=update.implemented, in_progress=update.in_progress)

    logger.debug(
        f"Updated recommendation {recommendation_id} on {len(copies)} record(s): "
        f"implemented={copies[0].implemented} inProgress={copies[0].in_progress}"
    )
    return copies[0]
