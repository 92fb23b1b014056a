"""
Value objects for the automation scoring engine.

Every model serializes with the camelCase field names the dashboard
frontend consumes (``overallScore``, ``moduleScores``, ``inProgress``...).
Python code uses the snake_case attribute names; both are accepted on input.
"""
from typing import Dict, List, Optional

from pydantic import Field, model_validator

from src.core.models import DataFlow, Difficulty, IntegrationStatus
from src.core.schemas import CamelModel


# =============================================================================
# INPUTS
# =============================================================================

class ToolCoverageInput(CamelModel):
    total_tools: int = Field(default=0, ge=0)
    total_categories: int = Field(default=0, ge=0)
    categories_with_tools: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_category_counts(self):
        if self.categories_with_tools > self.total_categories:
            raise ValueError(
                f"categoriesWithTools ({self.categories_with_tools}) cannot exceed "
                f"totalCategories ({self.total_categories})"
            )
        return self


class ToolIntegrationInput(CamelModel):
    total_tools: int = Field(default=0, ge=0)
    integrated_pairs: int = Field(default=0, ge=0)

    @property
    def max_possible_pairs(self) -> int:
        return self.total_tools * (self.total_tools - 1) // 2

    @property
    def density(self) -> float:
        return self.integrated_pairs / max(1, self.max_possible_pairs)


class AutomationSophisticationInput(CamelModel):
    tools_by_tier: Dict[str, int] = Field(default_factory=dict)
    total_tools: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_tier_counts(self):
        negative = {tier: n for tier, n in self.tools_by_tier.items() if n < 0}
        if negative:
            raise ValueError(f"Tier counts must be non-negative, got {negative}")
        return self


class ProcessDocumentationInput(CamelModel):
    sop_count: int = Field(default=0, ge=0)
    total_categories: int = Field(default=0, ge=0)
    average_sop_steps: float = Field(default=0.0, ge=0.0)


class CategoryToolCount(CamelModel):
    """Tool count for one business category, used for gap recommendations."""
    name: str
    tool_count: int = Field(default=0, ge=0)
    module_id: Optional[str] = None


class DimensionInputs(CamelModel):
    """Everything the engine needs to score one tenant (or one module)."""
    tools_coverage: ToolCoverageInput = Field(default_factory=ToolCoverageInput)
    tools_integration: ToolIntegrationInput = Field(default_factory=ToolIntegrationInput)
    automation_sophistication: AutomationSophisticationInput = Field(
        default_factory=AutomationSophisticationInput
    )
    process_documentation: ProcessDocumentationInput = Field(
        default_factory=ProcessDocumentationInput
    )
    categories: List[CategoryToolCount] = Field(default_factory=list)

    @classmethod
    def from_counts(
        cls,
        total_tools: int = 0,
        total_categories: int = 0,
        categories_with_tools: int = 0,
        integrated_pairs: int = 0,
        tools_by_tier: Optional[Dict[str, int]] = None,
        sop_count: int = 0,
        average_sop_steps: float = 0.0,
        categories: Optional[List[CategoryToolCount]] = None,
    ) -> "DimensionInputs":
        """Build the four dimension inputs from one flat set of counts."""
        return cls(
            tools_coverage=ToolCoverageInput(
                total_tools=total_tools,
                total_categories=total_categories,
                categories_with_tools=categories_with_tools,
            ),
            tools_integration=ToolIntegrationInput(
                total_tools=total_tools,
                integrated_pairs=integrated_pairs,
            ),
            automation_sophistication=AutomationSophisticationInput(
                tools_by_tier=dict(tools_by_tier or {}),
                total_tools=total_tools,
            ),
            process_documentation=ProcessDocumentationInput(
                sop_count=sop_count,
                total_categories=total_categories,
                average_sop_steps=average_sop_steps,
            ),
            categories=list(categories or []),
        )


class ModuleInput(CamelModel):
    """Counts scoped to one business module (Finance, Sales, ...)."""
    module_id: str
    module_name: Optional[str] = None
    categories: List[CategoryToolCount] = Field(default_factory=list)
    tools_by_tier: Dict[str, int] = Field(default_factory=dict)
    integrated_pairs: int = Field(default=0, ge=0)
    sop_count: int = Field(default=0, ge=0)
    average_sop_steps: float = Field(default=0.0, ge=0.0)
    automated_process_count: int = Field(default=0, ge=0)
    manual_process_count: int = Field(default=0, ge=0)

    @property
    def total_tools(self) -> int:
        return sum(c.tool_count for c in self.categories)

    @property
    def total_categories(self) -> int:
        return len(self.categories)

    @property
    def categories_with_tools(self) -> int:
        return sum(1 for c in self.categories if c.tool_count > 0)

    def to_dimension_inputs(self) -> DimensionInputs:
        return DimensionInputs.from_counts(
            total_tools=self.total_tools,
            total_categories=self.total_categories,
            categories_with_tools=self.categories_with_tools,
            integrated_pairs=self.integrated_pairs,
            tools_by_tier=self.tools_by_tier,
            sop_count=self.sop_count,
            average_sop_steps=self.average_sop_steps,
            categories=self.categories,
        )


# =============================================================================
# OUTPUTS
# =============================================================================

class ComponentScores(CamelModel):
    tools_coverage: int = Field(ge=0, le=100)
    tools_integration: int = Field(ge=0, le=100)
    automation_sophistication: int = Field(ge=0, le=100)
    process_documentation: int = Field(ge=0, le=100)

    def as_dict(self) -> Dict[str, int]:
        return {
            "tools_coverage": self.tools_coverage,
            "tools_integration": self.tools_integration,
            "automation_sophistication": self.automation_sophistication,
            "process_documentation": self.process_documentation,
        }


class AutomationRecommendation(CamelModel):
    id: str
    module_id: str
    title: str
    description: str
    difficulty: Difficulty
    impact_score: int = Field(ge=1, le=10)
    time_to_implement: str
    tools_required: Optional[List[str]] = None
    cost_estimate: Optional[str] = None
    implemented: bool = False
    in_progress: bool = False

    @model_validator(mode="after")
    def validate_status(self):
        if self.implemented and self.in_progress:
            raise ValueError("A recommendation cannot be both implemented and in progress")
        return self

    def apply_status(self, implemented: Optional[bool] = None, in_progress: Optional[bool] = None):
        """Update status flags in place; setting one flag true clears the other."""
        if implemented is not None:
            self.implemented = implemented
            if implemented:
                self.in_progress = False
        if in_progress is not None:
            self.in_progress = in_progress
            if in_progress:
                self.implemented = False
        return self


class AutomationScoreResult(CamelModel):
    score: int = Field(ge=0, le=100)
    component_scores: ComponentScores
    description: str
    explanations: Dict[str, str] = Field(default_factory=dict)
    recommendations: List[AutomationRecommendation] = Field(default_factory=list)


class ToolIntegration(CamelModel):
    """One edge of the tool-integration map (display only)."""
    source_tool_id: str
    source_tool_name: str
    target_tool_id: str
    target_tool_name: str
    integration_status: IntegrationStatus = IntegrationStatus.ACTIVE
    data_flow: DataFlow = DataFlow.ONE_WAY


class ModuleAutomationScore(CamelModel):
    module_id: str
    module_name: str
    score: int = Field(ge=0, le=100)
    color: str
    automated_process_count: int = Field(ge=0)
    manual_process_count: int = Field(ge=0)
    total_processes: int = Field(ge=0)
    recommendations: List[AutomationRecommendation] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_process_totals(self):
        if self.automated_process_count + self.manual_process_count != self.total_processes:
            raise ValueError("automatedProcessCount + manualProcessCount must equal totalProcesses")
        return self


class AutomationScoreDetails(CamelModel):
    overall_score: int = Field(ge=0, le=100)
    dimension_score: int = Field(ge=0, le=100)
    description: str
    module_scores: List[ModuleAutomationScore] = Field(default_factory=list)
    tools_coverage_score: int = Field(ge=0, le=100)
    tools_integration_score: int = Field(ge=0, le=100)
    automation_sophistication_score: int = Field(ge=0, le=100)
    process_documentation_score: int = Field(ge=0, le=100)
    integration_map: List[ToolIntegration] = Field(default_factory=list)
    recommendations: List[AutomationRecommendation] = Field(default_factory=list)

    def iter_recommendation_copies(self, recommendation_id: str):
        """Yield every stored copy of a recommendation (flat list first)."""
        for rec in self.recommendations:
            if rec.id == recommendation_id:
                yield rec
        for module in self.module_scores:
            for rec in module.recommendations:
                if rec.id == recommendation_id:
                    yield rec


class RecommendationUpdate(CamelModel):
    implemented: Optional[bool] = None
    in_progress: Optional[bool] = None

    @model_validator(mode="after")
    def validate_exclusive(self):
        if self.implemented and self.in_progress:
            raise ValueError("implemented and inProgress cannot both be true")
        return self
