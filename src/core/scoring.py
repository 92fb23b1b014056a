"""
Automation Scoring Configuration System.

Loads the scoring scheme from YAML that drives:
- Component weights for the composite automation score
- Tool-tier sophistication weights
- Coverage / documentation sub-weights and saturation targets
- Score description tiers and module colour bands
- The business modules used for the per-module breakdown

Usage:
    from src.core.scoring import scoring

    scoring.component_weights["tools_coverage"]   # 0.30
    scoring.get_tier_weight("enterprise")         # 1.0
    scoring.describe(62)                          # "Good Progress"
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

COMPONENT_KEYS = (
    "tools_coverage",
    "tools_integration",
    "automation_sophistication",
    "process_documentation",
)


# =============================================================================
# SCHEMA
# =============================================================================

class ScoreComponent(BaseModel):
    """One weighted dimension of the composite score."""
    name: str
    weight: float = Field(ge=0.0, le=1.0)
    description: str = ""


class CoverageSettings(BaseModel):
    """Breadth vs depth blend for the tools coverage component."""
    breadth_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    tools_per_category_target: float = Field(default=2.0, gt=0.0)


class DocumentationSettings(BaseModel):
    """Coverage vs depth blend for the process documentation component."""
    coverage_weight: float = Field(default=0.6, ge=0.0, le=1.0)
    sops_per_category_target: float = Field(default=1.0, gt=0.0)
    steps_target: float = Field(default=10.0, gt=0.0)


class RecommendationSettings(BaseModel):
    """Thresholds used by the recommendation generator."""
    good_threshold: int = Field(default=70, ge=0, le=100)
    impact_target: int = Field(default=100, ge=1, le=100)
    minimal_tool_count: int = Field(default=1, ge=0)
    cross_functional_threshold: int = Field(default=40, ge=0, le=100)


class DescriptionTier(BaseModel):
    """Scores >= min_score (and below the next tier up) get this label."""
    label: str
    min_score: int = Field(ge=0, le=100)


class ColorBand(BaseModel):
    min_score: int = Field(ge=0, le=100)
    color: str


class ModuleDefinition(BaseModel):
    id: str
    name: str


def _default_components() -> Dict[str, ScoreComponent]:
    return {
        "tools_coverage": ScoreComponent(
            name="Tools Coverage", weight=0.30,
            description="Share of business categories served by adopted tools",
        ),
        "tools_integration": ScoreComponent(
            name="Tools Integration", weight=0.20,
            description="Active tool-to-tool integrations relative to tool count",
        ),
        "automation_sophistication": ScoreComponent(
            name="Automation Sophistication", weight=0.25,
            description="Tier mix of adopted tools (free vs enterprise)",
        ),
        "process_documentation": ScoreComponent(
            name="Process Documentation", weight=0.25,
            description="SOP coverage per category and step depth",
        ),
    }


def _default_tier_weights() -> Dict[str, float]:
    return {
        "free": 0.3,
        "basic": 0.3,
        "low-cost": 0.6,
        "intermediate": 0.6,
        "professional": 1.0,
        "enterprise": 1.0,
        "advanced": 1.0,
    }


def _default_description_tiers() -> List[DescriptionTier]:
    return [
        DescriptionTier(label="Excellent Automation", min_score=75),
        DescriptionTier(label="Good Progress", min_score=50),
        DescriptionTier(label="Needs Improvement", min_score=0),
    ]


def _default_modules() -> List[ModuleDefinition]:
    return [
        ModuleDefinition(id="finance", name="Finance"),
        ModuleDefinition(id="operations", name="Operations"),
        ModuleDefinition(id="marketing", name="Marketing"),
        ModuleDefinition(id="sales", name="Sales"),
        ModuleDefinition(id="customer", name="Customer"),
    ]


def _default_color_bands() -> List[ColorBand]:
    return [
        ColorBand(min_score=70, color="#34D399"),
        ColorBand(min_score=50, color="#FBBF24"),
        ColorBand(min_score=0, color="#F87171"),
    ]


class ScoringConfig(BaseModel):
    """
    Complete automation scoring configuration.

    Weights are fixed per deployment so scores stay comparable across
    tenants and over time. Load from YAML with ScoringConfig.from_yaml(path).
    """
    # --- Metadata ---
    name: str = "Default Automation Scoring"
    version: str = "2.0"

    # --- Components ---
    components: Dict[str, ScoreComponent] = Field(default_factory=_default_components)
    tier_weights: Dict[str, float] = Field(default_factory=_default_tier_weights)
    coverage: CoverageSettings = Field(default_factory=CoverageSettings)
    documentation: DocumentationSettings = Field(default_factory=DocumentationSettings)
    recommendations: RecommendationSettings = Field(default_factory=RecommendationSettings)

    # --- Presentation ---
    description_tiers: List[DescriptionTier] = Field(default_factory=_default_description_tiers)
    color_bands: List[ColorBand] = Field(default_factory=_default_color_bands)

    # --- Breakdown ---
    modules: List[ModuleDefinition] = Field(default_factory=_default_modules)

    # =================================================================
    # COMPUTED PROPERTIES
    # =================================================================

    @property
    def component_weights(self) -> Dict[str, float]:
        return {key: c.weight for key, c in self.components.items()}

    @property
    def default_tier_weight(self) -> float:
        """Unknown tiers count as the least sophisticated."""
        return min(self.tier_weights.values()) if self.tier_weights else 0.0

    def get_tier_weight(self, tier: str) -> float:
        return self.tier_weights.get((tier or "").strip().lower(), self.default_tier_weight)

    def describe(self, score: int) -> str:
        """Map a 0-100 score onto its description tier."""
        for tier in self.description_tiers:
            if score >= tier.min_score:
                return tier.label
        return self.description_tiers[-1].label

    @property
    def lowest_description(self) -> str:
        return self.description_tiers[-1].label

    def color_for(self, score: int) -> str:
        for band in self.color_bands:
            if score >= band.min_score:
                return band.color
        return self.color_bands[-1].color

    def module_name(self, module_id: str) -> str:
        for module in self.modules:
            if module.id == module_id:
                return module.name
        return module_id.replace("-", " ").title()

    # =================================================================
    # VALIDATORS
    # =================================================================

    @model_validator(mode="after")
    def validate_components(self):
        missing = set(COMPONENT_KEYS) - set(self.components)
        extra = set(self.components) - set(COMPONENT_KEYS)
        if missing or extra:
            raise ValueError(
                f"Components must be exactly {list(COMPONENT_KEYS)}; "
                f"missing={sorted(missing)} unexpected={sorted(extra)}"
            )
        total = sum(c.weight for c in self.components.values())
        if abs(total - 1.0) > 0.001:
            raise ValueError(
                f"Component weights must sum to 1.0, got {total:.3f}. "
                f"Weights: {self.component_weights}"
            )
        return self

    @model_validator(mode="after")
    def validate_description_tiers(self):
        if not self.description_tiers:
            raise ValueError("At least one description tier is required")
        floors = [t.min_score for t in self.description_tiers]
        if any(a <= b for a, b in zip(floors, floors[1:])):
            raise ValueError(f"Description tiers must be strictly descending, got {floors}")
        if floors[-1] != 0:
            raise ValueError("The lowest description tier must start at 0")
        if not self.color_bands or self.color_bands[-1].min_score != 0:
            raise ValueError("The lowest colour band must start at 0")
        return self

    @model_validator(mode="after")
    def normalize_tier_names(self):
        self.tier_weights = {k.strip().lower(): v for k, v in self.tier_weights.items()}
        return self

    # =================================================================
    # LOADERS
    # =================================================================

    @classmethod
    def from_yaml(cls, path: Path) -> "ScoringConfig":
        """Load scoring configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Scoring config not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # Components may omit "name" and use the key instead
        if "components" in raw and isinstance(raw["components"], dict):
            for key, val in raw["components"].items():
                if isinstance(val, dict) and "name" not in val:
                    val["name"] = key.replace("_", " ").title()

        return cls(**raw)

    @classmethod
    def load(cls, config_dir: Optional[Path] = None) -> "ScoringConfig":
        """
        Load scoring config with fallback chain:
          1. config/scoring.yaml (private, gitignored)
          2. config/scoring.example.yaml (public, committed)
          3. Built-in defaults
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        private = config_dir / "scoring.yaml"
        example = config_dir / "scoring.example.yaml"

        if private.exists():
            logger.info(f"Loading scoring config from {private}")
            return cls.from_yaml(private)
        elif example.exists():
            logger.info(f"No scoring.yaml found, falling back to {example}")
            return cls.from_yaml(example)
        else:
            logger.warning("No scoring config found, using built-in defaults")
            return cls()

    def to_summary(self) -> dict:
        """Return a JSON-safe summary for the /config/scoring API endpoint."""
        return {
            "name": self.name,
            "version": self.version,
            "components": {
                key: {"name": c.name, "weight": c.weight, "description": c.description}
                for key, c in self.components.items()
            },
            "tier_weights": dict(self.tier_weights),
            "default_tier_weight": self.default_tier_weight,
            "description_tiers": [t.model_dump() for t in self.description_tiers],
            "recommendations": self.recommendations.model_dump(),
            "modules": [m.model_dump() for m in self.modules],
        }


# =============================================================================
# SINGLETON INSTANCE
# =============================================================================

def _load_default() -> ScoringConfig:
    from src.core.config import settings
    return ScoringConfig.load(settings.scoring_config_dir)


scoring: ScoringConfig = _load_default()
