"""CLI entry point for the automation score engine."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.automation.breakdown import validate_module_ids
from src.automation.engine import compute_automation_score, compute_automation_score_details
from src.automation.types import (
    AutomationRecommendation,
    AutomationScoreDetails,
    AutomationScoreResult,
    DimensionInputs,
    ModuleInput,
)
from src.core.scoring import ScoringConfig, scoring

logger = logging.getLogger(__name__)

console = Console()


def load_inputs(path: Path):
    """
    Read a YAML or JSON file of counts.

    A top-level ``modules`` list is scored as a module breakdown; anything
    else is read as a single set of dimension inputs.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if "modules" in raw:
        modules = [ModuleInput.model_validate(m) for m in raw["modules"]]
        validate_module_ids(modules)
        return modules
    return DimensionInputs.model_validate(raw)


def _score_style(score: int, config: Optional[ScoringConfig] = None) -> str:
    """Rich style from the configured colour band for ``score``."""
    return f"bold {(config or scoring).color_for(score)}"


def _print_recommendations(recommendations: List[AutomationRecommendation], title: str = "Recommendations"):
    if not recommendations:
        console.print("[dim]No recommendations.[/dim]")
        return

    table = Table(title=title, show_lines=False)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Difficulty")
    table.add_column("Impact", justify="right")
    table.add_column("Time")
    table.add_column("Status")

    for rec in recommendations:
        status = "implemented" if rec.implemented else "in progress" if rec.in_progress else ""
        table.add_row(
            rec.id, rec.title, str(rec.difficulty), str(rec.impact_score), rec.time_to_implement, status
        )
    console.print(table)


def print_result(result: AutomationScoreResult):
    style = _score_style(result.score)
    console.print(Panel(
        f"[{style}]{result.score}[/{style}] / 100  {result.description}",
        title="Automation Score",
        border_style="blue",
    ))

    table = Table(title="Component Scores")
    table.add_column("Component", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Insight")

    explanations = result.explanations
    components = result.component_scores
    for label, key, score in [
        ("Tools Coverage", "toolsCoverage", components.tools_coverage),
        ("Tools Integration", "toolsIntegration", components.tools_integration),
        ("Automation Sophistication", "automationSophistication", components.automation_sophistication),
        ("Process Documentation", "processDocumentation", components.process_documentation),
    ]:
        table.add_row(label, str(score), explanations.get(key, ""))
    console.print(table)

    _print_recommendations(result.recommendations)


def print_details(details: AutomationScoreDetails):
    style = _score_style(details.overall_score)
    console.print(Panel(
        f"[{style}]{details.overall_score}[/{style}] / 100  {details.description}\n"
        f"Dimension score: {details.dimension_score}",
        title="Automation Score",
        border_style="blue",
    ))

    table = Table(title="Modules")
    table.add_column("Module", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Automated", justify="right")
    table.add_column("Manual", justify="right")
    table.add_column("Recommendations", justify="right")
    for module in details.module_scores:
        table.add_row(
            module.module_name,
            f"[{module.color}]{module.score}[/{module.color}]",
            str(module.automated_process_count),
            str(module.manual_process_count),
            str(len(module.recommendations)),
        )
    console.print(table)

    components = Table(title="Component Scores")
    components.add_column("Component", style="cyan")
    components.add_column("Score", justify="right")
    components.add_row("Tools Coverage", str(details.tools_coverage_score))
    components.add_row("Tools Integration", str(details.tools_integration_score))
    components.add_row("Automation Sophistication", str(details.automation_sophistication_score))
    components.add_row("Process Documentation", str(details.process_documentation_score))
    console.print(components)

    _print_recommendations(details.recommendations)


async def score_entity(entity_id: int, details: bool):
    from src.core.database import get_async_db, init_db
    from src.operations import service

    await init_db()
    async with get_async_db() as session:
        if await service.get_entity(session, entity_id) is None:
            console.print(f"[red]Business entity {entity_id} not found[/red]")
            return 1
        if details:
            print_details(await service.compute_entity_details(session, entity_id))
        else:
            print_result(await service.compute_entity_score(session, entity_id))
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description='Compute DMPHQ automation scores',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Score a file of dimension counts (no database needed)
  python -m src.automation --inputs config/sample_inputs.yaml

  # Score a stored business entity
  python -m src.automation --entity 1

  # Per-module breakdown for a stored entity
  python -m src.automation --entity 1 --details
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--inputs',
        type=Path,
        help='YAML/JSON file of dimension counts, or a "modules" list'
    )
    source.add_argument(
        '--entity',
        type=int,
        help='Business entity id to score from the database'
    )

    parser.add_argument(
        '--details',
        action='store_true',
        help='Show the per-module breakdown (with --entity)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.entity is not None:
        return asyncio.run(score_entity(args.entity, args.details))

    try:
        inputs = load_inputs(args.inputs)
    except FileNotFoundError:
        console.print(f"[red]Input file not found: {args.inputs}[/red]")
        return 1
    except (ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid inputs:[/red] {e}")
        return 1

    if isinstance(inputs, list):
        print_details(compute_automation_score_details(inputs))
    else:
        print_result(compute_automation_score(inputs))
    return 0


if __name__ == '__main__':
    sys.exit(main())
