"""
Tests for the `python -m src.automation` command line.
"""
import json
import sys

import pytest

from src.automation import __main__ as cli
from src.automation.types import DimensionInputs
from src.core.scoring import ScoringConfig


@pytest.fixture
def run_cli(monkeypatch):
    def _run(*args):
        monkeypatch.setattr(sys, "argv", ["src.automation", *args])
        return cli.main()
    return _run


class TestLoadInputs:

    def test_sample_inputs(self):
        inputs = cli.load_inputs(cli.Path(__file__).parent.parent.parent / "config" / "sample_inputs.yaml")
        assert isinstance(inputs, DimensionInputs)
        assert inputs.tools_integration.integrated_pairs == 3
        assert len(inputs.categories) == 5

    def test_modules_file(self, tmp_path):
        path = tmp_path / "modules.json"
        path.write_text(json.dumps({"modules": [
            {"moduleId": "finance", "categories": [{"name": "Accounting", "toolCount": 1}]},
            {"moduleId": "sales"},
        ]}))
        modules = cli.load_inputs(path)
        assert [m.module_id for m in modules] == ["finance", "sales"]

    def test_duplicate_modules_rejected(self, run_cli, tmp_path, capsys):
        path = tmp_path / "modules.yaml"
        path.write_text("modules:\n  - moduleId: sales\n  - moduleId: sales\n")
        assert run_cli("--inputs", str(path)) == 1
        assert "Duplicate module ids" in capsys.readouterr().out


class TestScoreStyle:

    def test_default_colour_bands(self):
        assert cli._score_style(80) == "bold #34D399"
        assert cli._score_style(55) == "bold #FBBF24"
        assert cli._score_style(10) == "bold #F87171"

    def test_follows_configured_bands(self):
        config = ScoringConfig(color_bands=[
            {"min_score": 90, "color": "green"},
            {"min_score": 0, "color": "red"},
        ])
        assert cli._score_style(80, config) == "bold red"
        assert cli._score_style(95, config) == "bold green"


class TestMain:

    def test_scores_input_file(self, run_cli, capsys):
        path = cli.Path(__file__).parent.parent.parent / "config" / "sample_inputs.yaml"
        assert run_cli("--inputs", str(path)) == 0
        out = capsys.readouterr().out
        assert "Good Progress" in out
        assert "Connect" in out

    def test_module_breakdown(self, run_cli, capsys, tmp_path):
        path = tmp_path / "modules.yaml"
        path.write_text("modules:\n  - moduleId: finance\n  - moduleId: sales\n")
        assert run_cli("--inputs", str(path)) == 0
        assert "Finance" in capsys.readouterr().out

    def test_missing_file(self, run_cli, tmp_path):
        assert run_cli("--inputs", str(tmp_path / "missing.yaml")) == 1

    def test_invalid_counts(self, run_cli, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("toolsCoverage: {totalCategories: 1, categoriesWithTools: 4}\n")
        assert run_cli("--inputs", str(path)) == 1

    def test_requires_a_source(self, run_cli):
        with pytest.raises(SystemExit):
            run_cli()
