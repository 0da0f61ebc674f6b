"""Tests for the command-line interface."""

from pathlib import Path
from typing import Any

import pytest
import yaml
from rich.console import Console
from typer.testing import CliRunner

from mlchapters import __version__, cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    """Leave logging alone and render tables wide enough to read."""
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(cli, "console", Console(width=200))


@pytest.fixture
def config_file(tmp_path: Path, chapter_dict: dict[str, Any]) -> Path:
    path = tmp_path / "credit.yaml"
    path.write_text(yaml.safe_dump(chapter_dict), encoding="utf-8")
    return path


def test_version() -> None:
    result = runner.invoke(cli.app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_algorithms() -> None:
    result = runner.invoke(cli.app, ["algorithms"])
    assert result.exit_code == 0
    for name in ("decision_tree", "ripper", "apriori", "model_tree", "knn"):
        assert name in result.output


class TestRun:
    """The run command."""

    def test_runs_chapter(self, config_file: Path) -> None:
        result = runner.invoke(cli.app, ["run", str(config_file), "--no-plots"])
        assert result.exit_code == 0, result.output
        assert "Running Credit test chapter" in result.output
        assert "Confusion table" in result.output

    def test_invalid_config(self, tmp_path: Path, chapter_dict: dict[str, Any]) -> None:
        chapter_dict["model"]["hyperparameters"] = {"k": 3}
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump(chapter_dict), encoding="utf-8")
        result = runner.invoke(cli.app, ["run", str(path)])
        assert result.exit_code == 1
        assert "not recognised" in result.output

    def test_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(cli.app, ["run", str(tmp_path / "absent.yaml")])
        assert result.exit_code != 0


class TestExplore:
    """The explore command."""

    def test_explore(self, tmp_path: Path, chapter_dict: dict[str, Any]) -> None:
        chapter_dict["explore"] = {
            "columns": ["amount", "age", "checking_balance"],
            "crosstab": ["checking_balance", "default"],
        }
        path = tmp_path / "explore.yaml"
        path.write_text(yaml.safe_dump(chapter_dict), encoding="utf-8")
        result = runner.invoke(cli.app, ["explore", str(path)])
        assert result.exit_code == 0, result.output
        assert "amount" in result.output
        assert "unknown" in result.output

    def test_unknown_column(self, tmp_path: Path, chapter_dict: dict[str, Any]) -> None:
        chapter_dict["explore"] = {"columns": ["income"]}
        path = tmp_path / "explore.yaml"
        path.write_text(yaml.safe_dump(chapter_dict), encoding="utf-8")
        result = runner.invoke(cli.app, ["explore", str(path)])
        assert result.exit_code == 1
        assert "income" in result.output


class TestLikelihood:
    """The likelihood command."""

    def test_table(self, config_file: Path) -> None:
        result = runner.invoke(
            cli.app, ["likelihood", str(config_file), "-f", "purpose", "--laplace", "1"]
        )
        assert result.exit_code == 0, result.output
        assert "P(purpose | default)" in result.output
        assert "furniture" in result.output

    def test_unknown_feature(self, config_file: Path) -> None:
        result = runner.invoke(cli.app, ["likelihood", str(config_file), "-f", "colour"])
        assert result.exit_code == 1
        assert "colour" in result.output


class TestPredict:
    """The predict command."""

    def test_predict_with_saved_model(
        self, tmp_path: Path, chapter_dict: dict[str, Any]
    ) -> None:
        chapter_dict["output"]["save_model"] = True
        path = tmp_path / "credit.yaml"
        path.write_text(yaml.safe_dump(chapter_dict), encoding="utf-8")
        assert runner.invoke(cli.app, ["run", str(path)]).exit_code == 0

        model_path = tmp_path / "output/credit-test/models/credit-test.model.joblib"
        out = tmp_path / "scored.csv"
        result = runner.invoke(
            cli.app,
            ["predict", str(model_path), str(tmp_path / "credit.csv"), "-o", str(out)],
        )
        assert result.exit_code == 0, result.output
        assert "1000 predictions" in result.output
        assert out.exists()

    def test_missing_model(self, tmp_path: Path, chapter_dict: dict[str, Any]) -> None:
        result = runner.invoke(
            cli.app, ["predict", str(tmp_path / "none.model.joblib"), str(tmp_path / "credit.csv")]
        )
        assert result.exit_code == 1
        assert "not found" in result.output
