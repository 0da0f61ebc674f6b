"""Tests for experiment tracking helpers and the parameter sweep."""

from typing import Any

from experiments.parameter_sweep import run_parameter_sweep
from mlchapters.config import build_config
from mlchapters.evaluation.experiment import ChapterExperiment, flatten_params


class TestFlattenParams:
    """Nested hyperparameters become flat MLflow params."""

    def test_cost_matrix(self) -> None:
        flat = flatten_params({"trials": 10, "costs": {"yes": {"no": 4}, "no": {"yes": 1}}})
        assert flat == {"trials": "10", "costs.yes.no": "4", "costs.no.yes": "1"}

    def test_none_values(self) -> None:
        assert flatten_params({"max_depth": None}) == {"max_depth": "None"}


def test_run_tags(chapter_dict: dict[str, Any]) -> None:
    experiment = ChapterExperiment(build_config(chapter_dict))
    assert experiment.tags["chapter"] == "credit-test"
    assert experiment.tags["algorithm"] == "decision_tree"
    assert experiment.tags["experiment_type"] == "chapter"
    assert len(experiment.tags["config_hash"]) > 0


def test_parameter_sweep_without_tracking(chapter_dict: dict[str, Any]) -> None:
    results = run_parameter_sweep(
        build_config(chapter_dict), "max_depth", [1, 3], track=False
    )
    assert list(results) == ["1", "3"]
    assert all(0.0 <= r["accuracy"] <= 1.0 for r in results.values())
    assert all(r["n_samples"] == 100 for r in results.values())
