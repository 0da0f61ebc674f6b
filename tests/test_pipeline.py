"""Tests for chapter runs and model persistence."""

import io
from pathlib import Path
from typing import Any

import joblib
import pandas as pd
import pytest
from rich.console import Console

from mlchapters.config import build_config
from mlchapters.errors import ConfigError, DataFormatError, IndexOutOfRangeError, PredictError
from mlchapters.evaluation.metrics import ClassificationMetrics, RegressionMetrics
from mlchapters.modeling.inference import predict
from mlchapters.modeling.persistence import load_model, save_model
from mlchapters.pipeline import prepare_table, run_chapter



def _console() -> Console:
    return Console(file=io.StringIO(), width=120)


class TestRunChapter:
    """End-to-end chapter runs."""

    def test_credit_chapter(self, chapter_dict: dict[str, Any]) -> None:
        result = run_chapter(build_config(chapter_dict))

        assert result.split.train.n_rows == 900
        assert len(result.predictions) == 100
        assert isinstance(result.metrics, ClassificationMetrics)
        assert result.metrics.confusion.total == 100
        assert result.evaluated_on == "test"
        assert result.metrics.positive_class == "yes"
        assert result.plots == []
        assert result.artifacts == []
        assert result.run_id is None
        assert "accuracy" in result.metric_dict()

    def test_same_seed_same_result(self, chapter_dict: dict[str, Any]) -> None:
        config = build_config(chapter_dict)
        first = run_chapter(config)
        second = run_chapter(config)
        assert (first.split.test_positions == second.split.test_positions).all()
        assert first.metrics.accuracy == second.metrics.accuracy

    def test_console_output(self, chapter_dict: dict[str, Any]) -> None:
        console = _console()
        run_chapter(build_config(chapter_dict), console=console)
        text = console.file.getvalue()
        assert "Split:" in text
        assert "Confusion table" in text
        assert "kappa" in text.lower()

    def test_saves_model_and_predictions(
        self, chapter_dict: dict[str, Any], tmp_path: Path
    ) -> None:
        chapter_dict["output"].update(save_model=True, save_predictions=True)
        result = run_chapter(build_config(chapter_dict))

        names = sorted(p.name for p in result.artifacts)
        assert names == [
            "credit-test.model.joblib",
            "credit-test.model.json",
            "credit-test_predictions.csv",
        ]
        saved = pd.read_csv(tmp_path / "output/credit-test/predictions/credit-test_predictions.csv")
        assert len(saved) == 100
        assert {"predicted", "actual"} <= set(saved.columns)

    def test_writes_plots(self, chapter_dict: dict[str, Any], tmp_path: Path) -> None:
        chapter_dict["evaluation"]["plots"] = True
        result = run_chapter(build_config(chapter_dict))
        assert [p.name for p in result.plots] == ["confusion.png"]
        assert (tmp_path / "output/credit-test/plots/confusion.png").exists()

    def test_regression_chapter(
        self, tmp_path: Path, regression_frame: pd.DataFrame
    ) -> None:
        regression_frame.to_csv(tmp_path / "reg.csv", index=False)
        config = build_config(
            {
                "chapter": "reg",
                "data": {"root": str(tmp_path), "path": "reg.csv"},
                "features": {
                    "derived": [{"name": "x1_sq", "kind": "square", "column": "x1"}]
                },
                "split": {"strategy": "range", "train": [0, 240], "test": [240, 300]},
                "model": {"algorithm": "linear_regression", "target": "y"},
                "output": {"root": str(tmp_path / "output")},
            }
        )
        result = run_chapter(config, console=_console())
        assert "x1_sq" in result.model.feature_names
        assert isinstance(result.metrics, RegressionMetrics)
        assert result.metrics.n_samples == 60
        assert result.metrics.baseline_mae is not None
        assert sorted(p.name for p in result.plots) == [
            "abs_error.png",
            "predicted_vs_actual.png",
        ]

    def test_association_chapter(
        self, tmp_path: Path, groceries_lines: list[str]
    ) -> None:
        (tmp_path / "groceries.csv").write_text("\n".join(groceries_lines), encoding="utf-8")
        config = build_config(
            {
                "chapter": "groceries",
                "data": {
                    "root": str(tmp_path),
                    "path": "groceries.csv",
                    "format": "transactions",
                    "header": False,
                },
                "split": {"strategy": "none"},
                "model": {
                    "algorithm": "apriori",
                    "hyperparameters": {
                        "support": 0.25,
                        "confidence": 0.5,
                        "min_length": 2,
                    },
                },
                "evaluation": {"rule_item": "berries", "top_rules": 3, "plots": True},
                "output": {"root": str(tmp_path / "output")},
            }
        )
        console = _console()
        result = run_chapter(config, console=console)
        assert result.predictions is None
        assert result.split.test.n_rows == 0
        assert result.rules.n_transactions == 8
        assert result.rules.n_rules > 0
        assert "Rules mentioning berries" in console.file.getvalue()
        assert [p.name for p in result.plots] == ["item_frequency.png"]

    def test_unsplit_classifier_evaluates_on_training_rows(
        self, tmp_path: Path, mushroom_frame: pd.DataFrame
    ) -> None:
        mushroom_frame.to_csv(tmp_path / "mushrooms.csv", index=False)
        config = build_config(
            {
                "chapter": "mushrooms-one-r",
                "data": {
                    "root": str(tmp_path),
                    "path": "mushrooms.csv",
                    "drop": ["veil_type"],
                },
                "split": {"strategy": "none"},
                "model": {"algorithm": "one_r", "target": "type"},
                "evaluation": {"plots": False},
                "output": {"root": str(tmp_path / "output")},
            }
        )
        console = _console()
        result = run_chapter(config, console=console)
        assert result.split.test.n_rows == 0
        assert result.evaluated_on == "train"
        assert isinstance(result.metrics, ClassificationMetrics)
        assert result.metrics.confusion.total == 400
        assert result.metrics.accuracy == pytest.approx(1.0)
        assert "evaluating on training rows" in console.file.getvalue()

    def test_explore_only_chapter_has_no_model(
        self, chapter_dict: dict[str, Any]
    ) -> None:
        chapter_dict.pop("model")
        chapter_dict.pop("split")
        chapter_dict["explore"] = {"columns": ["amount"]}
        config = build_config(chapter_dict)
        with pytest.raises(ConfigError, match="no model"):
            run_chapter(config)

    def test_split_out_of_range(self, chapter_dict: dict[str, Any]) -> None:
        chapter_dict["split"] = {"strategy": "range", "train": [0, 900], "test": [900, 1200]}
        with pytest.raises(IndexOutOfRangeError, match="outside"):
            run_chapter(build_config(chapter_dict))

    def test_missing_data_file(self, chapter_dict: dict[str, Any]) -> None:
        chapter_dict["data"]["path"] = "nope.csv"
        with pytest.raises(DataFormatError):
            run_chapter(build_config(chapter_dict))


def test_prepare_table_applies_features(
    chapter_dict: dict[str, Any]
) -> None:
    chapter_dict["features"] = {
        "derived": [
            {"name": "long_loan", "kind": "indicator", "column": "months_loan_duration",
             "op": ">", "value": 40},
        ],
        "drop_after": ["months_loan_duration"],
    }
    table = prepare_table(build_config(chapter_dict))
    assert "long_loan" in table.columns
    assert "months_loan_duration" not in table.columns


class TestPersistence:
    """Saving and loading fitted models."""

    def test_round_trip(self, chapter_dict: dict[str, Any], tmp_path: Path) -> None:
        result = run_chapter(build_config(chapter_dict))
        model_path, metadata_path = save_model(
            result.model, tmp_path / "models" / "credit", {"accuracy": 0.9}
        )
        assert model_path.name == "credit.model.joblib"
        assert metadata_path.name == "credit.model.json"

        loaded, metadata = load_model(model_path)
        assert metadata["algorithm"] == "decision_tree"
        assert metadata["target"] == "default"
        assert metadata["classes"] == ["no", "yes"]
        assert metadata["metrics"] == {"accuracy": 0.9}
        assert metadata["data_hash"] == result.model.data_hash

        again = predict(loaded, result.split.test)
        assert again.predicted.tolist() == result.predictions.predicted.tolist()

    def test_load_from_base_path(self, chapter_dict: dict[str, Any], tmp_path: Path) -> None:
        result = run_chapter(build_config(chapter_dict))
        save_model(result.model, tmp_path / "m")
        loaded, metadata = load_model(tmp_path / "m")
        assert loaded.feature_names == result.model.feature_names
        assert "metrics" not in metadata

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PredictError, match="not found"):
            load_model(tmp_path / "absent.model.joblib")

    def test_not_a_model(self, tmp_path: Path) -> None:
        path = tmp_path / "junk.model.joblib"
        joblib.dump({"not": "a model"}, path)
        with pytest.raises(PredictError, match="does not hold"):
            load_model(path)
