"""Tests for configuration system."""

from pathlib import Path
from typing import Any

import pytest
import yaml
from pydantic import ValidationError

from mlchapters.config import (
    Algorithm,
    ChapterConfig,
    DerivedColumnConfig,
    SplitConfig,
    SplitStrategy,
    build_config,
    load_config,
)
from mlchapters.errors import ConfigError


def _write(path: Path, content: dict[str, Any] | str) -> Path:
    text = content if isinstance(content, str) else yaml.safe_dump(content)
    path.write_text(text, encoding="utf-8")
    return path


class TestSplitConfig:
    """Tests for SplitConfig validation."""

    def test_range_requires_both_ranges(self) -> None:
        """A range split without a test range is rejected."""
        with pytest.raises(ValidationError, match="both"):
            SplitConfig(strategy="range", train=(0, 10))

    def test_sample_requires_train_size(self) -> None:
        """A sample split without a size is rejected."""
        with pytest.raises(ValidationError, match="train_size"):
            SplitConfig(strategy="sample")

    def test_none_needs_nothing(self) -> None:
        """Rule mining uses every row."""
        config = SplitConfig(strategy="none")
        assert config.strategy == SplitStrategy.NONE
        assert config.seed == 123


class TestDerivedColumnConfig:
    """Tests for derived column argument checks."""

    def test_indicator_needs_value(self) -> None:
        with pytest.raises(ValidationError, match="value"):
            DerivedColumnConfig(name="flag", kind="indicator", column="bmi")

    def test_product_needs_two_columns(self) -> None:
        with pytest.raises(ValidationError, match="at least 2"):
            DerivedColumnConfig(name="p", kind="product", columns=["a"])

    def test_bins_labels_match_edges(self) -> None:
        with pytest.raises(ValidationError, match="one fewer"):
            DerivedColumnConfig(
                name="b", kind="bins", column="x", edges=[0, 1, 2], labels=["a"]
            )

    def test_valid_min_max(self) -> None:
        config = DerivedColumnConfig(name="x_n", kind="min_max", column="x")
        assert config.column == "x"


class TestBuildConfig:
    """Tests for building a ChapterConfig from a mapping."""

    def test_complete_chapter(self, chapter_dict: dict[str, Any]) -> None:
        """A full mapping produces a typed config."""
        config = build_config(chapter_dict)
        assert isinstance(config, ChapterConfig)
        assert config.algorithm == Algorithm.DECISION_TREE
        assert config.data.schema_name == "credit"
        assert config.model.hyperparameters["trials"] == 1
        assert config.experiment_name == "credit-test"

    def test_output_paths_derived_from_chapter(self, chapter_dict: dict[str, Any]) -> None:
        """Output directories hang off the chapter name."""
        chapter_dict["output"] = {"root": "./output"}
        config = build_config(chapter_dict)
        assert config.plots_dir == Path("./output/credit-test/plots")
        assert config.predictions_dir == Path("./output/credit-test/predictions")
        assert config.models_dir == Path("./output/credit-test/models")

    def test_missing_chapter(self, chapter_dict: dict[str, Any]) -> None:
        del chapter_dict["chapter"]
        with pytest.raises(ConfigError, match="chapter"):
            build_config(chapter_dict)

    def test_missing_data_path(self, chapter_dict: dict[str, Any]) -> None:
        del chapter_dict["data"]["path"]
        with pytest.raises(ConfigError, match="data.path"):
            build_config(chapter_dict)

    def test_missing_model_and_explore(self, chapter_dict: dict[str, Any]) -> None:
        del chapter_dict["model"]
        with pytest.raises(ConfigError, match="model.algorithm"):
            build_config(chapter_dict)

    def test_model_without_split(self, chapter_dict: dict[str, Any]) -> None:
        del chapter_dict["split"]
        with pytest.raises(ConfigError, match="split"):
            build_config(chapter_dict)

    def test_unknown_algorithm(self, chapter_dict: dict[str, Any]) -> None:
        chapter_dict["model"]["algorithm"] = "random_forest"
        with pytest.raises(ConfigError, match="Invalid configuration"):
            build_config(chapter_dict)

    def test_chapter_name_without_spaces(self, chapter_dict: dict[str, Any]) -> None:
        chapter_dict["chapter"] = "credit test"
        with pytest.raises(ConfigError):
            build_config(chapter_dict)

    def test_explore_only_chapter(self, chapter_dict: dict[str, Any]) -> None:
        """Exploration chapters need neither a model nor a split."""
        del chapter_dict["model"]
        del chapter_dict["split"]
        chapter_dict["explore"] = {"histograms": ["amount"]}
        config = build_config(chapter_dict)
        assert config.model is None
        assert config.algorithm is None
        assert config.explore.histograms == ["amount"]

    def test_config_is_frozen(self, chapter_dict: dict[str, Any]) -> None:
        config = build_config(chapter_dict)
        with pytest.raises(ValidationError):
            config.chapter = "other"


class TestLoadConfig:
    """Tests for loading YAML files."""

    def test_load_chapter_file(self, tmp_path: Path, chapter_dict: dict[str, Any]) -> None:
        path = _write(tmp_path / "chapter.yaml", chapter_dict)
        config = load_config(path)
        assert config.chapter == "credit-test"
        assert config.split.train_size == 900

    def test_base_yaml_inherited(self, tmp_path: Path, chapter_dict: dict[str, Any]) -> None:
        """Keys missing from the chapter come from base.yaml; chapter keys win."""
        _write(
            tmp_path / "base.yaml",
            {
                "preprocessing": {"text_min_count": 3},
                "evaluation": {"error_bins": 5, "plots": True},
            },
        )
        path = _write(tmp_path / "chapter.yaml", chapter_dict)
        config = load_config(path)
        assert config.preprocessing.text_min_count == 3
        assert config.evaluation.error_bins == 5
        assert config.evaluation.plots is False

    def test_env_var_interpolation(
        self,
        tmp_path: Path,
        chapter_dict: dict[str, Any],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("TEST_MLFLOW_URI", "http://test:5000")
        chapter_dict["tracking"] = {"tracking_uri": "${TEST_MLFLOW_URI:http://default:5000}"}
        path = _write(tmp_path / "chapter.yaml", chapter_dict)
        assert load_config(path).tracking.tracking_uri == "http://test:5000"

    def test_env_var_default(
        self,
        tmp_path: Path,
        chapter_dict: dict[str, Any],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.delenv("UNSET_MLFLOW_URI", raising=False)
        chapter_dict["tracking"] = {"tracking_uri": "${UNSET_MLFLOW_URI:http://default:5000}"}
        path = _write(tmp_path / "chapter.yaml", chapter_dict)
        assert load_config(path).tracking.tracking_uri == "http://default:5000"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "bad.yaml", "chapter: [unclosed")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_config(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "list.yaml", "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)


class TestShippedChapters:
    """Every chapter file in the repository parses."""

    def test_all_chapters_load(self, project_root: Path) -> None:
        chapters = sorted((project_root / "configs" / "chapters").glob("*.yaml"))
        chapters = [p for p in chapters if p.name != "base.yaml"]
        assert len(chapters) >= 12
        for path in chapters:
            config = load_config(path)
            assert config.chapter

    def test_credit_cost_matrix(self, project_root: Path) -> None:
        config = load_config(project_root / "configs" / "chapters" / "credit_decision_tree.yaml")
        assert config.model.hyperparameters["costs"] == {"yes": {"no": 4}, "no": {"yes": 1}}
        assert config.split.train_size == 900
