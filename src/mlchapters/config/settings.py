"""
Typed configuration models using Pydantic.

A chapter is fully described by one ChapterConfig: where the data lives,
which derived columns to add, how to split, which algorithm to fit and
how to evaluate it. No dataset-specific logic lives in processing code.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Algorithm(str, Enum):
    """Supported algorithm families, each bound to a library implementation."""

    DECISION_TREE = "decision_tree"  # C5.0-style entropy tree, boosted with trials
    ZERO_R = "zero_r"
    ONE_R = "one_r"
    RIPPER = "ripper"
    NAIVE_BAYES = "naive_bayes"
    MLP = "mlp"
    SVM = "svm"
    APRIORI = "apriori"
    LINEAR_REGRESSION = "linear_regression"
    REGRESSION_TREE = "regression_tree"  # rpart
    MODEL_TREE = "model_tree"  # M5P
    KNN = "knn"


class DataFormat(str, Enum):
    """Layout of the input file."""

    TABLE = "table"  # delimited rows with a header
    TRANSACTIONS = "transactions"  # one basket per line, items comma-separated


class SplitStrategy(str, Enum):
    """How a table is partitioned into train and test rows."""

    RANGE = "range"  # explicit 0-based half-open row ranges
    SAMPLE = "sample"  # seeded random draw without replacement
    NONE = "none"  # all rows train, nothing held out (rule mining)


class DerivedKind(str, Enum):
    """Derived column transformations."""

    MIN_MAX = "min_max"
    Z_SCORE = "z_score"
    SQUARE = "square"
    INDICATOR = "indicator"
    PRODUCT = "product"
    BINS = "bins"


class DataConfig(BaseModel):
    """Input file location and format descriptor."""

    model_config = ConfigDict(frozen=True)

    root: Path = Field(default=Path("./data"), description="Root directory for data")
    path: Path = Field(description="File path relative to root")
    format: DataFormat = Field(default=DataFormat.TABLE)
    delimiter: str = Field(default=",", min_length=1)
    header: bool = Field(default=True, description="First line holds column names")
    encoding: str = Field(default="utf-8")
    schema_name: str | None = Field(
        default=None, description="Registered pandera schema to validate against"
    )
    categorical: list[str] = Field(
        default_factory=list,
        description="Columns coerced to categorical in addition to string columns",
    )
    identifiers: list[str] = Field(
        default_factory=list, description="Row identifier columns, never features"
    )
    text: list[str] = Field(
        default_factory=list, description="Free-text columns (bag-of-words features)"
    )
    drop: list[str] = Field(default_factory=list, description="Columns removed on load")
    rename: dict[str, str] = Field(default_factory=dict)
    na_values: list[str] = Field(default_factory=list)

    def resolve(self) -> Path:
        """Absolute-or-relative path to the data file."""
        return self.root / self.path


class DerivedColumnConfig(BaseModel):
    """One derived column added after loading."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: DerivedKind
    column: str | None = None
    columns: list[str] = Field(default_factory=list)
    op: Literal[">=", ">", "<=", "<", "=="] = ">="
    value: float | str | None = None
    edges: list[float] = Field(default_factory=list)
    labels: list[str] | None = None

    @model_validator(mode="after")
    def check_kind_arguments(self) -> "DerivedColumnConfig":
        """Ensure each kind carries the arguments it needs."""
        single = {
            DerivedKind.MIN_MAX,
            DerivedKind.Z_SCORE,
            DerivedKind.SQUARE,
            DerivedKind.INDICATOR,
            DerivedKind.BINS,
        }
        if self.kind in single and not self.column:
            msg = f"Derived column '{self.name}' ({self.kind.value}) needs 'column'"
            raise ValueError(msg)
        if self.kind == DerivedKind.PRODUCT and len(self.columns) < 2:
            msg = f"Derived column '{self.name}' (product) needs at least 2 'columns'"
            raise ValueError(msg)
        if self.kind == DerivedKind.INDICATOR and self.value is None:
            msg = f"Derived column '{self.name}' (indicator) needs 'value'"
            raise ValueError(msg)
        if self.kind == DerivedKind.BINS:
            if len(self.edges) < 2:
                msg = f"Derived column '{self.name}' (bins) needs at least 2 'edges'"
                raise ValueError(msg)
            if self.labels is not None and len(self.labels) != len(self.edges) - 1:
                msg = f"Derived column '{self.name}': labels must be one fewer than edges"
                raise ValueError(msg)
        return self


class FeaturesConfig(BaseModel):
    """Derived column configuration."""

    model_config = ConfigDict(frozen=True)

    derived: list[DerivedColumnConfig] = Field(default_factory=list)
    drop_after: list[str] = Field(
        default_factory=list, description="Columns removed once derived columns exist"
    )


class SplitConfig(BaseModel):
    """Train/test partitioning rule."""

    model_config = ConfigDict(frozen=True)

    strategy: SplitStrategy = SplitStrategy.SAMPLE
    train: tuple[int, int] | None = Field(
        default=None, description="Train row range [start, stop)"
    )
    test: tuple[int, int] | None = Field(
        default=None, description="Test row range [start, stop)"
    )
    train_size: int | float | None = Field(
        default=None, description="Rows (int) or fraction (float) drawn for training"
    )
    test_size: int | float | None = Field(
        default=None, description="Rows held out; defaults to all remaining rows"
    )
    seed: int = Field(default=123)

    @model_validator(mode="after")
    def check_strategy_arguments(self) -> "SplitConfig":
        """Ensure the chosen strategy has its bounds."""
        if self.strategy == SplitStrategy.RANGE and (
            self.train is None or self.test is None
        ):
            msg = "Range split requires both 'train' and 'test' ranges"
            raise ValueError(msg)
        if self.strategy == SplitStrategy.SAMPLE and self.train_size is None:
            msg = "Sample split requires 'train_size'"
            raise ValueError(msg)
        return self


class ModelSpecConfig(BaseModel):
    """Algorithm selection and hyperparameters."""

    model_config = ConfigDict(frozen=True)

    algorithm: Algorithm
    target: str | None = Field(default=None, description="Target column name")
    features: list[str] | None = Field(
        default=None, description="Feature columns (default: all non-target columns)"
    )
    hyperparameters: dict[str, Any] = Field(default_factory=dict)


class PreprocessingConfig(BaseModel):
    """Feature encoding options applied inside the fitted pipeline."""

    model_config = ConfigDict(frozen=True)

    text_min_count: int = Field(
        default=1, ge=1, description="Minimum documents a term must appear in"
    )
    stop_words: str | None = Field(default="english")
    strip_numbers: bool = Field(default=True)
    scale_numeric: bool = Field(
        default=False, description="Standard-scale numeric features before fitting"
    )


class EvaluationConfig(BaseModel):
    """Evaluation and reporting options."""

    model_config = ConfigDict(frozen=True)

    positive_class: str | None = Field(
        default=None, description="Class treated as positive for binary summaries"
    )
    error_bins: int = Field(default=10, ge=1)
    top_rules: int = Field(default=10, ge=1)
    rule_item: str | None = Field(
        default=None, description="Only report rules mentioning this item"
    )
    plots: bool = Field(default=True)


class ExploreConfig(BaseModel):
    """Descriptive summaries for a dataset, without fitting a model."""

    model_config = ConfigDict(frozen=True)

    columns: list[str] | None = Field(
        default=None, description="Columns to summarise (default: all but identifiers)"
    )
    histograms: list[str] = Field(default_factory=list)
    crosstab: tuple[str, str] | None = Field(
        default=None, description="Row and column variables for a cross-tabulation"
    )


class TrackingConfig(BaseModel):
    """MLflow experiment tracking configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False)
    tracking_uri: str = Field(default="http://127.0.0.1:5000")
    experiment_name: str | None = Field(
        default=None, description="MLflow experiment name (defaults to chapter)"
    )


class OutputConfig(BaseModel):
    """Output paths: ./output/{chapter}/plots, predictions, models."""

    model_config = ConfigDict(frozen=True)

    output_root: Path = Field(default=Path("./output"))
    save_model: bool = Field(default=False)
    save_predictions: bool = Field(default=False)


class ChapterConfig(BaseModel):
    """Complete configuration of one chapter run."""

    model_config = ConfigDict(frozen=True)

    chapter: str = Field(description="Chapter identifier (e.g., 'credit-c50')")
    title: str | None = None

    data: DataConfig
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)
    split: SplitConfig | None = None
    model: ModelSpecConfig | None = None
    explore: ExploreConfig | None = None
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("chapter")
    @classmethod
    def validate_chapter(cls, v: str) -> str:
        """Chapter names end up in paths, so keep them simple."""
        if not v or any(c in v for c in "/\\ "):
            msg = f"Chapter must be a non-empty name without spaces or slashes, got: {v!r}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def check_model_or_explore(self) -> "ChapterConfig":
        """A chapter either fits a model (with a split) or only explores."""
        if self.model is None and self.explore is None:
            msg = "Chapter needs a 'model' or an 'explore' section"
            raise ValueError(msg)
        if self.model is not None and self.split is None:
            msg = "Chapter with a model needs a 'split' section"
            raise ValueError(msg)
        return self

    @property
    def algorithm(self) -> Algorithm | None:
        """Convenience accessor for the algorithm family."""
        return self.model.algorithm if self.model else None

    @property
    def experiment_name(self) -> str:
        """MLflow experiment name (derived from chapter if not set)."""
        return self.tracking.experiment_name or self.chapter

    @property
    def plots_dir(self) -> Path:
        """Path to plots output directory."""
        return self.output.output_root / self.chapter / "plots"

    @property
    def predictions_dir(self) -> Path:
        """Path to predictions output directory."""
        return self.output.output_root / self.chapter / "predictions"

    @property
    def models_dir(self) -> Path:
        """Path to saved models directory."""
        return self.output.output_root / self.chapter / "models"
