"""
Evaluation metrics.

Summaries of a PredictionSet: confusion tabulation, accuracy and kappa
for classifiers; correlation and absolute-error distribution for
regressors; support/confidence/lift distributions for association rules.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.metrics import cohen_kappa_score
from sklearn.metrics import max_error as sklearn_max_error
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from mlchapters.errors import ConfigError
from mlchapters.modeling.association import AssociationRules
from mlchapters.modeling.inference import PredictionSet
from mlchapters.modeling.models import Task
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ConfusionTable:
    """
    Counts of predicted (rows) against actual (columns) classes.

    Attributes:
        counts: Square crosstab over the union of observed classes.
    """

    counts: pd.DataFrame

    @classmethod
    def from_labels(cls, actual: pd.Series, predicted: pd.Series) -> "ConfusionTable":
        """Tabulate labels; classes seen on either side get a row and column."""
        actual = pd.Series(np.asarray(actual, dtype=object), name="actual")
        predicted = pd.Series(np.asarray(predicted, dtype=object), name="predicted")
        labels = sorted(set(actual) | set(predicted), key=str)
        counts = pd.crosstab(predicted, actual).reindex(
            index=labels, columns=labels, fill_value=0
        )
        counts.index.name = "predicted"
        counts.columns.name = "actual"
        return cls(counts=counts)

    @property
    def total(self) -> int:
        """Number of tabulated rows."""
        return int(self.counts.to_numpy().sum())

    @property
    def correct(self) -> int:
        """Rows on the diagonal."""
        return int(np.trace(self.counts.to_numpy()))

    def proportions(self) -> pd.DataFrame:
        """Counts as fractions of the table total."""
        return self.counts / max(self.total, 1)


@dataclass(frozen=True)
class ClassificationMetrics:
    """
    Classifier quality on held-out rows.

    Attributes:
        confusion: Predicted x actual counts.
        accuracy: Fraction predicted correctly.
        error_rate: 1 - accuracy.
        kappa: Cohen's kappa (agreement beyond chance).
        positive_class: Class used for sensitivity/specificity.
        sensitivity: True positive rate (binary targets only).
        specificity: True negative rate (binary targets only).
        n_samples: Rows evaluated.
    """

    confusion: ConfusionTable
    accuracy: float
    error_rate: float
    kappa: float
    n_samples: int
    positive_class: str | None = None
    sensitivity: float | None = None
    specificity: float | None = None

    def to_dict(self) -> dict[str, float]:
        """Scalar metrics as a flat dictionary."""
        out = {
            "accuracy": self.accuracy,
            "error_rate": self.error_rate,
            "kappa": self.kappa,
            "n_samples": self.n_samples,
        }
        if self.sensitivity is not None:
            out["sensitivity"] = self.sensitivity
            out["specificity"] = self.specificity
        return out

    def __str__(self) -> str:
        return (
            f"accuracy={self.accuracy:.4f}, error={self.error_rate:.4f}, "
            f"kappa={self.kappa:.4f}"
        )


@dataclass(frozen=True)
class RegressionMetrics:
    """
    Regressor quality on held-out rows.

    Attributes:
        correlation: Pearson correlation of predicted and actual.
        mae: Mean absolute error.
        rmse: Root mean squared error.
        r2: Coefficient of determination.
        max_error: Largest absolute error.
        baseline_mae: MAE of always predicting the training mean.
        n_samples: Rows evaluated.
        error_counts: Absolute-error histogram counts.
        error_edges: Absolute-error histogram bin edges.
    """

    correlation: float
    mae: float
    rmse: float
    r2: float
    max_error: float
    baseline_mae: float | None
    n_samples: int
    error_counts: tuple[int, ...] = ()
    error_edges: tuple[float, ...] = ()

    def to_dict(self) -> dict[str, float]:
        """Scalar metrics as a flat dictionary."""
        out = {
            "correlation": self.correlation,
            "mae": self.mae,
            "rmse": self.rmse,
            "r2": self.r2,
            "max_error": self.max_error,
            "n_samples": self.n_samples,
        }
        if self.baseline_mae is not None:
            out["baseline_mae"] = self.baseline_mae
        return out

    def __str__(self) -> str:
        return (
            f"r={self.correlation:.4f}, MAE={self.mae:.4f}, "
            f"RMSE={self.rmse:.4f}, R²={self.r2:.4f}"
        )


@dataclass(frozen=True)
class RuleSummary:
    """
    Overview of a mined rule set.

    Attributes:
        n_rules: Number of rules.
        n_itemsets: Number of frequent itemsets.
        n_transactions: Transactions mined.
        top: Best rules by lift.
        quality: describe() of support, confidence and lift.
    """

    n_rules: int
    n_itemsets: int
    n_transactions: int
    top: pd.DataFrame
    quality: pd.DataFrame

    def to_dict(self) -> dict[str, float]:
        out: dict[str, float] = {
            "n_rules": self.n_rules,
            "n_itemsets": self.n_itemsets,
            "n_transactions": self.n_transactions,
        }
        if self.n_rules:
            for metric in ("support", "confidence", "lift"):
                out[f"mean_{metric}"] = float(self.quality.loc["mean", metric])
        return out


def _labelled(predictions: PredictionSet) -> tuple[pd.Series, pd.Series]:
    """Actual and predicted values for rows with a known target."""
    if not predictions.has_actual:
        msg = "Prediction set has no actual values to evaluate against"
        raise ValueError(msg)
    mask = predictions.actual.notna()
    n_missing = int((~mask).sum())
    if n_missing:
        log.warning("Skipping rows with missing actual values", rows=n_missing)
    return predictions.actual[mask], predictions.predicted[mask]


def classification_metrics(
    predictions: PredictionSet, positive_class: str | None = None
) -> ClassificationMetrics:
    """
    Compute classifier metrics.

    Args:
        predictions: Classifier predictions with actual values.
        positive_class: Positive class for binary summaries (default: the
            second class in sorted order, matching R's factor convention).

    Returns:
        ClassificationMetrics.

    Raises:
        ConfigError: If a binary positive_class is not one of the classes.
    """
    actual, predicted = _labelled(predictions)
    confusion = ConfusionTable.from_labels(actual, predicted)
    n = confusion.total
    if n == 0:
        log.warning("No rows to evaluate")
        return ClassificationMetrics(
            confusion=confusion, accuracy=0.0, error_rate=0.0, kappa=0.0, n_samples=0
        )

    accuracy = confusion.correct / n
    actual_labels = np.asarray(actual, dtype=object).astype(str)
    predicted_labels = np.asarray(predicted, dtype=object).astype(str)
    if len(set(actual_labels) | set(predicted_labels)) < 2:
        kappa = 1.0 if accuracy == 1.0 else 0.0
    else:
        kappa = float(cohen_kappa_score(actual_labels, predicted_labels))
        if np.isnan(kappa):
            kappa = 0.0

    sensitivity = specificity = None
    classes = sorted(set(actual_labels) | set(predicted_labels))
    if len(classes) == 2:
        positive = str(positive_class) if positive_class is not None else classes[1]
        if positive not in classes:
            msg = f"positive_class '{positive}' not among classes {classes}"
            raise ConfigError(msg)
        is_pos = actual_labels == positive
        pred_pos = predicted_labels == positive
        sensitivity = float((is_pos & pred_pos).sum() / max(is_pos.sum(), 1))
        specificity = float((~is_pos & ~pred_pos).sum() / max((~is_pos).sum(), 1))
        positive_class = positive

    metrics = ClassificationMetrics(
        confusion=confusion,
        accuracy=float(accuracy),
        error_rate=float(1.0 - accuracy),
        kappa=kappa,
        n_samples=n,
        positive_class=positive_class if sensitivity is not None else None,
        sensitivity=sensitivity,
        specificity=specificity,
    )
    log.debug("Computed classification metrics", **metrics.to_dict())
    return metrics


def regression_metrics(
    predictions: PredictionSet,
    *,
    baseline: float | None = None,
    error_bins: int = 10,
) -> RegressionMetrics:
    """
    Compute regressor metrics.

    Args:
        predictions: Regressor predictions with actual values.
        baseline: Constant prediction to compare against (training mean).
        error_bins: Bins for the absolute-error histogram.

    Returns:
        RegressionMetrics.
    """
    actual, predicted = _labelled(predictions)
    y_true = np.asarray(actual, dtype=float)
    y_pred = np.asarray(predicted, dtype=float)

    if len(y_true) == 0:
        log.warning("Empty arrays provided for metrics")
        return RegressionMetrics(
            correlation=0.0,
            mae=0.0,
            rmse=0.0,
            r2=0.0,
            max_error=0.0,
            baseline_mae=None,
            n_samples=0,
        )

    if len(y_true) < 2 or np.std(y_true) == 0 or np.std(y_pred) == 0:
        correlation = 0.0
    else:
        correlation = float(np.corrcoef(y_true, y_pred)[0, 1])

    abs_error = np.abs(y_true - y_pred)
    counts, edges = np.histogram(abs_error, bins=error_bins)

    metrics = RegressionMetrics(
        correlation=correlation,
        mae=float(mean_absolute_error(y_true, y_pred)),
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        r2=float(r2_score(y_true, y_pred)) if len(y_true) > 1 else 0.0,
        max_error=float(sklearn_max_error(y_true, y_pred)),
        baseline_mae=(
            float(np.mean(np.abs(y_true - baseline))) if baseline is not None else None
        ),
        n_samples=len(y_true),
        error_counts=tuple(int(c) for c in counts),
        error_edges=tuple(float(e) for e in edges),
    )
    log.debug("Computed regression metrics", **metrics.to_dict())
    return metrics


def rules_containing(rules: AssociationRules, item: str) -> pd.DataFrame:
    """Rules mentioning ``item`` on either side, best lift first."""
    subset = rules.containing(item)
    return subset.sort_values("lift", ascending=False, kind="stable")


def summarize_rules(rules: AssociationRules, top: int = 10) -> RuleSummary:
    """
    Summarise a rule set.

    Args:
        rules: Mined rules.
        top: How many rules (by lift) to keep for display.

    Returns:
        RuleSummary.
    """
    quality = (
        rules.rules[["support", "confidence", "lift"]].astype(float).describe()
        if len(rules)
        else pd.DataFrame(columns=["support", "confidence", "lift"])
    )
    return RuleSummary(
        n_rules=len(rules),
        n_itemsets=len(rules.itemsets),
        n_transactions=rules.n_transactions,
        top=rules.sorted_by("lift").head(top),
        quality=quality,
    )


def evaluate(
    predictions: PredictionSet,
    *,
    positive_class: str | None = None,
    baseline: float | None = None,
    error_bins: int = 10,
) -> ClassificationMetrics | RegressionMetrics:
    """Metrics matching the prediction set's task."""
    if predictions.task == Task.CLASSIFICATION:
        return classification_metrics(predictions, positive_class)
    if predictions.task == Task.REGRESSION:
        return regression_metrics(predictions, baseline=baseline, error_bins=error_bins)
    msg = f"Cannot evaluate predictions for task '{predictions.task.value}'"
    raise ValueError(msg)
