"""
Result tabulation and plots.

Prints rich tables for each evaluation outcome and writes matplotlib PNG
plots to the chapter's plots directory.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from rich.console import Console
from rich.table import Table

from mlchapters.evaluation.metrics import (
    ClassificationMetrics,
    RegressionMetrics,
    RuleSummary,
)
from mlchapters.modeling.association import format_itemset
from mlchapters.modeling.inference import PredictionSet
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


def _save(fig: Figure, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=100, bbox_inches="tight")
    plt.close(fig)
    log.info("Saved plot", path=str(path))
    return path


def print_confusion_table(
    metrics: ClassificationMetrics, console: Console, title: str = "Confusion table"
) -> None:
    """Print predicted x actual counts with row and column proportions."""
    counts = metrics.confusion.counts
    total = metrics.confusion.total

    table = Table(title=title)
    table.add_column("predicted \\ actual", style="cyan")
    for col in counts.columns:
        table.add_column(str(col), justify="right")
    table.add_column("total", justify="right", style="dim")

    for label, row in counts.iterrows():
        cells = [f"{int(v)} ({v / max(total, 1):.3f})" for v in row]
        table.add_row(str(label), *cells, str(int(row.sum())))
    table.add_row(
        "total",
        *[str(int(v)) for v in counts.sum(axis=0)],
        str(total),
        style="dim",
    )
    console.print(table)


def print_classification_metrics(
    metrics: ClassificationMetrics, console: Console
) -> None:
    table = Table(title="Classification metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("rows", str(metrics.n_samples))
    table.add_row("accuracy", f"{metrics.accuracy:.4f}")
    table.add_row("error rate", f"{metrics.error_rate:.4f}")
    table.add_row("kappa", f"{metrics.kappa:.4f}")
    if metrics.sensitivity is not None:
        table.add_row(f"sensitivity ({metrics.positive_class})", f"{metrics.sensitivity:.4f}")
        table.add_row(f"specificity ({metrics.positive_class})", f"{metrics.specificity:.4f}")
    console.print(table)


def print_regression_metrics(metrics: RegressionMetrics, console: Console) -> None:
    table = Table(title="Regression metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("rows", str(metrics.n_samples))
    table.add_row("correlation", f"{metrics.correlation:.4f}")
    table.add_row("MAE", f"{metrics.mae:.4f}")
    if metrics.baseline_mae is not None:
        table.add_row("MAE (predict mean)", f"{metrics.baseline_mae:.4f}")
    table.add_row("RMSE", f"{metrics.rmse:.4f}")
    table.add_row("R²", f"{metrics.r2:.4f}")
    table.add_row("max error", f"{metrics.max_error:.4f}")
    console.print(table)

    if metrics.error_counts:
        hist = Table(title="Absolute error distribution")
        hist.add_column("from", justify="right")
        hist.add_column("to", justify="right")
        hist.add_column("rows", justify="right", style="green")
        edges = metrics.error_edges
        for i, count in enumerate(metrics.error_counts):
            hist.add_row(f"{edges[i]:.3f}", f"{edges[i + 1]:.3f}", str(count))
        console.print(hist)


def rules_frame(rules: pd.DataFrame) -> pd.DataFrame:
    """Rules with itemsets rendered as ``{a, b}`` strings."""
    out = rules.copy()
    for side in ("antecedents", "consequents"):
        out[side] = out[side].apply(format_itemset)
    return out


def print_rules(rules: pd.DataFrame, console: Console, title: str = "Rules") -> None:
    """Print rules as ``lhs => rhs`` with their quality measures."""
    table = Table(title=title)
    table.add_column("lhs", style="cyan")
    table.add_column("rhs", style="magenta")
    for col in ("support", "confidence", "lift", "count"):
        table.add_column(col, justify="right")
    for _, row in rules_frame(rules).iterrows():
        table.add_row(
            row["antecedents"],
            row["consequents"],
            f"{row['support']:.4f}",
            f"{row['confidence']:.4f}",
            f"{row['lift']:.4f}",
            str(int(row["count"])),
        )
    console.print(table)


def print_rule_summary(summary: RuleSummary, console: Console) -> None:
    console.print(
        f"[bold]{summary.n_rules}[/bold] rules from {summary.n_itemsets} frequent "
        f"itemsets over {summary.n_transactions} transactions"
    )
    if summary.n_rules:
        quality = Table(title="Rule quality")
        quality.add_column("", style="cyan")
        for col in summary.quality.columns:
            quality.add_column(col, justify="right")
        for stat, row in summary.quality.iterrows():
            quality.add_row(str(stat), *[f"{v:.4f}" for v in row])
        console.print(quality)
        print_rules(summary.top, console, title="Top rules by lift")


def plot_confusion(metrics: ClassificationMetrics, path: Path) -> Path:
    """Heatmap of the confusion table."""
    counts = metrics.confusion.counts
    n = len(counts)
    fig, ax = plt.subplots(figsize=(max(4, n * 0.6 + 2), max(3.5, n * 0.6 + 1.5)))
    im = ax.imshow(counts.to_numpy(), cmap="Blues")
    ax.set_xticks(range(n), [str(c) for c in counts.columns], rotation=45, ha="right")
    ax.set_yticks(range(n), [str(c) for c in counts.index])
    ax.set_xlabel("Actual")
    ax.set_ylabel("Predicted")
    if n <= 12:
        for i in range(n):
            for j in range(n):
                ax.text(j, i, int(counts.iat[i, j]), ha="center", va="center", fontsize=9)
    fig.colorbar(im, ax=ax)
    ax.set_title(f"Confusion table (accuracy {metrics.accuracy:.3f})")
    return _save(fig, path)


def plot_predicted_vs_actual(
    predictions: PredictionSet, metrics: RegressionMetrics, path: Path
) -> Path:
    """Scatter of actual against predicted with the identity line."""
    mask = predictions.actual.notna()
    y_true = predictions.actual[mask].to_numpy(dtype=float)
    y_pred = predictions.predicted[mask].to_numpy(dtype=float)

    fig, ax = plt.subplots(figsize=(7, 6))
    ax.scatter(y_pred, y_true, alpha=0.5, s=20, c="steelblue", edgecolors="none")
    if len(y_true):
        lo = min(y_true.min(), y_pred.min())
        hi = max(y_true.max(), y_pred.max())
        ax.plot([lo, hi], [lo, hi], "r--", alpha=0.8, linewidth=2, label="Identity (y=x)")
        ax.legend(loc="lower right")
    ax.text(
        0.05,
        0.95,
        f"r = {metrics.correlation:.4f}\nMAE = {metrics.mae:.3f}",
        transform=ax.transAxes,
        fontsize=10,
        verticalalignment="top",
        bbox={"boxstyle": "round", "facecolor": "white", "alpha": 0.8},
    )
    ax.set_xlabel(f"Predicted {predictions.target}")
    ax.set_ylabel(f"Actual {predictions.target}")
    ax.grid(True, alpha=0.3)
    return _save(fig, path)


def plot_error_histogram(metrics: RegressionMetrics, path: Path) -> Path:
    """Histogram of absolute errors."""
    edges = np.asarray(metrics.error_edges)
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.bar(
        edges[:-1],
        metrics.error_counts,
        width=np.diff(edges),
        align="edge",
        color="steelblue",
        edgecolor="white",
    )
    ax.set_xlabel("Absolute error")
    ax.set_ylabel("Rows")
    ax.set_title("Absolute error distribution")
    return _save(fig, path)


def plot_item_frequency(items: pd.DataFrame, path: Path, top: int = 20) -> Path:
    """Bar chart of the most frequent items (relative support)."""
    support = items.mean(axis=0).sort_values(ascending=False).head(top)
    fig, ax = plt.subplots(figsize=(8, max(3, len(support) * 0.3)))
    ax.barh(support.index[::-1], support.to_numpy()[::-1], color="steelblue")
    ax.set_xlabel("Support")
    ax.set_title(f"Top {len(support)} items")
    return _save(fig, path)


def plot_histogram(values: pd.Series, path: Path, bins: int = 20) -> Path:
    """Histogram of one numeric column."""
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.hist(values.dropna().to_numpy(dtype=float), bins=bins, color="steelblue", edgecolor="white")
    ax.set_xlabel(str(values.name))
    ax.set_ylabel("Rows")
    ax.set_title(f"Histogram of {values.name}")
    return _save(fig, path)


def save_predictions(predictions: PredictionSet, output_dir: Path, name: str) -> Path:
    """
    Write the prediction set to CSV.

    Returns:
        Path to the written file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{name}_predictions.csv"
    predictions.frame.to_csv(path, index=False)
    log.info("Saved predictions", path=str(path), rows=len(predictions))
    return path
