"""
Chapter pipeline orchestration.

Runs Loader -> derived columns -> Splitter -> Fitter -> Evaluator for one
chapter, passing each stage's output explicitly to the next.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console

from mlchapters.config.settings import ChapterConfig
from mlchapters.errors import ConfigError
from mlchapters.evaluation import report
from mlchapters.evaluation.experiment import ChapterExperiment
from mlchapters.evaluation.metrics import (
    ClassificationMetrics,
    RegressionMetrics,
    RuleSummary,
    evaluate,
    rules_containing,
    summarize_rules,
)
from mlchapters.features.pipeline import apply_features
from mlchapters.ingestion import load_table
from mlchapters.modeling.data import Split, make_split
from mlchapters.modeling.inference import PredictionSet, predict
from mlchapters.modeling.models import Task
from mlchapters.modeling.persistence import save_model
from mlchapters.modeling.training import FittedModel, fit
from mlchapters.schemas.table import Table
from mlchapters.utils.logging import get_logger, log_context

log = get_logger(__name__)


@dataclass
class ChapterResult:
    """
    Everything one chapter run produced.

    Attributes:
        config: Configuration that was run.
        table: Loaded table with derived columns.
        split: Train/test partition.
        model: Fitted model.
        predictions: Predictions on the evaluated rows (None for rule mining).
        evaluated_on: Rows the metrics describe, "test" or "train" when
            the split leaves no test rows.
        metrics: Classification or regression metrics.
        rules: Rule summary (association chapters).
        plots: Written plot files.
        artifacts: Other written files (model, metadata, predictions).
        run_id: MLflow run ID when tracking is enabled.
    """

    config: ChapterConfig
    table: Table
    split: Split
    model: FittedModel
    predictions: PredictionSet | None = None
    evaluated_on: str = "test"
    metrics: ClassificationMetrics | RegressionMetrics | None = None
    rules: RuleSummary | None = None
    plots: list[Path] = field(default_factory=list)
    artifacts: list[Path] = field(default_factory=list)
    run_id: str | None = None

    def metric_dict(self) -> dict[str, float]:
        """Scalar outcomes for logging and tracking."""
        if self.metrics is not None:
            return self.metrics.to_dict()
        if self.rules is not None:
            return self.rules.to_dict()
        return {}


def prepare_table(config: ChapterConfig) -> Table:
    """Load the chapter's data and add its derived columns."""
    table = load_table(config.data)
    if config.features.derived or config.features.drop_after:
        table = apply_features(table, config.features)
    return table


def run_chapter(config: ChapterConfig, console: Console | None = None) -> ChapterResult:
    """
    Run one chapter end to end.

    Args:
        config: Chapter configuration with a model section.
        console: Rich console for tables (None: no console output).

    Returns:
        ChapterResult.

    Raises:
        ConfigError: If the chapter has no model to fit.
        DataFormatError, IndexOutOfRangeError, FitError, PredictError:
            From the respective stage; the run is aborted.
    """
    if config.model is None or config.split is None:
        msg = f"Chapter '{config.chapter}' has no model to run; use explore"
        raise ConfigError(msg)

    with log_context(chapter=config.chapter, algorithm=config.algorithm.value):
        log.info("Starting chapter", title=config.title)

        table = prepare_table(config)
        split = make_split(table, config.split)
        model = fit(
            split.train,
            config.model.target,
            config.model.algorithm,
            config.model.hyperparameters,
            features=config.model.features,
            preprocessing=config.preprocessing,
        )
        result = ChapterResult(config=config, table=table, split=split, model=model)

        if console is not None:
            console.print(f"[blue]Split:[/blue] {split.rule.describe()}")
            description = model.describe()
            if description:
                console.print(description)

        if model.task == Task.ASSOCIATION:
            _evaluate_rules(result, console)
        elif split.test.n_rows > 0:
            _evaluate_predictions(result, console, split.test)
        else:
            log.warning("No test rows; evaluating on training rows")
            if console is not None:
                console.print("[yellow]No test rows; evaluating on training rows[/yellow]")
            result.evaluated_on = "train"
            _evaluate_predictions(result, console, split.train)

        if config.output.save_model:
            base = config.models_dir / config.chapter
            result.artifacts.extend(save_model(model, base, result.metric_dict()))

        if config.tracking.enabled:
            result.run_id = _track(result)

        log.info("Chapter complete", **result.metric_dict())
        return result


def _evaluate_predictions(
    result: ChapterResult, console: Console | None, rows: Table
) -> None:
    config = result.config
    predictions = predict(result.model, rows)
    result.predictions = predictions

    if not predictions.has_actual:
        log.warning(
            "Evaluated rows lack the target; skipping metrics", rows=result.evaluated_on
        )
        return

    metrics = evaluate(
        predictions,
        positive_class=config.evaluation.positive_class,
        baseline=result.model.target_mean,
        error_bins=config.evaluation.error_bins,
    )
    result.metrics = metrics

    plots_dir = config.plots_dir
    if isinstance(metrics, ClassificationMetrics):
        if console is not None:
            report.print_confusion_table(metrics, console)
            report.print_classification_metrics(metrics, console)
        if config.evaluation.plots:
            result.plots.append(
                report.plot_confusion(metrics, plots_dir / "confusion.png")
            )
    else:
        if console is not None:
            report.print_regression_metrics(metrics, console)
        if config.evaluation.plots:
            result.plots.append(
                report.plot_predicted_vs_actual(
                    predictions, metrics, plots_dir / "predicted_vs_actual.png"
                )
            )
            result.plots.append(
                report.plot_error_histogram(metrics, plots_dir / "abs_error.png")
            )

    if config.output.save_predictions:
        result.artifacts.append(
            report.save_predictions(predictions, config.predictions_dir, config.chapter)
        )


def _evaluate_rules(result: ChapterResult, console: Console | None) -> None:
    config = result.config
    rules = result.model.rules
    summary = summarize_rules(rules, top=config.evaluation.top_rules)
    result.rules = summary

    if console is not None:
        report.print_rule_summary(summary, console)
        item = config.evaluation.rule_item
        if item:
            subset = rules_containing(rules, item).head(config.evaluation.top_rules)
            report.print_rules(subset, console, title=f"Rules mentioning {item}")

    if config.evaluation.plots:
        items = result.split.train.select(result.model.feature_names).frame
        result.plots.append(
            report.plot_item_frequency(items, config.plots_dir / "item_frequency.png")
        )


def _track(result: ChapterResult) -> str:
    """Log a finished chapter to MLflow."""
    config = result.config
    experiment = ChapterExperiment(config)
    with experiment.run() as run_id:
        params: dict[str, Any] = {
            "algorithm": config.algorithm.value,
            "target": config.model.target,
            "split": result.split.rule.describe(),
            "n_train": result.split.train.n_rows,
            "n_test": result.split.test.n_rows,
            "evaluated_on": result.evaluated_on,
            **result.model.hyperparameters,
        }
        experiment.log_params(params)
        experiment.log_metrics(result.metric_dict())
        for path in [*result.plots, *result.artifacts]:
            experiment.log_artifact(path)
        if result.model.task != Task.ASSOCIATION:
            experiment.log_model(result.model.estimator)
    return run_id
