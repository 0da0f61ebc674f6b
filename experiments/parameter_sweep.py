"""
Hyperparameter sweep experiment.

Question: How does a single hyperparameter change a chapter's test metric?

Fits the chapter once per candidate value on the same split and logs
each fit as a nested MLflow run under one parent run.
"""

from contextlib import nullcontext
from pathlib import Path
from typing import Any

import yaml

from mlchapters.config import load_config
from mlchapters.config.settings import ChapterConfig
from mlchapters.evaluation.experiment import ChapterExperiment, ExperimentConfig
from mlchapters.evaluation.metrics import evaluate, summarize_rules
from mlchapters.modeling.data import make_split
from mlchapters.modeling.inference import predict
from mlchapters.modeling.models import Task
from mlchapters.modeling.training import fit
from mlchapters.pipeline import prepare_table
from mlchapters.utils.logging import configure_logging, get_logger

log = get_logger(__name__)


def run_parameter_sweep(
    config: ChapterConfig,
    parameter: str,
    values: list[Any],
    *,
    track: bool = True,
) -> dict[str, dict[str, float]]:
    """
    Refit a chapter for each value of one hyperparameter.

    Args:
        config: Chapter configuration (must have a model).
        parameter: Hyperparameter name to vary.
        values: Candidate values.
        track: Log runs to MLflow.

    Returns:
        Mapping of value (as string) -> metrics.
    """
    table = prepare_table(config)
    split = make_split(table, config.split)

    experiment = ChapterExperiment(
        config,
        ExperimentConfig(
            name=f"{config.experiment_name}-sweep-{parameter}",
            question=f"How does {parameter} change {config.algorithm.value} results?",
            experiment_type="parameter_sweep",
            tags={"parameter": parameter},
        ),
    )
    results: dict[str, dict[str, float]] = {}
    with experiment.run(f"{config.chapter}-{parameter}") if track else nullcontext():
        if track:
            experiment.log_params(
                {"parameter": parameter, "values": values, "n_train": split.train.n_rows}
            )
        for value in values:
            params = {**config.model.hyperparameters, parameter: value}
            model = fit(
                split.train,
                config.model.target,
                config.model.algorithm,
                params,
                features=config.model.features,
                preprocessing=config.preprocessing,
            )
            if model.task == Task.ASSOCIATION:
                metrics = summarize_rules(model.rules).to_dict()
            else:
                metrics = evaluate(
                    predict(model, split.test),
                    positive_class=config.evaluation.positive_class,
                    baseline=model.target_mean,
                ).to_dict()
            results[str(value)] = metrics
            log.info("Sweep point", parameter=parameter, value=value, **metrics)

            if track:
                with experiment.nested(f"{parameter}={value}", parameter_value=str(value)):
                    experiment.log_params(model.hyperparameters)
                    experiment.log_metrics(metrics)

    return results


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 4:
        print("Usage: python parameter_sweep.py <config_path> <parameter> <yaml list>")
        print("Example: python parameter_sweep.py configs/chapters/wisc_bc_knn.yaml k '[1, 5, 11, 15, 21, 27]'")
        sys.exit(1)

    configure_logging()
    chapter = load_config(Path(sys.argv[1]))
    sweep = run_parameter_sweep(chapter, sys.argv[2], yaml.safe_load(sys.argv[3]))
    for value, metrics in sweep.items():
        print(f"{sys.argv[2]}={value}: {metrics}")
