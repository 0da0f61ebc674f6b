"""
MLflow experiment tracking.

One chapter run maps to one MLflow run; parameter sweeps log each
setting as a nested run under a parent.
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import mlflow

from mlchapters import __version__
from mlchapters.config.settings import ChapterConfig
from mlchapters.utils.hashing import hash_config
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class ExperimentConfig:
    """
    Metadata for an MLflow experiment.

    Attributes:
        name: Experiment name.
        question: Single question this experiment answers.
        experiment_type: Category (chapter, parameter_sweep, ...).
        tags: Extra run tags.
    """

    name: str
    question: str
    experiment_type: str
    tags: dict[str, str] = field(default_factory=dict)


def flatten_params(params: Mapping[str, Any], prefix: str = "") -> dict[str, str]:
    """
    Flatten nested hyperparameters into MLflow's flat string params.

    A cost matrix ``{"costs": {"yes": {"no": 4}}}`` becomes
    ``{"costs.yes.no": "4"}``.
    """
    flat: dict[str, str] = {}
    for key, value in params.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten_params(value, prefix=f"{name}."))
        else:
            flat[name] = str(value)
    return flat


class ChapterExperiment:
    """MLflow run bookkeeping for one chapter."""

    def __init__(
        self,
        config: ChapterConfig,
        experiment_config: ExperimentConfig | None = None,
    ) -> None:
        self.config = config
        algorithm = config.algorithm.value if config.algorithm else "explore"
        self.experiment_config = experiment_config or ExperimentConfig(
            name=config.experiment_name,
            question=config.title or f"How well does {algorithm} do?",
            experiment_type="chapter",
        )
        self.tags = {
            "experiment_type": self.experiment_config.experiment_type,
            "chapter": config.chapter,
            "algorithm": algorithm,
            "question": self.experiment_config.question,
            "config_hash": hash_config(config),
            "mlchapters_version": __version__,
            **self.experiment_config.tags,
        }
        self._run_id: str | None = None

    def setup(self) -> None:
        """Point MLflow at the tracking server and experiment."""
        mlflow.set_tracking_uri(self.config.tracking.tracking_uri)
        mlflow.set_experiment(self.experiment_config.name)
        log.info(
            "Experiment setup",
            name=self.experiment_config.name,
            tracking_uri=self.config.tracking.tracking_uri,
        )

    def start_run(self, run_name: str | None = None) -> str:
        """
        Start the parent MLflow run tagged with the chapter metadata.

        Returns:
            Run ID.
        """
        self.setup()
        run = mlflow.start_run(run_name=run_name or self.config.chapter, tags=self.tags)
        self._run_id = run.info.run_id
        log.info("Started MLflow run", run_id=self._run_id)
        return self._run_id

    def end_run(self) -> None:
        mlflow.end_run()
        log.info("Ended MLflow run", run_id=self._run_id)

    @contextmanager
    def run(self, run_name: str | None = None) -> Iterator[str]:
        """Parent run that is ended even when logging fails."""
        run_id = self.start_run(run_name)
        try:
            yield run_id
        finally:
            self.end_run()

    @contextmanager
    def nested(self, run_name: str, **tags: str) -> Iterator[str]:
        """Child run under the active parent, e.g. one sweep point."""
        with mlflow.start_run(run_name=run_name, nested=True, tags=tags) as child:
            yield child.info.run_id

    def log_params(self, params: Mapping[str, Any]) -> None:
        mlflow.log_params(flatten_params(params))

    def log_metrics(self, metrics: Mapping[str, float]) -> None:
        mlflow.log_metrics({k: float(v) for k, v in metrics.items()})

    def log_artifact(self, path: Path, artifact_path: str | None = None) -> None:
        mlflow.log_artifact(str(path), artifact_path)

    def log_model(self, estimator: Any, artifact_path: str = "model") -> None:
        """Log a fitted scikit-learn compatible estimator."""
        mlflow.sklearn.log_model(estimator, artifact_path=artifact_path)
