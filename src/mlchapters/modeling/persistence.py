"""
Fitted model persistence (save/load).

Creates two files next to each other:
    - {name}.model.joblib: pickled FittedModel
    - {name}.model.json: human-readable metadata
"""

import json
from pathlib import Path
from typing import Any

import joblib

from mlchapters import __version__
from mlchapters.errors import PredictError
from mlchapters.modeling.training import FittedModel
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


def _paths(path: Path) -> tuple[Path, Path]:
    """Model and metadata paths from a base path or either file path."""
    path = Path(path)
    name = path.name
    for suffix in (".model.joblib", ".model.json"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
            break
    base = path.with_name(name)
    return base.with_name(f"{name}.model.joblib"), base.with_name(f"{name}.model.json")


def save_model(
    model: FittedModel,
    output_path: Path,
    metrics: dict[str, Any] | None = None,
) -> tuple[Path, Path]:
    """
    Save a fitted model and its metadata.

    Args:
        model: Fitted model to save.
        output_path: Base output path (without extension).
        metrics: Optional evaluation metrics to record.

    Returns:
        Tuple of (model_path, metadata_path).
    """
    model_path, metadata_path = _paths(output_path)
    model_path.parent.mkdir(parents=True, exist_ok=True)

    joblib.dump(model, model_path)
    log.info("Saved model", path=str(model_path))

    metadata: dict[str, Any] = {
        "algorithm": model.algorithm.value,
        "task": model.task.value,
        "target": model.target,
        "hyperparameters": model.hyperparameters,
        "features": model.feature_names,
        "classes": [str(c) for c in model.classes],
        "n_train": model.n_train,
        "training_time_s": model.training_time_s,
        "data_hash": model.data_hash,
        "mlchapters_version": __version__,
    }
    if metrics:
        metadata["metrics"] = metrics

    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2, default=str)
    log.info("Saved model metadata", path=str(metadata_path))

    return model_path, metadata_path


def load_model(path: Path) -> tuple[FittedModel, dict[str, Any]]:
    """
    Load a fitted model and its metadata.

    Accepts the .model.joblib file itself or the base path.

    Raises:
        PredictError: If the model file is missing or not a FittedModel.
    """
    model_path, metadata_path = _paths(path)
    if not model_path.exists():
        msg = f"Model file not found: {model_path}"
        raise PredictError(msg)

    model = joblib.load(model_path)
    if not isinstance(model, FittedModel):
        msg = f"{model_path} does not hold a fitted model"
        raise PredictError(msg)
    log.info("Loaded model", path=str(model_path), algorithm=model.algorithm.value)

    metadata: dict[str, Any] = {}
    if metadata_path.exists():
        with open(metadata_path, encoding="utf-8") as f:
            metadata = json.load(f)
    else:
        log.warning("Model metadata not found", path=str(metadata_path))

    return model, metadata
