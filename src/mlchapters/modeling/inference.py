"""
Applying a fitted model to new rows.

Predictions come back as a PredictionSet aligned one-to-one with the
evaluated Table, joined back to its row data.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.exceptions import NotFittedError

from mlchapters.errors import PredictError
from mlchapters.modeling.models import Task
from mlchapters.modeling.training import FittedModel
from mlchapters.schemas.table import Table
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class PredictionSet:
    """
    Predictions for every row of an evaluated table.

    Attributes:
        frame: Evaluated rows with a ``predicted`` column and, when the
            target is present, an ``actual`` column.
        target: Target column name.
        task: Classification or regression.
    """

    frame: pd.DataFrame
    target: str | None
    task: Task

    def __len__(self) -> int:
        return len(self.frame)

    @property
    def predicted(self) -> pd.Series:
        """Predicted values in row order."""
        return self.frame["predicted"]

    @property
    def actual(self) -> pd.Series | None:
        """Known target values in row order, if the table had them."""
        return self.frame["actual"] if "actual" in self.frame.columns else None

    @property
    def has_actual(self) -> bool:
        return "actual" in self.frame.columns


def unseen_levels(model: FittedModel, frame: pd.DataFrame) -> dict[str, list]:
    """Categorical values in ``frame`` that training never saw, per column."""
    unseen: dict[str, list] = {}
    for col, levels in model.categories.items():
        known = set(levels)
        values = frame[col].dropna().unique().tolist()
        new = sorted((v for v in values if v not in known), key=str)
        if new:
            unseen[col] = new
    return unseen


def predict(model: FittedModel, table: Table) -> PredictionSet:
    """
    Predict every row of a table.

    Args:
        model: Fitted classifier or regressor.
        table: Rows to predict; may include the target column.

    Returns:
        PredictionSet with one prediction per row.

    Raises:
        PredictError: If features are missing, a categorical feature holds a
            level never seen in training, or the library prediction fails.
    """
    if model.task == Task.ASSOCIATION:
        msg = "Association rules do not predict rows; inspect model.rules instead"
        raise PredictError(msg)

    missing = [c for c in model.feature_names if c not in table.roles]
    if missing:
        msg = f"Feature columns missing from table: {missing}"
        raise PredictError(msg)

    frame = table.frame
    unseen = unseen_levels(model, frame)
    if unseen:
        msg = f"Categorical levels not seen in training: {unseen}"
        raise PredictError(msg)

    log.info("Predicting", algorithm=model.algorithm.value, rows=table.n_rows)

    if table.n_rows == 0:
        predicted = np.array([], dtype=object if model.task == Task.CLASSIFICATION else float)
    else:
        try:
            predicted = model.estimator.predict(table.select(model.feature_names).frame)
        except (ValueError, TypeError, KeyError, NotFittedError) as e:
            msg = f"Prediction with '{model.algorithm.value}' failed: {e}"
            raise PredictError(msg) from e

    out = frame.copy()
    out["predicted"] = np.asarray(predicted)
    if model.target is not None and model.target in frame.columns:
        actual = frame[model.target]
        if model.task == Task.CLASSIFICATION:
            actual = actual.astype(object)
        out["actual"] = actual

    return PredictionSet(frame=out, target=model.target, task=model.task)
