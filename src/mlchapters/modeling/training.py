"""
Model fitting.

Turns a training Table, a target column and an algorithm selection into
a FittedModel. The learning itself is done by the library estimator the
algorithm registry builds; this module checks the inputs, encodes the
features and records what the model was fitted on.
"""

import time
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from sklearn.pipeline import Pipeline

from mlchapters.config.settings import Algorithm, PreprocessingConfig
from mlchapters.errors import FitError
from mlchapters.modeling.association import AssociationRules
from mlchapters.modeling.models import AlgorithmSpec, Encoding, Task, get_spec
from mlchapters.modeling.preprocessing import build_preprocessor
from mlchapters.schemas.table import ColumnRole, Table
from mlchapters.utils.hashing import hash_dataframe
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class FittedModel:
    """
    A fitted estimator with the metadata needed to apply it.

    Attributes:
        algorithm: Algorithm family.
        task: Classification, regression or association.
        target: Target column (None for association rules).
        hyperparameters: Resolved hyperparameters used for fitting.
        estimator: Fitted library object (pipeline, estimator or rules).
        feature_names: Input feature columns, in order.
        feature_roles: Role of each feature column.
        categories: Levels seen in training for each categorical feature.
        classes: Target classes (classification only).
        n_train: Number of training rows.
        target_mean: Mean training target (regression only).
        training_time_s: Wall-clock fit time.
        data_hash: Fingerprint of the training rows.
    """

    algorithm: Algorithm
    task: Task
    target: str | None
    hyperparameters: dict[str, Any]
    estimator: Any
    feature_names: list[str] = field(default_factory=list)
    feature_roles: dict[str, ColumnRole] = field(default_factory=dict)
    categories: dict[str, list[Any]] = field(default_factory=dict)
    classes: list[Any] = field(default_factory=list)
    n_train: int = 0
    target_mean: float | None = None
    training_time_s: float = 0.0
    data_hash: str | None = None

    @property
    def rules(self) -> AssociationRules:
        """Mined rules of an association model."""
        if not isinstance(self.estimator, AssociationRules):
            msg = f"'{self.algorithm.value}' models carry no association rules"
            raise AttributeError(msg)
        return self.estimator

    def describe(self) -> str | None:
        """Readable model summary where the estimator offers one."""
        model = self.estimator
        if isinstance(model, Pipeline):
            model = model.named_steps["model"]
        describe = getattr(model, "describe", None)
        return describe() if callable(describe) else None


def resolve_features(
    table: Table, target: str | None, features: list[str] | None
) -> list[str]:
    """
    Feature columns: the explicit list, or every column that is neither
    the target nor an identifier.

    Raises:
        FitError: If explicit features are missing or include the target.
    """
    if features is None:
        return [
            c
            for c in table.columns
            if c != target and table.role(c) != ColumnRole.IDENTIFIER
        ]

    missing = [c for c in features if c not in table.roles]
    if missing:
        msg = f"Feature columns not in table: {missing}"
        raise FitError(msg)
    if target in features:
        msg = f"Target '{target}' cannot also be a feature"
        raise FitError(msg)
    return list(features)


def cost_weights(
    y: pd.Series, costs: dict[str, dict[str, float]]
) -> np.ndarray:
    """
    Per-row weights from a misclassification cost matrix.

    A row of class ``c`` weighs the total cost of misclassifying ``c``,
    so expensive mistakes pull the tree harder. Classes without a cost
    row keep weight 1.

    Raises:
        FitError: If the matrix names unknown classes or zeroes a class out.
    """
    classes = {str(c) for c in y.unique()}
    named = set(costs) | {p for row in costs.values() for p in row}
    unknown = sorted(named - classes)
    if unknown:
        msg = f"Cost matrix names classes not in target: {unknown}"
        raise FitError(msg)

    weights: dict[str, float] = {}
    for cls in classes:
        row = costs.get(cls)
        weight = 1.0 if row is None else float(sum(v for p, v in row.items() if p != cls))
        if weight <= 0:
            msg = f"Cost matrix gives class '{cls}' zero total cost"
            raise FitError(msg)
        weights[cls] = weight

    log.info("Cost-sensitive weights", weights=weights)
    return y.astype(str).map(weights).to_numpy(dtype=float)


class ModelTrainer:
    """Fits one algorithm to a training table."""

    def __init__(
        self,
        algorithm: Algorithm | str,
        hyperparameters: dict[str, Any] | None = None,
        preprocessing: PreprocessingConfig | None = None,
    ) -> None:
        """
        Initialize trainer.

        Args:
            algorithm: Algorithm family.
            hyperparameters: Hyperparameters recognised by the algorithm.
            preprocessing: Feature encoding options.

        Raises:
            FitError: If the algorithm or a hyperparameter is not recognised.
        """
        self.spec: AlgorithmSpec = get_spec(algorithm)
        self.params = self.spec.resolve(hyperparameters)
        self.preprocessing = preprocessing or PreprocessingConfig()

    def fit(
        self,
        table: Table,
        target: str | None,
        features: list[str] | None = None,
    ) -> FittedModel:
        """
        Fit the algorithm on a training table.

        Args:
            table: Training rows.
            target: Target column (must be None for association rules).
            features: Feature columns (default: all but target/identifiers).

        Returns:
            FittedModel.

        Raises:
            FitError: If inputs are incompatible or the library fit fails.
        """
        log.info(
            "Starting fit",
            algorithm=self.spec.algorithm.value,
            rows=table.n_rows,
            target=target,
        )
        if table.n_rows == 0:
            msg = "Cannot fit on an empty table"
            raise FitError(msg)

        if self.spec.task == Task.ASSOCIATION:
            return self._fit_rules(table, target)

        target = self._check_target(table, target)
        features = resolve_features(table, target, features)
        if not features:
            msg = "No feature columns left to fit on"
            raise FitError(msg)

        frame = table.frame
        if frame[target].isna().any():
            n_missing = int(frame[target].isna().sum())
            log.warning("Dropping rows with missing target", rows=n_missing)
            frame = frame[frame[target].notna()]

        X = frame[features]
        y = frame[target]
        if self.spec.task == Task.CLASSIFICATION:
            y = y.astype(object)
            if y.nunique() < 2:
                msg = f"Target '{target}' has fewer than two classes in training rows"
                raise FitError(msg)

        roles = {c: table.role(c) for c in features}
        estimator = self._build_estimator(roles)

        fit_params: dict[str, Any] = {}
        if self.spec.weighted and self.params.get("costs"):
            weights = cost_weights(y, self.params["costs"])
            key = "model__sample_weight" if isinstance(estimator, Pipeline) else "sample_weight"
            fit_params[key] = weights

        start = time.perf_counter()
        try:
            estimator.fit(X, y, **fit_params)
        except (ValueError, TypeError) as e:
            msg = f"{self.spec.label} fit failed: {e}"
            raise FitError(msg) from e
        training_time_s = time.perf_counter() - start

        categories = {
            c: sorted(X[c].dropna().unique().tolist(), key=str)
            for c, r in roles.items()
            if r in (ColumnRole.CATEGORICAL, ColumnRole.ITEM)
        }
        classes = (
            sorted(y.unique().tolist(), key=str)
            if self.spec.task == Task.CLASSIFICATION
            else []
        )

        log.info(
            "Fit complete",
            algorithm=self.spec.algorithm.value,
            features=len(features),
            training_time_s=round(training_time_s, 3),
        )
        return FittedModel(
            algorithm=self.spec.algorithm,
            task=self.spec.task,
            target=target,
            hyperparameters=dict(self.params),
            estimator=estimator,
            feature_names=features,
            feature_roles=roles,
            categories=categories,
            classes=classes,
            n_train=len(X),
            target_mean=float(y.mean()) if self.spec.task == Task.REGRESSION else None,
            training_time_s=training_time_s,
            data_hash=hash_dataframe(frame[[*features, target]]),
        )

    def _check_target(self, table: Table, target: str | None) -> str:
        """Target must exist and suit the algorithm's task."""
        if not target:
            msg = f"'{self.spec.algorithm.value}' needs a target column"
            raise FitError(msg)
        if target not in table.roles:
            msg = f"Target column '{target}' not in table (columns: {table.columns})"
            raise FitError(msg)

        role = table.role(target)
        if self.spec.task == Task.CLASSIFICATION and role != ColumnRole.CATEGORICAL:
            msg = (
                f"'{self.spec.algorithm.value}' is a classifier but target "
                f"'{target}' is {role.value}; declare it categorical"
            )
            raise FitError(msg)
        if self.spec.task == Task.REGRESSION and role != ColumnRole.NUMERIC:
            msg = (
                f"'{self.spec.algorithm.value}' is a regressor but target "
                f"'{target}' is {role.value}"
            )
            raise FitError(msg)
        return target

    def _build_estimator(self, roles: dict[str, ColumnRole]) -> Any:
        """Library estimator, wrapped in a preprocessing pipeline if needed."""
        model = self.spec.build(self.params)
        encoding = self.spec.encoding

        numeric = [c for c, r in roles.items() if r == ColumnRole.NUMERIC]
        categorical = [
            c for c, r in roles.items() if r in (ColumnRole.CATEGORICAL, ColumnRole.ITEM)
        ]
        text = [c for c, r in roles.items() if r == ColumnRole.TEXT]

        if encoding == Encoding.RAW:
            if text:
                msg = f"'{self.spec.algorithm.value}' cannot use text columns: {text}"
                raise FitError(msg)
            return model

        if encoding == Encoding.BINARY and numeric:
            msg = (
                f"'{self.spec.algorithm.value}' needs categorical or text features; "
                f"bin numeric columns first: {numeric}"
            )
            raise FitError(msg)

        preprocessor = build_preprocessor(
            self.preprocessing,
            numeric_features=numeric,
            categorical_features=categorical,
            text_features=text,
        )
        return Pipeline(steps=[("preprocessor", preprocessor), ("model", model)])

    def _fit_rules(self, table: Table, target: str | None) -> FittedModel:
        """Mine association rules from the item columns."""
        if target:
            msg = "Association rule mining takes no target column"
            raise FitError(msg)

        items = table.columns_with(ColumnRole.ITEM)
        if not items:
            msg = "Association rule mining needs item columns (load a basket file)"
            raise FitError(msg)

        miner = self.spec.build(self.params)
        start = time.perf_counter()
        try:
            rules = miner.fit(table.frame[items])
        except (ValueError, TypeError, MemoryError) as e:
            msg = f"{self.spec.label} failed: {e}"
            raise FitError(msg) from e

        return FittedModel(
            algorithm=self.spec.algorithm,
            task=self.spec.task,
            target=None,
            hyperparameters=dict(self.params),
            estimator=rules,
            feature_names=items,
            feature_roles=dict.fromkeys(items, ColumnRole.ITEM),
            n_train=table.n_rows,
            training_time_s=time.perf_counter() - start,
            data_hash=hash_dataframe(table.frame[items]),
        )


def fit(
    table: Table,
    target: str | None,
    algorithm: Algorithm | str,
    hyperparameters: dict[str, Any] | None = None,
    *,
    features: list[str] | None = None,
    preprocessing: PreprocessingConfig | None = None,
) -> FittedModel:
    """
    Fit an algorithm to a training table.

    Args:
        table: Training rows.
        target: Target column (None for association rules).
        algorithm: Algorithm family.
        hyperparameters: Recognised hyperparameters.
        features: Feature columns (default: all but target/identifiers).
        preprocessing: Feature encoding options.

    Returns:
        FittedModel.

    Raises:
        FitError: If the target, features or hyperparameters are invalid.
    """
    trainer = ModelTrainer(algorithm, hyperparameters, preprocessing)
    return trainer.fit(table, target, features)
