"""
Rule learners as scikit-learn estimators.

OneR picks the single feature whose majority-class-per-value rule makes
the fewest training errors. RIPPER delegates rule induction to the
wittgenstein library and maps its boolean output back to class labels.
Both take raw (unencoded) DataFrames.
"""

from typing import Any

import numpy as np
import pandas as pd
import wittgenstein as lw
from sklearn.base import BaseEstimator, ClassifierMixin

from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


class OneRClassifier(ClassifierMixin, BaseEstimator):
    """
    One-rule classifier.

    Numeric features are cut into at most ``bins`` quantile buckets
    before their rules are scored.

    Attributes:
        feature_: Name of the chosen feature.
        rule_: Feature value (or bucket) -> predicted class.
        accuracy_: Training accuracy of the chosen rule.
    """

    def __init__(self, bins: int = 6) -> None:
        self.bins = bins

    def _edges(self, values: pd.Series) -> np.ndarray | None:
        """Bucket edges for a numeric column, None for categorical ones."""
        if isinstance(values.dtype, pd.CategoricalDtype) or not (
            pd.api.types.is_numeric_dtype(values)
        ):
            return None
        quantiles = np.quantile(values.dropna(), np.linspace(0, 1, self.bins + 1))
        inner = np.unique(quantiles)[1:-1]
        return np.concatenate(([-np.inf], inner, [np.inf]))

    @staticmethod
    def _keys(values: pd.Series, edges: np.ndarray | None) -> pd.Series:
        if edges is None:
            return values.astype(object)
        return pd.cut(values, bins=edges).astype(str)

    def fit(self, X: pd.DataFrame, y: Any) -> "OneRClassifier":
        """Score one rule per feature and keep the best."""
        y = pd.Series(np.asarray(y), index=X.index, name="__target__")
        self.classes_ = np.array(sorted(y.unique(), key=str))
        self.default_ = y.mode().iloc[0]
        self.feature_names_in_ = np.array(X.columns, dtype=object)
        self.n_features_in_ = X.shape[1]

        best: tuple[str, int, dict[Any, Any], np.ndarray | None] | None = None
        for col in X.columns:
            edges = self._edges(X[col])
            keys = self._keys(X[col], edges)
            counts = pd.crosstab(keys, y)
            correct = int(counts.max(axis=1).sum())
            if best is None or correct > best[1]:
                best = (col, correct, counts.idxmax(axis=1).to_dict(), edges)

        self.feature_, correct, self.rule_, self.edges_ = best
        self.accuracy_ = correct / len(y)
        log.info(
            "OneR rule selected",
            feature=self.feature_,
            branches=len(self.rule_),
            train_accuracy=round(self.accuracy_, 4),
        )
        return self

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Apply the chosen rule; values never seen get the majority class."""
        keys = self._keys(X[self.feature_], self.edges_)
        return keys.map(self.rule_).fillna(self.default_).to_numpy()

    def describe(self) -> str:
        """Human-readable rule listing."""
        lines = [f"{self.feature_}:"]
        lines += [f"  {value} -> {label}" for value, label in self.rule_.items()]
        return "\n".join(lines)


class RipperClassifier(ClassifierMixin, BaseEstimator):
    """
    RIPPER (incremental reduced-error pruning) for binary targets.

    ``positive_class`` is the class the rules describe; by default the
    minority class, as JRip does.
    """

    def __init__(
        self,
        k: int = 2,
        prune_size: float = 0.33,
        positive_class: str | None = None,
        random_state: int | None = None,
    ) -> None:
        self.k = k
        self.prune_size = prune_size
        self.positive_class = positive_class
        self.random_state = random_state

    def fit(self, X: pd.DataFrame, y: Any) -> "RipperClassifier":
        """Learn a ruleset for the positive class."""
        # wittgenstein reads the class column name from y.name
        y = pd.Series(np.asarray(y), index=X.index, name="__class__").astype(str)
        classes = sorted(y.unique())
        if len(classes) != 2:
            msg = f"RIPPER needs exactly two classes, got {len(classes)}: {classes}"
            raise ValueError(msg)

        positive = self.positive_class
        if positive is None:
            positive = y.value_counts().idxmin()
        elif str(positive) not in classes:
            msg = f"positive_class '{positive}' not among classes {classes}"
            raise ValueError(msg)
        positive = str(positive)

        self.classes_ = np.array(classes, dtype=object)
        self.positive_ = positive
        self.negative_ = next(c for c in classes if c != positive)
        self.feature_names_in_ = np.array(X.columns, dtype=object)
        self.n_features_in_ = X.shape[1]

        self.ripper_ = lw.RIPPER(
            k=self.k,
            prune_size=self.prune_size,
            random_state=self.random_state,
        )
        self.ripper_.fit(self._as_objects(X), y, pos_class=positive)
        log.info(
            "RIPPER ruleset learned",
            positive_class=positive,
            rules=len(self.ripper_.ruleset_.rules),
        )
        return self

    @staticmethod
    def _as_objects(X: pd.DataFrame) -> pd.DataFrame:
        """wittgenstein expects plain values, not pandas categoricals."""
        X = X.copy()
        for col in X.columns:
            if isinstance(X[col].dtype, pd.CategoricalDtype):
                X[col] = X[col].astype(object)
        return X

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Positive class where any rule fires, negative class otherwise."""
        fired = np.asarray(self.ripper_.predict(self._as_objects(X)), dtype=bool)
        return np.where(fired, self.positive_, self.negative_).astype(object)

    def describe(self) -> str:
        """Human-readable ruleset."""
        rules = [str(rule) for rule in self.ripper_.ruleset_.rules]
        lines = [f"({r}) => {self.positive_}" for r in rules]
        lines.append(f"otherwise => {self.negative_}")
        return "\n".join(lines)
