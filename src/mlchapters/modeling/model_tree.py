"""
M5-style model tree.

A regression tree partitions the inputs and each leaf fits its own
linear model, so predictions vary within a leaf instead of being one
constant per leaf.
"""

from typing import Any

import numpy as np
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.linear_model import LinearRegression
from sklearn.tree import DecisionTreeRegressor


class ModelTreeRegressor(RegressorMixin, BaseEstimator):
    """
    Regression tree with linear models in the leaves.

    Attributes:
        tree_: Fitted partitioning tree.
        leaf_models_: Leaf id -> fitted LinearRegression, or a float mean
            for leaves too small for a linear fit.
    """

    def __init__(
        self,
        min_cases: int = 4,
        max_depth: int | None = None,
        random_state: int | None = None,
    ) -> None:
        self.min_cases = min_cases
        self.max_depth = max_depth
        self.random_state = random_state

    def fit(self, X: Any, y: Any) -> "ModelTreeRegressor":
        """Grow the tree, then fit one linear model per leaf."""
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        self.n_features_in_ = X.shape[1]

        self.tree_ = DecisionTreeRegressor(
            min_samples_leaf=self.min_cases,
            max_depth=self.max_depth,
            random_state=self.random_state,
        ).fit(X, y)

        leaves = self.tree_.apply(X)
        self.leaf_models_: dict[int, LinearRegression | float] = {}
        for leaf in np.unique(leaves):
            mask = leaves == leaf
            if mask.sum() < 2:
                self.leaf_models_[int(leaf)] = float(y[mask].mean())
            else:
                self.leaf_models_[int(leaf)] = LinearRegression().fit(X[mask], y[mask])
        return self

    def predict(self, X: Any) -> np.ndarray:
        """Route each row to its leaf and apply that leaf's model."""
        X = np.asarray(X, dtype=float)
        leaves = self.tree_.apply(X)
        out = np.empty(X.shape[0], dtype=float)
        for leaf in np.unique(leaves):
            mask = leaves == leaf
            model = self.leaf_models_[int(leaf)]
            if isinstance(model, float):
                out[mask] = model
            else:
                out[mask] = model.predict(X[mask])
        return out

    @property
    def n_leaves(self) -> int:
        """Number of leaves (and linear models)."""
        return len(self.leaf_models_)
