"""Tests for the algorithm registry."""

import numpy as np
import pytest
from sklearn.ensemble import AdaBoostClassifier
from sklearn.naive_bayes import BernoulliNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from mlchapters.config.settings import Algorithm
from mlchapters.errors import FitError
from mlchapters.modeling.models import (
    ALGORITHM_REGISTRY,
    Encoding,
    Task,
    get_spec,
    list_algorithms,
    triangular_weights,
)


class TestRegistry:
    """Every algorithm has a strategy."""

    def test_all_algorithms_registered(self) -> None:
        assert set(ALGORITHM_REGISTRY) == set(Algorithm)
        assert [s.algorithm for s in list_algorithms()] == list(Algorithm)

    def test_get_spec_by_name(self) -> None:
        spec = get_spec("knn")
        assert spec.algorithm == Algorithm.KNN
        assert spec.task == Task.CLASSIFICATION

    def test_unknown_algorithm(self) -> None:
        with pytest.raises(FitError, match="Unknown algorithm"):
            get_spec("random_forest")

    @pytest.mark.parametrize(
        ("algorithm", "task"),
        [
            (Algorithm.MLP, Task.REGRESSION),
            (Algorithm.MODEL_TREE, Task.REGRESSION),
            (Algorithm.APRIORI, Task.ASSOCIATION),
            (Algorithm.RIPPER, Task.CLASSIFICATION),
        ],
    )
    def test_tasks(self, algorithm: Algorithm, task: Task) -> None:
        assert get_spec(algorithm).task == task

    def test_rule_learners_take_raw_columns(self) -> None:
        for algorithm in (Algorithm.ZERO_R, Algorithm.ONE_R, Algorithm.RIPPER):
            assert get_spec(algorithm).encoding == Encoding.RAW
        assert get_spec(Algorithm.NAIVE_BAYES).encoding == Encoding.BINARY


class TestResolve:
    """Hyperparameter validation."""

    def test_defaults(self) -> None:
        params = get_spec(Algorithm.KNN).resolve(None)
        assert params == {"k": 5, "weighting": "uniform"}

    def test_override(self) -> None:
        params = get_spec(Algorithm.KNN).resolve({"k": 21})
        assert params["k"] == 21

    def test_unrecognised_name(self) -> None:
        """Costs mean nothing to kNN."""
        with pytest.raises(FitError, match="not recognised"):
            get_spec(Algorithm.KNN).resolve({"costs": {"a": {"b": 1}}})

    def test_zero_r_takes_nothing(self) -> None:
        with pytest.raises(FitError, match="recognised: none"):
            get_spec(Algorithm.ZERO_R).resolve({"k": 1})

    @pytest.mark.parametrize(
        ("algorithm", "params"),
        [
            (Algorithm.KNN, {"k": 0}),
            (Algorithm.KNN, {"k": 2.5}),
            (Algorithm.KNN, {"weighting": "gaussian"}),
            (Algorithm.DECISION_TREE, {"trials": 0}),
            (Algorithm.DECISION_TREE, {"costs": {"yes": {"no": -1}}}),
            (Algorithm.DECISION_TREE, {"costs": [1, 2]}),
            (Algorithm.NAIVE_BAYES, {"laplace": -1}),
            (Algorithm.SVM, {"kernel": "besseldot"}),
            (Algorithm.SVM, {"cost": 0}),
            (Algorithm.APRIORI, {"support": 0}),
            (Algorithm.APRIORI, {"confidence": 1.5}),
            (Algorithm.MLP, {"hidden": [5, 0]}),
            (Algorithm.LINEAR_REGRESSION, {"intercept": "yes"}),
        ],
    )
    def test_invalid_values(self, algorithm: Algorithm, params: dict) -> None:
        with pytest.raises(FitError, match="Invalid value"):
            get_spec(algorithm).resolve(params)


class TestBuild:
    """Library estimators built from resolved hyperparameters."""

    def test_single_tree(self) -> None:
        spec = get_spec(Algorithm.DECISION_TREE)
        model = spec.build(spec.resolve({}))
        assert isinstance(model, DecisionTreeClassifier)
        assert model.criterion == "entropy"

    def test_boosted_tree(self) -> None:
        spec = get_spec(Algorithm.DECISION_TREE)
        model = spec.build(spec.resolve({"trials": 10}))
        assert isinstance(model, AdaBoostClassifier)
        assert model.n_estimators == 10

    def test_kernlab_kernel_names(self) -> None:
        spec = get_spec(Algorithm.SVM)
        assert spec.build(spec.resolve({"kernel": "vanilladot"})).kernel == "linear"
        assert spec.build(spec.resolve({"kernel": "rbfdot"})).kernel == "rbf"
        assert isinstance(spec.build(spec.resolve({})), SVC)

    def test_knn_weighting(self) -> None:
        spec = get_spec(Algorithm.KNN)
        model = spec.build(spec.resolve({"k": 3, "weighting": "inv"}))
        assert isinstance(model, KNeighborsClassifier)
        assert model.weights == "distance"
        triangular = spec.build(spec.resolve({"weighting": "triangular"}))
        assert triangular.weights is triangular_weights

    def test_naive_bayes_laplace(self) -> None:
        spec = get_spec(Algorithm.NAIVE_BAYES)
        model = spec.build(spec.resolve({"laplace": 1}))
        assert isinstance(model, BernoulliNB)
        assert model.alpha == 1

    def test_regression_tree(self) -> None:
        spec = get_spec(Algorithm.REGRESSION_TREE)
        model = spec.build(spec.resolve({"min_split": 30}))
        assert isinstance(model, DecisionTreeRegressor)
        assert model.min_samples_leaf == 10

    def test_mlp_hidden_layers(self) -> None:
        spec = get_spec(Algorithm.MLP)
        assert spec.build(spec.resolve({"hidden": 5})).hidden_layer_sizes == (5,)
        assert spec.build(spec.resolve({"hidden": [5, 3]})).hidden_layer_sizes == (5, 3)


def test_triangular_weights_decrease_with_distance() -> None:
    distances = np.array([[0.0, 1.0, 2.0], [0.0, 0.0, 0.0]])
    weights = triangular_weights(distances)
    assert weights[0, 0] > weights[0, 1] > weights[0, 2] > 0
    assert np.all(weights[1] > 0)
