"""
Algorithm registry.

Maps each Algorithm to a strategy: its task, how its features are
encoded, the hyperparameters it recognises (with defaults and checks)
and a builder producing the library estimator.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
from sklearn.dummy import DummyClassifier
from sklearn.ensemble import AdaBoostClassifier
from sklearn.linear_model import LinearRegression
from sklearn.naive_bayes import BernoulliNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.neural_network import MLPRegressor
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from mlchapters.config.settings import Algorithm
from mlchapters.errors import FitError
from mlchapters.modeling.association import AprioriMiner
from mlchapters.modeling.model_tree import ModelTreeRegressor
from mlchapters.modeling.rules import OneRClassifier, RipperClassifier
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


class Task(str, Enum):
    """What an algorithm learns."""

    CLASSIFICATION = "classification"
    REGRESSION = "regression"
    ASSOCIATION = "association"


class Encoding(str, Enum):
    """How table columns reach the estimator."""

    ONE_HOT = "one_hot"  # numeric matrix, categoricals one-hot, text bag-of-words
    BINARY = "binary"  # indicators only; numeric features rejected
    RAW = "raw"  # the DataFrame itself, categoricals kept as values
    ITEMS = "items"  # boolean item matrix


# kernlab kernel names used by ksvm -> scikit-learn SVC kernels
KERNEL_ALIASES: dict[str, str] = {
    "vanilladot": "linear",
    "rbfdot": "rbf",
    "polydot": "poly",
    "tanhdot": "sigmoid",
    "linear": "linear",
    "rbf": "rbf",
    "poly": "poly",
    "sigmoid": "sigmoid",
}


def triangular_weights(distances: np.ndarray) -> np.ndarray:
    """
    kknn's triangular kernel: weight falls linearly to 0 at the farthest
    neighbour of each query.
    """
    scale = distances.max(axis=1, keepdims=True)
    scale[scale == 0] = 1.0
    return np.clip(1.0 - distances / (scale * (1 + 1e-6)), 1e-12, None)


# kknn kernel names -> KNeighborsClassifier weights
WEIGHTING_ALIASES: dict[str, Any] = {
    "uniform": "uniform",
    "rectangular": "uniform",
    "distance": "distance",
    "inv": "distance",
    "triangular": triangular_weights,
}


def _is_int(minimum: int) -> Callable[[Any], bool]:
    return lambda v: isinstance(v, int) and not isinstance(v, bool) and v >= minimum


def _is_number(minimum: float, *, strict: bool = False) -> Callable[[Any], bool]:
    def check(v: Any) -> bool:
        if isinstance(v, bool) or not isinstance(v, int | float):
            return False
        return v > minimum if strict else v >= minimum

    return check


def _is_fraction(v: Any) -> bool:
    return _is_number(0.0, strict=True)(v) and v <= 1.0


def _is_optional_int(minimum: int) -> Callable[[Any], bool]:
    check = _is_int(minimum)
    return lambda v: v is None or check(v)


def _is_hidden(v: Any) -> bool:
    if isinstance(v, int) and not isinstance(v, bool):
        return v >= 1
    return (
        isinstance(v, list | tuple)
        and len(v) > 0
        and all(isinstance(n, int) and not isinstance(n, bool) and n >= 1 for n in v)
    )


def _is_cost_matrix(v: Any) -> bool:
    if not isinstance(v, Mapping):
        return False
    for row in v.values():
        if not isinstance(row, Mapping):
            return False
        if not all(_is_number(0.0)(c) for c in row.values()):
            return False
    return True


def _is_gamma(v: Any) -> bool:
    return v in ("scale", "auto") or _is_number(0.0, strict=True)(v)


@dataclass(frozen=True)
class Hyperparameter:
    """A recognised hyperparameter with its default and validity check."""

    name: str
    default: Any
    check: Callable[[Any], bool]
    description: str


@dataclass(frozen=True)
class AlgorithmSpec:
    """
    Strategy binding an Algorithm to its library implementation.

    Attributes:
        algorithm: Enumerated identity.
        label: Display name (with the classic R package name).
        task: Classification, regression or association.
        encoding: Feature encoding the estimator needs.
        library: Library providing the implementation.
        hyperparameters: Recognised hyperparameters by name.
        builder: Resolved hyperparameters -> unfitted estimator.
        weighted: Whether a cost matrix is honoured through sample weights.
    """

    algorithm: Algorithm
    label: str
    task: Task
    encoding: Encoding
    library: str
    builder: Callable[[dict[str, Any]], Any]
    hyperparameters: dict[str, Hyperparameter] = field(default_factory=dict)
    weighted: bool = False

    def resolve(self, given: Mapping[str, Any] | None) -> dict[str, Any]:
        """
        Merge given hyperparameters over defaults, rejecting unknown names
        and invalid values.

        Raises:
            FitError: If a name is not recognised or a value is invalid.
        """
        given = dict(given or {})
        unknown = sorted(set(given) - set(self.hyperparameters))
        if unknown:
            known = ", ".join(self.hyperparameters) or "none"
            msg = (
                f"Hyperparameter(s) {unknown} not recognised by "
                f"'{self.algorithm.value}' (recognised: {known})"
            )
            raise FitError(msg)

        params: dict[str, Any] = {}
        for name, hp in self.hyperparameters.items():
            value = given.get(name, hp.default)
            if name in given and not hp.check(value):
                msg = (
                    f"Invalid value {value!r} for '{name}' of "
                    f"'{self.algorithm.value}': {hp.description}"
                )
                raise FitError(msg)
            params[name] = value
        return params

    def build(self, params: dict[str, Any]) -> Any:
        """Instantiate the unfitted estimator."""
        log.debug("Creating estimator", algorithm=self.algorithm.value, params=params)
        return self.builder(params)


def _build_decision_tree(p: dict[str, Any]) -> Any:
    tree = DecisionTreeClassifier(
        criterion="entropy",
        min_samples_leaf=p["min_cases"],
        max_depth=p["max_depth"],
        random_state=p["seed"],
    )
    if p["trials"] == 1:
        return tree
    return AdaBoostClassifier(
        estimator=tree,
        n_estimators=p["trials"],
        random_state=p["seed"],
    )


def _build_mlp(p: dict[str, Any]) -> Any:
    hidden = p["hidden"]
    hidden = (hidden,) if isinstance(hidden, int) else tuple(hidden)
    return MLPRegressor(
        hidden_layer_sizes=hidden,
        activation=p["activation"],
        solver="lbfgs",
        max_iter=p["max_iter"],
        random_state=p["seed"],
    )


def _build_svm(p: dict[str, Any]) -> Any:
    return SVC(
        kernel=KERNEL_ALIASES[p["kernel"]],
        C=p["cost"],
        gamma=p["gamma"],
        degree=p["degree"],
        random_state=p["seed"],
    )


SEED = Hyperparameter("seed", 123, _is_optional_int(0), "non-negative integer seed")

ALGORITHM_REGISTRY: dict[Algorithm, AlgorithmSpec] = {
    Algorithm.DECISION_TREE: AlgorithmSpec(
        algorithm=Algorithm.DECISION_TREE,
        label="Decision tree (C5.0)",
        task=Task.CLASSIFICATION,
        encoding=Encoding.ONE_HOT,
        library="scikit-learn",
        builder=_build_decision_tree,
        weighted=True,
        hyperparameters={
            "trials": Hyperparameter(
                "trials", 1, _is_int(1), "boosting iterations, integer >= 1"
            ),
            "costs": Hyperparameter(
                "costs",
                None,
                _is_cost_matrix,
                "mapping actual class -> predicted class -> non-negative cost",
            ),
            "min_cases": Hyperparameter(
                "min_cases", 2, _is_int(1), "minimum rows per leaf, integer >= 1"
            ),
            "max_depth": Hyperparameter(
                "max_depth", None, _is_optional_int(1), "maximum depth or null"
            ),
            "seed": SEED,
        },
    ),
    Algorithm.ZERO_R: AlgorithmSpec(
        algorithm=Algorithm.ZERO_R,
        label="ZeroR (majority class)",
        task=Task.CLASSIFICATION,
        encoding=Encoding.RAW,
        library="scikit-learn",
        builder=lambda p: DummyClassifier(strategy="most_frequent"),
    ),
    Algorithm.ONE_R: AlgorithmSpec(
        algorithm=Algorithm.ONE_R,
        label="OneR (single rule)",
        task=Task.CLASSIFICATION,
        encoding=Encoding.RAW,
        library="mlchapters",
        builder=lambda p: OneRClassifier(bins=p["bins"]),
        hyperparameters={
            "bins": Hyperparameter(
                "bins", 6, _is_int(1), "buckets for numeric features, integer >= 1"
            ),
        },
    ),
    Algorithm.RIPPER: AlgorithmSpec(
        algorithm=Algorithm.RIPPER,
        label="RIPPER (JRip)",
        task=Task.CLASSIFICATION,
        encoding=Encoding.RAW,
        library="wittgenstein",
        builder=lambda p: RipperClassifier(
            k=p["k"],
            prune_size=p["prune_size"],
            positive_class=p["positive_class"],
            random_state=p["seed"],
        ),
        hyperparameters={
            "k": Hyperparameter("k", 2, _is_int(0), "optimization runs, integer >= 0"),
            "prune_size": Hyperparameter(
                "prune_size", 0.33, _is_fraction, "pruning fraction in (0, 1]"
            ),
            "positive_class": Hyperparameter(
                "positive_class",
                None,
                lambda v: v is None or isinstance(v, str),
                "class label the rules describe",
            ),
            "seed": SEED,
        },
    ),
    Algorithm.NAIVE_BAYES: AlgorithmSpec(
        algorithm=Algorithm.NAIVE_BAYES,
        label="Naive Bayes (e1071)",
        task=Task.CLASSIFICATION,
        encoding=Encoding.BINARY,
        library="scikit-learn",
        # force_alpha=False: laplace=0 is clipped to a tiny epsilon as e1071 does
        builder=lambda p: BernoulliNB(alpha=p["laplace"], force_alpha=False),
        hyperparameters={
            "laplace": Hyperparameter(
                "laplace", 0.0, _is_number(0.0), "additive smoothing, number >= 0"
            ),
        },
    ),
    Algorithm.MLP: AlgorithmSpec(
        algorithm=Algorithm.MLP,
        label="Multilayer perceptron (neuralnet)",
        task=Task.REGRESSION,
        encoding=Encoding.ONE_HOT,
        library="scikit-learn",
        builder=_build_mlp,
        hyperparameters={
            "hidden": Hyperparameter(
                "hidden", 1, _is_hidden, "hidden units: integer or list of integers"
            ),
            "activation": Hyperparameter(
                "activation",
                "logistic",
                lambda v: v in ("identity", "logistic", "tanh", "relu"),
                "one of identity, logistic, tanh, relu",
            ),
            "max_iter": Hyperparameter(
                "max_iter", 1000, _is_int(1), "maximum iterations, integer >= 1"
            ),
            "seed": SEED,
        },
    ),
    Algorithm.SVM: AlgorithmSpec(
        algorithm=Algorithm.SVM,
        label="Support vector machine (kernlab)",
        task=Task.CLASSIFICATION,
        encoding=Encoding.ONE_HOT,
        library="scikit-learn",
        builder=_build_svm,
        hyperparameters={
            "kernel": Hyperparameter(
                "kernel",
                "rbf",
                lambda v: v in KERNEL_ALIASES,
                f"one of {', '.join(KERNEL_ALIASES)}",
            ),
            "cost": Hyperparameter(
                "cost", 1.0, _is_number(0.0, strict=True), "penalty C, number > 0"
            ),
            "gamma": Hyperparameter(
                "gamma", "scale", _is_gamma, "'scale', 'auto' or number > 0"
            ),
            "degree": Hyperparameter(
                "degree", 3, _is_int(1), "polynomial degree, integer >= 1"
            ),
            "seed": SEED,
        },
    ),
    Algorithm.APRIORI: AlgorithmSpec(
        algorithm=Algorithm.APRIORI,
        label="Apriori (arules)",
        task=Task.ASSOCIATION,
        encoding=Encoding.ITEMS,
        library="mlxtend",
        builder=lambda p: AprioriMiner(
            support=p["support"],
            confidence=p["confidence"],
            min_length=p["min_length"],
            max_length=p["max_length"],
        ),
        hyperparameters={
            "support": Hyperparameter(
                "support", 0.1, _is_fraction, "minimum support in (0, 1]"
            ),
            "confidence": Hyperparameter(
                "confidence", 0.8, _is_fraction, "minimum confidence in (0, 1]"
            ),
            "min_length": Hyperparameter(
                "min_length", 1, _is_int(1), "minimum items per rule, integer >= 1"
            ),
            "max_length": Hyperparameter(
                "max_length", None, _is_optional_int(1), "maximum items per rule or null"
            ),
        },
    ),
    Algorithm.LINEAR_REGRESSION: AlgorithmSpec(
        algorithm=Algorithm.LINEAR_REGRESSION,
        label="Linear regression (lm)",
        task=Task.REGRESSION,
        encoding=Encoding.ONE_HOT,
        library="scikit-learn",
        builder=lambda p: LinearRegression(fit_intercept=p["intercept"]),
        hyperparameters={
            "intercept": Hyperparameter(
                "intercept", True, lambda v: isinstance(v, bool), "true or false"
            ),
        },
    ),
    Algorithm.REGRESSION_TREE: AlgorithmSpec(
        algorithm=Algorithm.REGRESSION_TREE,
        label="Regression tree (rpart)",
        task=Task.REGRESSION,
        encoding=Encoding.ONE_HOT,
        library="scikit-learn",
        builder=lambda p: DecisionTreeRegressor(
            min_samples_split=p["min_split"],
            min_samples_leaf=max(1, round(p["min_split"] / 3)),
            max_depth=p["max_depth"],
            ccp_alpha=p["ccp_alpha"],
            random_state=p["seed"],
        ),
        hyperparameters={
            "min_split": Hyperparameter(
                "min_split", 20, _is_int(2), "minimum rows to split, integer >= 2"
            ),
            "max_depth": Hyperparameter(
                "max_depth", 30, _is_optional_int(1), "maximum depth or null"
            ),
            "ccp_alpha": Hyperparameter(
                "ccp_alpha", 0.0, _is_number(0.0), "pruning complexity, number >= 0"
            ),
            "seed": SEED,
        },
    ),
    Algorithm.MODEL_TREE: AlgorithmSpec(
        algorithm=Algorithm.MODEL_TREE,
        label="Model tree (M5P)",
        task=Task.REGRESSION,
        encoding=Encoding.ONE_HOT,
        library="scikit-learn",
        builder=lambda p: ModelTreeRegressor(
            min_cases=p["min_cases"],
            max_depth=p["max_depth"],
            random_state=p["seed"],
        ),
        hyperparameters={
            "min_cases": Hyperparameter(
                "min_cases", 4, _is_int(1), "minimum rows per leaf, integer >= 1"
            ),
            "max_depth": Hyperparameter(
                "max_depth", None, _is_optional_int(1), "maximum depth or null"
            ),
            "seed": SEED,
        },
    ),
    Algorithm.KNN: AlgorithmSpec(
        algorithm=Algorithm.KNN,
        label="k-nearest neighbours (class/kknn)",
        task=Task.CLASSIFICATION,
        encoding=Encoding.ONE_HOT,
        library="scikit-learn",
        builder=lambda p: KNeighborsClassifier(
            n_neighbors=p["k"],
            weights=WEIGHTING_ALIASES[p["weighting"]],
        ),
        hyperparameters={
            "k": Hyperparameter("k", 5, _is_int(1), "neighbour count, integer >= 1"),
            "weighting": Hyperparameter(
                "weighting",
                "uniform",
                lambda v: v in WEIGHTING_ALIASES,
                f"one of {', '.join(WEIGHTING_ALIASES)}",
            ),
        },
    ),
}


def get_spec(algorithm: Algorithm | str) -> AlgorithmSpec:
    """
    Look up the strategy for an algorithm.

    Raises:
        FitError: If the algorithm is not supported.
    """
    try:
        algorithm = Algorithm(algorithm)
    except ValueError as e:
        available = ", ".join(a.value for a in Algorithm)
        msg = f"Unknown algorithm '{algorithm}'. Available: {available}"
        raise FitError(msg) from e
    return ALGORITHM_REGISTRY[algorithm]


def list_algorithms() -> list[AlgorithmSpec]:
    """All supported algorithm strategies, in enumeration order."""
    return [ALGORITHM_REGISTRY[a] for a in Algorithm]
