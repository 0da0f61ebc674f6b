"""
Preprocessing pipeline construction.

Builds the scikit-learn ColumnTransformer that turns a Table's feature
columns into the matrix an estimator expects. What is built depends on
the algorithm's encoding: geometric and linear learners get one-hot
categoricals, naive Bayes gets binary indicators only.
"""

import re
from typing import Any

from sklearn.compose import ColumnTransformer
from sklearn.feature_extraction.text import CountVectorizer
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from mlchapters.config.settings import PreprocessingConfig
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)

_DIGITS = re.compile(r"\d+")


class TextCleaner:
    """
    Picklable text preprocessor for CountVectorizer.

    Lowercases and optionally strips digits so "Call 0800" and "call" share
    a token.
    """

    def __init__(self, strip_numbers: bool = True) -> None:
        self.strip_numbers = strip_numbers

    def __call__(self, text: str) -> str:
        text = text.lower()
        if self.strip_numbers:
            text = _DIGITS.sub(" ", text)
        return text


def build_text_vectorizer(config: PreprocessingConfig) -> CountVectorizer:
    """Binary bag-of-words: 1 if a term occurs in the message."""
    return CountVectorizer(
        preprocessor=TextCleaner(config.strip_numbers),
        stop_words=config.stop_words,
        min_df=config.text_min_count,
        binary=True,
    )


def build_preprocessor(
    config: PreprocessingConfig,
    *,
    numeric_features: list[str],
    categorical_features: list[str],
    text_features: list[str],
) -> ColumnTransformer:
    """
    Build the feature-encoding ColumnTransformer.

    Feature groups:
    - numeric: passthrough, or StandardScaler when ``scale_numeric``
    - categorical: one-hot, unknown levels ignored (they are rejected
      earlier, at prediction time)
    - text: one binary CountVectorizer per column

    Args:
        config: Preprocessing options.
        numeric_features: Numeric feature columns.
        categorical_features: Categorical (and item) feature columns.
        text_features: Free-text columns.

    Returns:
        Unfitted ColumnTransformer.
    """
    transformers: list[tuple[str, Any, Any]] = []

    if numeric_features:
        numeric = StandardScaler() if config.scale_numeric else "passthrough"
        transformers.append(("numeric", numeric, numeric_features))

    if categorical_features:
        transformers.append(
            (
                "categorical",
                OneHotEncoder(handle_unknown="ignore", sparse_output=False),
                categorical_features,
            )
        )

    # CountVectorizer wants a 1-D column, hence a bare name per transformer
    for col in text_features:
        transformers.append((f"text_{col}", build_text_vectorizer(config), col))

    preprocessor = ColumnTransformer(transformers=transformers, remainder="drop")

    log.debug(
        "Built preprocessor",
        transformers={name: cols for name, _, cols in transformers},
    )
    return preprocessor
