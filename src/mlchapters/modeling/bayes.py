"""
Likelihood tables for naive Bayes inspection.

The fitted naive Bayes models come from scikit-learn; this module
computes the per-class conditional frequencies a reader would tabulate
by hand, with optional Laplace smoothing.
"""

import pandas as pd


def likelihood_table(
    frame: pd.DataFrame,
    feature: str,
    target: str,
    laplace: float = 0.0,
) -> pd.DataFrame:
    """
    Estimate P(feature = level | class) for every level and class.

    With ``laplace > 0`` each count is increased by ``laplace`` and each
    class total by ``laplace * n_levels``, so levels never seen with a
    class get a small positive likelihood instead of zero.

    Args:
        frame: Rows with the feature and target columns.
        feature: Categorical feature column.
        target: Class column.
        laplace: Additive smoothing constant (>= 0).

    Returns:
        DataFrame indexed by feature level, one column per class; each
        column sums to 1.
    """
    if laplace < 0:
        msg = f"laplace must be >= 0, got {laplace}"
        raise ValueError(msg)

    counts = (
        frame.groupby([feature, target], observed=False)
        .size()
        .unstack(fill_value=0)
        .astype(float)
    )
    # Declared categories with no rows would give 0/0 columns
    counts = counts.loc[:, counts.sum(axis=0) > 0]
    n_levels = counts.shape[0]
    totals = counts.sum(axis=0) + laplace * n_levels
    return (counts + laplace) / totals


def class_priors(frame: pd.DataFrame, target: str) -> pd.Series:
    """Relative class frequencies."""
    priors = frame[target].value_counts(normalize=True).sort_index()
    return priors[priors > 0]
