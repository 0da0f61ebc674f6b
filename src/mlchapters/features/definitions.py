"""
Declarative derived-column definitions.

Each DerivedColumnConfig from a chapter file is turned into a
DerivedFeature: a formula over the table's frame plus the columns it
depends on and the role of the column it produces.
"""

import operator
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import pandas as pd

from mlchapters.config.settings import DerivedColumnConfig, DerivedKind
from mlchapters.schemas.table import ColumnRole
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)

COMPARISONS: dict[str, Callable[[pd.Series, object], pd.Series]] = {
    ">=": operator.ge,
    ">": operator.gt,
    "<=": operator.le,
    "<": operator.lt,
    "==": operator.eq,
}


@dataclass(frozen=True)
class DerivedFeature:
    """
    Definition of a derived column.

    Attributes:
        name: Output column name.
        formula: Function computing the column from a DataFrame.
        dependencies: Columns required for computation.
        role: Role of the produced column.
        description: Human-readable description.
    """

    name: str
    formula: Callable[[pd.DataFrame], pd.Series]
    dependencies: tuple[str, ...]
    role: ColumnRole = ColumnRole.NUMERIC
    description: str = ""


def min_max(values: pd.Series) -> pd.Series:
    """
    Rescale to [0, 1]: the minimum maps to 0 and the maximum to 1.

    A constant column has no range and maps to 0 everywhere.
    """
    values = values.astype(float)
    lo = values.min()
    hi = values.max()
    if hi == lo:
        log.warning("Constant column, min-max scaled to zeros", column=values.name)
        return pd.Series(0.0, index=values.index, name=values.name)
    return (values - lo) / (hi - lo)


def z_score(values: pd.Series) -> pd.Series:
    """Standardize to mean 0 and unit sample standard deviation."""
    values = values.astype(float)
    std = values.std()
    if std == 0 or np.isnan(std):
        log.warning("Zero-variance column, z-scored to zeros", column=values.name)
        return pd.Series(0.0, index=values.index, name=values.name)
    return (values - values.mean()) / std


def indicator(values: pd.Series, op: str, value: float | str) -> pd.Series:
    """1 where the comparison holds, else 0."""
    if isinstance(values.dtype, pd.CategoricalDtype):
        values = values.astype(object)
    return COMPARISONS[op](values, value).astype(int)


def product(df: pd.DataFrame, columns: list[str]) -> pd.Series:
    """Element-wise product of numeric columns (interaction term)."""
    result = df[columns[0]].astype(float)
    for col in columns[1:]:
        result = result * df[col].astype(float)
    return result


def bins(
    values: pd.Series, edges: list[float], labels: list[str] | None
) -> pd.Series:
    """Cut a numeric column into right-closed intervals."""
    return pd.cut(values, bins=edges, labels=labels, include_lowest=True)


def build_feature(config: DerivedColumnConfig) -> DerivedFeature:
    """
    Turn a derived column config into a DerivedFeature.

    Args:
        config: One entry of ``features.derived``.

    Returns:
        Feature definition ready for the pipeline.
    """
    col = config.column
    kind = config.kind

    if kind == DerivedKind.MIN_MAX:
        return DerivedFeature(
            name=config.name,
            formula=lambda df: min_max(df[col]),
            dependencies=(col,),
            description=f"min-max scaled {col}",
        )
    if kind == DerivedKind.Z_SCORE:
        return DerivedFeature(
            name=config.name,
            formula=lambda df: z_score(df[col]),
            dependencies=(col,),
            description=f"z-score of {col}",
        )
    if kind == DerivedKind.SQUARE:
        return DerivedFeature(
            name=config.name,
            formula=lambda df: df[col].astype(float) ** 2,
            dependencies=(col,),
            description=f"{col} squared",
        )
    if kind == DerivedKind.INDICATOR:
        return DerivedFeature(
            name=config.name,
            formula=lambda df: indicator(df[col], config.op, config.value),
            dependencies=(col,),
            description=f"{col} {config.op} {config.value}",
        )
    if kind == DerivedKind.PRODUCT:
        columns = list(config.columns)
        return DerivedFeature(
            name=config.name,
            formula=lambda df: product(df, columns),
            dependencies=tuple(columns),
            description=" * ".join(columns),
        )
    if kind == DerivedKind.BINS:
        return DerivedFeature(
            name=config.name,
            formula=lambda df: bins(df[col], list(config.edges), config.labels),
            dependencies=(col,),
            role=ColumnRole.CATEGORICAL,
            description=f"{col} binned at {list(config.edges)}",
        )

    msg = f"Unsupported derived column kind: {kind}"
    raise ValueError(msg)
