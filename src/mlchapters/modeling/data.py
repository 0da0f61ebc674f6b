"""
Train/test partitioning.

Splits a Table by explicit row ranges or by a seeded random draw. The
two sides of a split never share a row, and the same table, sizes and
seed always produce the same partition.
"""

import math
from dataclasses import dataclass

import numpy as np
from sklearn.model_selection import train_test_split

from mlchapters.config.settings import SplitConfig, SplitStrategy
from mlchapters.errors import IndexOutOfRangeError
from mlchapters.schemas.table import Table
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class SplitRule:
    """
    How a split was made, recorded for reporting.

    Ranges are 0-based and half-open: ``(0, 900)`` is rows 0..899.
    """

    strategy: SplitStrategy
    train_range: tuple[int, int] | None = None
    test_range: tuple[int, int] | None = None
    train_size: int | None = None
    test_size: int | None = None
    seed: int | None = None

    def describe(self) -> str:
        """One-line description of the rule."""
        if self.strategy == SplitStrategy.RANGE:
            return f"rows {self.train_range} train, rows {self.test_range} test"
        if self.strategy == SplitStrategy.SAMPLE:
            return (
                f"random {self.train_size} train / {self.test_size} test "
                f"(seed {self.seed})"
            )
        return "all rows train, no test rows"


@dataclass(frozen=True)
class Split:
    """
    A training table and a disjoint test table.

    Attributes:
        train: Training rows.
        test: Held-out rows (may be empty for rule mining).
        rule: How the rows were chosen.
        train_positions: Row positions of train in the source table.
        test_positions: Row positions of test in the source table.
    """

    train: Table
    test: Table
    rule: SplitRule
    train_positions: np.ndarray
    test_positions: np.ndarray


def _check_range(name: str, bounds: tuple[int, int], n_rows: int) -> None:
    start, stop = bounds
    if start < 0 or stop > n_rows or start > stop:
        msg = f"{name} range [{start}, {stop}) outside table of {n_rows} rows"
        raise IndexOutOfRangeError(msg)


def split_by_range(
    table: Table, train: tuple[int, int], test: tuple[int, int]
) -> Split:
    """
    Split by explicit half-open row ranges.

    Args:
        table: Rows to split.
        train: Training rows ``[start, stop)``.
        test: Test rows ``[start, stop)``.

    Returns:
        Split preserving source row order on each side.

    Raises:
        IndexOutOfRangeError: If a range exceeds the table, is inverted,
            leaves train empty, or overlaps the other range.
    """
    _check_range("Train", train, table.n_rows)
    _check_range("Test", test, table.n_rows)
    if train[1] - train[0] == 0:
        msg = f"Train range [{train[0]}, {train[1]}) is empty"
        raise IndexOutOfRangeError(msg)
    if max(train[0], test[0]) < min(train[1], test[1]):
        msg = f"Train range {train} overlaps test range {test}"
        raise IndexOutOfRangeError(msg)

    train_positions = np.arange(*train)
    test_positions = np.arange(*test)
    rule = SplitRule(
        strategy=SplitStrategy.RANGE,
        train_range=tuple(train),
        test_range=tuple(test),
        train_size=len(train_positions),
        test_size=len(test_positions),
    )
    return _make(table, train_positions, test_positions, rule)


def _resolve_size(name: str, size: int | float, n_rows: int) -> int:
    """Row count from an absolute count or a fraction of the table."""
    if isinstance(size, float):
        if not 0.0 < size < 1.0:
            msg = f"{name} fraction must be in (0, 1), got {size}"
            raise IndexOutOfRangeError(msg)
        return math.floor(size * n_rows)
    return size


def split_by_sample(
    table: Table,
    train_size: int | float,
    seed: int = 123,
    test_size: int | float | None = None,
) -> Split:
    """
    Split by a seeded random draw without replacement.

    Each side keeps source row order. Randomness comes only from ``seed``,
    so repeated calls agree regardless of anything run before.

    Args:
        table: Rows to split.
        train_size: Training rows (int) or fraction of rows (float).
        seed: Random seed.
        test_size: Test rows or fraction (default: all remaining rows).

    Returns:
        Split with ``train_size`` training rows.

    Raises:
        IndexOutOfRangeError: If the sizes do not fit the table.
    """
    n = table.n_rows
    n_train = _resolve_size("Train", train_size, n)
    if not 1 <= n_train < n:
        msg = f"Train size {n_train} must be between 1 and {n - 1} for {n} rows"
        raise IndexOutOfRangeError(msg)

    n_test = n - n_train if test_size is None else _resolve_size("Test", test_size, n)
    if n_test < 1 or n_train + n_test > n:
        msg = f"Test size {n_test} does not fit beside {n_train} train rows in {n}"
        raise IndexOutOfRangeError(msg)

    train_positions, test_positions = train_test_split(
        np.arange(n),
        train_size=n_train,
        test_size=n_test,
        random_state=seed,
    )
    rule = SplitRule(
        strategy=SplitStrategy.SAMPLE,
        train_size=n_train,
        test_size=n_test,
        seed=seed,
    )
    return _make(table, np.sort(train_positions), np.sort(test_positions), rule)


def split_all(table: Table) -> Split:
    """Every row trains; the test side is empty."""
    if table.n_rows == 0:
        msg = "Cannot split an empty table"
        raise IndexOutOfRangeError(msg)
    rule = SplitRule(strategy=SplitStrategy.NONE, train_size=table.n_rows, test_size=0)
    return _make(table, np.arange(table.n_rows), np.arange(0), rule)


def _make(
    table: Table,
    train_positions: np.ndarray,
    test_positions: np.ndarray,
    rule: SplitRule,
) -> Split:
    split = Split(
        train=table.take(train_positions),
        test=table.take(test_positions),
        rule=rule,
        train_positions=train_positions,
        test_positions=test_positions,
    )
    log.info(
        "Split table",
        strategy=rule.strategy.value,
        train_rows=split.train.n_rows,
        test_rows=split.test.n_rows,
    )
    return split


def make_split(table: Table, config: SplitConfig) -> Split:
    """
    Split a table as configured.

    Raises:
        IndexOutOfRangeError: If the configured bounds do not fit the table.
    """
    if config.strategy == SplitStrategy.RANGE:
        return split_by_range(table, config.train, config.test)
    if config.strategy == SplitStrategy.SAMPLE:
        return split_by_sample(
            table, config.train_size, seed=config.seed, test_size=config.test_size
        )
    return split_all(table)
