"""
Descriptive exploration of a Table.

Summary statistics for numeric columns, level counts for categorical
columns and two-way cross-tabulations, for chapters that explore data
before (or instead of) fitting a model.
"""

from dataclasses import dataclass, field

import pandas as pd
from rich.console import Console
from rich.table import Table as RichTable

from mlchapters.schemas.table import ColumnRole, Table
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


def numeric_summary(table: Table, columns: list[str] | None = None) -> pd.DataFrame:
    """
    Five-number summary plus mean, spread and range per numeric column.

    Returns:
        One row per column: count, mean, std, var, min, 25%, 50%, 75%,
        max, range and iqr.
    """
    numeric = table.columns_with(ColumnRole.NUMERIC)
    if columns is not None:
        numeric = [c for c in columns if c in numeric]
    if not numeric:
        return pd.DataFrame()

    stats = table.frame[numeric].describe().T
    stats.insert(3, "var", table.frame[numeric].var())
    stats["range"] = stats["max"] - stats["min"]
    stats["iqr"] = stats["75%"] - stats["25%"]
    return stats


def level_counts(values: pd.Series) -> pd.DataFrame:
    """Count and proportion of each level, most frequent first."""
    counts = values.value_counts(dropna=False)
    return pd.DataFrame({"count": counts, "proportion": counts / counts.sum()})


def crosstab(frame: pd.DataFrame, row: str, column: str) -> pd.DataFrame:
    """
    Two-way counts with row and column totals.

    Raises:
        KeyError: If either variable is not a column.
    """
    missing = [c for c in (row, column) if c not in frame.columns]
    if missing:
        msg = f"Cross-tabulation columns not in table: {missing}"
        raise KeyError(msg)
    return pd.crosstab(frame[row], frame[column], margins=True, margins_name="total")


def row_proportions(counts: pd.DataFrame) -> pd.DataFrame:
    """Divide each row of a margin-bearing crosstab by its row total."""
    return counts.div(counts["total"], axis=0)


@dataclass
class Exploration:
    """Everything ``explore`` reports for one table."""

    n_rows: int
    numeric: pd.DataFrame
    levels: dict[str, pd.DataFrame] = field(default_factory=dict)
    crosstab: pd.DataFrame | None = None


def explore(
    table: Table,
    columns: list[str] | None = None,
    crosstab_on: tuple[str, str] | None = None,
) -> Exploration:
    """
    Summarise a table.

    Args:
        table: Rows to describe.
        columns: Columns to include (default: all but identifiers and text).
        crosstab_on: Optional (row, column) pair to cross-tabulate.

    Returns:
        Exploration.
    """
    if columns is None:
        columns = table.columns_with(ColumnRole.NUMERIC, ColumnRole.CATEGORICAL)
    unknown = [c for c in columns if c not in table.roles]
    if unknown:
        msg = f"Columns to explore not in table: {unknown}"
        raise KeyError(msg)

    levels = {
        c: level_counts(table.frame[c])
        for c in columns
        if table.role(c) == ColumnRole.CATEGORICAL
    }
    result = Exploration(
        n_rows=table.n_rows,
        numeric=numeric_summary(table, columns),
        levels=levels,
        crosstab=crosstab(table.frame, *crosstab_on) if crosstab_on else None,
    )
    log.info(
        "Explored table",
        rows=table.n_rows,
        numeric=len(result.numeric),
        categorical=len(levels),
    )
    return result


def _frame_table(df: pd.DataFrame, title: str, fmt: str = "{:.3f}") -> RichTable:
    table = RichTable(title=title)
    table.add_column(str(df.index.name or ""), style="cyan")
    for col in df.columns:
        table.add_column(str(col), justify="right")
    for idx, row in df.iterrows():
        cells = [
            fmt.format(v) if isinstance(v, float) else str(v) for v in row.tolist()
        ]
        table.add_row(str(idx), *cells)
    return table


def print_exploration(result: Exploration, console: Console) -> None:
    """Print an Exploration as rich tables."""
    console.print(f"[bold]{result.n_rows}[/bold] rows")
    if not result.numeric.empty:
        console.print(_frame_table(result.numeric, "Numeric columns"))
    for col, counts in result.levels.items():
        console.print(_frame_table(counts, f"Levels of {col}"))
    if result.crosstab is not None:
        console.print(_frame_table(result.crosstab, "Cross-tabulation", fmt="{:.0f}"))
        console.print(
            _frame_table(row_proportions(result.crosstab), "Row proportions")
        )
