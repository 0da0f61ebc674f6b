"""
In-memory table with declared column roles.

A Table is the value passed between the Loader, the Splitter, the
Fitter and the Evaluator. It is never mutated in place: adding a derived
column, dropping columns or taking rows returns a new Table.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

import numpy as np
import pandas as pd


class ColumnRole(str, Enum):
    """Semantic type of a column."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    IDENTIFIER = "identifier"
    TEXT = "text"
    ITEM = "item"  # boolean basket membership flag


@dataclass(frozen=True, eq=False)
class Table:
    """
    Ordered rows with a consistent set of role-annotated columns.

    Attributes:
        frame: Underlying data. Row order is significant.
        roles: Column name -> ColumnRole, covering exactly the frame's columns.
        source: Where the rows came from (file path or description).
    """

    frame: pd.DataFrame
    roles: Mapping[str, ColumnRole]
    source: str | None = None

    def __post_init__(self) -> None:
        columns = list(self.frame.columns)
        if len(set(columns)) != len(columns):
            msg = f"Table has duplicate column names: {columns}"
            raise ValueError(msg)
        missing = [c for c in columns if c not in self.roles]
        extra = [c for c in self.roles if c not in set(columns)]
        if missing or extra:
            msg = f"Column roles do not match columns (missing={missing}, extra={extra})"
            raise ValueError(msg)
        object.__setattr__(self, "roles", {c: self.roles[c] for c in columns})

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        *,
        categorical: Iterable[str] = (),
        identifiers: Iterable[str] = (),
        text: Iterable[str] = (),
        source: str | None = None,
    ) -> "Table":
        """
        Build a Table, inferring roles and coercing labels to categoricals.

        Numeric dtypes become NUMERIC unless listed as categorical or
        identifier. Every other column becomes CATEGORICAL and is stored with
        the pandas ``category`` dtype.
        """
        categorical = set(categorical)
        identifiers = set(identifiers)
        text = set(text)

        frame = frame.copy()
        roles: dict[str, ColumnRole] = {}
        for col in frame.columns:
            if col in identifiers:
                roles[col] = ColumnRole.IDENTIFIER
            elif col in text:
                roles[col] = ColumnRole.TEXT
                frame[col] = frame[col].fillna("").astype(str)
            elif col not in categorical and (
                pd.api.types.is_numeric_dtype(frame[col])
                and not pd.api.types.is_bool_dtype(frame[col])
            ):
                roles[col] = ColumnRole.NUMERIC
            else:
                roles[col] = ColumnRole.CATEGORICAL
                if not isinstance(frame[col].dtype, pd.CategoricalDtype):
                    frame[col] = frame[col].astype("category")

        return cls(frame=frame, roles=roles, source=source)

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return len(self.frame)

    @property
    def columns(self) -> list[str]:
        """Column names in order."""
        return list(self.frame.columns)

    def __len__(self) -> int:
        return self.n_rows

    def role(self, column: str) -> ColumnRole:
        """Role of a column."""
        return self.roles[column]

    def columns_with(self, *roles: ColumnRole) -> list[str]:
        """Columns having any of the given roles, in table order."""
        return [c for c in self.columns if self.roles[c] in roles]

    def with_column(
        self, name: str, values: pd.Series | np.ndarray | Sequence, role: ColumnRole
    ) -> "Table":
        """Return a new Table with a column added or replaced."""
        frame = self.frame.copy()
        if isinstance(values, pd.Series):
            values = values.to_numpy()
        frame[name] = values
        if role == ColumnRole.CATEGORICAL and not isinstance(
            frame[name].dtype, pd.CategoricalDtype
        ):
            frame[name] = frame[name].astype("category")
        roles = {**self.roles, name: role}
        return Table(frame=frame, roles=roles, source=self.source)

    def drop(self, columns: Iterable[str]) -> "Table":
        """Return a new Table without the given columns."""
        columns = [c for c in columns if c in self.roles]
        frame = self.frame.drop(columns=columns)
        roles = {c: r for c, r in self.roles.items() if c not in set(columns)}
        return Table(frame=frame, roles=roles, source=self.source)

    def select(self, columns: Sequence[str]) -> "Table":
        """Return a new Table with only the given columns, in the given order."""
        return Table(
            frame=self.frame[list(columns)].copy(),
            roles={c: self.roles[c] for c in columns},
            source=self.source,
        )

    def take(self, positions: Sequence[int] | np.ndarray) -> "Table":
        """Return a new Table with the rows at the given positions."""
        return Table(
            frame=self.frame.iloc[np.asarray(positions, dtype=int)].copy(),
            roles=dict(self.roles),
            source=self.source,
        )
