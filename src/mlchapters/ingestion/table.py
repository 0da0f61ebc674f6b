"""
Delimited-file loader.

Reads a CSV-style file with a fixed column schema into a Table,
coercing string columns to categoricals.
"""

import csv

import pandas as pd

from mlchapters.errors import DataFormatError
from mlchapters.ingestion.base import DataLoader
from mlchapters.schemas.table import Table
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


class TableLoader(DataLoader):
    """Loader for delimited tabular files."""

    def _check_field_counts(self) -> None:
        """
        Ensure every non-empty line has the same number of fields.

        pandas pads short rows with NaN, so ragged files are caught here.
        """
        with self.path.open(encoding=self.config.encoding, newline="") as f:
            reader = csv.reader(f, delimiter=self.config.delimiter)
            expected: int | None = None
            for line_no, row in enumerate(reader, start=1):
                if not row:
                    continue
                if expected is None:
                    expected = len(row)
                elif len(row) != expected:
                    msg = (
                        f"{self.path}: line {line_no} has {len(row)} fields, "
                        f"expected {expected}"
                    )
                    raise DataFormatError(msg)

    def _load_raw(self) -> pd.DataFrame:
        """Read the file with pandas after checking its shape."""
        try:
            self._check_field_counts()
            df = pd.read_csv(
                self.path,
                sep=self.config.delimiter,
                header=0 if self.config.header else None,
                encoding=self.config.encoding,
                na_values=self.config.na_values or None,
            )
        except UnicodeDecodeError as e:
            msg = f"{self.path} is not valid {self.config.encoding}: {e}"
            raise DataFormatError(msg) from e
        except pd.errors.EmptyDataError as e:
            msg = f"{self.path} is empty"
            raise DataFormatError(msg) from e
        except pd.errors.ParserError as e:
            msg = f"{self.path} could not be parsed: {e}"
            raise DataFormatError(msg) from e

        if not self.config.header:
            df.columns = [f"V{i + 1}" for i in range(df.shape[1])]

        if df.empty:
            msg = f"{self.path} has a header but no rows"
            raise DataFormatError(msg)

        return df

    def _to_table(self, df: pd.DataFrame) -> Table:
        """Assign roles from the data config and infer the rest."""
        declared = [
            *self.config.categorical,
            *self.config.identifiers,
            *self.config.text,
        ]
        missing = [c for c in declared if c not in df.columns]
        if missing:
            msg = f"{self.path} lacks declared columns: {missing}"
            raise DataFormatError(msg)

        table = Table.from_frame(
            df,
            categorical=self.config.categorical,
            identifiers=self.config.identifiers,
            text=self.config.text,
            source=str(self.path),
        )
        log.debug(
            "Column roles assigned",
            roles={c: r.value for c, r in table.roles.items()},
        )
        return table
