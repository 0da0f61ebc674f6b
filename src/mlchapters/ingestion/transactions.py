"""
Basket-file loader.

Each line is one transaction; items are separated by the delimiter.
The result is a boolean item matrix, one column per distinct item.
"""

import pandas as pd
from mlxtend.preprocessing import TransactionEncoder

from mlchapters.errors import DataFormatError
from mlchapters.ingestion.base import DataLoader
from mlchapters.schemas.table import ColumnRole, Table
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


def read_transactions(
    lines: list[str], delimiter: str = ","
) -> list[list[str]]:
    """
    Split raw lines into item lists.

    Blank lines are skipped. Items are stripped and deduplicated within
    a transaction, keeping first-seen order.
    """
    transactions: list[list[str]] = []
    for line in lines:
        items = [item.strip() for item in line.split(delimiter)]
        items = list(dict.fromkeys(item for item in items if item))
        if items:
            transactions.append(items)
    return transactions


def encode_transactions(transactions: list[list[str]]) -> pd.DataFrame:
    """One-hot encode transactions into a boolean item matrix."""
    encoder = TransactionEncoder()
    matrix = encoder.fit(transactions).transform(transactions)
    return pd.DataFrame(matrix, columns=encoder.columns_)


class TransactionLoader(DataLoader):
    """Loader for one-transaction-per-line basket files."""

    def _load_raw(self) -> pd.DataFrame:
        """Read and encode all transactions."""
        try:
            with self.path.open(encoding=self.config.encoding) as f:
                lines = f.read().splitlines()
        except UnicodeDecodeError as e:
            msg = f"{self.path} is not valid {self.config.encoding}: {e}"
            raise DataFormatError(msg) from e

        if self.config.header and lines:
            lines = lines[1:]

        transactions = read_transactions(lines, self.config.delimiter)
        if not transactions:
            msg = f"{self.path} contains no transactions"
            raise DataFormatError(msg)

        df = encode_transactions(transactions)
        log.info(
            "Encoded transactions",
            transactions=len(df),
            distinct_items=df.shape[1],
            mean_basket_size=round(float(df.sum(axis=1).mean()), 2),
        )
        return df

    def _to_table(self, df: pd.DataFrame) -> Table:
        """Every column is an item flag."""
        return Table(
            frame=df,
            roles=dict.fromkeys(df.columns, ColumnRole.ITEM),
            source=str(self.path),
        )
