"""
Data ingestion layer.

All raw data loading happens through this module so that file
problems surface as DataFormatError at a single boundary.
"""

from mlchapters.config.settings import DataConfig, DataFormat
from mlchapters.ingestion.base import DataLoader
from mlchapters.ingestion.table import TableLoader
from mlchapters.ingestion.transactions import TransactionLoader
from mlchapters.schemas.table import Table


def get_loader(config: DataConfig) -> DataLoader:
    """Pick the loader matching the configured file format."""
    if config.format == DataFormat.TRANSACTIONS:
        return TransactionLoader(config)
    return TableLoader(config)


def load_table(config: DataConfig, *, validate: bool = True) -> Table:
    """Load the configured dataset into a Table."""
    return get_loader(config).load(validate=validate)


def load_transactions(config: DataConfig) -> Table:
    """Load a basket file into a boolean item Table."""
    return TransactionLoader(config).load(validate=False)


__all__ = [
    "DataLoader",
    "TableLoader",
    "TransactionLoader",
    "get_loader",
    "load_table",
    "load_transactions",
]
