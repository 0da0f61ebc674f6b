"""
Base class for dataset loaders.

Every loader reads raw rows, applies renames and drops, validates
against a registered schema and hands back a Table. Anything that goes
wrong on the way surfaces as a DataFormatError.
"""

from abc import ABC, abstractmethod
from pathlib import Path

import pandas as pd
from pandera.errors import SchemaError, SchemaErrors

from mlchapters.config.settings import DataConfig
from mlchapters.errors import DataFormatError
from mlchapters.schemas.registry import SchemaRegistry
from mlchapters.schemas.table import Table
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


class DataLoader(ABC):
    """
    Abstract base class for data loaders.

    Subclasses implement ``_load_raw`` and ``_to_table``; the shared
    ``load`` handles renames, drops and schema validation.
    """

    def __init__(self, config: DataConfig) -> None:
        """
        Initialize data loader.

        Args:
            config: Data section of the chapter configuration.
        """
        self.config = config

    @property
    def path(self) -> Path:
        """Resolved path of the input file."""
        return self.config.resolve()

    @abstractmethod
    def _load_raw(self) -> pd.DataFrame:
        """Load raw rows from the source file."""
        ...

    @abstractmethod
    def _to_table(self, df: pd.DataFrame) -> Table:
        """Assign column roles to the cleaned rows."""
        ...

    def load(self, *, validate: bool = True) -> Table:
        """
        Load, clean and optionally validate the dataset.

        Args:
            validate: Whether to validate against the configured schema.

        Returns:
            Table with declared column roles.

        Raises:
            DataFormatError: If the file is missing, malformed or invalid.
        """
        log.info("Loading data", loader=self.__class__.__name__, path=str(self.path))

        if not self.path.exists():
            msg = f"Data file not found: {self.path}"
            raise DataFormatError(msg)

        df = self._load_raw()
        log.info("Loaded raw data", rows=len(df), columns=len(df.columns))

        df = self._clean(df)

        if validate and self.config.schema_name:
            df = self._validate(df)
            log.info("Schema validation passed", schema=self.config.schema_name)

        return self._to_table(df)

    def _clean(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply configured renames, then drop configured columns."""
        if self.config.rename:
            rename = {k: v for k, v in self.config.rename.items() if k in df.columns}
            df = df.rename(columns=rename)

        if self.config.drop:
            missing = [c for c in self.config.drop if c not in df.columns]
            if missing:
                log.warning("Columns to drop not present", columns=missing)
            df = df.drop(columns=[c for c in self.config.drop if c in df.columns])
            log.debug("Dropped columns", columns=self.config.drop)

        return df

    def _validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """Validate rows against the configured pandera schema."""
        name = self.config.schema_name
        try:
            return SchemaRegistry.validate(df, name)
        except KeyError as e:
            raise DataFormatError(str(e)) from e
        except (SchemaError, SchemaErrors) as e:
            msg = f"{self.path} does not match schema '{name}': {e}"
            raise DataFormatError(msg) from e
