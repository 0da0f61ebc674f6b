"""
Derived-column pipeline.

Applies a chapter's derived columns in declaration order, so later
entries may depend on earlier ones, then drops the listed raw columns.
"""

from mlchapters.config.settings import FeaturesConfig
from mlchapters.errors import DataFormatError
from mlchapters.features.definitions import DerivedFeature, build_feature
from mlchapters.schemas.table import Table
from mlchapters.utils.logging import get_logger

log = get_logger(__name__)


class FeaturePipeline:
    """Computes derived columns and returns a new Table."""

    def __init__(self, config: FeaturesConfig) -> None:
        """
        Initialize feature pipeline.

        Args:
            config: Features section of the chapter configuration.
        """
        self.config = config
        self.features = [build_feature(c) for c in config.derived]

    def process(self, table: Table) -> Table:
        """
        Add every configured derived column.

        Args:
            table: Loaded table.

        Returns:
            New table with derived columns added and ``drop_after`` removed.

        Raises:
            DataFormatError: If a dependency column is missing or not numeric.
        """
        if not self.features and not self.config.drop_after:
            return table

        log.info("Starting feature pipeline", derived=len(self.features))

        for feature in self.features:
            table = self._compute_feature(table, feature)

        if self.config.drop_after:
            table = table.drop(self.config.drop_after)

        log.info("Feature pipeline complete", columns=table.columns)
        return table

    def _compute_feature(self, table: Table, feature: DerivedFeature) -> Table:
        """Compute a single derived column."""
        missing = [c for c in feature.dependencies if c not in table.roles]
        if missing:
            msg = f"Derived column '{feature.name}' needs missing columns: {missing}"
            raise DataFormatError(msg)

        try:
            values = feature.formula(table.frame)
        except (TypeError, ValueError) as e:
            msg = f"Cannot compute derived column '{feature.name}': {e}"
            raise DataFormatError(msg) from e

        log.debug("Computed derived column", name=feature.name, role=feature.role.value)
        return table.with_column(feature.name, values, feature.role)


def apply_features(table: Table, config: FeaturesConfig) -> Table:
    """Convenience wrapper around FeaturePipeline."""
    return FeaturePipeline(config).process(table)

