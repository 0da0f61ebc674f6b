"""
Error taxonomy for chapter pipelines.

Each error aborts the current chapter run. Nothing is retried.
"""


class MLChaptersError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(MLChaptersError):
    """Chapter configuration file is missing or invalid."""


class DataFormatError(MLChaptersError):
    """Input file is missing, malformed, or fails schema validation."""


class IndexOutOfRangeError(MLChaptersError):
    """Requested split bounds do not fit the table."""


class FitError(MLChaptersError):
    """Target or hyperparameters are incompatible with the algorithm."""


class PredictError(MLChaptersError):
    """Fitted model cannot be applied to the given data."""
