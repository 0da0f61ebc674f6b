"""
Configuration management with typed Pydantic models.

One YAML file per chapter, optionally inheriting shared defaults
from a base.yaml in the same directory.
"""

from mlchapters.config.loader import build_config, load_config
from mlchapters.config.settings import (
    Algorithm,
    ChapterConfig,
    DataConfig,
    DataFormat,
    DerivedColumnConfig,
    DerivedKind,
    EvaluationConfig,
    ExploreConfig,
    FeaturesConfig,
    ModelSpecConfig,
    OutputConfig,
    PreprocessingConfig,
    SplitConfig,
    SplitStrategy,
    TrackingConfig,
)

__all__ = [
    "Algorithm",
    "ChapterConfig",
    "DataConfig",
    "DataFormat",
    "DerivedColumnConfig",
    "DerivedKind",
    "EvaluationConfig",
    "ExploreConfig",
    "FeaturesConfig",
    "ModelSpecConfig",
    "OutputConfig",
    "PreprocessingConfig",
    "SplitConfig",
    "SplitStrategy",
    "TrackingConfig",
    "build_config",
    "load_config",
]
