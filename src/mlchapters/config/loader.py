"""
Configuration loading utilities.

Supports environment variable interpolation and config inheritance from
a ``base.yaml`` next to the chapter file. A minimal chapter config needs
only: chapter, data.path, split and model.algorithm.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from mlchapters.config.settings import (
    ChapterConfig,
    DataConfig,
    EvaluationConfig,
    ExploreConfig,
    FeaturesConfig,
    ModelSpecConfig,
    OutputConfig,
    PreprocessingConfig,
    SplitConfig,
    TrackingConfig,
)
from mlchapters.errors import ConfigError


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        msg = f"Config file not found: {path}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"Config file is not valid YAML: {path}: {e}"
        raise ConfigError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Config file must contain a mapping at top level: {path}"
        raise ConfigError(msg)
    return _process_config_values(data)


def _section(merged: dict[str, Any], key: str) -> dict[str, Any]:
    """Return a config section, treating a missing or null section as empty."""
    value = merged.get(key) or {}
    if not isinstance(value, dict):
        msg = f"Config section '{key}' must be a mapping"
        raise ConfigError(msg)
    return value


def build_config(merged: dict[str, Any]) -> ChapterConfig:
    """
    Build a validated ChapterConfig from a merged config mapping.

    Raises:
        ConfigError: If required keys are missing or values are invalid.
    """
    chapter = merged.get("chapter")
    if not chapter:
        msg = "Config must specify 'chapter' name"
        raise ConfigError(msg)

    data_data = _section(merged, "data")
    if not data_data.get("path"):
        msg = "Config must specify 'data.path'"
        raise ConfigError(msg)

    model_data = _section(merged, "model")
    explore_data = merged.get("explore")
    if not model_data.get("algorithm") and explore_data is None:
        msg = "Config must specify 'model.algorithm' (or an 'explore' section)"
        raise ConfigError(msg)

    split_data = _section(merged, "split")
    if model_data and not split_data:
        msg = "Config must specify a 'split' section"
        raise ConfigError(msg)

    try:
        data = DataConfig(
            root=Path(data_data.get("root", "./data")),
            path=Path(data_data["path"]),
            format=data_data.get("format", "table"),
            delimiter=data_data.get("delimiter", ","),
            header=data_data.get("header", True),
            encoding=data_data.get("encoding", "utf-8"),
            schema_name=data_data.get("schema"),
            categorical=data_data.get("categorical", []),
            identifiers=data_data.get("identifiers", []),
            text=data_data.get("text", []),
            drop=data_data.get("drop", []),
            rename=data_data.get("rename", {}),
            na_values=data_data.get("na_values", []),
        )

        features_data = _section(merged, "features")
        features = FeaturesConfig(
            derived=features_data.get("derived", []),
            drop_after=features_data.get("drop_after", []),
        )

        split = SplitConfig(**split_data) if split_data else None

        model = None
        if model_data:
            model = ModelSpecConfig(
                algorithm=model_data.get("algorithm"),
                target=model_data.get("target"),
                features=model_data.get("features"),
                hyperparameters=model_data.get("hyperparameters") or {},
            )

        explore = (
            ExploreConfig(**_section(merged, "explore"))
            if explore_data is not None
            else None
        )

        preprocessing = PreprocessingConfig(**_section(merged, "preprocessing"))
        evaluation = EvaluationConfig(**_section(merged, "evaluation"))

        # experiment_name is derived from chapter if not set
        tracking_data = _section(merged, "tracking")
        tracking = TrackingConfig(
            enabled=tracking_data.get("enabled", False),
            tracking_uri=tracking_data.get("tracking_uri", "http://127.0.0.1:5000"),
            experiment_name=tracking_data.get("experiment_name"),
        )

        output_data = _section(merged, "output")
        output = OutputConfig(
            output_root=Path(output_data.get("root", "./output")),
            save_model=output_data.get("save_model", False),
            save_predictions=output_data.get("save_predictions", False),
        )

        return ChapterConfig(
            chapter=chapter,
            title=merged.get("title"),
            data=data,
            features=features,
            split=split,
            model=model,
            explore=explore,
            preprocessing=preprocessing,
            evaluation=evaluation,
            tracking=tracking,
            output=output,
        )
    except ValidationError as e:
        msg = f"Invalid configuration for chapter '{chapter}': {e}"
        raise ConfigError(msg) from e


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> ChapterConfig:
    """
    Load chapter configuration from YAML file(s).

    Args:
        config_path: Path to the chapter configuration file.
        base_path: Optional base configuration for inheritance. Defaults to
            ``base.yaml`` in the same directory when present.

    Returns:
        Fully validated ChapterConfig instance.

    Raises:
        ConfigError: If the file cannot be read or fails validation.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        potential_base = config_path.parent / "base.yaml"
        base_data = (
            load_yaml(potential_base)
            if potential_base.exists() and potential_base != config_path
            else {}
        )

    main_data = load_yaml(config_path)

    # Chapter file overrides base
    merged = _deep_merge(base_data, main_data)
    return build_config(merged)
