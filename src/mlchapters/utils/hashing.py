"""
Deterministic fingerprints for tables and configurations.

Used to tag tracked runs and saved models with the exact data they saw.
"""

import hashlib
import json
from typing import Any

import pandas as pd


def hash_dataframe(df: pd.DataFrame, columns: list[str] | None = None) -> str:
    """
    Compute a content hash of a DataFrame.

    Row order matters: the same rows in a different order hash differently,
    which is what a positional train/test split depends on.

    Args:
        df: DataFrame to hash.
        columns: Optional subset of columns to include.

    Returns:
        16-character hex digest.
    """
    if columns:
        df = df[columns]

    hasher = hashlib.sha256()
    hasher.update(f"{df.shape}".encode())
    hasher.update(",".join(map(str, df.columns)).encode())
    hasher.update(pd.util.hash_pandas_object(df, index=False).to_numpy().tobytes())
    return hasher.hexdigest()[:16]


def hash_config(config: Any) -> str:
    """
    Compute a short hash of a configuration object.

    Args:
        config: Pydantic model or plain mapping.

    Returns:
        12-character hex digest.
    """
    if hasattr(config, "model_dump"):
        payload = config.model_dump(mode="json")
    else:
        payload = config

    config_str = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.md5(config_str.encode()).hexdigest()[:12]
