"""
mlchapters: Classical machine learning chapters as reproducible pipelines.

Each chapter loads a small dataset, splits it, fits a library-backed
learner and evaluates its predictions on held-out rows.
"""

from importlib.metadata import version

__version__ = version("mlchapters")

__all__ = ["__version__"]
