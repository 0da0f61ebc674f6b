"""
MLflow experiment scripts.

Each experiment answers one specific question:
- parameter_sweep: How does one hyperparameter move a chapter's metric
  (k for kNN, boosting trials for trees, kernel for SVMs)?
"""
