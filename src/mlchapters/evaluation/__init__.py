"""
Evaluation layer: metrics, reports, exploration and experiment tracking.
"""
