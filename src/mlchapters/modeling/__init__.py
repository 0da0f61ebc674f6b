"""
Modeling layer: splitting, fitting and prediction.

Every learning algorithm is delegated to a library estimator; this layer
checks inputs, encodes features and carries metadata between stages.
"""
