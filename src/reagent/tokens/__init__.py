"""Token estimation."""

from reagent.tokens.estimator import TokenEstimator

__all__ = ["TokenEstimator"]
