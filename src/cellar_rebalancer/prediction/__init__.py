"""Prediction source — store access, tick normalization and the window snapshot."""

from cellar_rebalancer.prediction.store import PredictionStore, SqlPredictionStore
from cellar_rebalancer.prediction.window import PredictionWindow

__all__ = ["PredictionStore", "PredictionWindow", "SqlPredictionStore"]
