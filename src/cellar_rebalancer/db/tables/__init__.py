"""Import all table modules so Base.metadata knows about them."""

from cellar_rebalancer.db.tables.predictions import PredictionRow

__all__ = ["PredictionRow"]
