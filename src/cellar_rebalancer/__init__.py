"""Cellar rebalancer — turns tick-range predictions into cellar rebalance transactions."""

__version__ = "0.1.0"
