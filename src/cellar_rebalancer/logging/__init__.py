"""Structured logging."""

from cellar_rebalancer.logging.setup import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
