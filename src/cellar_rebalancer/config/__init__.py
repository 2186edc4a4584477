"""Configuration system."""

from cellar_rebalancer.config.loader import load_config
from cellar_rebalancer.config.schema import AppConfig, CellarConfig

__all__ = ["AppConfig", "CellarConfig", "load_config"]
