"""Gas price tracking."""

from cellar_rebalancer.gas.oracle import EtherscanGasOracle, GasOracle
from cellar_rebalancer.gas.state import GasState

__all__ = ["EtherscanGasOracle", "GasOracle", "GasState"]
