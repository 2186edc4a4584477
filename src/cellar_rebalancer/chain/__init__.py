"""On-chain collaborators — cellar and pool contracts."""

from cellar_rebalancer.chain.contracts import PoolReader, PositionContract, Web3CellarContract
from cellar_rebalancer.chain.position import PositionState

__all__ = ["PoolReader", "PositionContract", "PositionState", "Web3CellarContract"]
