"""Poll loop and rebalance decision."""

from cellar_rebalancer.poller.poller import (
    CycleResult,
    Outcome,
    Poller,
    PollerState,
    build_instructions,
)

__all__ = ["CycleResult", "Outcome", "Poller", "PollerState", "build_instructions"]
