"""PositionState — the poller's exclusive handle on the cellar contract."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from cellar_rebalancer.chain.contracts import PositionContract
from cellar_rebalancer.models import ContractStateUpdate, Instruction

log = structlog.get_logger("position_state")


class PositionState:
    """Address-scoped cellar handle.

    Only the owning poller calls rebalance(), and it awaits each call to
    completion, so at most one transaction is in flight per cellar.
    """

    def __init__(self, address: str, contract: PositionContract, tick_spacing: int):
        self._address = address
        self._contract = contract
        self._tick_spacing = tick_spacing
        self.cached_gas_price: int | None = None

    @classmethod
    async def connect(cls, address: str, contract: PositionContract) -> PositionState:
        """Build the handle, reading the pool tick spacing once."""
        spacing = await contract.tick_spacing()
        log.info("tick_spacing_loaded", cellar=address, tick_spacing=spacing)
        return cls(address, contract, spacing)

    @property
    def address(self) -> str:
        return self._address

    def read_spacing(self) -> int:
        return self._tick_spacing

    async def read_state(self) -> ContractStateUpdate:
        state = await self._contract.read_state()
        log.info(
            "contract_state_polled",
            cellar=self._address,
            block=state.block_number,
            current_tick=state.current_tick,
        )
        return state

    async def rebalance(self, instructions: Sequence[Instruction]) -> str:
        """Submit *instructions* as a single transaction; ExecutionError on failure."""
        tx_hash = await self._contract.rebalance(list(instructions), self.cached_gas_price)
        log.info(
            "rebalance_confirmed",
            cellar=self._address,
            tx_hash=tx_hash,
            instructions=len(instructions),
            gas_price_wei=self.cached_gas_price,
        )
        return tx_hash
