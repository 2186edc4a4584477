"""Cellar contract models — rebalance instructions and read-only state."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cellar_rebalancer.models.prediction import WeightedRange


class Instruction(BaseModel):
    """One CellarTickInfo entry of a rebalance call."""

    model_config = ConfigDict(frozen=True)

    token_id: int = Field(default=0, ge=0)  # 0 until the position is minted
    upper_tick: int
    lower_tick: int
    weight: int = Field(ge=0)

    @classmethod
    def from_range(cls, weighted: WeightedRange) -> Instruction:
        return cls(
            token_id=0,
            upper_tick=weighted.upper_tick,
            lower_tick=weighted.lower_tick,
            weight=weighted.weight,
        )

    def as_abi_tuple(self) -> tuple[int, int, int, int]:
        """Field order of the Solidity struct: (tokenId, tickUpper, tickLower, weight)."""
        return (self.token_id, self.upper_tick, self.lower_tick, self.weight)


class ContractStateUpdate(BaseModel):
    """Read-only chain state gathered alongside the prediction and gas price."""

    block_number: int
    current_tick: int | None = None
