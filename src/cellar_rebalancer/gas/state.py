"""GasState — configured gas cap and the last observed gas price."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from cellar_rebalancer.gas.oracle import GasOracle

log = structlog.get_logger("gas_state")


@dataclass
class GasState:
    max_price: int
    current_price: int | None = None  # None until the oracle has answered once

    async def refresh(self, oracle: GasOracle) -> int:
        """Ask *oracle* for the standard price; the state itself is untouched."""
        price = await oracle.standard_price()
        log.info("gas_polled", price_wei=price, max_price_wei=self.max_price)
        return price

    def apply(self, price: int) -> None:
        self.current_price = price

    def exceeds_max(self) -> bool:
        """True only when a price has been observed and it is above the cap."""
        if self.current_price is None:
            return False
        return self.current_price > self.max_price
