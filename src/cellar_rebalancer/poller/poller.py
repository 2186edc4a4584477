"""Poller — gathers prediction, gas and chain state on a timer and rebalances.

Each cycle fans out three refreshes concurrently. The results are merged only
if all three succeed; otherwise the cycle is skipped and the poller's state is
left exactly as it was. The decision step turns the weighted ranges into
cellar instructions and submits at most one transaction, awaiting it before
the next cycle can start.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

import structlog

from cellar_rebalancer.chain.contracts import PositionContract
from cellar_rebalancer.chain.position import PositionState
from cellar_rebalancer.config.schema import CellarConfig
from cellar_rebalancer.errors import ErrorKind, ExecutionError
from cellar_rebalancer.gas.oracle import GasOracle
from cellar_rebalancer.gas.state import GasState
from cellar_rebalancer.models import ContractStateUpdate, Instruction, WeightedRange
from cellar_rebalancer.prediction.store import PredictionStore
from cellar_rebalancer.prediction.window import PredictionWindow

log = structlog.get_logger("poller")

_SOURCES = ("prediction", "gas", "contract_state")


class PollerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DECIDING = "deciding"
    SKIPPING = "skipping"


class Outcome(str, Enum):
    REBALANCED = "rebalanced"
    DRY_RUN = "dry_run"
    NO_PREDICTION = "no_prediction"
    GAS_TOO_HIGH = "gas_too_high"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class CycleResult:
    """What one poll cycle did."""

    outcome: Outcome
    instructions: tuple[Instruction, ...] = ()
    error: BaseException | None = None
    tx_hash: str | None = None


def build_instructions(ranges: Iterable[WeightedRange]) -> list[Instruction]:
    """Weighted ranges -> cellar instructions, zero weights dropped, order reversed.

    The cellar consumes the list back to front, so submission order is the
    reverse of the prediction's range order.
    """
    instructions = [Instruction.from_range(r) for r in ranges if r.weight > 0]
    instructions.reverse()
    return instructions


class Poller:
    """Owns one cellar's prediction window, gas state and position handle."""

    def __init__(
        self,
        *,
        window: PredictionWindow,
        gas: GasState,
        position: PositionState,
        store: PredictionStore,
        oracle: GasOracle,
        poll_interval_s: float,
        dry_run: bool = False,
        enforce_max_gas: bool = True,
    ) -> None:
        self.window = window
        self.gas = gas
        self.position = position
        self.contract_state: ContractStateUpdate | None = None
        self.poll_interval_s = poll_interval_s
        self.dry_run = dry_run
        self.enforce_max_gas = enforce_max_gas
        self.state = PollerState.IDLE
        self._store = store
        self._oracle = oracle
        self._log = log.bind(pair_id=str(window.pair_id), cellar=position.address)

    @classmethod
    async def create(
        cls,
        cellar: CellarConfig,
        *,
        store: PredictionStore,
        oracle: GasOracle,
        contract: PositionContract,
    ) -> Poller:
        """Build a poller from config, reading the pool tick spacing once."""
        position = await PositionState.connect(cellar.cellar_address, contract)
        return cls(
            window=PredictionWindow.from_config(cellar, position.read_spacing()),
            gas=GasState(max_price=cellar.max_gas_price_wei),
            position=position,
            store=store,
            oracle=oracle,
            poll_interval_s=cellar.poll_interval_s,
            dry_run=cellar.dry_run,
            enforce_max_gas=cellar.enforce_max_gas,
        )

    # ── Fetch ─────────────────────────────────────────────────

    async def poll_prediction(self) -> PredictionWindow:
        return await self.window.refresh(self._store)

    async def poll_gas(self) -> int:
        return await self.gas.refresh(self._oracle)

    async def poll_contract_state(self) -> ContractStateUpdate:
        return await self.position.read_state()

    def update(
        self,
        window: PredictionWindow,
        gas_price: int,
        contract_state: ContractStateUpdate,
    ) -> None:
        """Merge one cycle's fetch results into the owned state."""
        self.window = window
        self.gas.apply(gas_price)
        self.position.cached_gas_price = gas_price
        self.contract_state = contract_state

    # ── Decide ────────────────────────────────────────────────

    async def decide_rebalance(self) -> CycleResult:
        if self.window.current_time is None:
            self._log.info("rebalance_not_needed", reason="no_prediction")
            return CycleResult(Outcome.NO_PREDICTION)

        # An empty list is still submitted: it withdraws from every range.
        instructions = build_instructions(self.window.ranges)
        submitted = tuple(instructions)

        if self.enforce_max_gas and self.gas.exceeds_max():
            self._log.warning(
                "rebalance_deferred",
                reason="gas_above_max",
                gas_price_wei=self.gas.current_price,
                max_gas_price_wei=self.gas.max_price,
            )
            return CycleResult(Outcome.GAS_TOO_HIGH, submitted)

        if self.dry_run:
            self._log.info(
                "rebalance_dry_run",
                instructions=[i.model_dump() for i in instructions],
            )
            return CycleResult(Outcome.DRY_RUN, submitted)

        self._log.info(
            "rebalance_submitted",
            instructions=[i.model_dump() for i in instructions],
            gas_price_wei=self.position.cached_gas_price,
        )
        try:
            tx_hash = await self.position.rebalance(instructions)
        except ExecutionError as exc:
            self._log.error("rebalance_failed", kind=exc.kind.value, error=str(exc))
            return CycleResult(Outcome.FAILED, submitted, error=exc)
        except Exception as exc:
            self._log.exception("rebalance_failed", kind=ErrorKind.MISC.value)
            return CycleResult(Outcome.FAILED, submitted, error=exc)

        return CycleResult(Outcome.REBALANCED, submitted, tx_hash=tx_hash)

    # ── Cycle ─────────────────────────────────────────────────

    async def poll(self) -> CycleResult:
        """Run one fetch → merge → decide cycle."""
        self.state = PollerState.FETCHING
        self._log.info("poll_started")
        try:
            results = await asyncio.gather(
                self.poll_prediction(),
                self.poll_gas(),
                self.poll_contract_state(),
                return_exceptions=True,
            )

            failures = [
                (source, result)
                for source, result in zip(_SOURCES, results)
                if isinstance(result, BaseException)
            ]
            if failures:
                self.state = PollerState.SKIPPING
                for source, exc in failures:
                    self._log.error(
                        "source_failed",
                        source=source,
                        kind=getattr(getattr(exc, "kind", None), "value", ErrorKind.MISC.value),
                        error=str(exc),
                    )
                self._log.warning("cycle_skipped", failed_sources=[s for s, _ in failures])
                return CycleResult(Outcome.SKIPPED, error=failures[0][1])

            window, gas_price, contract_state = results
            self.update(window, gas_price, contract_state)

            self.state = PollerState.DECIDING
            result = await self.decide_rebalance()
            self._log.info("cycle_complete", outcome=result.outcome.value)
            return result
        finally:
            self.state = PollerState.IDLE

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Poll every ``poll_interval_s`` until *stop* is set.

        The stop event is only honoured between cycles, never in the middle of
        a submitted transaction. A cycle that overruns the interval is
        followed immediately by the next one; missed ticks are not replayed.
        """
        if stop is None:
            stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        self._log.info("poller_started", interval_s=self.poll_interval_s, dry_run=self.dry_run)

        while not stop.is_set():
            started = loop.time()
            try:
                await self.poll()
            except Exception:
                self._log.exception("cycle_error")

            delay = max(0.0, self.poll_interval_s - (loop.time() - started))
            self._log.info("poller_waiting", seconds=round(delay, 3))
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        self._log.info("poller_stopped")
