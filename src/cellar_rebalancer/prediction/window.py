"""PredictionWindow — the latest forecast, normalized into tick space."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

import structlog
from pydantic import ValidationError

from cellar_rebalancer.config.schema import CellarConfig
from cellar_rebalancer.errors import MalformedError
from cellar_rebalancer.models import PredictionRecord, TokenInfo, WeightedRange
from cellar_rebalancer.prediction.store import PredictionStore
from cellar_rebalancer.prediction.ticks import (
    nearest_usable_tick,
    price_to_tick,
    scale_weight,
    unit_to_price,
)

log = structlog.get_logger("prediction_window")


@dataclass(frozen=True)
class PredictionWindow:
    """Snapshot of the most recent prediction for one pair.

    Instances are never mutated: refresh() returns a new window and the
    poller swaps it in only when the whole cycle fetched successfully.
    """

    pair_id: int
    token_pair: tuple[TokenInfo, TokenInfo]
    weight_scale: int
    tick_spacing: int = 1
    current_time: datetime | None = None
    previous_time: datetime | None = None
    ranges: tuple[WeightedRange, ...] = field(default_factory=tuple)

    @classmethod
    def from_config(cls, cellar: CellarConfig, tick_spacing: int) -> PredictionWindow:
        return cls(
            pair_id=cellar.pair_id,
            token_pair=(cellar.token_0, cellar.token_1),
            weight_scale=cellar.weight_factor,
            tick_spacing=tick_spacing,
        )

    async def refresh(self, store: PredictionStore) -> PredictionWindow:
        """Fetch the latest prediction and return the window it produces.

        An empty store is a quiet state, not an error: the window comes back
        unchanged.
        """
        record = await store.latest(self.pair_id)
        if record is None:
            log.info("prediction_store_empty", pair_id=str(self.pair_id))
            return self
        return self.apply_record(record)

    def apply_record(self, record: PredictionRecord) -> PredictionWindow:
        """Normalize *record* into tick space and return the resulting window."""
        if record.pair_id != self.pair_id:
            raise MalformedError(
                f"prediction {record.id} is for pair {record.pair_id}, expected {self.pair_id}"
            )

        ranges = tuple(self._normalize(record, index) for index in range(len(record.ranges)))

        window = replace(
            self,
            previous_time=self.current_time,
            current_time=record.created_timestamp,
            ranges=ranges,
        )
        log.info(
            "prediction_polled",
            prediction_id=record.id,
            symbol=record.symbol,
            created=record.created_timestamp.isoformat(),
            ranges=[r.model_dump() for r in ranges],
        )
        return window

    def _normalize(self, record: PredictionRecord, index: int) -> WeightedRange:
        raw = record.ranges[index]
        token_0, token_1 = self.token_pair
        try:
            lower = self._tick_for(unit_to_price(raw.lower, token_0, token_1))
            upper = self._tick_for(unit_to_price(raw.upper, token_0, token_1))
            return WeightedRange(
                lower_tick=lower,
                upper_tick=upper,
                weight=scale_weight(raw.weight, self.weight_scale),
            )
        except (ValueError, ValidationError) as exc:
            raise MalformedError(
                f"prediction {record.id} range #{index} is unusable: {exc}"
            ) from exc

    def _tick_for(self, price: Decimal) -> int:
        return nearest_usable_tick(price_to_tick(price), self.tick_spacing)
