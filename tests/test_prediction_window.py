"""Tests for PredictionWindow refresh and normalization."""

from __future__ import annotations

from datetime import timedelta

import pytest

from cellar_rebalancer.errors import MalformedError, StoreError
from cellar_rebalancer.models import WeightedRange
from cellar_rebalancer.prediction.window import PredictionWindow

from conftest import PAIR_ID, T0, TOKEN_A, TOKEN_B, USDC, WETH, FakeStore, make_record


def _window(spacing: int = 1, weight_scale: int = 100, tokens=(TOKEN_A, TOKEN_B)) -> PredictionWindow:
    return PredictionWindow(
        pair_id=PAIR_ID,
        token_pair=tokens,
        weight_scale=weight_scale,
        tick_spacing=spacing,
    )


class TestRefresh:
    async def test_normalizes_ranges(self):
        store = FakeStore(make_record([(1.0, 2.0, 0.25), (0.5, 1.0001, 0.75)]))
        window = await _window().refresh(store)

        assert window.ranges == (
            WeightedRange(lower_tick=0, upper_tick=6932, weight=25),
            WeightedRange(lower_tick=-6932, upper_tick=1, weight=75),
        )
        assert window.current_time == T0
        assert window.previous_time is None

    async def test_preserves_source_order(self):
        store = FakeStore(make_record([(3.0, 4.0, 0.1), (1.0, 2.0, 0.2), (2.0, 3.0, 0.3)]))
        window = await _window().refresh(store)
        assert [r.weight for r in window.ranges] == [10, 20, 30]

    async def test_snaps_to_tick_spacing(self):
        store = FakeStore(make_record([(1.0, 2.0, 1.0)]))
        window = await _window(spacing=60).refresh(store)
        assert window.ranges[0].lower_tick == 0
        assert window.ranges[0].upper_tick == 6960

    async def test_token_decimals_applied(self):
        store = FakeStore(make_record([(1.0, 1.0, 1.0)]))
        window = await _window(tokens=(WETH, USDC)).refresh(store)
        assert window.ranges[0].lower_tick == 276324

    async def test_shifts_timestamps(self):
        later = T0 + timedelta(minutes=5)
        store = FakeStore(
            make_record([(1.0, 2.0, 0.5)], created=T0),
            make_record([(1.0, 2.0, 0.5)], created=later, record_id="rec-2"),
        )
        first = await _window().refresh(store)
        second = await first.refresh(store)
        assert second.current_time == later
        assert second.previous_time == T0

    async def test_replaces_ranges_wholesale(self):
        store = FakeStore(
            make_record([(1.0, 2.0, 0.5), (2.0, 3.0, 0.5)]),
            make_record([(1.0, 1.5, 1.0)], record_id="rec-2"),
        )
        first = await _window().refresh(store)
        second = await first.refresh(store)
        assert len(first.ranges) == 2
        assert len(second.ranges) == 1

    async def test_does_not_mutate_original(self):
        original = _window()
        await original.refresh(FakeStore(make_record([(1.0, 2.0, 0.5)])))
        assert original.ranges == ()
        assert original.current_time is None

    async def test_deterministic(self):
        record = make_record([(0.9, 1.7, 0.333), (1.2, 5.5, 0.667)])
        results = {(await _window(spacing=10).refresh(FakeStore(record))).ranges for _ in range(5)}
        assert len(results) == 1


class TestEmptyStore:
    async def test_empty_store_returns_window_unchanged(self):
        window = _window()
        refreshed = await window.refresh(FakeStore())
        assert refreshed is window

    async def test_empty_store_keeps_previous_prediction(self):
        seeded = await _window().refresh(FakeStore(make_record([(1.0, 2.0, 0.5)])))
        refreshed = await seeded.refresh(FakeStore())
        assert refreshed.ranges == seeded.ranges
        assert refreshed.current_time == T0


class TestMalformed:
    async def test_other_pair_rejected(self):
        store = FakeStore(make_record([(1.0, 2.0, 0.5)], pair_id=PAIR_ID + 1))
        with pytest.raises(MalformedError):
            await _window().refresh(store)

    async def test_inverted_bounds_rejected(self):
        store = FakeStore(make_record([(2.0, 1.0, 0.5)]))
        with pytest.raises(MalformedError):
            await _window().refresh(store)

    async def test_non_positive_price_rejected(self):
        store = FakeStore(make_record([(0.0, 1.0, 0.5)]))
        with pytest.raises(MalformedError):
            await _window().refresh(store)

    async def test_negative_weight_rejected(self):
        store = FakeStore(make_record([(1.0, 2.0, -0.5)]))
        with pytest.raises(MalformedError):
            await _window().refresh(store)

    async def test_store_error_propagates(self):
        store = FakeStore()
        store.error = StoreError("connection refused")
        with pytest.raises(StoreError):
            await _window().refresh(store)


class TestFromConfig:
    def test_builds_from_cellar_config(self, cellar_config):
        window = PredictionWindow.from_config(cellar_config, tick_spacing=10)
        assert window.pair_id == PAIR_ID
        assert window.token_pair == (TOKEN_A, TOKEN_B)
        assert window.weight_scale == 100
        assert window.tick_spacing == 10
        assert window.ranges == ()
