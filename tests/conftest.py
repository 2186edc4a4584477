"""Shared test fixtures and fake collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

import pytest
from sqlalchemy import BigInteger, Integer, JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cellar_rebalancer.chain.contracts import PositionContract
from cellar_rebalancer.config.schema import CellarConfig
from cellar_rebalancer.db.base import Base
import cellar_rebalancer.db.tables  # noqa: F401
from cellar_rebalancer.gas.oracle import GasOracle
from cellar_rebalancer.models import (
    ContractStateUpdate,
    Instruction,
    PredictionRecord,
    RawRange,
    TokenInfo,
)
from cellar_rebalancer.prediction.store import PredictionStore

USDC = TokenInfo(symbol="USDC", address="0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48", decimals=6)
WETH = TokenInfo(symbol="WETH", address="0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2", decimals=18)
# Equal decimals keep price == unit, which makes expected ticks easy to reason about.
TOKEN_A = TokenInfo(symbol="AAA", address="0x" + "11" * 20, decimals=0)
TOKEN_B = TokenInfo(symbol="BBB", address="0x" + "22" * 20, decimals=0)

CELLAR_ADDRESS = "0x" + "cc" * 20
POOL_ADDRESS = "0x" + "dd" * 20
PAIR_ID = 7

T0 = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def make_record(
    ranges: Sequence[tuple[float, float, float]],
    *,
    created: datetime = T0,
    pair_id: int = PAIR_ID,
    record_id: str = "rec-1",
) -> PredictionRecord:
    return PredictionRecord(
        id=record_id,
        created_timestamp=created,
        pair_id=pair_id,
        symbol="AAA/BBB",
        ranges=[RawRange(lower=lo, upper=hi, weight=w) for lo, hi, w in ranges],
    )


class FakeStore(PredictionStore):
    """Returns queued records (last one sticks); raises *error* when set."""

    def __init__(self, *records: PredictionRecord | None):
        self.records = list(records)
        self.error: Exception | None = None
        self.calls = 0

    async def latest(self, pair_id: int) -> PredictionRecord | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if not self.records:
            return None
        if len(self.records) > 1:
            return self.records.pop(0)
        return self.records[0]


class FakeOracle(GasOracle):
    def __init__(self, *prices: int):
        self.prices = list(prices) or [20_000_000_000]
        self.error: Exception | None = None

    async def standard_price(self) -> int:
        if self.error is not None:
            raise self.error
        if len(self.prices) > 1:
            return self.prices.pop(0)
        return self.prices[0]


class FakeContract(PositionContract):
    """Records every rebalance as (instructions, gas_price)."""

    def __init__(self, spacing: int = 1, block_number: int = 100):
        self.spacing = spacing
        self.block_number = block_number
        self.calls: list[tuple[list[Instruction], int | None]] = []
        self.state_error: Exception | None = None
        self.rebalance_error: Exception | None = None

    async def tick_spacing(self) -> int:
        return self.spacing

    async def read_state(self) -> ContractStateUpdate:
        if self.state_error is not None:
            raise self.state_error
        self.block_number += 1
        return ContractStateUpdate(block_number=self.block_number, current_tick=0)

    async def rebalance(self, instructions, gas_price):
        if self.rebalance_error is not None:
            raise self.rebalance_error
        self.calls.append((list(instructions), gas_price))
        return "0x" + "ab" * 32


@pytest.fixture
def cellar_config() -> CellarConfig:
    return CellarConfig(
        poll_interval_s=0.01,
        pair_id=PAIR_ID,
        token_0=TOKEN_A,
        token_1=TOKEN_B,
        weight_factor=100,
        max_gas_price_gwei=50,
        cellar_address=CELLAR_ADDRESS,
        pool_address=POOL_ADDRESS,
    )


@pytest.fixture
def session_factory():
    """In-memory SQLite session factory with the prediction tables created.

    Patches JSONB→JSON and BigInteger→Integer for SQLite compatibility, and
    uses a StaticPool so worker threads share the one in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite doesn't support schemas, JSONB, or BigInteger autoincrement
    for table in Base.metadata.tables.values():
        table.schema = None
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
            if isinstance(col.type, BigInteger):
                col.type = Integer()

    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()
