"""Prediction store — read the latest tick-range prediction for a pair."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cellar_rebalancer.db.tables.predictions import PredictionRow, pair_id_forms
from cellar_rebalancer.errors import MalformedError, StoreError
from cellar_rebalancer.models import PredictionRecord


class PredictionStore(ABC):
    """Source of forecasted liquidity ranges."""

    @abstractmethod
    async def latest(self, pair_id: int) -> PredictionRecord | None:
        """Return the most recent record for *pair_id*, or None if there is none.

        Raises StoreError when the store can't be reached and MalformedError
        when the stored record can't be interpreted.
        """
        ...


def row_to_record(row: PredictionRow) -> PredictionRecord:
    """Validate a stored row into a PredictionRecord."""
    created = row.created_timestamp
    # SQLite drops tzinfo; predictions are always written in UTC.
    if isinstance(created, datetime) and created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    try:
        return PredictionRecord.model_validate({
            "id": row.id,
            "created_timestamp": created,
            "pair_id": row.pair_id,
            "symbol": row.symbol,
            "ranges": row.ranges,
        })
    except ValidationError as exc:
        raise MalformedError(f"prediction {row.id} is malformed: {exc}") from exc


class SqlPredictionStore(PredictionStore):
    """Prediction store backed by the predictions.tick_range_predictions table.

    Queries are synchronous SQLAlchemy calls pushed to a worker thread so the
    poll loop keeps running while the database answers.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def latest(self, pair_id: int) -> PredictionRecord | None:
        return await asyncio.to_thread(self._latest_sync, pair_id)

    def _latest_sync(self, pair_id: int) -> PredictionRecord | None:
        try:
            with self._session_factory() as session:
                row = (
                    session.query(PredictionRow)
                    .filter(PredictionRow.pair_id.in_(pair_id_forms(pair_id)))
                    .order_by(desc(PredictionRow.created_timestamp), desc(PredictionRow.id))
                    .limit(1)
                    .one_or_none()
                )
                if row is None:
                    return None
                return row_to_record(row)
        except SQLAlchemyError as exc:
            raise StoreError(f"prediction query failed: {exc}") from exc
