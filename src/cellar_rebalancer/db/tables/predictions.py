"""SQLAlchemy ORM model for the predictions schema."""

from sqlalchemy import BigInteger, Index, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from cellar_rebalancer.db.base import Base

SCHEMA = "predictions"


class PredictionRow(Base):
    """One tick-range prediction written by the forecasting job.

    ``pair_id`` is a uint256 stored as text: a decimal string, or 0x hex as
    the job serializes U256 values (see ``pair_id_forms``). ``ranges``
    holds ``[{"lower": ..., "upper": ..., "weight": ...}, ...]`` in the
    order the job produced them.
    """

    __tablename__ = "tick_range_predictions"
    __table_args__ = (
        Index("ix_tick_range_predictions_pair_created", "pair_id", "created_timestamp"),
        {"schema": SCHEMA},
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    created_timestamp: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=False)
    pair_id: Mapped[str] = mapped_column(Text, nullable=False)
    symbol: Mapped[str] = mapped_column(Text, nullable=False)
    ranges: Mapped[list] = mapped_column(JSONB, nullable=False)


def pair_id_forms(pair_id: int) -> tuple[str, ...]:
    """Every text form a stored ``pair_id`` may take for *pair_id*."""
    return (str(pair_id), hex(pair_id), f"0x{pair_id:064x}")
