"""Create the tick_range_predictions table.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # The predictions schema is created by env.py before migrations run.
    op.create_table(
        "tick_range_predictions",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("created_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pair_id", sa.Text, nullable=False),
        sa.Column("symbol", sa.Text, nullable=False),
        sa.Column("ranges", postgresql.JSONB, nullable=False),
        schema="predictions",
    )
    op.create_index(
        "ix_tick_range_predictions_pair_created",
        "tick_range_predictions",
        ["pair_id", "created_timestamp"],
        schema="predictions",
    )


def downgrade() -> None:
    op.drop_index(
        "ix_tick_range_predictions_pair_created",
        table_name="tick_range_predictions",
        schema="predictions",
    )
    op.drop_table("tick_range_predictions", schema="predictions")
