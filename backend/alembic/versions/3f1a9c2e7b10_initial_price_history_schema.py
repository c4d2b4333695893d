"""Initial price history schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _price_columns() -> list[sa.Column]:
    return [
        sa.Column("open", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("high", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("low", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("close", sa.Numeric(precision=14, scale=4), nullable=False),
    ]


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "exchanges",
        sa.Column("mic", sa.String(length=10), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False),
        sa.Column("timezone", sa.String(length=50), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("mic"),
    )

    op.create_table(
        "instruments",
        sa.Column("exchange_id", sa.Integer(), nullable=False),
        sa.Column("ticker", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("kind", sa.String(length=50), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["exchange_id"], ["exchanges.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("exchange_id", "ticker", name="uq_instruments_exchange_ticker"),
    )
    op.create_index(op.f("ix_instruments_exchange_id"), "instruments", ["exchange_id"], unique=False)
    op.create_index(op.f("ix_instruments_ticker"), "instruments", ["ticker"], unique=False)

    op.create_table(
        "prices_daily",
        sa.Column("instrument_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *_price_columns(),
        sa.Column("adj_close", sa.Numeric(precision=14, scale=4), nullable=False),
        sa.Column("volume", sa.BigInteger(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["instrument_id"], ["instruments.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("instrument_id", "date", name="uq_prices_daily_instrument_date"),
    )
    op.create_index(op.f("ix_prices_daily_instrument_id"), "prices_daily", ["instrument_id"], unique=False)
    op.create_index(op.f("ix_prices_daily_date"), "prices_daily", ["date"], unique=False)

    op.create_table(
        "prices_intraday",
        sa.Column("instrument_id", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=False), nullable=False),
        *_price_columns(),
        sa.Column("volume", sa.BigInteger(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["instrument_id"], ["instruments.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("instrument_id", "timestamp", name="uq_prices_intraday_instrument_ts"),
    )
    op.create_index(op.f("ix_prices_intraday_instrument_id"), "prices_intraday", ["instrument_id"], unique=False)
    op.create_index(op.f("ix_prices_intraday_timestamp"), "prices_intraday", ["timestamp"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_prices_intraday_timestamp"), table_name="prices_intraday")
    op.drop_index(op.f("ix_prices_intraday_instrument_id"), table_name="prices_intraday")
    op.drop_table("prices_intraday")
    op.drop_index(op.f("ix_prices_daily_date"), table_name="prices_daily")
    op.drop_index(op.f("ix_prices_daily_instrument_id"), table_name="prices_daily")
    op.drop_table("prices_daily")
    op.drop_index(op.f("ix_instruments_ticker"), table_name="instruments")
    op.drop_index(op.f("ix_instruments_exchange_id"), table_name="instruments")
    op.drop_table("instruments")
    op.drop_table("exchanges")
