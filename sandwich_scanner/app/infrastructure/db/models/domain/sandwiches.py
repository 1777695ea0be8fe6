from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Double,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from sandwich_scanner.app.infrastructure.db.db_base import BaseDB


class SandwichesDB(BaseDB):
    """
    Detected sandwich trades.

    One row = one frontrun / lunchmeat / backrun bracket in one block.
    Rows are immutable once written.
    """

    __tablename__ = "sandwiches"
    __table_args__ = (
        Index("ix_sandwiches_pair_block", "pair_id", "block_number"),
        {"schema": "domain"},
    )

    sandwich_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    pair_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("domain.pairs.pair_id"), nullable=False
    )
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)


class SandwichTransactionsDB(BaseDB):
    """
    Legs of a sandwich.

    role is 'frontrun', 'lunchmeat' or 'backrun'; position orders lunchmeat
    legs inside their sandwich (always 0 for frontrun / backrun).
    Amounts are decimal-normalized, gas is in native-token units.
    """

    __tablename__ = "sandwich_transactions"
    __table_args__ = (
        UniqueConstraint("sandwich_id", "role", "position", name="uq_sandwich_transactions_leg"),
        Index("ix_sandwich_transactions_tx_hash", "tx_hash"),
        {"schema": "domain"},
    )

    transaction_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    sandwich_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("domain.sandwiches.sandwich_id"), nullable=False
    )
    role: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tx_hash: Mapped[str] = mapped_column(Text, nullable=False)
    tx_index: Mapped[int] = mapped_column(Integer, nullable=False)

    base_in: Mapped[float] = mapped_column(Double, nullable=False)
    quote_in: Mapped[float] = mapped_column(Double, nullable=False)
    base_out: Mapped[float] = mapped_column(Double, nullable=False)
    quote_out: Mapped[float] = mapped_column(Double, nullable=False)
    gas: Mapped[float] = mapped_column(Double, nullable=False)
