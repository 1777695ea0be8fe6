from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sandwich_scanner.app.infrastructure.db.db_base import BaseDB


class PairsDB(BaseDB):
    """
    Trading pair registry.

    One row = one pair contract per chain; base/quote map to token0/token1.
    """

    __tablename__ = "pairs"
    __table_args__ = (
        UniqueConstraint("chain", "pair_address", name="uq_pairs_chain_address"),
        {"schema": "domain"},
    )

    pair_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    chain: Mapped[str] = mapped_column(Text, nullable=False)
    factory_address: Mapped[str] = mapped_column(Text, nullable=False)
    pair_address: Mapped[str] = mapped_column(Text, nullable=False)

    base_token_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("domain.tokens.token_id"), nullable=False
    )
    quote_token_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("domain.tokens.token_id"), nullable=False
    )
