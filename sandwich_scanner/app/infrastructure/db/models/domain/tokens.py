from __future__ import annotations

from sqlalchemy import BigInteger, Index, SmallInteger, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sandwich_scanner.app.infrastructure.db.db_base import BaseDB


class TokensDB(BaseDB):
    """
    Token metadata registry (ERC-20).

    One row = one token address per chain, inserted the first time a pair
    referencing it is resolved. Addresses are stored lower-case.
    """

    __tablename__ = "tokens"
    __table_args__ = (
        UniqueConstraint("chain", "token_address", name="uq_tokens_chain_address"),
        Index("ix_tokens_chain_symbol", "chain", "token_symbol"),
        {"schema": "domain"},
    )

    token_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    chain: Mapped[str] = mapped_column(Text, nullable=False)
    token_address: Mapped[str] = mapped_column(Text, nullable=False)

    token_name: Mapped[str] = mapped_column(Text, nullable=False)
    token_symbol: Mapped[str] = mapped_column(Text, nullable=False)
    decimals: Mapped[int] = mapped_column(SmallInteger, nullable=False)
