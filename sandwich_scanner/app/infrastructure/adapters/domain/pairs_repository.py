from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from sandwich_scanner.app.domain.models import Pair
from sandwich_scanner.app.infrastructure.adapters.domain.errors import persistence_errors

_PAIR_COLUMNS = "pair_id, chain, factory_address, pair_address, base_token_id, quote_token_id"

_SELECT_BY_ADDRESS_SQL = text(
    f"""
    SELECT {_PAIR_COLUMNS}
    FROM domain.pairs
    WHERE chain = :chain
      AND pair_address = :pair_address
    """
)

_INSERT_SQL = text(
    f"""
    INSERT INTO domain.pairs (
        chain,
        factory_address,
        pair_address,
        base_token_id,
        quote_token_id
    )
    VALUES (
        :chain,
        :factory_address,
        :pair_address,
        :base_token_id,
        :quote_token_id
    )
    RETURNING {_PAIR_COLUMNS}
    """
)


def _to_pair(row: Mapping[str, Any]) -> Pair:
    return Pair(
        pair_id=row["pair_id"],
        chain=row["chain"],
        factory_address=row["factory_address"],
        pair_address=row["pair_address"],
        base_token_id=row["base_token_id"],
        quote_token_id=row["quote_token_id"],
    )


class SqlAlchemyPairsRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_by_address(self, *, chain: str, address: str) -> Pair | None:
        async with persistence_errors("reading pair"), self._engine.connect() as conn:
            result = await conn.execute(
                _SELECT_BY_ADDRESS_SQL,
                {"chain": chain.lower(), "pair_address": address.lower()},
            )
            row = result.mappings().one_or_none()
        return _to_pair(row) if row is not None else None

    async def insert(
        self,
        *,
        chain: str,
        factory_address: str,
        pair_address: str,
        base_token_id: int,
        quote_token_id: int,
    ) -> Pair:
        async with persistence_errors("inserting pair"), self._engine.begin() as conn:
            result = await conn.execute(
                _INSERT_SQL,
                {
                    "chain": chain.lower(),
                    "factory_address": factory_address.lower(),
                    "pair_address": pair_address.lower(),
                    "base_token_id": base_token_id,
                    "quote_token_id": quote_token_id,
                },
            )
            row = result.mappings().one()
        return _to_pair(row)
