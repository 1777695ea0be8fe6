from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from sandwich_scanner.app.domain.models import Token
from sandwich_scanner.app.infrastructure.adapters.domain.errors import persistence_errors

_TOKEN_COLUMNS = "token_id, token_name, token_symbol, decimals, chain, token_address"

_SELECT_BY_ADDRESS_SQL = text(
    f"""
    SELECT {_TOKEN_COLUMNS}
    FROM domain.tokens
    WHERE chain = :chain
      AND token_address = :token_address
    """
)

_SELECT_BY_ID_SQL = text(
    f"""
    SELECT {_TOKEN_COLUMNS}
    FROM domain.tokens
    WHERE token_id = :token_id
    """
)

_INSERT_SQL = text(
    f"""
    INSERT INTO domain.tokens (
        token_name,
        token_symbol,
        decimals,
        chain,
        token_address
    )
    VALUES (
        :token_name,
        :token_symbol,
        :decimals,
        :chain,
        :token_address
    )
    RETURNING {_TOKEN_COLUMNS}
    """
)


def _to_token(row: Mapping[str, Any]) -> Token:
    return Token(
        token_id=row["token_id"],
        name=row["token_name"],
        symbol=row["token_symbol"],
        decimals=row["decimals"],
        chain=row["chain"],
        address=row["token_address"],
    )


class SqlAlchemyTokensRepository:
    """domain.tokens access; chain and address are lower-cased on write and read."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_by_address(self, *, chain: str, address: str) -> Token | None:
        async with persistence_errors("reading token"), self._engine.connect() as conn:
            result = await conn.execute(
                _SELECT_BY_ADDRESS_SQL,
                {"chain": chain.lower(), "token_address": address.lower()},
            )
            row = result.mappings().one_or_none()
        return _to_token(row) if row is not None else None

    async def get_by_id(self, token_id: int) -> Token | None:
        async with persistence_errors("reading token"), self._engine.connect() as conn:
            result = await conn.execute(_SELECT_BY_ID_SQL, {"token_id": token_id})
            row = result.mappings().one_or_none()
        return _to_token(row) if row is not None else None

    async def insert(
        self,
        *,
        chain: str,
        address: str,
        name: str,
        symbol: str,
        decimals: int,
    ) -> Token:
        async with persistence_errors("inserting token"), self._engine.begin() as conn:
            result = await conn.execute(
                _INSERT_SQL,
                {
                    "token_name": name,
                    "token_symbol": symbol,
                    "decimals": decimals,
                    "chain": chain.lower(),
                    "token_address": address.lower(),
                },
            )
            row = result.mappings().one()
        return _to_token(row)
