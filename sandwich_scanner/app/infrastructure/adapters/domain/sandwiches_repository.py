from __future__ import annotations

from collections import defaultdict
from typing import Any, Mapping, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncEngine

from sandwich_scanner.app.domain.models import (
    EnrichedSandwich,
    LegRole,
    StoredSandwich,
    TransactionLeg,
)
from sandwich_scanner.app.infrastructure.adapters.domain.errors import persistence_errors

_INSERT_SANDWICH_SQL = text(
    """
    INSERT INTO domain.sandwiches (pair_id, block_number)
    VALUES (:pair_id, :block_number)
    RETURNING sandwich_id
    """
)

_INSERT_LEG_SQL = text(
    """
    INSERT INTO domain.sandwich_transactions (
        sandwich_id,
        role,
        position,
        tx_hash,
        tx_index,
        base_in,
        quote_in,
        base_out,
        quote_out,
        gas
    )
    VALUES (
        :sandwich_id,
        :role,
        :position,
        :tx_hash,
        :tx_index,
        :base_in,
        :quote_in,
        :base_out,
        :quote_out,
        :gas
    )
    """
)

_SELECT_SANDWICHES_SQL = text(
    """
    SELECT sandwich_id, pair_id, block_number
    FROM domain.sandwiches
    WHERE pair_id = :pair_id
      AND (CAST(:min_block AS BIGINT) IS NULL OR block_number >= :min_block)
      AND (CAST(:max_block AS BIGINT) IS NULL OR block_number <= :max_block)
    ORDER BY block_number, sandwich_id
    """
)

_SELECT_LEGS_SQL = text(
    """
    SELECT
        sandwich_id,
        role,
        position,
        tx_hash,
        tx_index,
        base_in,
        quote_in,
        base_out,
        quote_out,
        gas
    FROM domain.sandwich_transactions
    WHERE sandwich_id IN :sandwich_ids
    ORDER BY sandwich_id, position
    """
).bindparams(bindparam("sandwich_ids", expanding=True))


def _to_leg(row: Mapping[str, Any]) -> TransactionLeg:
    return TransactionLeg(
        role=LegRole(row["role"]),
        position=row["position"],
        tx_hash=row["tx_hash"],
        tx_index=row["tx_index"],
        base_in=row["base_in"],
        quote_in=row["quote_in"],
        base_out=row["base_out"],
        quote_out=row["quote_out"],
        gas=row["gas"],
    )


class SqlAlchemySandwichesRepository:
    """
    domain.sandwiches + domain.sandwich_transactions access.

    The parent row and its legs are written in two separate transactions,
    so a crash in between leaves a sandwich without (some of) its legs.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def insert_sandwich(self, *, pair_id: int, sandwich: EnrichedSandwich) -> int:
        async with persistence_errors("inserting sandwich"), self._engine.begin() as conn:
            result = await conn.execute(
                _INSERT_SANDWICH_SQL,
                {"pair_id": pair_id, "block_number": sandwich.block_number},
            )
            sandwich_id: int = result.scalar_one()

        # TODO: decide whether parent + legs should share one transaction
        payload = [
            {
                "sandwich_id": sandwich_id,
                "role": leg.role.value,
                "position": leg.position,
                "tx_hash": leg.tx_hash,
                "tx_index": leg.tx_index,
                "base_in": leg.base_in,
                "quote_in": leg.quote_in,
                "base_out": leg.base_out,
                "quote_out": leg.quote_out,
                "gas": leg.gas,
            }
            for leg in sandwich.legs
        ]
        async with persistence_errors("inserting sandwich legs"), self._engine.begin() as conn:
            await conn.execute(_INSERT_LEG_SQL, payload)

        return sandwich_id

    async def list_for_pair(
        self,
        *,
        pair_id: int,
        min_block: int | None = None,
        max_block: int | None = None,
    ) -> Sequence[StoredSandwich]:
        async with persistence_errors("reading sandwiches"), self._engine.connect() as conn:
            result = await conn.execute(
                _SELECT_SANDWICHES_SQL,
                {"pair_id": pair_id, "min_block": min_block, "max_block": max_block},
            )
            parents = result.mappings().all()
            if not parents:
                return []

            result = await conn.execute(
                _SELECT_LEGS_SQL,
                {"sandwich_ids": [p["sandwich_id"] for p in parents]},
            )
            leg_rows = result.mappings().all()

        legs_by_sandwich: dict[int, list[TransactionLeg]] = defaultdict(list)
        for row in leg_rows:
            legs_by_sandwich[row["sandwich_id"]].append(_to_leg(row))

        out: list[StoredSandwich] = []
        for p in parents:
            legs = legs_by_sandwich.get(p["sandwich_id"], [])
            out.append(
                StoredSandwich(
                    sandwich_id=p["sandwich_id"],
                    pair_id=p["pair_id"],
                    block_number=p["block_number"],
                    frontrun=next((leg for leg in legs if leg.role is LegRole.FRONTRUN), None),
                    lunchmeat=[leg for leg in legs if leg.role is LegRole.LUNCHMEAT],
                    backrun=next((leg for leg in legs if leg.role is LegRole.BACKRUN), None),
                )
            )
        return out
