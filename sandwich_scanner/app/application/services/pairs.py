from __future__ import annotations

import logging
from dataclasses import dataclass

from eth_utils import is_hex_address, to_normalized_address

from sandwich_scanner.app.application.services.chain_context import ChainContext
from sandwich_scanner.app.config import ExchangeConfig
from sandwich_scanner.app.domain.errors import (
    NotFoundError,
    PairNotFoundError,
    ParseError,
    UnsupportedExchangeError,
)
from sandwich_scanner.app.domain.models import Pair, Token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPair:
    pair: Pair
    exchange: ExchangeConfig
    base: Token
    quote: Token


def normalize_address(address: str) -> str:
    """Lower-case 0x-prefixed address, or ParseError."""
    if not isinstance(address, str) or not is_hex_address(address.strip()):
        raise ParseError(f"Malformed address: {address!r}")
    # bare 40-hex input is accepted; the stored key always carries 0x
    return to_normalized_address(address.strip())


async def _load_tokens(ctx: ChainContext, pair: Pair) -> tuple[Token, Token]:
    base = await ctx.tokens.get_by_id(pair.base_token_id)
    quote = await ctx.tokens.get_by_id(pair.quote_token_id)
    if base is None or quote is None:
        raise NotFoundError(f"Tokens of pair {pair.pair_address} are missing")
    return base, quote


async def _get_or_insert_token(
    ctx: ChainContext,
    *,
    address: str,
    name: str,
    symbol: str,
    decimals: int,
) -> Token:
    token = await ctx.tokens.get_by_address(chain=ctx.chain_id, address=address)
    if token is not None:
        return token
    return await ctx.tokens.insert(
        chain=ctx.chain_id,
        address=address,
        name=name,
        symbol=symbol,
        decimals=decimals,
    )


async def find_pair(ctx: ChainContext, pair_address: str) -> ResolvedPair:
    """Look the pair up in the database only; PairNotFoundError on a miss."""
    address = normalize_address(pair_address)
    pair = await ctx.pairs.get_by_address(chain=ctx.chain_id, address=address)
    if pair is None:
        raise PairNotFoundError(f"Pair {address} is not registered on {ctx.chain_id}")

    exchange = ctx.chain.exchange_for(pair.factory_address)
    if exchange is None:
        raise UnsupportedExchangeError(f"Factory {pair.factory_address} is not configured")

    base, quote = await _load_tokens(ctx, pair)
    return ResolvedPair(pair=pair, exchange=exchange, base=base, quote=quote)


async def resolve_pair(ctx: ChainContext, pair_address: str) -> ResolvedPair:
    """
    Return the pair with its exchange and tokens, registering it on first encounter.

    A database miss triggers the on-chain metadata read; tokens are
    inserted when missing and the pair row is created.
    """
    try:
        return await find_pair(ctx, pair_address)
    except PairNotFoundError:
        pass

    address = normalize_address(pair_address)
    metadata = await ctx.client.get_pair_metadata(address)

    factory_address = normalize_address(metadata.factory_address)
    exchange = ctx.chain.exchange_for(factory_address)
    if exchange is None:
        raise UnsupportedExchangeError(f"Factory {factory_address} is not supported on {ctx.chain_id}")

    base = await _get_or_insert_token(
        ctx,
        address=normalize_address(metadata.base_address),
        name=metadata.base_name,
        symbol=metadata.base_symbol,
        decimals=metadata.base_decimals,
    )
    quote = await _get_or_insert_token(
        ctx,
        address=normalize_address(metadata.quote_address),
        name=metadata.quote_name,
        symbol=metadata.quote_symbol,
        decimals=metadata.quote_decimals,
    )
    pair = await ctx.pairs.insert(
        chain=ctx.chain_id,
        factory_address=factory_address,
        pair_address=address,
        base_token_id=base.token_id,
        quote_token_id=quote.token_id,
    )

    logger.info(
        "Registered pair %s on %s (%s %s/%s)",
        address,
        ctx.chain_id,
        exchange.name,
        base.symbol,
        quote.symbol,
    )
    return ResolvedPair(pair=pair, exchange=exchange, base=base, quote=quote)
