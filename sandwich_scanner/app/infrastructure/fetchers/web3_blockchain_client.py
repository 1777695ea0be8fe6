from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from eth_utils import is_hex_address
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound

from sandwich_scanner.app.domain.errors import ParseError, ProviderError, NotFoundError
from sandwich_scanner.app.domain.models import ExchangeKind, LogMeta, PairMetadata
from sandwich_scanner.app.domain.ports.out import BlockchainClient
from sandwich_scanner.app.infrastructure.decoders.swap_event_decoder import AbiSwapEventDecoder

logger = logging.getLogger(__name__)


def _hex(value: Any) -> str:
    # HexBytes.hex() dropped the 0x prefix in hexbytes 1.x; normalize both.
    if isinstance(value, str):
        return value.lower() if value.startswith("0x") else "0x" + value.lower()
    return "0x" + bytes(value).hex()


def _load_function_abi(abi_path: Path) -> list[dict[str, Any]]:
    if not abi_path.exists():
        raise FileNotFoundError(f"ABI file not found: {abi_path}")
    data = json.loads(abi_path.read_text(encoding="utf-8"))
    return [x for x in data if isinstance(x, dict)]


class Web3BlockchainClient(BlockchainClient):
    """
    Blockchain access for one chain using AsyncWeb3.

    - getLogs is filtered by pair address and the Swap topic0 of the
      requested exchange kind, then decoded with the matching ABI decoder,
    - TransactionNotFound becomes NotFoundError,
    - every other provider failure becomes ProviderError.
    """

    def __init__(
        self,
        *,
        w3: AsyncWeb3,
        decoders: Mapping[ExchangeKind, AbiSwapEventDecoder],
        data_aggregator_address: str,
        data_aggregator_abi_path: Path,
    ) -> None:
        self._w3 = w3
        self._decoders = dict(decoders)
        self._data_aggregator_address = data_aggregator_address
        self._data_aggregator_abi = _load_function_abi(data_aggregator_abi_path)

    def _checksum(self, address: str) -> str:
        if not is_hex_address(address):
            raise ParseError(f"Malformed address: {address!r}")
        return self._w3.to_checksum_address(address)

    async def get_latest_block_number(self) -> int:
        try:
            return int(await self._w3.eth.block_number)
        except Exception as exc:
            raise ProviderError("eth_blockNumber failed") from exc

    async def get_logs(
        self,
        *,
        contract_address: str,
        event_schema: ExchangeKind,
        from_block: int,
        to_block: int,
    ) -> list[tuple[dict[str, Any], LogMeta]]:
        decoder = self._decoders.get(event_schema)
        if decoder is None:
            raise ParseError(f"No decoder registered for {event_schema!r}")

        filter_params = {
            "address": self._checksum(contract_address),
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": [_hex(decoder.topic0)],
        }
        try:
            logs = await self._w3.eth.get_logs(filter_params)  # type: ignore[arg-type]
        except Exception as exc:
            raise ProviderError(f"eth_getLogs failed for blocks [{from_block}, {to_block}]") from exc

        out: list[tuple[dict[str, Any], LogMeta]] = []
        for log in logs:
            topics = list(log["topics"]) + [None] * 4
            decoded = decoder.decode(
                topic0=bytes(topics[0]) if topics[0] is not None else None,
                topic1=bytes(topics[1]) if topics[1] is not None else None,
                topic2=bytes(topics[2]) if topics[2] is not None else None,
                topic3=bytes(topics[3]) if topics[3] is not None else None,
                data=bytes(log["data"]),
            )
            if decoded is None:
                raise ParseError(f"Log does not match {decoder.event_signature}")

            out.append(
                (
                    decoded,
                    LogMeta(
                        block_number=int(log["blockNumber"]),
                        tx_hash=_hex(log["transactionHash"]),
                        tx_index=int(log["transactionIndex"]),
                    ),
                )
            )

        logger.debug(
            "eth_getLogs %s blocks=[%s, %s] -> %s logs",
            contract_address,
            from_block,
            to_block,
            len(out),
        )
        return out

    async def get_transaction(self, tx_hash: str) -> Mapping[str, Any]:
        try:
            return await self._w3.eth.get_transaction(tx_hash)  # type: ignore[arg-type]
        except TransactionNotFound as exc:
            raise NotFoundError(f"Transaction {tx_hash} not found") from exc
        except Exception as exc:
            raise ProviderError(f"eth_getTransactionByHash failed for {tx_hash}") from exc

    async def get_transaction_receipt(self, tx_hash: str) -> Mapping[str, Any]:
        try:
            return await self._w3.eth.get_transaction_receipt(tx_hash)  # type: ignore[arg-type]
        except TransactionNotFound as exc:
            raise NotFoundError(f"Receipt for {tx_hash} not found") from exc
        except Exception as exc:
            raise ProviderError(f"eth_getTransactionReceipt failed for {tx_hash}") from exc

    async def get_pair_metadata(self, pair_address: str) -> PairMetadata:
        contract = self._w3.eth.contract(
            address=self._checksum(self._data_aggregator_address),
            abi=self._data_aggregator_abi,
        )
        try:
            raw = await contract.functions.getMetadata(self._checksum(pair_address)).call()
        except Exception as exc:
            raise ProviderError(f"getMetadata failed for {pair_address}") from exc

        (
            factory,
            base_address,
            base_name,
            base_symbol,
            base_decimals,
            quote_address,
            quote_name,
            quote_symbol,
            quote_decimals,
        ) = raw

        return PairMetadata(
            factory_address=factory.lower(),
            base_address=base_address.lower(),
            base_name=base_name,
            base_symbol=base_symbol,
            base_decimals=int(base_decimals),
            quote_address=quote_address.lower(),
            quote_name=quote_name,
            quote_symbol=quote_symbol,
            quote_decimals=int(quote_decimals),
        )
