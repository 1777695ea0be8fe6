from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from sandwich_scanner.app.domain.errors import ParseError
from sandwich_scanner.app.domain.ports.out import EvmEventDecoder

TOPIC_SIZE = 32


@dataclass(frozen=True)
class EventField:
    name: str
    abi_type: str
    indexed: bool


@dataclass(frozen=True)
class EventLayout:
    """Name, canonical signature and field order of one ABI event."""

    name: str
    fields: tuple[EventField, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(f.abi_type for f in self.fields)})"

    @property
    def indexed(self) -> tuple[EventField, ...]:
        return tuple(f for f in self.fields if f.indexed)

    @property
    def body(self) -> tuple[EventField, ...]:
        return tuple(f for f in self.fields if not f.indexed)


def read_abi(abi_path: Path) -> list[dict[str, Any]]:
    """ABI entries from a bare list file or a compiler artifact with an "abi" key."""
    if not abi_path.exists():
        raise FileNotFoundError(f"ABI file not found: {abi_path}")
    data = json.loads(abi_path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("abi")
    if not isinstance(data, list):
        raise ValueError(f"{abi_path} holds neither an ABI list nor an artifact with 'abi'")
    return [entry for entry in data if isinstance(entry, dict)]


def event_layout(abi: list[dict[str, Any]], event_name: str) -> EventLayout:
    matches = [e for e in abi if e.get("type") == "event" and e.get("name") == event_name]
    if len(matches) != 1:
        known = sorted({e.get("name") for e in abi if e.get("type") == "event"})
        raise ValueError(f"Expected exactly one event {event_name!r} in ABI, known events: {known}")

    try:
        fields = tuple(
            EventField(name=i["name"], abi_type=i["type"], indexed=bool(i.get("indexed")))
            for i in matches[0]["inputs"]
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed inputs for event {event_name!r}") from exc
    return EventLayout(name=event_name, fields=fields)


def _normalize(abi_type: str, value: Any) -> Any:
    # eth_abi hands back checksummed addresses; rows store them lower-case
    if abi_type == "address":
        return value.lower()
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


class AbiSwapEventDecoder(EvmEventDecoder):
    """
    Decodes one pool event (normally Swap) described by an ABI file.

    The result is keyed by ABI argument name: a Uniswap v2 pair gives
    amount0In / amount1In / amount0Out / amount1Out, a v3 pool gives the
    signed amount0 / amount1. A log of some other event decodes to None;
    a log of this event with missing topics or short data is a ParseError.
    """

    def __init__(self, *, abi_path: Path, event_name: str) -> None:
        self._layout = event_layout(read_abi(abi_path), event_name)
        self._topic0 = keccak(text=self._layout.signature)
        self._body_types = [f.abi_type for f in self._layout.body]

    @property
    def topic0(self) -> bytes:
        return self._topic0

    @property
    def event_signature(self) -> str:
        return self._layout.signature

    def decode(
        self,
        *,
        topic0: bytes | None,
        topic1: bytes | None,
        topic2: bytes | None,
        topic3: bytes | None,
        data: bytes,
    ) -> dict[str, Any] | None:
        if topic0 is None or bytes(topic0) != self._topic0:
            return None

        out: dict[str, Any] = {}

        indexed = self._layout.indexed
        for field, topic in zip(indexed, (topic1, topic2, topic3)):
            if topic is None or len(bytes(topic)) != TOPIC_SIZE:
                raise ParseError(f"{self.event_signature}: bad or missing topic for {field.name!r}")
            out[field.name] = self._decode_one(field.abi_type, bytes(topic))

        if self._body_types:
            try:
                values = abi_decode(self._body_types, bytes(data))
            except DecodingError as exc:
                raise ParseError(f"{self.event_signature}: cannot decode log data") from exc
            for field, value in zip(self._layout.body, values):
                out[field.name] = _normalize(field.abi_type, value)

        return out

    def _decode_one(self, abi_type: str, topic: bytes) -> Any:
        # dynamic types are hashed into the topic and cannot be recovered
        if abi_type in ("string", "bytes") or abi_type.endswith("]"):
            return topic
        try:
            (value,) = abi_decode([abi_type], topic)
        except DecodingError as exc:
            raise ParseError(f"{self.event_signature}: cannot decode topic as {abi_type}") from exc
        return _normalize(abi_type, value)
