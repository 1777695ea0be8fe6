"""
Tests for ABI-based Swap log decoding.
"""

from pathlib import Path

import pytest
from eth_abi import encode

import sandwich_scanner.app as app_pkg
from sandwich_scanner.app.domain.errors import ParseError
from sandwich_scanner.app.infrastructure.decoders.swap_event_decoder import AbiSwapEventDecoder

ABI_DIR = Path(app_pkg.__file__).parent / "registry" / "abi"

SENDER = "0x" + "11" * 20
RECIPIENT = "0x" + "22" * 20


def _topic(address):
    return b"\x00" * 12 + bytes.fromhex(address[2:])


@pytest.fixture
def v2_decoder():
    return AbiSwapEventDecoder(abi_path=ABI_DIR / "UniswapV2Pair.json", event_name="Swap")


@pytest.fixture
def v3_decoder():
    return AbiSwapEventDecoder(abi_path=ABI_DIR / "UniswapV3Pool.json", event_name="Swap")


def test_topic0_matches_known_signatures(v2_decoder, v3_decoder):
    assert v2_decoder.event_signature == "Swap(address,uint256,uint256,uint256,uint256,address)"
    assert v2_decoder.topic0.hex() == "d78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822"
    assert v3_decoder.event_signature == "Swap(address,address,int256,int256,uint160,uint128,int24)"
    assert v3_decoder.topic0.hex() == "c42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"


def test_decode_v2(v2_decoder):
    data = encode(["uint256", "uint256", "uint256", "uint256"], [10**18, 0, 0, 2_000 * 10**6])

    decoded = v2_decoder.decode(
        topic0=v2_decoder.topic0,
        topic1=_topic(SENDER),
        topic2=_topic(RECIPIENT),
        topic3=None,
        data=data,
    )

    assert decoded == {
        "sender": SENDER,
        "to": RECIPIENT,
        "amount0In": 10**18,
        "amount1In": 0,
        "amount0Out": 0,
        "amount1Out": 2_000 * 10**6,
    }


def test_decode_v3_keeps_sign(v3_decoder):
    data = encode(
        ["int256", "int256", "uint160", "uint128", "int24"],
        [-5 * 10**17, 1_000 * 10**6, 2**96, 10**18, -887_272],
    )

    decoded = v3_decoder.decode(
        topic0=v3_decoder.topic0,
        topic1=_topic(SENDER),
        topic2=_topic(RECIPIENT),
        topic3=None,
        data=data,
    )

    assert decoded["amount0"] == -5 * 10**17
    assert decoded["amount1"] == 1_000 * 10**6
    assert decoded["tick"] == -887_272
    assert decoded["recipient"] == RECIPIENT


def test_other_event_is_skipped(v2_decoder, v3_decoder):
    assert v2_decoder.decode(topic0=v3_decoder.topic0, topic1=None, topic2=None, topic3=None, data=b"") is None


def test_missing_indexed_topic_rejected(v2_decoder):
    with pytest.raises(ParseError):
        v2_decoder.decode(topic0=v2_decoder.topic0, topic1=_topic(SENDER), topic2=None, topic3=None, data=b"")


def test_truncated_data_rejected(v2_decoder):
    with pytest.raises(ParseError):
        v2_decoder.decode(
            topic0=v2_decoder.topic0,
            topic1=_topic(SENDER),
            topic2=_topic(RECIPIENT),
            topic3=None,
            data=b"\x00" * 40,
        )


def test_unknown_event_name_rejected():
    with pytest.raises(ValueError):
        AbiSwapEventDecoder(abi_path=ABI_DIR / "UniswapV2Pair.json", event_name="Mint2")
