"""Minimal ABI codec for ENS text records.

Only the subset needed by the resolver is supported: 4-byte selectors,
32-byte words, right-aligned integers and length-prefixed dynamic byte
strings padded to the next word boundary. Head offsets are relative to the
start of the parameter section, immediately after the selector.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple, Union

from .namehash import keccak256

WORD = 32

TEXT_SELECTOR = bytes.fromhex("59d1d43c")  # text(bytes32,string)
SET_TEXT_SELECTOR = bytes.fromhex("10f13a8c")  # setText(bytes32,string,string)
MULTICALL_SELECTOR = bytes.fromhex("ac9650d8")  # multicall(bytes[])
RESOLVER_SELECTOR = bytes.fromhex("0178b8bf")  # resolver(bytes32)

BytesLike = Union[bytes, str]


class ABIDecodeError(ValueError):
    """Payload does not match the expected layout."""


def function_selector(signature: str) -> bytes:
    """First four bytes of ``keccak256(signature)``."""
    return keccak256(signature.encode("ascii"))[:4]


def to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def from_hex(data: BytesLike) -> bytes:
    if isinstance(data, bytes):
        return data
    value = data[2:] if data.startswith(("0x", "0X")) else data
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise ABIDecodeError(f"Invalid hex payload: {exc}") from exc


def _word(value: int) -> bytes:
    return value.to_bytes(WORD, "big")


def _pad(data: bytes) -> bytes:
    remainder = len(data) % WORD
    return data if remainder == 0 else data + b"\x00" * (WORD - remainder)


def _encode_dynamic(data: bytes) -> bytes:
    return _word(len(data)) + _pad(data)


def _node(node: BytesLike) -> bytes:
    raw = from_hex(node)
    if len(raw) != WORD:
        raise ValueError(f"node must be 32 bytes, got {len(raw)}")
    return raw


def _read_word(data: bytes, offset: int) -> int:
    if offset < 0 or offset + WORD > len(data):
        raise ABIDecodeError(f"Word at offset {offset} is out of range")
    return int.from_bytes(data[offset : offset + WORD], "big")


def _read_dynamic(data: bytes, offset: int) -> bytes:
    length = _read_word(data, offset)
    start = offset + WORD
    if start + length > len(data):
        raise ABIDecodeError("Dynamic value runs past end of payload")
    return data[start : start + length]


def _params(data: BytesLike, selector: bytes) -> bytes:
    raw = from_hex(data)
    if raw[:4] != selector:
        raise ABIDecodeError(
            f"Unexpected selector {raw[:4].hex()}, expected {selector.hex()}"
        )
    return raw[4:]


# ----------------------------------------------------------------------
# text / setText


def encode_read_call(node: BytesLike, key: str) -> bytes:
    """Encode ``text(node, key)``."""
    return (
        TEXT_SELECTOR
        + _node(node)
        + _word(2 * WORD)
        + _encode_dynamic(key.encode("utf-8"))
    )


def encode_write_call(node: BytesLike, key: str, value: str) -> bytes:
    """Encode ``setText(node, key, value)``."""
    key_block = _encode_dynamic(key.encode("utf-8"))
    value_block = _encode_dynamic(value.encode("utf-8"))
    head_size = 3 * WORD
    return (
        SET_TEXT_SELECTOR
        + _node(node)
        + _word(head_size)
        + _word(head_size + len(key_block))
        + key_block
        + value_block
    )


def decode_read_call(data: BytesLike) -> Tuple[bytes, str]:
    params = _params(data, TEXT_SELECTOR)
    node = params[:WORD]
    key = _read_dynamic(params, _read_word(params, WORD))
    return node, key.decode("utf-8")


def decode_write_call(data: BytesLike) -> Tuple[bytes, str, str]:
    params = _params(data, SET_TEXT_SELECTOR)
    node = params[:WORD]
    key = _read_dynamic(params, _read_word(params, WORD))
    value = _read_dynamic(params, _read_word(params, 2 * WORD))
    return node, key.decode("utf-8"), value.decode("utf-8")


def encode_string_result(value: str) -> bytes:
    """Encode a single ``string`` return value."""
    return _word(WORD) + _encode_dynamic(value.encode("utf-8"))


def decode_string_result(data: BytesLike) -> Optional[str]:
    """Decode a ``string`` return value.

    Returns ``None`` for empty, zero-length or undersized results, which all
    mean "no record".
    """
    raw = from_hex(data)
    if len(raw) < 2 * WORD:
        return None
    try:
        value = _read_dynamic(raw, _read_word(raw, 0))
    except ABIDecodeError:
        return None
    if not value:
        return None
    return value.decode("utf-8")


# ----------------------------------------------------------------------
# multicall


def encode_multicall(calls: Sequence[BytesLike]) -> bytes:
    """Encode ``multicall(bytes[] calls)`` preserving call order.

    Element offsets are relative to the start of the offset table, which
    begins right after the array length word.
    """
    raw_calls = [from_hex(call) for call in calls]
    heads: List[bytes] = []
    tails: List[bytes] = []
    tail_offset = len(raw_calls) * WORD
    for call in raw_calls:
        heads.append(_word(tail_offset))
        block = _encode_dynamic(call)
        tails.append(block)
        tail_offset += len(block)
    return (
        MULTICALL_SELECTOR
        + _word(WORD)
        + _word(len(raw_calls))
        + b"".join(heads)
        + b"".join(tails)
    )


def decode_multicall(data: BytesLike) -> List[bytes]:
    params = _params(data, MULTICALL_SELECTOR)
    array_offset = _read_word(params, 0)
    count = _read_word(params, array_offset)
    table = array_offset + WORD
    return [
        _read_dynamic(params, table + _read_word(params, table + i * WORD))
        for i in range(count)
    ]


# ----------------------------------------------------------------------
# registry resolver lookup


def encode_resolver_call(node: BytesLike) -> bytes:
    return RESOLVER_SELECTOR + _node(node)


def decode_resolver_call(data: BytesLike) -> bytes:
    params = _params(data, RESOLVER_SELECTOR)
    if len(params) < WORD:
        raise ABIDecodeError("resolver() call is missing its node argument")
    return params[:WORD]


def encode_address_result(address: str) -> bytes:
    raw = from_hex(address)
    if len(raw) != 20:
        raise ValueError(f"address must be 20 bytes, got {len(raw)}")
    return b"\x00" * 12 + raw


def decode_address_result(data: BytesLike) -> Optional[str]:
    """Decode an ``address`` return value; the zero address means unset."""
    raw = from_hex(data)
    if len(raw) < WORD or not any(raw[:WORD]):
        return None
    return to_hex(raw[12:WORD])
