"""ENS name hashing.

Names are normalized by stripping surrounding whitespace and lowercasing
ASCII. Names containing non-ASCII characters are rejected instead of being
hashed, since a normalization mismatch silently targets the wrong node.
"""

from __future__ import annotations

from Crypto.Hash import keccak

from .errors import InvalidNameError

ZERO_NODE = b"\x00" * 32


def keccak256(data: bytes) -> bytes:
    return keccak.new(data=data, digest_bits=256).digest()


def normalize_name(name: str) -> str:
    """Apply the supported normalization policy to ``name``."""
    value = name.strip()
    if not value.isascii():
        raise InvalidNameError(f"Non-ASCII names are not supported: {name!r}")
    value = value.lower()
    if value and any(label == "" for label in value.split(".")):
        raise InvalidNameError(f"Name contains an empty label: {name!r}")
    return value


def name_hash(name: str) -> bytes:
    """Return the 32-byte namehash of ``name``."""
    node = ZERO_NODE
    normalized = normalize_name(name)
    if not normalized:
        return node
    for label in reversed(normalized.split(".")):
        node = keccak256(node + keccak256(label.encode("ascii")))
    return node


def name_hash_hex(name: str) -> str:
    return "0x" + name_hash(name).hex()
