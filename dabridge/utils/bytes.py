"""
Byte helpers shared by the DA and settlement sides.

The DA node speaks standard base64; the settlement chain and CLI speak
0x-prefixed hex. Roots and hashes on the contract side are fixed at 32 bytes.
"""

from __future__ import annotations

import base64
import binascii
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def from_hex(s: str) -> bytes:
    """Decode hex with or without a 0x prefix; odd length is rejected."""
    if not isinstance(s, str):
        raise TypeError(f"expected hex str, got {type(s).__name__}")
    body = s[2:] if s[:2] in ("0x", "0X") else s
    if len(body) % 2:
        raise ValueError("odd-length hex")
    try:
        return bytes.fromhex(body)
    except ValueError as e:
        raise ValueError(f"invalid hex: {e}") from e


def to_hex(b: BytesLike, prefix: bool = True) -> str:
    h = bytes(b).hex()
    return "0x" + h if prefix else h


def ensure_bytes(data: Union[BytesLike, str]) -> bytes:
    """bytes-like passes through; str is read as hex."""
    if isinstance(data, str):
        return from_hex(data)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"cannot convert {type(data).__name__} to bytes")


def ensure_bytes32(data: Union[BytesLike, str], *, name: str = "value") -> bytes:
    out = ensure_bytes(data)
    if len(out) != 32:
        raise ValueError(f"{name} must be 32 bytes, got {len(out)}")
    return out


def b64encode(b: BytesLike) -> str:
    return base64.b64encode(bytes(b)).decode("ascii")


def b64decode(s: str | None) -> bytes:
    # the node sends both null and "" for empty fields
    if not s:
        return b""
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"invalid base64: {e}") from e
