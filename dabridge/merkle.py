"""
RFC 6962 binary Merkle helpers.

The DA network commits to a block's data with the Merkle root of the data
availability header (row roots followed by column roots), hashed the RFC 6962
way:

    leaf  = SHA-256(0x00 || data)
    inner = SHA-256(0x01 || left || right)

Splits happen at the largest power of two strictly smaller than the number of
items, so trees are left-balanced and never duplicate nodes. The empty tree
hashes to SHA-256("").
"""

from __future__ import annotations

import hashlib
from typing import Sequence

LEAF_PREFIX = b"\x00"
INNER_PREFIX = b"\x01"


def leaf_hash(data: bytes) -> bytes:
    return hashlib.sha256(LEAF_PREFIX + bytes(data)).digest()


def inner_hash(left: bytes, right: bytes) -> bytes:
    return hashlib.sha256(INNER_PREFIX + left + right).digest()


def _split_point(n: int) -> int:
    # largest power of two < n
    k = 1
    while k * 2 < n:
        k *= 2
    return k


def merkle_root(items: Sequence[bytes]) -> bytes:
    """
    Root over raw (unhashed) items.
    """
    n = len(items)
    if n == 0:
        return hashlib.sha256(b"").digest()
    if n == 1:
        return leaf_hash(items[0])
    k = _split_point(n)
    return inner_hash(merkle_root(items[:k]), merkle_root(items[k:]))


__all__ = ["leaf_hash", "inner_hash", "merkle_root"]
