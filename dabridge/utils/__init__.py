"""
Utility helpers.

Re-exports:
- bytes: hex/base64 helpers and fixed-width byte checks
"""

from .bytes import (b64decode, b64encode, ensure_bytes, ensure_bytes32,
                    from_hex, to_hex)

__all__ = [
    "to_hex",
    "from_hex",
    "ensure_bytes",
    "ensure_bytes32",
    "b64encode",
    "b64decode",
]
