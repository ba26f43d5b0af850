"""
Contract proof packing.

Turns a `VerificationData` bundle into the settlement contract's `ProofData`
shape. This is a pure value transform: row proofs and sibling hashes pass
through unchanged, the data-root height is carried as an unbounded int (the
contract widens it to uint256), and the boolean Merkle path is packed into
bytes.

Path packing
------------
Bit `i` of the path goes to byte `i // 8` at bit position `7 - i % 8`
(most-significant bit first). Unused low bits of the final byte are zero.
The packed length is always ceil(len(path) / 8).

    [1,0,1,1,0,0,0,0, 1]  ->  0b10110000 0b10000000
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .types import DataRootTuple, SharesProof, VerificationData
from .utils.bytes import ensure_bytes32


def pack_path(path: Sequence[bool]) -> bytes:
    out = bytearray((len(path) + 7) // 8)
    for i, bit in enumerate(path):
        if bit:
            out[i // 8] |= 0x80 >> (i % 8)
    return bytes(out)


def unpack_path(data: bytes, length: int) -> List[bool]:
    """First `length` bits of `data`, MSB first."""
    if length < 0 or length > len(data) * 8:
        raise ValueError(f"cannot unpack {length} bits from {len(data)} bytes")
    return [bool(data[i // 8] & (0x80 >> (i % 8))) for i in range(length)]


@dataclass(frozen=True)
class PackedMerkleProof:
    siblings: Tuple[bytes, ...]
    path: bytes


@dataclass(frozen=True)
class ProofData:
    state_root: bytes
    rollup_block_hash: bytes
    zk_proof: bytes
    shares_proof: SharesProof
    blobstream_nonce: int
    data_root_tuple: DataRootTuple
    proof: PackedMerkleProof

    def as_abi_tuple(self) -> tuple:
        """Positional form matching the contract's ProofData struct."""
        return (
            self.state_root,
            self.rollup_block_hash,
            self.zk_proof,
            (list(self.shares_proof.row_proofs),),
            int(self.blobstream_nonce),
            (int(self.data_root_tuple.height), self.data_root_tuple.data_root),
            (list(self.proof.siblings), self.proof.path),
        )


def pack(
    verification: VerificationData,
    state_root: bytes,
    rollup_block_hash: bytes,
    nonce: int,
    *,
    zk_proof: bytes = b"",
) -> ProofData:
    """Build the contract-facing ProofData for a verification bundle."""
    if nonce < 0:
        raise ValueError("nonce must be non-negative")
    binary = verification.binary_proof
    return ProofData(
        state_root=ensure_bytes32(state_root, name="state_root"),
        rollup_block_hash=ensure_bytes32(rollup_block_hash, name="rollup_block_hash"),
        zk_proof=bytes(zk_proof),
        shares_proof=SharesProof(row_proofs=tuple(bytes(p) for p in verification.shares_proof.row_proofs)),
        blobstream_nonce=int(nonce),
        data_root_tuple=DataRootTuple(
            height=int(verification.data_root_tuple.height),
            data_root=bytes(verification.data_root_tuple.data_root),
        ),
        proof=PackedMerkleProof(
            siblings=tuple(bytes(s) for s in binary.siblings),
            path=pack_path(binary.path),
        ),
    )


__all__ = ["pack", "pack_path", "unpack_path", "ProofData", "PackedMerkleProof"]
