"""
dabridge value objects.

Everything here is a frozen dataclass created fresh per (height, namespace)
query and never mutated afterwards.

DA-side types
-------------
- Namespace            version byte + 28-byte id
- PresenceProof        NMT proof that a row holds shares of the namespace
- AbsenceProof         NMT proof that the namespace has no shares at a position
- NamespaceRow         shares of one row + its namespace proof
- NamespaceData        all rows of a namespace at a height
- DataAvailabilityHeader / Header / Hash
- Blob, TxConfig

Verification types
------------------
- SharesProof, DataRootTuple, BinaryMerkleProof, VerificationData, SequenceSpan

The two namespace proof variants are deliberately *not* related by
inheritance. They satisfy the `MerkleProofLike` protocol (siblings, path,
start_idx(), to_bytes()) and callers consume them through it.

Path convention
---------------
For NMT row proofs the path is derived leaf-to-root from the parity of the
proof's start index: bit `i` is True when the proven node at level `i` is a
right child (its sibling sits on the left). One bit per sibling. Proofs that
already carry a path (the commitment proof returned by the DA node) keep it
verbatim.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Protocol, Sequence, Tuple, Union

from .merkle import merkle_root
from .utils.bytes import b64decode, b64encode, to_hex

NS_VERSION_SIZE = 1
NS_ID_SIZE = 28
NS_SIZE = NS_VERSION_SIZE + NS_ID_SIZE
NS_V0_ID_SIZE = 10
HASH_SIZE = 32
NMT_NODE_SIZE = 2 * NS_SIZE + HASH_SIZE

Json = Dict[str, Any]


# --------------------------------------------------------------------------- #
# Namespace
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class Namespace:
    version: int
    id: bytes

    def __post_init__(self) -> None:
        if not 0 <= int(self.version) <= 0xFF:
            raise ValueError(f"namespace version out of range: {self.version}")
        if len(self.id) != NS_ID_SIZE:
            raise ValueError(f"namespace id must be {NS_ID_SIZE} bytes, got {len(self.id)}")

    @classmethod
    def v0(cls, user_id: bytes) -> "Namespace":
        """
        Version-0 namespace: at most 10 user bytes, right-aligned behind
        18 zero bytes.
        """
        user_id = bytes(user_id)
        if len(user_id) > NS_V0_ID_SIZE:
            raise ValueError(f"v0 namespace id must be at most {NS_V0_ID_SIZE} bytes")
        return cls(0, bytes(NS_ID_SIZE - len(user_id)) + user_id)

    @classmethod
    def from_text(cls, text: str) -> "Namespace":
        """UTF-8 text truncated or zero-padded to 28 bytes, version 0."""
        raw = text.encode("utf-8")[:NS_ID_SIZE]
        return cls(0, raw + bytes(NS_ID_SIZE - len(raw)))

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Namespace":
        raw = bytes(raw)
        if len(raw) != NS_SIZE:
            raise ValueError(f"namespace must be {NS_SIZE} bytes, got {len(raw)}")
        return cls(raw[0], raw[1:])

    @classmethod
    def parse(cls, value: str) -> "Namespace":
        """
        Parse a hex namespace as found in config:

          - 58 hex chars  -> full version||id
          - up to 20 hex  -> v0 user id
        """
        v = value.strip().lower()
        if v.startswith("0x"):
            v = v[2:]
        raw = bytes.fromhex(v)
        if len(raw) == NS_SIZE:
            return cls.from_bytes(raw)
        return cls.v0(raw)

    def to_bytes(self) -> bytes:
        return bytes([self.version]) + self.id

    def to_base64(self) -> str:
        return b64encode(self.to_bytes())

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.to_bytes().hex()


# --------------------------------------------------------------------------- #
# Namespace proofs (presence / absence)
# --------------------------------------------------------------------------- #


class MerkleProofLike(Protocol):
    """Capability shared by every proof the assembler can turn into a BinaryMerkleProof."""

    @property
    def siblings(self) -> Tuple[bytes, ...]: ...

    @property
    def path(self) -> Tuple[bool, ...]: ...


def _node_digests(nodes: Sequence[bytes]) -> Tuple[bytes, ...]:
    # NMT nodes are min_ns || max_ns || digest; plain digests pass through.
    out = []
    for node in nodes:
        if len(node) == NMT_NODE_SIZE:
            out.append(bytes(node[-HASH_SIZE:]))
        elif len(node) == HASH_SIZE:
            out.append(bytes(node))
        else:
            raise ValueError(f"unexpected NMT node size {len(node)}")
    return tuple(out)


def _parity_path(start: int, levels: int) -> Tuple[bool, ...]:
    return tuple(((start >> level) & 1) == 1 for level in range(levels))


def _proof_json(start: int, end: int, nodes: Sequence[bytes], leaf_hash: bytes, ignored: bool) -> Json:
    return {
        "start": start,
        "end": end,
        "nodes": [b64encode(n) for n in nodes],
        "leaf_hash": b64encode(leaf_hash) if leaf_hash else None,
        "is_max_namespace_ignored": ignored,
    }


@dataclass(frozen=True)
class PresenceProof:
    """Row contains shares of the namespace in the half-open range [start, end)."""

    start: int
    end: int
    nodes: Tuple[bytes, ...] = ()
    is_max_namespace_ignored: bool = True

    def start_idx(self) -> int:
        return self.start

    @property
    def siblings(self) -> Tuple[bytes, ...]:
        return _node_digests(self.nodes)

    @property
    def path(self) -> Tuple[bool, ...]:
        return _parity_path(self.start, len(self.nodes))

    def to_json(self) -> Json:
        return _proof_json(self.start, self.end, self.nodes, b"", self.is_max_namespace_ignored)

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_json(), separators=(",", ":")).encode("utf-8")


@dataclass(frozen=True)
class AbsenceProof:
    """Namespace has no shares here; `leaf_hash` is the neighbouring leaf proving it."""

    start: int
    end: int
    leaf_hash: bytes
    nodes: Tuple[bytes, ...] = ()
    is_max_namespace_ignored: bool = True

    def start_idx(self) -> int:
        return self.start

    @property
    def siblings(self) -> Tuple[bytes, ...]:
        return _node_digests(self.nodes)

    @property
    def path(self) -> Tuple[bool, ...]:
        return _parity_path(self.start, len(self.nodes))

    def to_json(self) -> Json:
        return _proof_json(self.start, self.end, self.nodes, self.leaf_hash, self.is_max_namespace_ignored)

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_json(), separators=(",", ":")).encode("utf-8")


NamespaceProof = Union[PresenceProof, AbsenceProof]


def namespace_proof_from_json(obj: Json) -> NamespaceProof:
    """
    Decode the DA node's JSON NMT proof. A non-empty `leaf_hash` marks an
    absence proof.
    """
    if not isinstance(obj, dict):
        raise ValueError(f"namespace proof must be an object, got {type(obj).__name__}")
    start = int(obj.get("start") or 0)
    end = int(obj.get("end") or 0)
    nodes = tuple(b64decode(n) for n in (obj.get("nodes") or []))
    ignored = bool(obj.get("is_max_namespace_ignored", True))
    leaf = b64decode(obj.get("leaf_hash"))
    if leaf:
        return AbsenceProof(start=start, end=end, leaf_hash=leaf, nodes=nodes, is_max_namespace_ignored=ignored)
    return PresenceProof(start=start, end=end, nodes=nodes, is_max_namespace_ignored=ignored)


# --------------------------------------------------------------------------- #
# Rows, headers, blobs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class NamespaceRow:
    shares: Tuple[bytes, ...]
    proof: NamespaceProof

    @property
    def share_count(self) -> int:
        return len(self.shares)


@dataclass(frozen=True)
class NamespaceData:
    rows: Tuple[NamespaceRow, ...] = ()

    @classmethod
    def from_json(cls, obj: Any) -> "NamespaceData":
        # The node returns either a bare list of rows or {"rows": [...]}; null means empty.
        if obj is None:
            return cls()
        items = obj.get("rows") if isinstance(obj, dict) else obj
        rows = []
        for item in items or []:
            shares = tuple(b64decode(s) for s in (item.get("shares") or []))
            rows.append(NamespaceRow(shares=shares, proof=namespace_proof_from_json(item.get("proof") or {})))
        return cls(rows=tuple(rows))


@dataclass(frozen=True)
class Hash:
    """Tagged hash value; `kind` is "sha256" or "none"."""

    kind: str
    value: bytes = b""

    @property
    def is_sha256(self) -> bool:
        return self.kind == "sha256" and len(self.value) == HASH_SIZE


@dataclass(frozen=True)
class DataAvailabilityHeader:
    row_roots: Tuple[bytes, ...] = ()
    column_roots: Tuple[bytes, ...] = ()

    def hash(self) -> Hash:
        """Merkle root over row roots then column roots."""
        if not self.row_roots and not self.column_roots:
            return Hash("none")
        return Hash("sha256", merkle_root(list(self.row_roots) + list(self.column_roots)))


@dataclass(frozen=True)
class Header:
    height: int
    data_hash: Hash
    dah: Optional[DataAvailabilityHeader] = None

    def data_root(self) -> Hash:
        """
        The committed data root: the DAH hash when the DAH is present, the
        header's `data_hash` field otherwise.
        """
        if self.dah is not None:
            return self.dah.hash()
        return self.data_hash

    @classmethod
    def from_json(cls, obj: Json) -> "Header":
        inner = obj.get("header") or {}
        height = int(inner.get("height") or obj.get("height") or 0)
        dh = str(inner.get("data_hash") or "")
        data_hash = Hash("sha256", bytes.fromhex(dh)) if dh else Hash("none")
        dah_obj = obj.get("dah")
        dah = None
        if isinstance(dah_obj, dict):
            dah = DataAvailabilityHeader(
                row_roots=tuple(b64decode(r) for r in dah_obj.get("row_roots") or []),
                column_roots=tuple(b64decode(c) for c in dah_obj.get("column_roots") or []),
            )
        return cls(height=height, data_hash=data_hash, dah=dah)


@dataclass(frozen=True)
class Blob:
    namespace: Namespace
    data: bytes
    share_version: int = 0
    commitment: bytes = b""

    def to_json(self) -> Json:
        out: Json = {
            "namespace": self.namespace.to_base64(),
            "data": b64encode(self.data),
            "share_version": self.share_version,
        }
        if self.commitment:
            out["commitment"] = b64encode(self.commitment)
        return out

    @classmethod
    def from_json(cls, obj: Json) -> "Blob":
        return cls(
            namespace=Namespace.from_bytes(b64decode(obj.get("namespace"))),
            data=b64decode(obj.get("data")),
            share_version=int(obj.get("share_version") or 0),
            commitment=b64decode(obj.get("commitment")),
        )


@dataclass(frozen=True)
class TxConfig:
    """Options forwarded to the DA node with a blob submission."""

    gas_price: Optional[float] = None
    gas: Optional[int] = None
    key_name: Optional[str] = None
    signer_address: Optional[str] = None
    fee_granter_address: Optional[str] = None

    def to_json(self) -> Json:
        out: Json = {}
        if self.gas_price is not None:
            out["gas_price"] = float(self.gas_price)
            out["is_gas_price_set"] = True
        if self.gas is not None:
            out["gas"] = int(self.gas)
        if self.key_name:
            out["key_name"] = self.key_name
        if self.signer_address:
            out["signer_address"] = self.signer_address
        if self.fee_granter_address:
            out["fee_granter_address"] = self.fee_granter_address
        return out


# --------------------------------------------------------------------------- #
# Verification bundle
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class SharesProof:
    row_proofs: Tuple[bytes, ...] = ()


@dataclass(frozen=True)
class DataRootTuple:
    height: int
    data_root: bytes

    def __post_init__(self) -> None:
        if len(self.data_root) != HASH_SIZE:
            raise ValueError(f"data_root must be {HASH_SIZE} bytes, got {len(self.data_root)}")


@dataclass(frozen=True)
class BinaryMerkleProof:
    siblings: Tuple[bytes, ...]
    path: Tuple[bool, ...]

    def __post_init__(self) -> None:
        for s in self.siblings:
            if len(s) != HASH_SIZE:
                raise ValueError(f"sibling must be {HASH_SIZE} bytes, got {len(s)}")

    @classmethod
    def from_proof(cls, proof: MerkleProofLike) -> "BinaryMerkleProof":
        return cls(siblings=tuple(proof.siblings), path=tuple(bool(b) for b in proof.path))

    @classmethod
    def from_json(cls, obj: Json) -> "BinaryMerkleProof":
        siblings: Iterable[Any] = obj.get("siblings") or []
        return cls(
            siblings=tuple(b64decode(s) for s in siblings),
            path=tuple(bool(b) for b in obj.get("path") or []),
        )


@dataclass(frozen=True)
class VerificationData:
    shares_proof: SharesProof
    data_root_tuple: DataRootTuple
    binary_proof: BinaryMerkleProof
    start_index: int
    data_len: int

    def to_json(self) -> Json:
        return {
            "start_index": self.start_index,
            "data_len": self.data_len,
            "shares_proof": {"row_proofs": [to_hex(p) for p in self.shares_proof.row_proofs]},
            "data_root_tuple": {
                "height": self.data_root_tuple.height,
                "data_root": to_hex(self.data_root_tuple.data_root),
            },
            "binary_proof": {
                "siblings": [to_hex(s) for s in self.binary_proof.siblings],
                "path": list(self.binary_proof.path),
            },
        }


@dataclass(frozen=True)
class SequenceSpan:
    height: int
    start_index: int
    data_len: int


__all__ = [
    "Namespace",
    "MerkleProofLike",
    "PresenceProof",
    "AbsenceProof",
    "NamespaceProof",
    "namespace_proof_from_json",
    "NamespaceRow",
    "NamespaceData",
    "Hash",
    "DataAvailabilityHeader",
    "Header",
    "Blob",
    "TxConfig",
    "SharesProof",
    "DataRootTuple",
    "BinaryMerkleProof",
    "VerificationData",
    "SequenceSpan",
]
