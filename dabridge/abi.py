"""
Settlement contract ABI.

The contract exposes one entry point we care about:

    function submitProof(
        uint256 blockNumber,
        uint64  celestiaHeight,
        uint64  startIndex,
        uint64  dataLen,
        ProofData calldata proofData
    ) external;

    struct ProofData {
        bytes32 stateRoot;
        bytes32 rollupBlockHash;
        bytes   zkProof;
        SharesProof sharesProof;          // (bytes[] row_proofs)
        uint256 blobstreamNonce;
        DataRootTuple tuple;              // (uint256 height, bytes32 dataRoot)
        BinaryMerkleProof proof;          // (bytes32[] siblings, bytes path)
    }

Calldata is produced with eth-abi directly so it is byte-for-byte
deterministic and testable without a node. `SETTLEMENT_ABI` is the JSON form
for web3 contract objects.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import function_signature_to_4byte_selector

PROOF_DATA_TYPE = "(bytes32,bytes32,bytes,(bytes[]),uint256,(uint256,bytes32),(bytes32[],bytes))"
SUBMIT_PROOF_TYPES: Tuple[str, ...] = ("uint256", "uint64", "uint64", "uint64", PROOF_DATA_TYPE)
SUBMIT_PROOF_SIGNATURE = f"submitProof({','.join(SUBMIT_PROOF_TYPES)})"
SUBMIT_PROOF_SELECTOR: bytes = function_signature_to_4byte_selector(SUBMIT_PROOF_SIGNATURE)

UINT64_MAX = (1 << 64) - 1
UINT256_MAX = (1 << 256) - 1


def _component(name: str, type_: str, components: List[Dict[str, Any]] | None = None) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": name, "type": type_}
    if components is not None:
        out["components"] = components
    return out


_PROOF_DATA_COMPONENTS = [
    _component("stateRoot", "bytes32"),
    _component("rollupBlockHash", "bytes32"),
    _component("zkProof", "bytes"),
    _component("sharesProof", "tuple", [_component("row_proofs", "bytes[]")]),
    _component("blobstreamNonce", "uint256"),
    _component("tuple", "tuple", [_component("height", "uint256"), _component("dataRoot", "bytes32")]),
    _component("proof", "tuple", [_component("siblings", "bytes32[]"), _component("path", "bytes")]),
]

SETTLEMENT_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "submitProof",
        "stateMutability": "nonpayable",
        "inputs": [
            _component("blockNumber", "uint256"),
            _component("celestiaHeight", "uint64"),
            _component("startIndex", "uint64"),
            _component("dataLen", "uint64"),
            _component("proofData", "tuple", _PROOF_DATA_COMPONENTS),
        ],
        "outputs": [],
    }
]


def _check_uint(name: str, value: int, limit: int) -> int:
    v = int(value)
    if not 0 <= v <= limit:
        raise ValueError(f"{name} out of range: {value}")
    return v


def encode_submit_proof(
    block_number: int,
    celestia_height: int,
    start_index: int,
    data_len: int,
    proof_data_tuple: tuple,
) -> bytes:
    """
    Calldata for `submitProof`: 4-byte selector followed by the ABI-encoded
    arguments. `proof_data_tuple` is `ProofData.as_abi_tuple()`.
    """
    args = (
        _check_uint("blockNumber", block_number, UINT256_MAX),
        _check_uint("celestiaHeight", celestia_height, UINT64_MAX),
        _check_uint("startIndex", start_index, UINT64_MAX),
        _check_uint("dataLen", data_len, UINT64_MAX),
        proof_data_tuple,
    )
    return SUBMIT_PROOF_SELECTOR + abi_encode(list(SUBMIT_PROOF_TYPES), list(args))


def decode_submit_proof(calldata: bytes) -> tuple:
    """Inverse of `encode_submit_proof`; returns the five decoded arguments."""
    calldata = bytes(calldata)
    if calldata[:4] != SUBMIT_PROOF_SELECTOR:
        raise ValueError("calldata does not target submitProof")
    return tuple(abi_decode(list(SUBMIT_PROOF_TYPES), calldata[4:]))


__all__ = [
    "SETTLEMENT_ABI",
    "SUBMIT_PROOF_SIGNATURE",
    "SUBMIT_PROOF_SELECTOR",
    "SUBMIT_PROOF_TYPES",
    "encode_submit_proof",
    "decode_submit_proof",
]
