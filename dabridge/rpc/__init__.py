"""
DA-layer collaborator interface.

`DAClient` is the narrow surface the prover and poster consume. The concrete
JSON-RPC implementation lives in `dabridge.rpc.celestia`; tests substitute
in-memory doubles.

Implementations map their failures onto the dabridge taxonomy:
`NotFoundError` for unknown heights/blobs, `NetworkError` for transport
problems and timeouts.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from ..types import BinaryMerkleProof, Blob, Header, Namespace, NamespaceData, TxConfig


class DAClient(Protocol):
    async def header_get_by_height(self, height: int) -> Header: ...

    async def share_get_namespace_data(self, header: Header, namespace: Namespace) -> NamespaceData: ...

    async def blob_get_all(self, height: int, namespaces: Sequence[Namespace]) -> Optional[List[Blob]]: ...

    async def blob_get_proof(self, height: int, namespace: Namespace, commitment: bytes) -> BinaryMerkleProof: ...

    async def blob_submit(self, blobs: Sequence[Blob], config: TxConfig) -> int: ...


__all__ = ["DAClient"]
