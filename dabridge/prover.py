"""
Proof assembly.

`ProofAssembler.assemble(height)` gathers the three artifacts the settlement
contract needs for one (height, namespace):

  shares     header + namespace rows -> SharesProof and (start_index, data_len)
  data_root  header -> DataRootTuple (data root must be a SHA-256 digest)
  merkle     BinaryMerkleProof, from one of two sources:
               "commitment"  first blob's commitment -> blob proof (path verbatim)
               "row"         first non-empty row's namespace proof

The three queries are independent reads and run as concurrent tasks. Assembly
is all-or-nothing: the first failure cancels the remaining tasks and is raised
with `.query` naming the sub-query that failed.

The share range is always computed from the very rows serialized into the
SharesProof, never from a second fetch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional, Tuple

from .errors import DABridgeError, NotFoundError, ProofExtractionError
from .rpc import DAClient
from .share_range import calculate_share_range
from .types import (BinaryMerkleProof, DataRootTuple, Namespace, SequenceSpan,
                    SharesProof, VerificationData)

MERKLE_SOURCES = ("commitment", "row")


class ProofAssembler:
    def __init__(
        self,
        client: DAClient,
        namespace: Namespace,
        *,
        merkle_source: str = "commitment",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if merkle_source not in MERKLE_SOURCES:
            raise ValueError(f"merkle_source must be one of {MERKLE_SOURCES}, got {merkle_source!r}")
        self._client = client
        self._namespace = namespace
        self._merkle_source = merkle_source
        self._log = logger or logging.getLogger("dabridge.prover")

    @property
    def namespace(self) -> Namespace:
        return self._namespace

    # --- sub-queries -----------------------------------------------------

    async def get_shares_proof(self, height: int) -> Tuple[SharesProof, int, int]:
        header = await self._client.header_get_by_height(height)
        data = await self._client.share_get_namespace_data(header, self._namespace)

        row_proofs = tuple(row.proof.to_bytes() for row in data.rows if row.shares)
        start_index, data_len = calculate_share_range(data.rows)
        return SharesProof(row_proofs=row_proofs), start_index, data_len

    async def get_data_root_tuple(self, height: int) -> DataRootTuple:
        header = await self._client.header_get_by_height(height)
        root = header.data_root()
        if not root.is_sha256:
            raise ProofExtractionError(
                "header data root is not a SHA-256 digest",
                data={"height": height, "kind": root.kind, "size": len(root.value)},
            )
        return DataRootTuple(height=height, data_root=root.value)

    async def get_merkle_proof(self, height: int) -> BinaryMerkleProof:
        if self._merkle_source == "row":
            return await self._merkle_from_row(height)
        return await self._merkle_from_commitment(height)

    async def _merkle_from_commitment(self, height: int) -> BinaryMerkleProof:
        blobs = await self._client.blob_get_all(height, [self._namespace])
        if not blobs:
            raise NotFoundError("no blob found", data={"height": height, "namespace": str(self._namespace)})
        return await self._client.blob_get_proof(height, self._namespace, blobs[0].commitment)

    async def _merkle_from_row(self, height: int) -> BinaryMerkleProof:
        header = await self._client.header_get_by_height(height)
        data = await self._client.share_get_namespace_data(header, self._namespace)
        row = next((r for r in data.rows if r.shares), None)
        if row is None:
            raise NotFoundError("no namespace row with shares", data={"height": height, "namespace": str(self._namespace)})
        return BinaryMerkleProof.from_proof(row.proof)

    # --- assembly --------------------------------------------------------

    async def assemble(self, height: int) -> VerificationData:
        """Gather shares proof, data root tuple and Merkle proof for `height`."""
        results = await _gather_fail_fast(
            {
                "shares": self.get_shares_proof(height),
                "data_root": self.get_data_root_tuple(height),
                "merkle": self.get_merkle_proof(height),
            }
        )
        shares_proof, start_index, data_len = results["shares"]
        vd = VerificationData(
            shares_proof=shares_proof,
            data_root_tuple=results["data_root"],
            binary_proof=results["merkle"],
            start_index=start_index,
            data_len=data_len,
        )
        self._log.info(
            "verification data assembled",
            extra={
                "height": height,
                "start_index": start_index,
                "data_len": data_len,
                "row_proofs": len(shares_proof.row_proofs),
                "siblings": len(vd.binary_proof.siblings),
            },
        )
        return vd

    async def span(self, height: int) -> SequenceSpan:
        """Where the namespace's data landed at `height`."""
        header = await self._client.header_get_by_height(height)
        data = await self._client.share_get_namespace_data(header, self._namespace)
        start_index, data_len = calculate_share_range(data.rows)
        return SequenceSpan(height=height, start_index=start_index, data_len=data_len)


async def _labelled(name: str, aw: Awaitable[Any]) -> Any:
    try:
        return await aw
    except DABridgeError as exc:
        if exc.query is None:
            exc.query = name
        raise
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise ProofExtractionError(f"{exc.__class__.__name__}: {exc}", query=name) from exc


async def _gather_fail_fast(jobs: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
    tasks = {name: asyncio.ensure_future(_labelled(name, aw)) for name, aw in jobs.items()}
    try:
        done, pending = await asyncio.wait(tasks.values(), return_when=asyncio.FIRST_EXCEPTION)
        for task in done:
            exc = task.exception()
            if exc is not None:
                raise exc
        return {name: task.result() for name, task in tasks.items()}
    finally:
        for task in tasks.values():
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)


__all__ = ["ProofAssembler", "MERKLE_SOURCES"]
