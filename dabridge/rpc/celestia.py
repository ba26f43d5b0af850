"""
Async JSON-RPC client for a Celestia-style DA node.

Implements `dabridge.rpc.DAClient` over JSON-RPC 2.0 (HTTP POST) with httpx.

Methods used
------------
- header.GetByHeight(height)                      -> ExtendedHeader JSON
- share.GetNamespaceData(height, namespace)       -> [{shares, proof}, ...]
- blob.GetAll(height, [namespace])                -> [Blob] | null
- blob.GetProof(height, namespace, commitment)    -> [NMT proof, ...] | {siblings, path}
- blob.Submit([Blob], options)                    -> height

Bytes travel as standard base64, namespaces as base64 of version||id.

Error mapping
-------------
- httpx timeouts / transport errors, non-JSON bodies, 5xx  -> NetworkError
- JSON-RPC errors mentioning "not found" / "from the future",
  and null results where a value is required               -> NotFoundError
- any other JSON-RPC error                                  -> NetworkError (code in .data)

No retries happen here; callers that want them re-run the whole query.

Example:
    async with CelestiaRpcClient("http://localhost:26658", auth_token=token) as da:
        header = await da.header_get_by_height(1000)
"""

from __future__ import annotations

import json
import logging
from itertools import count
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from ..errors import NetworkError, NotFoundError
from ..types import (BinaryMerkleProof, Blob, Header, Namespace, NamespaceData,
                     TxConfig, namespace_proof_from_json)
from ..utils.bytes import b64encode
from ..version import __version__

JSON = Union[dict, list, str, int, float, bool, None]

_NOT_FOUND_HINTS = ("not found", "from the future", "no such")


def _is_not_found(message: str) -> bool:
    m = message.lower()
    return any(h in m for h in _NOT_FOUND_HINTS)


class CelestiaRpcClient:
    """Async JSON-RPC 2.0 client for the DA node."""

    def __init__(
        self,
        url: str,
        *,
        auth_token: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.url = url
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"dabridge/{__version__}",
        }
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        self._own_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, headers=headers)
        if client is not None:
            self._client.headers.update(headers)
        self._ids = count(1)
        self._log = logger or logging.getLogger("dabridge.rpc.celestia")

    # --- context management

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> "CelestiaRpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    # --- transport

    async def request(self, method: str, params: Sequence[Any] = ()) -> JSON:
        """Perform one JSON-RPC call and return `result`."""
        rid = next(self._ids)
        payload = {"jsonrpc": "2.0", "id": rid, "method": method, "params": list(params)}
        body = json.dumps(payload, separators=(",", ":"))
        self._log.debug("rpc call", extra={"method": method, "id": rid})
        try:
            r = await self._client.post(self.url, content=body)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{method} timed out", data={"method": method, "error": str(e)}) from e
        except httpx.TransportError as e:
            raise NetworkError(f"{method} transport error", data={"method": method, "error": str(e)}) from e

        if r.status_code >= 500 or r.status_code in (401, 403, 429):
            raise NetworkError(f"{method} -> HTTP {r.status_code}", data={"method": method, "body": r.text[:256]})
        try:
            resp = r.json()
        except ValueError as e:
            raise NetworkError(
                "non-JSON response from DA node",
                data={"method": method, "body": f"HTTP {r.status_code}: {r.text[:256]}"},
            ) from e
        if not isinstance(resp, dict):
            raise NetworkError("invalid JSON-RPC response type", data={"method": method, "type": type(resp).__name__})

        err = resp.get("error")
        if err:
            code = err.get("code") if isinstance(err, dict) else None
            message = str(err.get("message", "")) if isinstance(err, dict) else str(err)
            data = {"method": method, "code": code, "rpc_message": message}
            if _is_not_found(message):
                raise NotFoundError(message, data=data)
            raise NetworkError(message or "JSON-RPC error", data=data)
        if "result" not in resp:
            raise NetworkError("malformed JSON-RPC response", data={"method": method})
        return resp["result"]

    # --- DAClient

    async def header_get_by_height(self, height: int) -> Header:
        res = await self.request("header.GetByHeight", [int(height)])
        if not isinstance(res, dict):
            raise NotFoundError(f"no header at height {height}", data={"height": height})
        return Header.from_json(res)

    async def share_get_namespace_data(self, header: Header, namespace: Namespace) -> NamespaceData:
        res = await self.request("share.GetNamespaceData", [int(header.height), namespace.to_base64()])
        return NamespaceData.from_json(res)

    async def blob_get_all(self, height: int, namespaces: Sequence[Namespace]) -> Optional[List[Blob]]:
        res = await self.request("blob.GetAll", [int(height), [ns.to_base64() for ns in namespaces]])
        if res is None:
            return None
        return [Blob.from_json(b) for b in res]

    async def blob_get_proof(self, height: int, namespace: Namespace, commitment: bytes) -> BinaryMerkleProof:
        res = await self.request("blob.GetProof", [int(height), namespace.to_base64(), b64encode(commitment)])
        if isinstance(res, dict) and "siblings" in res:
            return BinaryMerkleProof.from_json(res)
        if isinstance(res, list) and res:
            # One NMT proof per row the blob spans; the first row anchors the path.
            return BinaryMerkleProof.from_proof(namespace_proof_from_json(res[0]))
        raise NotFoundError("no proof for commitment", data={"height": height, "commitment": commitment.hex()})

    async def blob_submit(self, blobs: Sequence[Blob], config: TxConfig) -> int:
        res = await self.request("blob.Submit", [[b.to_json() for b in blobs], config.to_json()])
        if res is None:
            raise NetworkError("blob.Submit returned no height")
        return int(res)


__all__ = ["CelestiaRpcClient"]
