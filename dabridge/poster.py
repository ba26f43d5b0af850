"""
Blob posting.

`BlobPoster.submit(data)` wraps a payload in a blob under the configured
namespace, submits it to the DA node and reports where it landed as a
`SequenceSpan` (height, start share index, number of shares). The range uses
the same rule as proof assembly.
"""

from __future__ import annotations

import logging
from typing import Optional

from .rpc import DAClient
from .share_range import calculate_share_range
from .types import Blob, Namespace, SequenceSpan, TxConfig


class BlobPoster:
    def __init__(
        self,
        client: DAClient,
        namespace: Namespace,
        *,
        tx_config: Optional[TxConfig] = None,
        share_version: int = 0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._namespace = namespace
        self._tx_config = tx_config or TxConfig()
        self._share_version = int(share_version)
        self._log = logger or logging.getLogger("dabridge.poster")

    async def submit(self, data: bytes) -> SequenceSpan:
        if not data:
            raise ValueError("refusing to submit an empty blob")
        blob = Blob(namespace=self._namespace, data=bytes(data), share_version=self._share_version)
        height = await self._client.blob_submit([blob], self._tx_config)
        self._log.info("blob submitted", extra={"height": height, "size": len(blob.data)})

        header = await self._client.header_get_by_height(height)
        ns_data = await self._client.share_get_namespace_data(header, self._namespace)
        start_index, data_len = calculate_share_range(ns_data.rows)
        return SequenceSpan(height=height, start_index=start_index, data_len=data_len)


__all__ = ["BlobPoster"]
