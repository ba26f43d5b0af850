"""
web3.py implementation of the settlement chain collaborator.

Thin on purpose: each method is one JSON-RPC round trip (or the web3 receipt
poller) and lets web3 exceptions propagate. The submitter decides which
stage a failure belongs to.

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 25}))
    chain = Web3ChainClient(w3)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from web3 import Web3

TxDict = Dict[str, Any]


def connect(rpc_url: str, *, timeout: float = 25.0) -> Web3:
    return Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))


def _call_fields(tx: TxDict) -> TxDict:
    # eth_call / eth_estimateGas only need the call itself
    return {k: tx[k] for k in ("from", "to", "data", "value") if k in tx}


class Web3ChainClient:
    def __init__(self, w3: Web3, *, poll_latency: float = 1.0, logger: Optional[logging.Logger] = None) -> None:
        self._w3 = w3
        self._poll_latency = float(poll_latency)
        self._log = logger or logging.getLogger("dabridge.chain")

    def chain_id(self) -> int:
        return int(self._w3.eth.chain_id)

    def simulate(self, tx: TxDict) -> None:
        # ContractLogicError on revert
        self._w3.eth.call(_call_fields(tx), "latest")

    def estimate_gas(self, tx: TxDict) -> int:
        return int(self._w3.eth.estimate_gas(_call_fields(tx)))

    def get_transaction_count(self, address: str) -> int:
        return int(self._w3.eth.get_transaction_count(Web3.to_checksum_address(address), "pending"))

    def send_transaction(self, raw_tx: bytes) -> str:
        tx_hash = self._w3.eth.send_raw_transaction(raw_tx)
        return Web3.to_hex(tx_hash)

    def get_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]:
        receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout, poll_latency=self._poll_latency)
        return dict(receipt)


__all__ = ["Web3ChainClient", "connect"]
