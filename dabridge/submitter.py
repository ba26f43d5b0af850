"""
Settlement submission.

`SettlementSubmitter.submit(request)` drives one submission attempt through a
strictly sequential state machine:

    BUILT -> SIMULATED -> GAS_ESTIMATED -> SENT -> CONFIRMED

    BUILT           calldata for submitProof(...) + sender + chain id
    SIMULATED       eth_call dry run; a revert stops here (SimulationError)
    GAS_ESTIMATED   estimate * headroom, fixed EIP-1559 fee caps (GasEstimationError)
    SENT            nonce lookup, sign, broadcast (SubmissionError)
    CONFIRMED       receipt observed; status 0 -> RevertedError, no receipt
                    at all -> ConfirmationError (outcome unknown)

Nothing is broadcast unless simulation and estimation both succeed, and a
failing stage never calls the next one. There is no retry: nonce and fee
conditions may have moved, so callers retry by building a fresh request.

The result is returned, not raised; `SubmissionResult.raise_for_status()`
turns a failure into its stage error.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Tuple

from eth_utils import to_checksum_address

from .abi import UINT64_MAX, UINT256_MAX, encode_submit_proof
from .errors import (ConfirmationError, GasEstimationError, RevertedError,
                     SimulationError, SubmissionError, SubmissionStageError)
from .packer import ProofData
from .utils.bytes import to_hex

TxDict = Dict[str, Any]
Receipt = Dict[str, Any]


# -----------------------------------------------------------------------------
# Collaborators
# -----------------------------------------------------------------------------


class ChainClient(Protocol):
    """
    Minimal chain surface. Implementations raise on failure; the submitter
    attributes the failure to the stage that made the call.
    """

    def simulate(self, tx: TxDict) -> None: ...

    def estimate_gas(self, tx: TxDict) -> int: ...

    def get_transaction_count(self, address: str) -> int: ...

    def send_transaction(self, raw_tx: bytes) -> str: ...

    def get_receipt(self, tx_hash: str, timeout: float) -> Receipt: ...


class Signer(Protocol):
    """Subset of eth_account's LocalAccount used here."""

    @property
    def address(self) -> str: ...

    def sign_transaction(self, transaction_dict: TxDict) -> Any: ...


# -----------------------------------------------------------------------------
# Values
# -----------------------------------------------------------------------------


class Stage(str, enum.Enum):
    BUILT = "built"
    SIMULATED = "simulated"
    GAS_ESTIMATED = "gas_estimated"
    SENT = "sent"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class SettlementRequest:
    block_number: int
    celestia_height: int
    start_index: int
    data_len: int
    proof_data: ProofData

    def __post_init__(self) -> None:
        for name, value, limit in (
            ("block_number", self.block_number, UINT256_MAX),
            ("celestia_height", self.celestia_height, UINT64_MAX),
            ("start_index", self.start_index, UINT64_MAX),
            ("data_len", self.data_len, UINT64_MAX),
        ):
            if not 0 <= int(value) <= limit:
                raise ValueError(f"{name} out of range: {value}")

    def calldata(self) -> bytes:
        return encode_submit_proof(
            self.block_number,
            self.celestia_height,
            self.start_index,
            self.data_len,
            self.proof_data.as_abi_tuple(),
        )


@dataclass(frozen=True)
class SubmissionResult:
    """
    Outcome of one attempt.

    `stage` is the last stage reached. A reverted transaction reaches
    CONFIRMED with success=False and a RevertedError.
    """

    success: bool
    stage: Stage
    error: Optional[SubmissionStageError] = None
    tx_hash: Optional[str] = None
    gas_limit: Optional[int] = None
    receipt: Optional[Receipt] = None
    history: Tuple[Stage, ...] = field(default_factory=tuple)

    @property
    def funds_at_risk(self) -> bool:
        return self.error.funds_at_risk if self.error is not None else self.tx_hash is not None

    def raise_for_status(self) -> "SubmissionResult":
        if self.error is not None:
            raise self.error
        return self


# -----------------------------------------------------------------------------
# Submitter
# -----------------------------------------------------------------------------


class SettlementSubmitter:
    def __init__(
        self,
        chain: ChainClient,
        signer: Signer,
        contract_address: str,
        *,
        chain_id: int,
        gas_headroom: float = 1.2,
        max_fee_per_gas: int = 30_000_000_000,
        max_priority_fee_per_gas: int = 2_000_000_000,
        receipt_timeout: float = 120.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if gas_headroom < 1.0:
            raise ValueError("gas_headroom must be >= 1.0")
        if max_priority_fee_per_gas > max_fee_per_gas:
            raise ValueError("max_priority_fee_per_gas must not exceed max_fee_per_gas")
        self._chain = chain
        self._signer = signer
        self._contract = to_checksum_address(contract_address)
        self._chain_id = int(chain_id)
        self._headroom = float(gas_headroom)
        self._max_fee = int(max_fee_per_gas)
        self._priority_fee = int(max_priority_fee_per_gas)
        self._receipt_timeout = float(receipt_timeout)
        self._log = logger or logging.getLogger("dabridge.submitter")

    def build(self, request: SettlementRequest) -> TxDict:
        return {
            "from": self._signer.address,
            "to": self._contract,
            "data": to_hex(request.calldata()),
            "value": 0,
            "chainId": self._chain_id,
        }

    def gas_limit_for(self, estimate: int) -> int:
        return int(math.ceil(int(estimate) * self._headroom))

    def submit(self, request: SettlementRequest) -> SubmissionResult:
        history = [Stage.BUILT]
        tx = self.build(request)
        self._log.debug("settlement tx built", extra={"to": self._contract, "calldata_size": len(tx["data"]) // 2 - 1})

        def _fail(err: SubmissionStageError, **kw: Any) -> SubmissionResult:
            self._log.warning("settlement submission failed at %s: %s", err.stage, err.message)
            return SubmissionResult(success=False, stage=history[-1], error=err, history=tuple(history), **kw)

        # Simulate
        try:
            self._chain.simulate(tx)
        except Exception as exc:  # noqa: BLE001
            return _fail(_stage_error(SimulationError, "dry run reverted", exc))
        history.append(Stage.SIMULATED)

        # Estimate gas
        try:
            estimate = int(self._chain.estimate_gas(tx))
        except Exception as exc:  # noqa: BLE001
            return _fail(_stage_error(GasEstimationError, "gas estimation failed", exc))
        gas_limit = self.gas_limit_for(estimate)
        tx = dict(
            tx,
            gas=gas_limit,
            maxFeePerGas=self._max_fee,
            maxPriorityFeePerGas=self._priority_fee,
            type=2,
        )
        history.append(Stage.GAS_ESTIMATED)
        self._log.info("gas estimated", extra={"estimate": estimate, "gas_limit": gas_limit})

        # Sign + send
        try:
            tx["nonce"] = int(self._chain.get_transaction_count(self._signer.address))
            signed = self._signer.sign_transaction(tx)
            tx_hash = self._chain.send_transaction(bytes(signed.raw_transaction))
        except Exception as exc:  # noqa: BLE001
            return _fail(_stage_error(SubmissionError, "broadcast failed", exc), gas_limit=gas_limit)
        history.append(Stage.SENT)
        self._log.info("settlement tx sent", extra={"tx_hash": tx_hash, "nonce": tx["nonce"]})

        # Confirm
        try:
            receipt = self._chain.get_receipt(tx_hash, self._receipt_timeout)
        except Exception as exc:  # noqa: BLE001
            err = _stage_error(ConfirmationError, "no receipt", exc, tx_hash=tx_hash)
            return _fail(err, tx_hash=tx_hash, gas_limit=gas_limit)
        history.append(Stage.CONFIRMED)

        if int(receipt.get("status", 0)) != 1:
            err = RevertedError(
                "transaction reverted",
                tx_hash=tx_hash,
                data={"block_number": receipt.get("blockNumber"), "gas_used": receipt.get("gasUsed")},
            )
            return _fail(err, tx_hash=tx_hash, gas_limit=gas_limit, receipt=receipt)

        self._log.info(
            "settlement confirmed",
            extra={"tx_hash": tx_hash, "block_number": receipt.get("blockNumber")},
        )
        return SubmissionResult(
            success=True,
            stage=Stage.CONFIRMED,
            tx_hash=tx_hash,
            gas_limit=gas_limit,
            receipt=receipt,
            history=tuple(history),
        )


def _stage_error(
    cls: type,
    message: str,
    exc: BaseException,
    *,
    tx_hash: Optional[str] = None,
) -> SubmissionStageError:
    err = cls(f"{message}: {exc.__class__.__name__}: {exc}", tx_hash=tx_hash)
    err.__cause__ = exc
    return err


__all__ = [
    "ChainClient",
    "Signer",
    "Stage",
    "SettlementRequest",
    "SubmissionResult",
    "SettlementSubmitter",
]
