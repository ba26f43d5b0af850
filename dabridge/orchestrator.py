"""
End-to-end pipeline: post blob -> wait -> assemble proof -> pack -> settle.

One function, parameterised over the injected DA client and submitter, so
every stage can be driven by test doubles. Proof assembly is the only
concurrent step; settlement runs in a worker thread (web3 is blocking) and
stays strictly sequential. Nothing here retries.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .packer import ProofData, pack
from .poster import BlobPoster
from .prover import ProofAssembler
from .rpc import DAClient
from .submitter import SettlementRequest, SettlementSubmitter, SubmissionResult
from .types import Namespace, SequenceSpan, TxConfig, VerificationData

log = logging.getLogger("dabridge.orchestrator")


@dataclass(frozen=True)
class PipelineResult:
    span: SequenceSpan
    verification: VerificationData
    proof_data: ProofData
    submission: SubmissionResult

    @property
    def success(self) -> bool:
        return self.submission.success


async def run_pipeline(
    da: DAClient,
    submitter: SettlementSubmitter,
    namespace: Namespace,
    payload: bytes,
    *,
    state_root: bytes,
    rollup_block_hash: bytes,
    block_number: int,
    nonce: Optional[int] = None,
    zk_proof: bytes = b"",
    settle_delay: float = 2.0,
    merkle_source: str = "commitment",
    tx_config: Optional[TxConfig] = None,
) -> PipelineResult:
    """
    Run the full bridge for one payload. `nonce` defaults to `block_number`.

    Assembly errors propagate (nothing has been sent on-chain yet). Submission
    failures come back inside `PipelineResult.submission`.
    """
    poster = BlobPoster(da, namespace, tx_config=tx_config)
    span = await poster.submit(payload)
    log.info("blob landed", extra={"height": span.height, "start_index": span.start_index, "data_len": span.data_len})

    if settle_delay > 0:
        await asyncio.sleep(settle_delay)

    assembler = ProofAssembler(da, namespace, merkle_source=merkle_source)
    verification = await assembler.assemble(span.height)

    proof_data = pack(
        verification,
        state_root,
        rollup_block_hash,
        block_number if nonce is None else nonce,
        zk_proof=zk_proof,
    )
    request = SettlementRequest(
        block_number=block_number,
        celestia_height=span.height,
        start_index=verification.start_index,
        data_len=verification.data_len,
        proof_data=proof_data,
    )
    submission = await asyncio.to_thread(submitter.submit, request)
    if submission.success:
        log.info("pipeline complete", extra={"height": span.height, "tx_hash": submission.tx_hash})
    else:
        log.warning("pipeline settlement failed", extra={"height": span.height, "stage": submission.stage.value})
    return PipelineResult(span=span, verification=verification, proof_data=proof_data, submission=submission)


__all__ = ["run_pipeline", "PipelineResult"]
