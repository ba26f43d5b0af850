import pytest

from dabridge.abi import decode_submit_proof
from dabridge.errors import NotFoundError
from dabridge.orchestrator import run_pipeline
from dabridge.submitter import SettlementSubmitter, Stage
from dabridge.utils.bytes import from_hex

from .fakes import CONTRACT, FakeChain


def _submitter(chain, signer):
    return SettlementSubmitter(chain, signer, CONTRACT, chain_id=11155111)


@pytest.mark.asyncio
async def test_pipeline_posts_proves_and_settles(da, namespace, chain, signer):
    result = await run_pipeline(
        da,
        _submitter(chain, signer),
        namespace,
        b"rollup batch",
        state_root=b"\x01" * 32,
        rollup_block_hash=b"\x02" * 32,
        block_number=12,
        settle_delay=0,
    )

    assert result.success
    assert (result.span.height, result.span.start_index, result.span.data_len) == (100, 5, 5)
    assert da.submitted[0].data == b"rollup batch"
    assert result.submission.stage is Stage.CONFIRMED

    block_number, height, start, length, proof = decode_submit_proof(from_hex(chain.simulated[0]["data"]))
    assert (block_number, height, start, length) == (12, 100, 5, 5)
    # nonce defaults to the block number
    assert proof[4] == 12


@pytest.mark.asyncio
async def test_pipeline_reports_settlement_failure(da, namespace, signer):
    chain = FakeChain(simulate_error=RuntimeError("execution reverted"))
    result = await run_pipeline(
        da,
        _submitter(chain, signer),
        namespace,
        b"batch",
        state_root=b"\x01" * 32,
        rollup_block_hash=b"\x02" * 32,
        block_number=3,
        nonce=99,
        settle_delay=0,
    )
    assert not result.success
    assert result.proof_data.blobstream_nonce == 99
    assert chain.sent == []


@pytest.mark.asyncio
async def test_assembly_failure_sends_nothing(da, namespace, chain, signer):
    da.blobs = []
    with pytest.raises(NotFoundError):
        await run_pipeline(
            da,
            _submitter(chain, signer),
            namespace,
            b"batch",
            state_root=b"\x01" * 32,
            rollup_block_hash=b"\x02" * 32,
            block_number=1,
            settle_delay=0,
        )
    assert chain.calls == []


@pytest.mark.asyncio
async def test_empty_payload_is_refused(da, namespace, chain, signer):
    with pytest.raises(ValueError):
        await run_pipeline(
            da,
            _submitter(chain, signer),
            namespace,
            b"",
            state_root=b"\x01" * 32,
            rollup_block_hash=b"\x02" * 32,
            block_number=1,
            settle_delay=0,
        )
    assert da.calls == []
