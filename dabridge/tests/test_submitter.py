import pytest
from eth_utils import to_checksum_address

from dabridge.abi import decode_submit_proof
from dabridge.errors import (ConfirmationError, GasEstimationError,
                             RevertedError, SimulationError, SubmissionError)
from dabridge.packer import pack
from dabridge.submitter import SettlementRequest, SettlementSubmitter, Stage
from dabridge.types import (BinaryMerkleProof, DataRootTuple, SharesProof,
                            VerificationData)
from dabridge.utils.bytes import from_hex

from .fakes import CONTRACT, FakeChain


def _request(block_number=12):
    vd = VerificationData(
        shares_proof=SharesProof(row_proofs=(b"row",)),
        data_root_tuple=DataRootTuple(height=100, data_root=b"\x03" * 32),
        binary_proof=BinaryMerkleProof(siblings=(b"\x04" * 32,), path=(True,)),
        start_index=5,
        data_len=5,
    )
    return SettlementRequest(
        block_number=block_number,
        celestia_height=100,
        start_index=5,
        data_len=5,
        proof_data=pack(vd, b"\x01" * 32, b"\x02" * 32, block_number),
    )


def _submitter(chain, signer, **kw):
    return SettlementSubmitter(chain, signer, CONTRACT, chain_id=11155111, **kw)


def test_successful_submission_walks_every_stage(chain, signer):
    result = _submitter(chain, signer).submit(_request())

    assert result.success
    assert result.stage is Stage.CONFIRMED
    assert result.history == (Stage.BUILT, Stage.SIMULATED, Stage.GAS_ESTIMATED, Stage.SENT, Stage.CONFIRMED)
    assert result.tx_hash == FakeChain.TX_HASH
    assert result.receipt["status"] == 1
    assert result.error is None
    assert chain.calls == ["simulate", "estimate_gas", "get_transaction_count", "send_transaction", "get_receipt"]
    # EIP-1559 typed transaction
    assert chain.sent[0][:1] == b"\x02"
    assert result.raise_for_status() is result


def test_calldata_targets_submit_proof(chain, signer):
    _submitter(chain, signer).submit(_request(block_number=12))
    tx = chain.simulated[0]
    assert tx["to"] == CONTRACT
    assert tx["from"] == signer.address
    block_number, height, start, length, _ = decode_submit_proof(from_hex(tx["data"]))
    assert (block_number, height, start, length) == (12, 100, 5, 5)


def test_simulation_revert_stops_before_estimation(signer):
    chain = FakeChain(simulate_error=RuntimeError("execution reverted: bad proof"))
    result = _submitter(chain, signer).submit(_request())

    assert not result.success
    assert result.stage is Stage.BUILT
    assert isinstance(result.error, SimulationError)
    assert result.tx_hash is None
    assert not result.funds_at_risk
    assert chain.calls == ["simulate"]
    assert "bad proof" in result.error.message
    with pytest.raises(SimulationError):
        result.raise_for_status()


def test_estimation_failure_never_sends(signer):
    chain = FakeChain(estimate_error=RuntimeError("gas required exceeds allowance"))
    result = _submitter(chain, signer).submit(_request())

    assert isinstance(result.error, GasEstimationError)
    assert result.stage is Stage.SIMULATED
    assert "send_transaction" not in chain.calls
    assert chain.sent == []


def test_broadcast_failure(signer):
    chain = FakeChain(send_error=ConnectionError("rpc down"))
    result = _submitter(chain, signer).submit(_request())

    assert isinstance(result.error, SubmissionError)
    assert result.stage is Stage.GAS_ESTIMATED
    assert result.tx_hash is None
    assert "get_receipt" not in chain.calls
    assert isinstance(result.error.__cause__, ConnectionError)


def test_reverted_receipt(signer):
    chain = FakeChain(receipt={"status": 0, "blockNumber": 50, "gasUsed": 120_000})
    result = _submitter(chain, signer).submit(_request())

    assert not result.success
    assert result.stage is Stage.CONFIRMED
    assert isinstance(result.error, RevertedError)
    assert result.tx_hash == FakeChain.TX_HASH
    assert result.funds_at_risk
    assert result.error.to_problem()["tx_hash"] == FakeChain.TX_HASH


def test_missing_receipt_is_unknown_outcome(signer):
    chain = FakeChain(receipt_error=TimeoutError("no receipt after 120s"))
    result = _submitter(chain, signer).submit(_request())

    assert isinstance(result.error, ConfirmationError)
    assert result.stage is Stage.SENT
    assert result.tx_hash == FakeChain.TX_HASH
    assert result.error.tx_hash == FakeChain.TX_HASH
    assert result.funds_at_risk


def test_gas_limit_applies_headroom(signer):
    chain = FakeChain(estimate=100_001)
    result = _submitter(chain, signer, gas_headroom=1.5).submit(_request())
    assert result.gas_limit == 150_002
    assert _submitter(chain, signer).gas_limit_for(100) == 120


def test_invalid_fee_policy(chain, signer):
    with pytest.raises(ValueError):
        _submitter(chain, signer, gas_headroom=0.9)
    with pytest.raises(ValueError):
        _submitter(chain, signer, max_fee_per_gas=1, max_priority_fee_per_gas=2)


def test_lowercase_contract_address_is_signable(chain, signer):
    lowercase = "0x" + "ab" * 20
    result = SettlementSubmitter(chain, signer, lowercase, chain_id=11155111).submit(_request())

    assert result.success, result.error
    assert chain.simulated[0]["to"] == to_checksum_address(lowercase)
    assert len(chain.sent) == 1


@pytest.mark.parametrize(
    "field,value",
    [("block_number", -1), ("celestia_height", 1 << 64), ("start_index", -5), ("data_len", 1 << 64)],
)
def test_request_rejects_out_of_range_fields(field, value):
    base = _request()
    kwargs = {
        "block_number": base.block_number,
        "celestia_height": base.celestia_height,
        "start_index": base.start_index,
        "data_len": base.data_len,
        "proof_data": base.proof_data,
    }
    kwargs[field] = value
    with pytest.raises(ValueError):
        SettlementRequest(**kwargs)
