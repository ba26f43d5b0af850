import json

import pytest

from dabridge.errors import NetworkError, NotFoundError, ProofExtractionError
from dabridge.prover import ProofAssembler
from dabridge.types import (AbsenceProof, BinaryMerkleProof, Hash, NamespaceData,
                            NamespaceRow)

from .fakes import DATA_ROOT, FakeDA, empty_row, nmt_node, presence_row


@pytest.mark.asyncio
async def test_assemble_collects_all_three_parts(da, namespace):
    vd = await ProofAssembler(da, namespace).assemble(100)

    assert (vd.start_index, vd.data_len) == (5, 5)
    assert len(vd.shares_proof.row_proofs) == 2
    assert json.loads(vd.shares_proof.row_proofs[0])["start"] == 5
    assert vd.data_root_tuple.height == 100
    assert vd.data_root_tuple.data_root == DATA_ROOT
    assert vd.binary_proof == da.proof
    # commitment source: proof fetched for the first blob's commitment
    (_, args), = [c for c in da.calls if c[0] == "blob_get_proof"]
    assert args[2] == b"\xcc" * 32


@pytest.mark.asyncio
async def test_empty_namespace_yields_empty_range_and_no_row_proofs(namespace):
    da = FakeDA(namespace, rows=[empty_row(0), empty_row(4)])
    vd = await ProofAssembler(da, namespace).assemble(100)
    assert (vd.start_index, vd.data_len) == (0, 0)
    assert vd.shares_proof.row_proofs == ()


@pytest.mark.asyncio
async def test_row_source_uses_first_non_empty_row(namespace):
    da = FakeDA(namespace, rows=[empty_row(0), presence_row(5, 3), presence_row(10, 2)])
    vd = await ProofAssembler(da, namespace, merkle_source="row").assemble(100)

    # start 5 = 0b101: right child at level 0, left child at level 1
    assert vd.binary_proof.path == (True, False)
    assert vd.binary_proof.siblings == (nmt_node(5)[-32:], nmt_node(6)[-32:])
    assert da.called("blob_get_all") == 0


@pytest.mark.asyncio
async def test_row_source_without_shares_is_not_found(namespace):
    da = FakeDA(namespace, rows=[empty_row(0)])
    with pytest.raises(NotFoundError) as ei:
        await ProofAssembler(da, namespace, merkle_source="row").assemble(100)
    assert ei.value.query == "merkle"


@pytest.mark.asyncio
async def test_commitment_source_without_blob_is_not_found(namespace):
    da = FakeDA(namespace, rows=[presence_row(0, 1)], blobs=[])
    with pytest.raises(NotFoundError) as ei:
        await ProofAssembler(da, namespace).assemble(100)
    assert ei.value.query == "merkle"
    assert da.called("blob_get_proof") == 0


@pytest.mark.asyncio
async def test_non_sha256_data_root_is_rejected(namespace):
    da = FakeDA(namespace, rows=[presence_row(0, 1)], data_hash=Hash("none"))
    with pytest.raises(ProofExtractionError) as ei:
        await ProofAssembler(da, namespace).assemble(100)
    assert ei.value.query == "data_root"


@pytest.mark.asyncio
async def test_first_failure_cancels_the_rest(namespace):
    da = FakeDA(
        namespace,
        rows=[presence_row(0, 1)],
        fail={"blob_get_all": NetworkError("connection refused")},
        delays={"share_get_namespace_data": 5.0},
    )
    with pytest.raises(NetworkError) as ei:
        await ProofAssembler(da, namespace).assemble(100)
    assert ei.value.query == "merkle"
    assert "share_get_namespace_data" in da.cancelled


@pytest.mark.asyncio
async def test_unknown_height_names_first_query(namespace):
    da = FakeDA(namespace, height=100)
    with pytest.raises(NotFoundError) as ei:
        await ProofAssembler(da, namespace, merkle_source="row").assemble(101)
    assert ei.value.query in ("shares", "data_root", "merkle")


@pytest.mark.asyncio
async def test_malformed_proof_becomes_extraction_error(namespace):
    da = FakeDA(namespace, rows=[presence_row(0, 1)], fail={"blob_get_proof": ValueError("bad sibling")})
    with pytest.raises(ProofExtractionError) as ei:
        await ProofAssembler(da, namespace).assemble(100)
    assert ei.value.query == "merkle"
    assert isinstance(ei.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_span(da, namespace):
    span = await ProofAssembler(da, namespace).span(100)
    assert (span.height, span.start_index, span.data_len) == (100, 5, 5)


def test_unknown_merkle_source(namespace):
    with pytest.raises(ValueError):
        ProofAssembler(FakeDA(namespace), namespace, merkle_source="nope")


@pytest.mark.asyncio
async def test_row_source_handles_absence_proof_like_presence(namespace):
    absent = NamespaceRow(
        shares=(b"\x00" * 512,),
        proof=AbsenceProof(start=6, end=7, leaf_hash=b"\x05" * 32, nodes=(nmt_node(6), nmt_node(7))),
    )
    present = presence_row(6, 1)

    from_absence = await ProofAssembler(FakeDA(namespace, rows=[absent]), namespace, merkle_source="row").assemble(100)
    from_presence = await ProofAssembler(FakeDA(namespace, rows=[present]), namespace, merkle_source="row").assemble(100)

    assert isinstance(from_absence.binary_proof, BinaryMerkleProof)
    assert from_absence.binary_proof == from_presence.binary_proof
    # 6 = 0b110: left child at level 0, right child at level 1
    assert from_absence.binary_proof.path == (False, True)
    assert from_absence.binary_proof.siblings == (nmt_node(6)[-32:], nmt_node(7)[-32:])
    assert (from_absence.start_index, from_absence.data_len) == (6, 1)


class _MalformedRowsDA(FakeDA):
    async def share_get_namespace_data(self, header, namespace):
        await self._enter("share_get_namespace_data", header.height, namespace)
        return NamespaceData.from_json(["not-a-row-object"])


@pytest.mark.asyncio
async def test_malformed_rows_are_labelled_extraction_errors(namespace):
    da = _MalformedRowsDA(namespace)
    with pytest.raises(ProofExtractionError) as ei:
        await ProofAssembler(da, namespace).assemble(100)
    assert ei.value.query == "shares"
    assert isinstance(ei.value.__cause__, AttributeError)
