import pytest

from dabridge.packer import pack, pack_path, unpack_path
from dabridge.types import (BinaryMerkleProof, DataRootTuple, SharesProof,
                            VerificationData)

STATE_ROOT = b"\x01" * 32
BLOCK_HASH = b"\x02" * 32


def _verification(path=(True, False, True)):
    return VerificationData(
        shares_proof=SharesProof(row_proofs=(b'{"start":5}', b'{"start":10}')),
        data_root_tuple=DataRootTuple(height=100, data_root=b"\x03" * 32),
        binary_proof=BinaryMerkleProof(siblings=tuple(bytes([i]) * 32 for i in range(len(path))), path=tuple(path)),
        start_index=5,
        data_len=5,
    )


def test_pack_path_msb_first():
    path = [True, False, True, True, False, False, False, False, True]
    assert pack_path(path) == bytes([0b10110000, 0b10000000])


@pytest.mark.parametrize("length", [0, 1, 7, 8, 9, 16, 17, 64])
def test_packed_length_and_round_trip(length):
    path = [(i * 7) % 3 == 0 for i in range(length)]
    packed = pack_path(path)
    assert len(packed) == (length + 7) // 8
    assert unpack_path(packed, length) == path


def test_unused_trailing_bits_are_zero():
    assert pack_path([True] * 3) == bytes([0b11100000])


def test_unpack_rejects_overlong_length():
    with pytest.raises(ValueError):
        unpack_path(b"\x00", 9)


def test_pack_carries_values_through():
    vd = _verification()
    pd = pack(vd, STATE_ROOT, BLOCK_HASH, 100, zk_proof=b"zk")

    assert pd.state_root == STATE_ROOT
    assert pd.rollup_block_hash == BLOCK_HASH
    assert pd.zk_proof == b"zk"
    assert pd.shares_proof.row_proofs == vd.shares_proof.row_proofs
    assert pd.blobstream_nonce == 100
    assert pd.data_root_tuple == vd.data_root_tuple
    assert pd.proof.siblings == vd.binary_proof.siblings
    assert pd.proof.path == bytes([0b10100000])


def test_pack_is_deterministic():
    vd = _verification()
    assert pack(vd, STATE_ROOT, BLOCK_HASH, 9) == pack(vd, STATE_ROOT, BLOCK_HASH, 9)
    assert pack(vd, STATE_ROOT, BLOCK_HASH, 9).as_abi_tuple() == pack(vd, STATE_ROOT, BLOCK_HASH, 9).as_abi_tuple()


def test_pack_rejects_short_roots_and_negative_nonce():
    vd = _verification()
    with pytest.raises(ValueError):
        pack(vd, b"\x01" * 31, BLOCK_HASH, 1)
    with pytest.raises(ValueError):
        pack(vd, STATE_ROOT, b"", 1)
    with pytest.raises(ValueError):
        pack(vd, STATE_ROOT, BLOCK_HASH, -1)
