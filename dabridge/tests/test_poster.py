import pytest

from dabridge.poster import BlobPoster
from dabridge.types import TxConfig


@pytest.mark.asyncio
async def test_submit_reports_span(da, namespace):
    span = await BlobPoster(da, namespace, tx_config=TxConfig(gas=80_000)).submit(b"batch")

    assert (span.height, span.start_index, span.data_len) == (100, 5, 5)
    assert da.submitted[0].namespace == namespace
    (_, (count, config)), = [c for c in da.calls if c[0] == "blob_submit"]
    assert count == 1
    assert config.to_json() == {"gas": 80_000}


@pytest.mark.asyncio
async def test_empty_payload(da, namespace):
    with pytest.raises(ValueError):
        await BlobPoster(da, namespace).submit(b"")
    assert da.calls == []
