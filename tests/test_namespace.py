from datetime import datetime, timedelta, timezone

import pytest

from mtg_search.core.errors import AlreadyExistsError, NamespaceExistsError
from mtg_search.index.namespace import (
    allocate_namespace,
    ensure_namespace_absent,
    teardown_namespace,
)
from mtg_search.turbopuffer.client import TurbopufferError


CHECKSUM = "abcdef1234567890" * 4


class TestAllocateNamespace:

    def test_layout(self):
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert (
            allocate_namespace("test", CHECKSUM, now=now, prefix="prefix")
            == "prefix_test_20240102-030405_abcdef12"
        )

    def test_default_prefix(self):
        now = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert allocate_namespace("test", CHECKSUM, now=now) == "mtg_test_20240102-030405_abcdef12"

    def test_naive_time_is_utc(self):
        now = datetime(2024, 1, 2, 3, 4, 5)
        assert allocate_namespace("x", CHECKSUM, now=now).endswith("_20240102-030405_abcdef12")

    def test_aware_time_is_converted_to_utc(self):
        tz = timezone(timedelta(hours=2))
        now = datetime(2024, 1, 2, 5, 4, 5, 999999, tzinfo=tz)
        assert "_20240102-030405_" in allocate_namespace("x", CHECKSUM, now=now)

    def test_short_checksum_rejected(self):
        with pytest.raises(ValueError):
            allocate_namespace("x", "abc")


@pytest.mark.asyncio
async def test_ensure_absent_accepts_missing_namespace(fake_tpuf):
    await ensure_namespace_absent(fake_tpuf.client(), "mtg_new")

    assert [r.method for r in fake_tpuf.requests] == ["GET"]
    assert fake_tpuf.requests[0].url.path == "/v1/namespaces/mtg_new/metadata"


@pytest.mark.asyncio
async def test_ensure_absent_rejects_existing_namespace(fake_tpuf):
    fake_tpuf.namespaces["mtg_taken"] = {"created_at": "2024-01-02T03:04:05Z", "rows": []}

    with pytest.raises(NamespaceExistsError) as excinfo:
        await ensure_namespace_absent(fake_tpuf.client(), "mtg_taken")

    assert isinstance(excinfo.value, AlreadyExistsError)
    assert "2024-01-02T03:04:05Z" in str(excinfo.value)


@pytest.mark.asyncio
async def test_ensure_absent_propagates_other_failures(fake_tpuf):
    fake_tpuf.fail_status["metadata"] = 500

    with pytest.raises(TurbopufferError) as excinfo:
        await ensure_namespace_absent(fake_tpuf.client(), "mtg_new")

    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_teardown_deletes_namespace(fake_tpuf):
    fake_tpuf.namespaces["mtg_old"] = {"created_at": "2024-01-02T03:04:05Z", "rows": [{}]}

    assert await teardown_namespace(fake_tpuf.client(), "mtg_old") is True
    assert "mtg_old" not in fake_tpuf.namespaces


@pytest.mark.asyncio
async def test_teardown_is_idempotent(fake_tpuf):
    assert await teardown_namespace(fake_tpuf.client(), "mtg_gone") is False


@pytest.mark.asyncio
async def test_teardown_propagates_other_failures(fake_tpuf):
    fake_tpuf.fail_status["delete"] = 403

    with pytest.raises(TurbopufferError) as excinfo:
        await teardown_namespace(fake_tpuf.client(), "mtg_old")

    assert excinfo.value.status_code == 403
    assert "forced failure" in str(excinfo.value)
