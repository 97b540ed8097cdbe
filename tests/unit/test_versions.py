"""Tests for the version history resolver."""

from __future__ import annotations

import hashlib

import pytest

from certforge.core import versions
from certforge.core.arc19 import address_to_cid, encode_address
from certforge.models.versions import TxMeta


def _address(label: str) -> str:
    return encode_address(hashlib.sha256(label.encode()).digest())


A = _address("a")
B = _address("b")
BROKEN = "B" + encode_address(bytes(32))[1:]


class FakeIndexer:
    def __init__(self, history: list[dict]) -> None:
        self.history = history

    async def object_config_history(self, object_id: int) -> list[dict]:
        return list(self.history)


class TestResolve:
    def test_empty(self):
        assert versions.resolve([]) == []

    def test_order_and_ordinals_follow_input(self):
        records = versions.resolve([A, B, A])
        assert [r.ordinal for r in records] == [1, 2, 3]
        assert [r.address for r in records] == [A, B, A]

    def test_first_is_initial_creation(self):
        records = versions.resolve([A])
        assert records[0].change_description == [versions.INITIAL_CREATION]
        assert records[0].cid == address_to_cid(A)
        assert records[0].gateway_url.startswith(f"https://{records[0].cid}")

    def test_same_reference(self):
        records = versions.resolve([A, A])
        assert records[1].change_description == [versions.SAME_REFERENCE]

    def test_changed_reference_qualifier(self):
        records = versions.resolve([A, B])
        old, new = address_to_cid(A), address_to_cid(B)
        assert records[1].change_description == [
            versions.REFERENCE_CHANGED,
            f"reference updated: {old[:10]}... -> {new[:10]}...",
        ]

    def test_undecodable_entry_does_not_abort(self):
        records = versions.resolve([A, BROKEN, B])
        assert len(records) == 3
        assert records[1].cid is None
        assert records[1].decode_error
        assert not records[1].decodable
        assert records[1].change_description == [versions.REFERENCE_CHANGED, versions.REFERENCE_LOST]
        assert records[2].change_description == [versions.REFERENCE_CHANGED, versions.REFERENCE_ADDED]

    def test_empty_address_records_error(self):
        records = versions.resolve([""])
        assert records[0].decode_error == "Empty reserve address"

    def test_metadata_lookup_and_placeholder(self):
        meta = {A: TxMeta(transaction_id="TX-A", timestamp=1700000000)}
        records = versions.resolve([A, B], meta)
        assert records[0].source_transaction_id == "TX-A"
        assert records[0].timestamp == 1700000000
        assert records[1].source_transaction_id == "unknown-1"
        assert records[1].timestamp is None

    def test_path_gateway(self):
        records = versions.resolve([A], gateway="gw.example")
        assert records[0].gateway_url == f"https://gw.example/ipfs/{records[0].cid}"


class TestTxMeta:
    @pytest.mark.parametrize("field", ["round-time", "roundTime", "confirmed-round", "confirmedRound"])
    def test_timestamp_spellings(self, field: str):
        meta = TxMeta.from_record({"id": "TX", field: 42})
        assert meta.transaction_id == "TX"
        assert meta.timestamp == 42

    def test_round_time_preferred(self):
        meta = TxMeta.from_record({"id": "TX", "round-time": 7, "confirmed-round": 3})
        assert meta.timestamp == 7

    def test_missing_timestamp(self):
        assert TxMeta.from_record({"id": "TX"}).timestamp is None


class TestResolveObjectHistory:
    @pytest.mark.asyncio
    async def test_reads_reserve_params_in_order(self):
        indexer = FakeIndexer(
            [
                {"id": "T1", "round-time": 10, "asset-config-transaction": {"params": {"reserve": A}}},
                {"id": "T2", "round-time": 20, "asset-config-transaction": {"params": {"manager": A}}},
                {"id": "T3", "roundTime": 30, "assetConfigTransaction": {"params": {"reserve": B}}},
            ]
        )
        records = await versions.resolve_object_history(indexer, 7)
        assert [r.address for r in records] == [A, B]
        assert [r.source_transaction_id for r in records] == ["T1", "T3"]
        assert [r.timestamp for r in records] == [10, 30]

    @pytest.mark.asyncio
    async def test_repeated_address_keeps_first_metadata(self):
        indexer = FakeIndexer(
            [
                {"id": "T1", "asset-config-transaction": {"params": {"reserve": A}}},
                {"id": "T2", "asset-config-transaction": {"params": {"reserve": A}}},
            ]
        )
        records = await versions.resolve_object_history(indexer, 7)
        assert [r.source_transaction_id for r in records] == ["T1", "T1"]
        assert records[1].change_description == [versions.SAME_REFERENCE]
