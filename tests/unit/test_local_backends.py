"""Tests for the local content store, memory ledger and local signer."""

from __future__ import annotations

from pathlib import Path

import pytest

from certforge.bridge import ContentStore, LedgerClient, LedgerIndexer, WalletSigner
from certforge.bridge.local_signer import LocalSigner, account_address
from certforge.bridge.local_store import LocalContentStore
from certforge.bridge.memory_ledger import MemoryLedger
from certforge.core.arc19 import cid_for_bytes, is_valid_address
from certforge.core.errors import (
    LedgerError,
    SignatureRejectedError,
    UploadError,
    WalletConnectionError,
)
from certforge.core.hasher import canonical_json_bytes
from certforge.models.flow import UploadFile
from certforge.models.ledger import ObjectConfigTxn, ObjectCreateTxn, SignRequest


async def _create_object(ledger: MemoryLedger, signer: LocalSigner, reserve: str | None = None) -> int:
    txn = ObjectCreateTxn(
        sender=signer.address,
        params=await ledger.get_suggested_params(),
        asset_name="Obj",
        url="template-ipfs://x",
        manager=signer.address,
        reserve=reserve,
    )
    [signed] = await signer.sign([[SignRequest(txn=txn, signers=[signer.address])]])
    response = await ledger.submit_raw(signed)
    await ledger.wait_for_round(ledger.last_round + 1)
    record = await ledger.poll_confirmation(response.tx_id)
    return record["asset-index"]


class TestProtocols:
    def test_local_backends_satisfy_protocols(self, store, ledger, signer):
        assert isinstance(store, ContentStore)
        assert isinstance(ledger, LedgerClient)
        assert isinstance(ledger, LedgerIndexer)
        assert isinstance(signer, WalletSigner)


class TestLocalContentStore:
    def test_put_is_content_addressed(self, store: LocalContentStore):
        cid = store.put(b"data")
        assert cid == cid_for_bytes(b"data")
        assert store.get(cid) == b"data"
        assert store.put(b"data") == cid
        assert store.verify(cid)

    def test_missing_block(self, store: LocalContentStore):
        assert not store.exists(cid_for_bytes(b"nothing"))
        with pytest.raises(FileNotFoundError):
            store.get(cid_for_bytes(b"nothing"))

    @pytest.mark.asyncio
    async def test_upload_files(self, store: LocalContentStore):
        files = [UploadFile(name="a.txt", content=b"A"), UploadFile(name="b.txt", content=b"B")]
        result = await store.upload_files(files, {"name": "doc"})
        assert [loc.cid for loc in result.file_locators] == [cid_for_bytes(b"A"), cid_for_bytes(b"B")]
        assert result.metadata_url == f"ipfs://{result.content_locator}"
        stored = store.get(result.content_locator)
        assert b'"files_metadata"' in stored
        assert result.content_locator == cid_for_bytes(stored)

    @pytest.mark.asyncio
    async def test_upload_is_idempotent(self, store: LocalContentStore):
        files = [UploadFile(name="a.txt", content=b"A")]
        first = await store.upload_files(files, {"name": "doc"})
        second = await store.upload_files(files, {"name": "doc"})
        assert first == second

    @pytest.mark.asyncio
    async def test_injected_failures(self, tmp_dir: Path):
        store = LocalContentStore(tmp_dir / "s", fail_uploads=1)
        with pytest.raises(UploadError):
            await store.upload_files([], {})
        await store.upload_files([], {})
        assert store.upload_calls == 2


class TestLocalSigner:
    def test_account_address_is_valid(self):
        assert is_valid_address(account_address("seed"))

    @pytest.mark.asyncio
    async def test_detached_signer(self, ledger: MemoryLedger):
        signer = LocalSigner()
        assert signer.address is None
        with pytest.raises(WalletConnectionError):
            await signer.sign([])

    @pytest.mark.asyncio
    async def test_rejection_then_success(self, ledger: MemoryLedger, signer: LocalSigner):
        signer.reject_next = 1
        txn = ObjectCreateTxn(sender=signer.address, params=await ledger.get_suggested_params(), asset_name="x", url="u")
        request = [[SignRequest(txn=txn, signers=[signer.address])]]
        with pytest.raises(SignatureRejectedError):
            await signer.sign(request)
        [signed] = await signer.sign(request)
        assert signed == canonical_json_bytes({"signer": signer.address, "txn": txn.model_dump(mode="json")})

    @pytest.mark.asyncio
    async def test_wrong_signer_rejected(self, ledger: MemoryLedger, signer: LocalSigner):
        txn = ObjectCreateTxn(sender=signer.address, params=await ledger.get_suggested_params(), asset_name="x", url="u")
        with pytest.raises(SignatureRejectedError):
            await signer.sign([[SignRequest(txn=txn, signers=[account_address("other")])]])


class TestMemoryLedger:
    @pytest.mark.asyncio
    async def test_create_confirms_next_round(self, ledger: MemoryLedger, signer: LocalSigner):
        object_id = await _create_object(ledger, signer, reserve=account_address("r1"))
        state = await ledger.get_object_by_id(object_id)
        assert state.params.creator == signer.address
        assert state.params.reserve == account_address("r1")
        assert ledger.object_ids == [object_id]

    @pytest.mark.asyncio
    async def test_pending_until_round(self, ledger: MemoryLedger, signer: LocalSigner):
        txn = ObjectCreateTxn(sender=signer.address, params=await ledger.get_suggested_params(), asset_name="x", url="u")
        [signed] = await signer.sign([[SignRequest(txn=txn, signers=[signer.address])]])
        response = await ledger.submit_raw(signed)
        assert (await ledger.poll_confirmation(response.tx_id))["confirmed-round"] == 0
        with pytest.raises(LedgerError, match="already submitted"):
            await ledger.submit_raw(signed)

    @pytest.mark.asyncio
    async def test_config_requires_manager(self, ledger: MemoryLedger, signer: LocalSigner):
        object_id = await _create_object(ledger, signer)
        other = LocalSigner.from_seed("intruder")
        txn = ObjectConfigTxn(
            sender=other.address,
            params=await ledger.get_suggested_params(),
            object_id=object_id,
            manager=other.address,
        )
        [signed] = await other.sign([[SignRequest(txn=txn, signers=[other.address])]])
        with pytest.raises(LedgerError, match="manager"):
            await ledger.submit_raw(signed)

    @pytest.mark.asyncio
    async def test_history_records_reserve_changes(self, ledger: MemoryLedger, signer: LocalSigner):
        r1, r2 = account_address("r1"), account_address("r2")
        object_id = await _create_object(ledger, signer, reserve=r1)
        txn = ObjectConfigTxn(
            sender=signer.address,
            params=await ledger.get_suggested_params(),
            object_id=object_id,
            manager=signer.address,
            reserve=r2,
        )
        [signed] = await signer.sign([[SignRequest(txn=txn, signers=[signer.address])]])
        await ledger.submit_raw(signed)
        await ledger.wait_for_round(ledger.last_round + 1)

        history = await ledger.object_config_history(object_id)
        reserves = [h["asset-config-transaction"]["params"]["reserve"] for h in history]
        assert reserves == [r1, r2]
        assert history[0]["round-time"] < history[1]["round-time"]

    @pytest.mark.asyncio
    async def test_dropped_transaction_reports_pool_error(self, ledger: MemoryLedger, signer: LocalSigner):
        ledger.drop_next = 1
        txn = ObjectCreateTxn(sender=signer.address, params=await ledger.get_suggested_params(), asset_name="x", url="u")
        [signed] = await signer.sign([[SignRequest(txn=txn, signers=[signer.address])]])
        response = await ledger.submit_raw(signed)
        record = await ledger.poll_confirmation(response.tx_id)
        assert record["pool-error"]

    @pytest.mark.asyncio
    async def test_unknown_object(self, ledger: MemoryLedger):
        with pytest.raises(LedgerError):
            await ledger.get_object_by_id(42)
