"""Collaborator protocols and the local development backends."""

from certforge.bridge.local_signer import LocalSigner, account_address
from certforge.bridge.local_store import BlockIntegrityError, LocalContentStore
from certforge.bridge.memory_ledger import MemoryLedger
from certforge.bridge.protocols import (
    ContentStore,
    LedgerClient,
    LedgerIndexer,
    WalletSigner,
)

__all__ = [
    "ContentStore",
    "LedgerClient",
    "LedgerIndexer",
    "WalletSigner",
    "LocalContentStore",
    "BlockIntegrityError",
    "MemoryLedger",
    "LocalSigner",
    "account_address",
]
