"""Confirmation polling and created-object-id extraction.

``wait_for_confirmation`` is a bounded busy-wait: poll the pending record,
and if it is not yet confirmed wait for the next round and try again.
It gives up after ``max_rounds`` rounds, or earlier if a wall-clock
deadline is given.

Confirmation records from different ledger client versions spell the
created object id differently.  ``OBJECT_ID_STRATEGIES`` lists every
supported shape as a pure extractor, tried in order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from certforge.bridge.protocols import LedgerClient
from certforge.core.errors import ConfirmationTimeoutError, TransactionRejectedError

logger = logging.getLogger(__name__)

ConfirmationRecord = dict[str, Any]
IdExtractor = Callable[[ConfirmationRecord], int | None]


def confirmed_round(record: ConfirmationRecord) -> int:
    """Return the confirmed round of *record*, or 0 while pending."""
    value = record.get("confirmed-round") or record.get("confirmedRound") or 0
    return int(value)


async def _poll(
    ledger: LedgerClient, tx_id: str, max_rounds: int
) -> ConfirmationRecord:
    status = await ledger.status()
    current_round = int(status.get("last-round", 0))
    for _ in range(max_rounds):
        record = await ledger.poll_confirmation(tx_id)
        if record.get("pool-error"):
            raise TransactionRejectedError(
                f"Transaction {tx_id} rejected: {record['pool-error']}",
                tx_id=tx_id,
            )
        if confirmed_round(record) > 0:
            return record
        current_round += 1
        await ledger.wait_for_round(current_round)
    raise ConfirmationTimeoutError(
        f"Transaction {tx_id} not confirmed after {max_rounds} rounds",
        tx_id=tx_id,
    )


async def wait_for_confirmation(
    ledger: LedgerClient,
    tx_id: str,
    *,
    max_rounds: int = 10,
    timeout_seconds: float | None = None,
) -> ConfirmationRecord:
    """Wait until *tx_id* is confirmed and return its confirmation record.

    Raises ``ConfirmationTimeoutError`` when the round budget or the
    deadline runs out, and ``TransactionRejectedError`` if the ledger drops the
    transaction from its pool.
    """
    logger.debug("Waiting for confirmation of %s (max_rounds=%d)", tx_id, max_rounds)
    if timeout_seconds is None:
        return await _poll(ledger, tx_id, max_rounds)
    try:
        return await asyncio.wait_for(_poll(ledger, tx_id, max_rounds), timeout_seconds)
    except asyncio.TimeoutError:
        raise ConfirmationTimeoutError(
            f"Transaction {tx_id} not confirmed within {timeout_seconds}s",
            tx_id=tx_id,
        ) from None


# ---------------------------------------------------------------------------
# Created object id extraction
# ---------------------------------------------------------------------------


def _as_id(value: Any) -> int | None:
    if value is None or value == "" or value == 0:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _top_level(field: str) -> IdExtractor:
    def extract(record: ConfirmationRecord) -> int | None:
        return _as_id(record.get(field))

    extract.__name__ = f"top_level[{field}]"
    return extract


def _nested_txn(field: str) -> IdExtractor:
    def extract(record: ConfirmationRecord) -> int | None:
        inner = (record.get("txn") or {}).get("txn") or {}
        return _as_id(inner.get(field))

    extract.__name__ = f"txn.txn[{field}]"
    return extract


OBJECT_ID_STRATEGIES: list[IdExtractor] = [
    _top_level("asset-index"),
    _top_level("created-asset-index"),
    _top_level("assetIndex"),
    _top_level("createdAssetIndex"),
    _nested_txn("created-asset-index"),
    _nested_txn("asset-index"),
]


def extract_created_object_id(
    record: ConfirmationRecord,
    strategies: list[IdExtractor] | None = None,
) -> int | None:
    """Try each strategy in order and return the first id found."""
    for strategy in strategies or OBJECT_ID_STRATEGIES:
        object_id = strategy(record)
        if object_id is not None:
            logger.debug("Created object id %d found via %s", object_id, strategy.__name__)
            return object_id
    return None
