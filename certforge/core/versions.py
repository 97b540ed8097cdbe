"""Version history resolver.

Rebuilds an object's version chain from the reserve addresses it has
carried, in ledger order.  Each address is decoded back to a CID through
the ARC-19 codec.  An undecodable entry degrades to a record carrying the
error text; it never aborts the rest of the history.

The resolver never sorts.  Output order is input order (ascending ledger
order); newest-first display is the caller's business.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from certforge.core.arc19 import address_to_cid, gateway_url
from certforge.core.errors import CodecError
from certforge.models.versions import TxMeta, VersionRecord

if TYPE_CHECKING:
    from certforge.bridge.protocols import LedgerIndexer

logger = logging.getLogger(__name__)

INITIAL_CREATION = "initial creation"
SAME_REFERENCE = "configuration updated, same content reference"
REFERENCE_CHANGED = "content reference changed"
REFERENCE_ADDED = "reference added (previously undecodable)"
REFERENCE_LOST = "reference became undecodable"


def _decode(address: str) -> tuple[str | None, str | None]:
    """Return ``(cid, None)`` on success or ``(None, error)`` on failure."""
    if not address:
        return None, "Empty reserve address"
    try:
        return address_to_cid(address), None
    except CodecError as exc:
        return None, str(exc)


def describe_change(
    current: str,
    previous: str,
    current_cid: str | None,
    previous_cid: str | None,
) -> list[str]:
    """Describe what changed between two consecutive reserve addresses."""
    if current == previous:
        return [SAME_REFERENCE]

    changes = [REFERENCE_CHANGED]
    if current_cid and previous_cid:
        changes.append(f"reference updated: {previous_cid[:10]}... -> {current_cid[:10]}...")
    elif current_cid and not previous_cid:
        changes.append(REFERENCE_ADDED)
    elif previous_cid and not current_cid:
        changes.append(REFERENCE_LOST)
    return changes


def resolve(
    addresses: Sequence[str],
    metadata_by_address: Mapping[str, TxMeta] | None = None,
    *,
    gateway: str | None = None,
) -> list[VersionRecord]:
    """Map each historical reserve address to a ``VersionRecord``.

    Parameters
    ----------
    addresses:
        Reserve addresses in ascending ledger order.
    metadata_by_address:
        Transaction metadata keyed by address.  Missing entries get a
        placeholder transaction id.
    gateway:
        Optional gateway host for the ``gateway_url`` of each record.
    """
    metadata_by_address = metadata_by_address or {}
    decoded = [_decode(address) for address in addresses]

    records: list[VersionRecord] = []
    for i, address in enumerate(addresses):
        cid, error = decoded[i]
        meta = metadata_by_address.get(address)

        if i == 0:
            changes = [INITIAL_CREATION]
        else:
            changes = describe_change(address, addresses[i - 1], cid, decoded[i - 1][0])

        if error is not None:
            logger.debug("Version %d address %r undecodable: %s", i + 1, address, error)

        records.append(
            VersionRecord(
                ordinal=i + 1,
                source_transaction_id=meta.transaction_id if meta else f"unknown-{i}",
                timestamp=meta.timestamp if meta else None,
                address=address,
                cid=cid,
                gateway_url=gateway_url(cid, gateway) if cid else None,
                decode_error=error,
                change_description=changes,
            )
        )
    return records


async def resolve_object_history(
    indexer: LedgerIndexer,
    object_id: int,
    *,
    gateway: str | None = None,
) -> list[VersionRecord]:
    """Fetch an object's configuration history and resolve it.

    Transactions without reserve params are skipped.  When the same
    address appears more than once, the metadata of its first appearance
    is used.
    """
    history = await indexer.object_config_history(object_id)

    addresses: list[str] = []
    metadata: dict[str, TxMeta] = {}
    for record in history:
        params = (
            record.get("asset-config-transaction")
            or record.get("assetConfigTransaction")
            or {}
        ).get("params") or {}
        reserve = params.get("reserve")
        if reserve is None:
            continue
        addresses.append(reserve)
        metadata.setdefault(reserve, TxMeta.from_record(record))

    logger.info("Resolved %d reserve versions for object %d", len(addresses), object_id)
    return resolve(addresses, metadata, gateway=gateway)
