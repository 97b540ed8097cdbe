"""In-memory ledger for development and tests.

Implements both ``LedgerClient`` and ``LedgerIndexer``.  Rounds only
advance when a caller waits for one, so tests control time exactly:
a transaction submitted in round ``r`` confirms when round
``r + confirm_after_rounds`` is produced.

Failure injection knobs:

- ``fail_submits``: fail the next N ``submit_raw`` calls
- ``drop_next``: evict the next N submitted transactions from the pool
- ``stalled``: produce rounds without confirming anything
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any

from certforge.core.errors import LedgerError
from certforge.core.hasher import transaction_id
from certforge.models.ledger import (
    ObjectConfigTxn,
    ObjectCreateTxn,
    ObjectParams,
    ObjectState,
    SubmitResponse,
    SuggestedParams,
)

logger = logging.getLogger(__name__)

_ADDRESS_FIELDS = ("manager", "reserve", "freeze", "clawback")


class MemoryLedger:
    """Single-node ledger simulation with an object registry.

    Parameters
    ----------
    start_round:
        Round number the ledger starts at.
    confirm_after_rounds:
        Rounds between submission and confirmation.
    round_seconds:
        Simulated seconds per round, used for ``round-time``.
    """

    def __init__(
        self,
        *,
        start_round: int = 1000,
        confirm_after_rounds: int = 1,
        round_seconds: int = 4,
        genesis_id: str = "localnet-v1",
        genesis_time: int = 1_700_000_000,
    ) -> None:
        self.last_round = start_round
        self.confirm_after_rounds = confirm_after_rounds
        self.round_seconds = round_seconds
        self.genesis_id = genesis_id
        self._genesis_time = genesis_time - start_round * round_seconds

        self.fail_submits = 0
        self.drop_next = 0
        self.stalled = False
        self.submit_calls = 0
        self.submitted_ids: list[str] = []

        self._pending: dict[str, tuple[int, dict[str, Any]]] = {}
        self._confirmed: dict[str, dict[str, Any]] = {}
        self._rejected: dict[str, str] = {}
        self._objects: dict[int, ObjectParams] = {}
        self._history: dict[int, list[dict[str, Any]]] = {}
        self._next_object_id = 1001

    def round_time(self, round_number: int) -> int:
        return self._genesis_time + round_number * self.round_seconds

    @property
    def object_ids(self) -> list[int]:
        """Ids of every object created so far, in creation order."""
        return sorted(self._objects)

    # ------------------------------------------------------------------
    # LedgerClient protocol
    # ------------------------------------------------------------------

    async def get_suggested_params(self) -> SuggestedParams:
        return SuggestedParams(
            first_valid=self.last_round,
            last_valid=self.last_round + 1000,
            genesis_id=self.genesis_id,
        )

    async def status(self) -> dict[str, Any]:
        return {"last-round": self.last_round, "time-since-last-round": 0}

    async def wait_for_round(self, round_number: int) -> dict[str, Any]:
        while self.last_round < round_number:
            self._produce_round()
        return await self.status()

    async def submit_raw(self, signed: bytes) -> SubmitResponse:
        self.submit_calls += 1
        if self.fail_submits > 0:
            self.fail_submits -= 1
            raise LedgerError("Node unavailable (simulated)", phase="submit")

        try:
            envelope = json.loads(signed)
            signer = envelope["signer"]
            txn = envelope["txn"]
        except (ValueError, KeyError, TypeError) as exc:
            raise LedgerError(f"Malformed signed transaction: {exc}", phase="submit") from exc

        self._validate(signer, txn)
        tx_id = transaction_id(txn)
        if tx_id in self._confirmed or tx_id in self._pending:
            raise LedgerError(f"Transaction {tx_id} already submitted", phase="submit")

        self._rejected.pop(tx_id, None)
        self.submitted_ids.append(tx_id)
        if self.drop_next > 0:
            self.drop_next -= 1
            self._rejected[tx_id] = "transaction evicted from pool"
            logger.info("Dropped transaction %s", tx_id)
        else:
            self._pending[tx_id] = (self.last_round, txn)
            logger.info("Accepted %s transaction %s in round %d", txn["type"], tx_id, self.last_round)
        return SubmitResponse(tx_id=tx_id)

    async def poll_confirmation(self, tx_id: str) -> dict[str, Any]:
        if tx_id in self._confirmed:
            return copy.deepcopy(self._confirmed[tx_id])
        if tx_id in self._rejected:
            return {"confirmed-round": 0, "pool-error": self._rejected[tx_id]}
        if tx_id in self._pending:
            return {"confirmed-round": 0, "pool-error": "", "txn": {"txn": copy.deepcopy(self._pending[tx_id][1])}}
        raise LedgerError(f"Transaction {tx_id} not found", phase="confirm")

    async def get_object_by_id(self, object_id: int) -> ObjectState:
        params = self._objects.get(object_id)
        if params is None:
            raise LedgerError(f"Object {object_id} does not exist", phase="fetch")
        return ObjectState(index=object_id, params=params)

    # ------------------------------------------------------------------
    # LedgerIndexer protocol
    # ------------------------------------------------------------------

    async def object_config_history(self, object_id: int) -> list[dict[str, Any]]:
        return copy.deepcopy(self._history.get(object_id, []))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, signer: str, txn: dict[str, Any]) -> None:
        if signer != txn.get("sender"):
            raise LedgerError("Transaction not signed by its sender", phase="submit")
        last_valid = txn.get("params", {}).get("last_valid", 0)
        if last_valid < self.last_round:
            raise LedgerError(
                f"Transaction expired: last_valid {last_valid} < round {self.last_round}",
                phase="submit",
            )
        if txn.get("type") == "object-config":
            current = self._objects.get(txn.get("object_id"))
            if current is None:
                raise LedgerError(f"Object {txn.get('object_id')} does not exist", phase="submit")
            if current.manager is None:
                raise LedgerError(f"Object {txn['object_id']} is immutable", phase="submit")
            if current.manager != signer:
                raise LedgerError(
                    f"Only the manager may reconfigure object {txn['object_id']}",
                    phase="submit",
                )

    def _produce_round(self) -> None:
        self.last_round += 1
        if self.stalled:
            return
        ready = [
            tx_id
            for tx_id, (submitted, _) in self._pending.items()
            if submitted + self.confirm_after_rounds <= self.last_round
        ]
        for tx_id in ready:
            _, txn = self._pending.pop(tx_id)
            self._confirm(tx_id, txn)

    def _confirm(self, tx_id: str, txn: dict[str, Any]) -> None:
        record: dict[str, Any] = {
            "confirmed-round": self.last_round,
            "pool-error": "",
            "txn": {"txn": txn},
        }
        if txn["type"] == "object-create":
            object_id = self._next_object_id
            self._next_object_id += 1
            created = ObjectCreateTxn.model_validate(txn)
            params = ObjectParams(
                creator=created.sender,
                total=created.total,
                decimals=created.decimals,
                default_frozen=created.default_frozen,
                name=created.asset_name,
                unit_name=created.unit_name,
                url=created.url,
                manager=created.manager,
                reserve=created.reserve,
                freeze=created.freeze,
                clawback=created.clawback,
            )
            record["asset-index"] = object_id
        else:
            config = ObjectConfigTxn.model_validate(txn)
            object_id = config.object_id
            params = self._objects[object_id].model_copy(
                update={field: getattr(config, field) for field in _ADDRESS_FIELDS}
            )

        self._objects[object_id] = params
        self._confirmed[tx_id] = record
        self._history.setdefault(object_id, []).append(
            {
                "id": tx_id,
                "confirmed-round": self.last_round,
                "round-time": self.round_time(self.last_round),
                "sender": txn["sender"],
                "asset-config-transaction": {
                    "asset-id": object_id,
                    "params": {
                        field: value
                        for field in _ADDRESS_FIELDS
                        if (value := getattr(params, field)) is not None
                    },
                },
            }
        )
        logger.info("Confirmed %s in round %d (object %d)", tx_id, self.last_round, object_id)
