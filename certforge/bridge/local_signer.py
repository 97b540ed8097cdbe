"""Local wallet signer for development and tests.

Produces signed envelopes that ``MemoryLedger`` accepts: canonical JSON of
the transaction descriptor plus the signing address.  There is no real
cryptography here; the envelope only proves which account approved the
transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from certforge.core.arc19 import encode_address
from certforge.core.errors import SignatureRejectedError, WalletConnectionError
from certforge.core.hasher import canonical_json_bytes, sha256_digest
from certforge.models.ledger import SignRequest

logger = logging.getLogger(__name__)


def account_address(seed: str) -> str:
    """Derive a well-formed account address from a seed string."""
    return encode_address(sha256_digest(seed.encode("utf-8")))


class LocalSigner:
    """A single-account signer that can be attached and detached.

    ``reject_next`` and ``disconnect_next`` make the next N sign calls fail
    as a user rejection or a dropped connection respectively.
    """

    def __init__(self, address: str | None = None) -> None:
        self._address = address
        self.reject_next = 0
        self.disconnect_next = 0
        self.sign_calls = 0

    @classmethod
    def from_seed(cls, seed: str) -> LocalSigner:
        return cls(account_address(seed))

    @property
    def address(self) -> str | None:
        return self._address

    def attach(self, address: str) -> None:
        self._address = address
        logger.info("Signer attached: %s", address)

    def detach(self) -> None:
        logger.info("Signer detached")
        self._address = None

    async def sign(self, groups: Sequence[Sequence[SignRequest]]) -> list[bytes]:
        self.sign_calls += 1
        if self._address is None:
            raise WalletConnectionError("No account connected to signer")
        if self.reject_next > 0:
            self.reject_next -= 1
            raise SignatureRejectedError()
        if self.disconnect_next > 0:
            self.disconnect_next -= 1
            raise WalletConnectionError()

        signed: list[bytes] = []
        for group in groups:
            for request in group:
                if self._address not in request.signers:
                    raise SignatureRejectedError(
                        f"Transaction requires signers {request.signers}, "
                        f"connected account is {self._address}"
                    )
                signed.append(
                    canonical_json_bytes(
                        {"signer": self._address, "txn": request.txn.model_dump(mode="json")}
                    )
                )
        return signed
