"""Error taxonomy for the codec and the certification flow.

Two families:

- ``CodecError``: input format errors raised synchronously by the pure
  codec.  Never retried automatically; surfaced verbatim.
- ``FlowStepError``: failures inside a flow step.  Every error carries
  the ``step_id`` that owns it, so attribution is structural rather than
  inferred from message text.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Codec errors
# ---------------------------------------------------------------------------


class CodecError(ValueError):
    """Base class for CID / address format errors."""


class InvalidDigestLength(CodecError):
    """Raised when a digest is not exactly 32 bytes."""


class UnsupportedCidFormat(CodecError):
    """Raised when a CID parses but is not CIDv1 / raw / sha2-256."""


class MalformedCid(CodecError):
    """Raised when a CID string cannot be parsed at all."""


class InvalidAddressLength(CodecError):
    """Raised when an address is not exactly 58 characters."""


class InvalidAddressChecksum(CodecError):
    """Raised when an address checksum does not match its payload."""


class InvalidBase32Character(CodecError):
    """Raised when base32 input contains a character outside the alphabet."""

    def __init__(self, char: str) -> None:
        super().__init__(f"Invalid base32 character: {char!r}")
        self.char = char


class NonCanonicalBase32(CodecError):
    """Raised when base32 input has a dangling symbol or non-zero pad bits."""


# ---------------------------------------------------------------------------
# Flow errors
# ---------------------------------------------------------------------------


class FlowStateError(RuntimeError):
    """Raised when the orchestrator API is used out of order.

    Examples: retrying a step that has not failed, cancelling while a step
    is active, retrying with no session.
    """


class FlowStepError(RuntimeError):
    """A failure owned by a specific flow step."""

    step_id: str = ""

    def __init__(self, message: str, *, step_id: str | None = None) -> None:
        super().__init__(message)
        if step_id is not None:
            self.step_id = step_id


class WalletNotConnectedError(FlowStepError):
    """No signer is attached.  Requires external remediation before retry."""

    step_id = "wallet-check"


class UploadError(FlowStepError):
    """The content store rejected or failed the upload."""

    step_id = "upload"


class ConversionError(FlowStepError):
    """The uploaded content locator could not be converted to an address."""

    step_id = "address-conversion"


class LedgerError(FlowStepError):
    """A ledger-side failure, tagged with the phase it happened in.

    Phases: ``build``, ``params``, ``fetch``, ``sign``, ``submit``, ``confirm``,
    ``extract``.
    """

    def __init__(
        self, message: str, *, phase: str, step_id: str | None = None
    ) -> None:
        super().__init__(message, step_id=step_id)
        self.phase = phase


class SignatureRejectedError(LedgerError):
    """The wallet user declined to sign."""

    def __init__(self, message: str = "Signature request rejected by user", *, step_id: str | None = None) -> None:
        super().__init__(message, phase="sign", step_id=step_id)


class WalletConnectionError(LedgerError):
    """The wallet connection dropped while a signature was pending."""

    def __init__(self, message: str = "Wallet connection lost", *, step_id: str | None = None) -> None:
        super().__init__(message, phase="sign", step_id=step_id)


class ConfirmationTimeoutError(LedgerError):
    """A submitted transaction was not confirmed within the polling budget."""

    def __init__(self, message: str, *, tx_id: str, step_id: str | None = None) -> None:
        super().__init__(message, phase="confirm", step_id=step_id)
        self.tx_id = tx_id


class TransactionRejectedError(LedgerError):
    """The ledger dropped a submitted transaction from its pool.

    The only confirm-phase failure after which the transaction can no
    longer land, so the only one that allows building a replacement.
    """

    def __init__(self, message: str, *, tx_id: str, step_id: str | None = None) -> None:
        super().__init__(message, phase="confirm", step_id=step_id)
        self.tx_id = tx_id
