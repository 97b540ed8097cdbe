"""Certification workflow orchestrator.

Drives a fixed, ordered sequence of steps per flow type::

    certification: wallet-check -> upload -> address-conversion
                   -> object-create -> object-configure
    versioning:    wallet-check -> upload -> address-conversion
                   -> object-configure

Each run lives in its own ``FlowSession``: the step machine, the
accumulating ``FlowContext`` and the inputs.  A failed step halts the
sequence and leaves the context as it was; ``retry_step`` re-executes only
the failed step with that context and then continues.  Nothing already
uploaded, converted or confirmed on the ledger is redone.

No exception escapes ``run_flow`` or ``retry_step`` other than
``FlowStateError`` for API misuse.  Every failure ends up as an ERROR
step carrying a readable message.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from certforge.bridge.protocols import ContentStore, LedgerClient, WalletSigner
from certforge.core.arc19 import address_to_cid, cid_to_address, gateway_url
from certforge.core.confirmation import (
    confirmed_round,
    extract_created_object_id,
    wait_for_confirmation,
)
from certforge.core.errors import (
    CodecError,
    ConversionError,
    FlowStateError,
    FlowStepError,
    LedgerError,
    TransactionRejectedError,
    UploadError,
    WalletNotConnectedError,
)
from certforge.core.metadata import build_metadata_document
from certforge.core.step_machine import StepMachine
from certforge.models.flow import (
    CertificationParams,
    FlowContext,
    FlowOptions,
    FlowResult,
    VersioningParams,
)
from certforge.models.ledger import (
    ObjectConfigTxn,
    ObjectCreateTxn,
    SignRequest,
    SuggestedParams,
)
from certforge.models.steps import (
    ADDRESS_CONVERSION,
    FLOW_PLANS,
    OBJECT_CONFIGURE,
    OBJECT_CREATE,
    UPLOAD,
    WALLET_CHECK,
    FlowStep,
    FlowType,
    StepState,
)

logger = logging.getLogger(__name__)

SessionListener = Callable[["FlowSession", "FlowStep | None"], None]


# ---------------------------------------------------------------------------
# Failure attribution
# ---------------------------------------------------------------------------

_UPLOAD_VOCABULARY = ("upload", "ipfs", "content store", "pin")
_CONVERSION_VOCABULARY = ("cid", "conversion", "base32", "reserve address")


def classify_failure(message: str, last_active: str | None) -> str | None:
    """Best-effort guess at which step an untagged error message belongs to.

    Upload vocabulary maps to ``upload``, conversion vocabulary to
    ``address-conversion``, anything else to *last_active*.
    """
    text = message.lower()
    if any(word in text for word in _UPLOAD_VOCABULARY):
        return UPLOAD
    if any(word in text for word in _CONVERSION_VOCABULARY):
        return ADDRESS_CONVERSION
    return last_active


def attribute_failure(exc: BaseException, session: FlowSession) -> str | None:
    """Return the step that owns *exc*.

    Tagged ``FlowStepError``s carry their step.  Untagged exceptions fall
    back to ``classify_failure`` against the last step that went active.
    """
    if isinstance(exc, FlowStepError) and exc.step_id in session.step_ids:
        return exc.step_id
    return classify_failure(str(exc), session.last_active_step)


def _tag(exc: FlowStepError, step_id: str) -> FlowStepError:
    exc.step_id = step_id
    return exc


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class FlowSession:
    """State of one flow run.

    Owned by the caller through the orchestrator; nothing here is shared
    between sessions.

    Attributes
    ----------
    context:
        Data gathered by successful steps.
    submitted:
        Transaction ids submitted by steps that have not succeeded yet,
        keyed by step id.  An id stays here after confirmation until its
        step finishes, so a retry re-reads it instead of submitting again.
    result:
        The final ``FlowResult`` once every step succeeded.
    """

    def __init__(
        self,
        flow_type: FlowType,
        params: CertificationParams | VersioningParams,
        *,
        listener: SessionListener | None = None,
    ) -> None:
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        self.session_id = f"flow-{ts}-{uuid.uuid4().hex[:6]}"
        self.flow_type = flow_type
        self.params = params
        self.context = FlowContext()
        self.submitted: dict[str, str] = {}
        self.result: FlowResult | None = None
        self.cancelled = False
        self.last_active_step: str | None = None
        self._listener = listener
        self.machine = StepMachine(FLOW_PLANS[flow_type], listener=self._on_step)

    def _on_step(self, step: FlowStep) -> None:
        if step.state == StepState.ACTIVE:
            self.last_active_step = step.id
        self.notify(step)

    def notify(self, step: FlowStep | None = None) -> None:
        if self._listener is None:
            return
        try:
            self._listener(self, step)
        except Exception:
            logger.exception("Flow listener failed for session %s", self.session_id)

    @property
    def step_ids(self) -> list[str]:
        return self.machine.step_ids

    @property
    def steps(self) -> list[FlowStep]:
        return self.machine.steps()

    @property
    def failed_step(self) -> str | None:
        return self.machine.failed_step

    @property
    def active_step(self) -> str | None:
        return self.machine.active_step

    @property
    def is_complete(self) -> bool:
        return self.machine.is_complete

    def merge(self, updates: dict[str, Any]) -> None:
        """Fill empty context fields from *updates*; filled fields are kept."""
        current = self.context.model_dump()
        fresh = {k: v for k, v in updates.items() if current.get(k) is None}
        if fresh:
            self.context = self.context.model_copy(update=fresh)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


StepOutcome = tuple[dict[str, Any], str]


class CertificationOrchestrator:
    """Runs certification and versioning flows against its collaborators.

    Parameters
    ----------
    store:
        Content store for files and the metadata document.
    ledger:
        Ledger client used to build, submit and confirm transactions.
    signer:
        Wallet signer bound to the account that owns the objects.
    options:
        Template locator, gateway, explorer and polling budget.
    listener:
        Optional progress callback, invoked with ``(session, step)`` on
        every step change and with ``(session, None)`` when a session opens.
    """

    def __init__(
        self,
        store: ContentStore,
        ledger: LedgerClient,
        signer: WalletSigner,
        *,
        options: FlowOptions | None = None,
        listener: SessionListener | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.signer = signer
        self.options = options or FlowOptions()
        self._listener = listener
        self.session: FlowSession | None = None

        self._handlers: dict[str, Callable[[FlowSession], Awaitable[StepOutcome]]] = {
            WALLET_CHECK: self._wallet_check,
            UPLOAD: self._upload,
            ADDRESS_CONVERSION: self._address_conversion,
            OBJECT_CREATE: self._object_create,
            OBJECT_CONFIGURE: self._object_configure,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_flow(
        self,
        flow_type: FlowType | str,
        params: CertificationParams | VersioningParams,
    ) -> FlowSession:
        """Start a new flow and run it until it completes or a step fails."""
        flow_type = FlowType(flow_type)
        expected = CertificationParams if flow_type == FlowType.CERTIFICATION else VersioningParams
        if not isinstance(params, expected):
            raise FlowStateError(
                f"{flow_type.value} flow requires {expected.__name__}, got {type(params).__name__}"
            )
        if self.session is not None and self.session.active_step is not None:
            raise FlowStateError(
                f"Session {self.session.session_id} is still running step {self.session.active_step}"
            )

        session = FlowSession(flow_type, params, listener=self._listener)
        self.session = session
        logger.info("Starting %s flow %s", flow_type.value, session.session_id)
        session.notify(None)

        await self._run_from(session, session.step_ids[0])
        return session

    async def retry_step(self, step_id: str) -> FlowSession:
        """Re-execute the failed *step_id* and continue with later steps.

        Earlier steps are not re-run; their context is reused as-is.
        """
        session = self.session
        if session is None:
            raise FlowStateError("No flow session to retry")
        if session.active_step is not None:
            raise FlowStateError(f"Step {session.active_step} is still active")
        state = session.machine.get_state(step_id)
        if state != StepState.ERROR:
            raise FlowStateError(
                f"Only a failed step can be retried; {step_id} is {state.value}"
            )

        logger.warning("Retrying step %s of flow %s", step_id, session.session_id)
        session.machine.reset_from(step_id)
        await self._run_from(session, step_id)
        return session

    def cancel(self) -> None:
        """Abandon the current session.

        Only allowed between steps.  Transactions already submitted to the
        ledger stay submitted.
        """
        session = self.session
        if session is None:
            return
        if session.active_step is not None:
            raise FlowStateError(
                f"Cannot cancel while step {session.active_step} is active"
            )
        session.cancelled = True
        self.session = None
        logger.info(
            "Cancelled flow %s (pending submissions: %s)",
            session.session_id,
            sorted(session.submitted.values()) or "none",
        )

    # ------------------------------------------------------------------
    # Sequencing
    # ------------------------------------------------------------------

    async def _run_from(self, session: FlowSession, step_id: str) -> None:
        current: str | None = step_id
        while current is not None:
            if session.cancelled:
                logger.info("Flow %s cancelled before %s", session.session_id, current)
                return

            session.machine.transition(current, StepState.ACTIVE, details="Starting...")
            try:
                updates, details = await self._handlers[current](session)
            except Exception as exc:
                self._fail(session, current, exc)
                return

            session.merge(updates)
            session.submitted.pop(current, None)
            session.machine.transition(
                current, StepState.SUCCESS, details=details, result=updates or None
            )
            current = session.machine.next_step(current)

        logger.info("Flow %s completed", session.session_id)

    def _fail(self, session: FlowSession, step_id: str, exc: Exception) -> None:
        owner = attribute_failure(exc, session)
        if isinstance(exc, FlowStepError):
            logger.error("Step %s failed: %s", step_id, exc)
        else:
            logger.exception("Step %s failed with unexpected error", step_id)
        if owner is not None and owner != step_id:
            logger.warning("Error raised in %s looks like it belongs to %s", step_id, owner)
        session.machine.transition(step_id, StepState.ERROR, error=str(exc) or type(exc).__name__)

    def _details(self, session: FlowSession, step_id: str, details: str) -> None:
        session.machine.transition(step_id, StepState.ACTIVE, details=details)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _require_signer(self, step_id: str) -> str:
        address = self.signer.address
        if not address:
            raise WalletNotConnectedError(
                "No wallet connected. Connect a signer before proceeding.",
                step_id=step_id,
            )
        return address

    async def _wallet_check(self, session: FlowSession) -> StepOutcome:
        self._details(session, WALLET_CHECK, "Checking wallet connection...")
        address = self._require_signer(WALLET_CHECK)
        return {}, f"Wallet connected: {address[:8]}..."

    async def _upload(self, session: FlowSession) -> StepOutcome:
        params = session.params
        if session.context.upload_result is not None:
            return {}, "Reusing previous upload"

        self._details(session, UPLOAD, f"Uploading {len(params.files)} file(s)...")
        previous_cid = None
        if isinstance(params, VersioningParams) and params.existing_reserve_address:
            try:
                previous_cid = address_to_cid(params.existing_reserve_address)
            except CodecError:
                logger.warning(
                    "Existing reserve %s is not ARC-19; prev_version omitted",
                    params.existing_reserve_address,
                )
        document = build_metadata_document(params, previous_cid=previous_cid)

        try:
            upload = await self.store.upload_files(params.files, document)
        except FlowStepError as exc:
            raise _tag(exc, UPLOAD)
        except Exception as exc:
            raise UploadError(f"Failed to upload certification assets: {exc}") from exc

        lines = [f"Metadata: {gateway_url(upload.content_locator, self.options.ipfs_gateway)}"]
        lines.extend(f"{loc.name}: {loc.gateway_url or loc.cid}" for loc in upload.file_locators)
        return {"upload_result": upload}, "\n".join(lines)

    async def _address_conversion(self, session: FlowSession) -> StepOutcome:
        self._details(session, ADDRESS_CONVERSION, "Converting CID to reserve address...")
        upload = session.context.upload_result
        if upload is None or not upload.content_locator:
            raise ConversionError("Upload result missing content locator")
        try:
            address = cid_to_address(upload.content_locator)
        except CodecError as exc:
            raise ConversionError(
                f"Cannot convert CID {upload.content_locator!r}: {exc}"
            ) from exc
        return {"derived_address": address}, f"Reserve address: {address[:8]}..."

    async def _object_create(self, session: FlowSession) -> StepOutcome:
        ctx = session.context
        params = session.params
        if ctx.derived_address is None or ctx.upload_result is None:
            raise LedgerError("Missing prerequisite data for object creation", phase="build", step_id=OBJECT_CREATE)
        if not isinstance(params, CertificationParams):
            raise LedgerError("Object creation requires certification params", phase="build", step_id=OBJECT_CREATE)
        sender = self._require_signer(OBJECT_CREATE)

        async def build() -> ObjectCreateTxn:
            self._details(session, OBJECT_CREATE, "Building object creation transaction...")
            return ObjectCreateTxn(
                sender=sender,
                params=await self._suggested_params(OBJECT_CREATE),
                asset_name=params.asset_name,
                unit_name=params.unit_name,
                url=self.options.template_url,
                default_frozen=True,
                manager=sender,
                reserve=ctx.derived_address,
            )

        tx_id, record = await self._submit_and_confirm(session, OBJECT_CREATE, sender, build)
        object_id = extract_created_object_id(record)
        if object_id is None:
            raise LedgerError(
                "Failed to extract object id from confirmed transaction",
                phase="extract",
                step_id=OBJECT_CREATE,
            )

        details = f"Object {object_id} created in transaction {tx_id}"
        if self.options.explorer_url:
            details += f"\n{self.options.explorer_url}/asset/{object_id}"
        return {
            "created_object_id": object_id,
            "create_transaction_id": tx_id,
        }, details

    async def _object_configure(self, session: FlowSession) -> StepOutcome:
        ctx = session.context
        params = session.params
        if isinstance(params, VersioningParams):
            object_id = params.object_id
        else:
            object_id = ctx.created_object_id
        if object_id is None or ctx.derived_address is None or ctx.upload_result is None:
            raise LedgerError(
                "Object id or reserve address missing", phase="build", step_id=OBJECT_CONFIGURE
            )
        sender = self._require_signer(OBJECT_CONFIGURE)

        async def build() -> ObjectConfigTxn:
            self._details(session, OBJECT_CONFIGURE, f"Fetching object {object_id}...")
            try:
                current = await self.ledger.get_object_by_id(object_id)
            except FlowStepError as exc:
                raise _tag(exc, OBJECT_CONFIGURE)
            except Exception as exc:
                raise LedgerError(
                    f"Failed to fetch object {object_id}: {exc}",
                    phase="fetch",
                    step_id=OBJECT_CONFIGURE,
                ) from exc
            return ObjectConfigTxn(
                sender=sender,
                params=await self._suggested_params(OBJECT_CONFIGURE),
                object_id=object_id,
                manager=current.params.manager,
                reserve=ctx.derived_address,
                freeze=current.params.freeze,
                clawback=current.params.clawback,
            )

        tx_id, record = await self._submit_and_confirm(session, OBJECT_CONFIGURE, sender, build)
        confirmed = confirmed_round(record)

        session.merge({"configure_transaction_id": tx_id, "confirmed_round": confirmed})
        session.result = self._assemble_result(session, object_id, sender)

        details = f"Configuration confirmed in round {confirmed}: {tx_id}"
        if self.options.explorer_url:
            details += f"\n{self.options.explorer_url}/tx/{tx_id}"
        return {"configure_transaction_id": tx_id, "confirmed_round": confirmed}, details

    # ------------------------------------------------------------------
    # Ledger helpers
    # ------------------------------------------------------------------

    async def _suggested_params(self, step_id: str) -> SuggestedParams:
        try:
            return await self.ledger.get_suggested_params()
        except FlowStepError as exc:
            raise _tag(exc, step_id)
        except Exception as exc:
            raise LedgerError(
                f"Failed to fetch suggested params: {exc}", phase="params", step_id=step_id
            ) from exc

    async def _submit_and_confirm(
        self,
        session: FlowSession,
        step_id: str,
        sender: str,
        build: Callable[[], Awaitable[ObjectCreateTxn | ObjectConfigTxn]],
    ) -> tuple[str, dict[str, Any]]:
        """Sign, submit and confirm a transaction built by *build*.

        If an earlier attempt of this step already submitted a transaction,
        that one is re-polled first.  A fresh transaction (with fresh
        params) is only built when the ledger rejected the earlier one; any
        other failure while re-polling leaves it pending for the next retry.
        """
        pending = session.submitted.get(step_id)
        if pending is not None:
            self._details(session, step_id, f"Re-checking submitted transaction {pending[:12]}...")
            try:
                record = await self._confirm(step_id, pending)
            except TransactionRejectedError:
                logger.warning("Earlier transaction %s was rejected; rebuilding", pending)
                session.submitted.pop(step_id, None)
            else:
                return pending, record

        txn = await build()

        self._details(session, step_id, "Requesting wallet signature...")
        try:
            signed = await self.signer.sign([[SignRequest(txn=txn, signers=[sender])]])
        except FlowStepError as exc:
            raise _tag(exc, step_id)
        except Exception as exc:
            raise LedgerError(f"Failed to sign transaction: {exc}", phase="sign", step_id=step_id) from exc

        self._details(session, step_id, "Submitting transaction...")
        try:
            response = await self.ledger.submit_raw(signed[0])
        except FlowStepError as exc:
            raise _tag(exc, step_id)
        except Exception as exc:
            raise LedgerError(f"Failed to submit transaction: {exc}", phase="submit", step_id=step_id) from exc

        tx_id = response.tx_id
        session.submitted[step_id] = tx_id
        record = await self._confirm(step_id, tx_id, session=session)
        return tx_id, record

    async def _confirm(
        self, step_id: str, tx_id: str, *, session: FlowSession | None = None
    ) -> dict[str, Any]:
        if session is not None:
            self._details(session, step_id, f"Waiting for confirmation: {tx_id[:12]}...")
        try:
            return await wait_for_confirmation(
                self.ledger,
                tx_id,
                max_rounds=self.options.confirmation_max_rounds,
                timeout_seconds=self.options.confirmation_timeout_seconds,
            )
        except FlowStepError as exc:
            raise _tag(exc, step_id)
        except Exception as exc:
            raise LedgerError(
                f"Failed waiting for confirmation of {tx_id}: {exc}", phase="confirm", step_id=step_id
            ) from exc

    def _assemble_result(self, session: FlowSession, object_id: int, sender: str) -> FlowResult:
        ctx = session.context
        upload = ctx.upload_result
        if upload is None or ctx.derived_address is None:
            raise LedgerError(
                "Upload result or reserve address missing", phase="build", step_id=OBJECT_CONFIGURE
            )
        return FlowResult(
            flow_type=session.flow_type.value,
            object_id=object_id,
            create_transaction_id=ctx.create_transaction_id,
            configure_transaction_id=ctx.configure_transaction_id or "",
            confirmed_round=ctx.confirmed_round or 0,
            signer_address=sender,
            metadata_cid=upload.content_locator,
            metadata_url=upload.metadata_url or f"ipfs://{upload.content_locator}",
            gateway_url=gateway_url(upload.content_locator, self.options.ipfs_gateway),
            reserve_address=ctx.derived_address,
            files=list(upload.file_locators),
        )
