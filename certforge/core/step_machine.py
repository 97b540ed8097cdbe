"""Deterministic step state machine for a single flow.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Strict ordering: a step may only become ACTIVE or SUCCESS while every
  earlier step is SUCCESS
- Retry wipe: resetting a step sends it and every later step back to
  PENDING, leaving earlier steps untouched
- Every transition recorded in the transition log
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from certforge.models.steps import (
    VALID_TRANSITIONS,
    FlowStep,
    StepDefinition,
    StepState,
    StepTransition,
)

logger = logging.getLogger(__name__)

StepListener = Callable[[FlowStep], None]


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class StepOrderError(RuntimeError):
    """Raised when a step would run before its predecessors succeeded."""


class StepMachine:
    """Owns the ordered step list of one flow.

    Parameters
    ----------
    plan:
        Step definitions in execution order.
    listener:
        Optional callback invoked with the updated step after every
        transition.
    """

    def __init__(
        self,
        plan: list[StepDefinition],
        listener: StepListener | None = None,
    ) -> None:
        self._steps: list[FlowStep] = [
            FlowStep(id=sd.step_id, title=sd.title, description=sd.description)
            for sd in plan
        ]
        self._index: dict[str, int] = {s.id: i for i, s in enumerate(self._steps)}
        self._listener = listener
        self.transitions: list[StepTransition] = []

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def step_ids(self) -> list[str]:
        return [s.id for s in self._steps]

    def steps(self) -> list[FlowStep]:
        """Return a snapshot copy of every step."""
        return [s.model_copy() for s in self._steps]

    def get(self, step_id: str) -> FlowStep:
        return self._steps[self.index_of(step_id)].model_copy()

    def get_state(self, step_id: str) -> StepState:
        return self._steps[self.index_of(step_id)].state

    def index_of(self, step_id: str) -> int:
        try:
            return self._index[step_id]
        except KeyError:
            raise KeyError(
                f"Unknown step_id {step_id!r}. Steps in this flow: {self.step_ids}"
            ) from None

    def next_step(self, step_id: str) -> str | None:
        i = self.index_of(step_id) + 1
        return self._steps[i].id if i < len(self._steps) else None

    @property
    def active_step(self) -> str | None:
        for s in self._steps:
            if s.state == StepState.ACTIVE:
                return s.id
        return None

    @property
    def failed_step(self) -> str | None:
        for s in self._steps:
            if s.state == StepState.ERROR:
                return s.id
        return None

    @property
    def is_complete(self) -> bool:
        return all(s.state == StepState.SUCCESS for s in self._steps)

    def can_start(self, step_id: str) -> tuple[bool, list[str]]:
        """Check if a step can transition to ACTIVE.

        Returns (can_start, blocking_reasons).
        """
        i = self.index_of(step_id)
        current = self._steps[i].state
        if current != StepState.PENDING:
            return False, [f"Step is currently {current.value}, not pending"]
        reasons = [
            f"{s.id} is {s.state.value}"
            for s in self._steps[:i]
            if s.state != StepState.SUCCESS
        ]
        return not reasons, reasons

    # ------------------------------------------------------------------
    # Transition logic
    # ------------------------------------------------------------------

    def transition(
        self,
        step_id: str,
        target_state: StepState,
        *,
        details: str | None = None,
        error: str | None = None,
        result: Any = None,
    ) -> FlowStep:
        """Move a step to *target_state* and return the updated step.

        ACTIVE -> ACTIVE is allowed and only refreshes ``details``.
        """
        i = self.index_of(step_id)
        step = self._steps[i]
        current = step.state

        allowed = VALID_TRANSITIONS.get(current, set())
        if target_state not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition {step_id} from {current.value} to {target_state.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        if target_state in (StepState.ACTIVE, StepState.SUCCESS):
            blocking = [
                f"{s.id} is {s.state.value}"
                for s in self._steps[:i]
                if s.state != StepState.SUCCESS
            ]
            if blocking:
                raise StepOrderError(
                    f"Cannot run {step_id}: earlier steps not complete. "
                    f"Blocked by: {'; '.join(blocking)}"
                )

        step.state = target_state
        if target_state == StepState.PENDING:
            step.error = None
            step.details = None
            step.result = None
        else:
            step.details = details if details is not None else step.details
            step.error = error if target_state == StepState.ERROR else None
            if result is not None:
                step.result = result

        self.transitions.append(
            StepTransition(
                step_id=step_id,
                from_state=current,
                to_state=target_state,
                details=details,
                error=error,
            )
        )
        if current != target_state:
            logger.info("step %s: %s -> %s", step_id, current.value, target_state.value)

        if self._listener is not None:
            self._listener(step.model_copy())
        return step.model_copy()

    def reset_from(self, step_id: str) -> list[str]:
        """Send *step_id* and every later step back to PENDING.

        Earlier steps are not touched.  Returns the ids that were reset.
        """
        i = self.index_of(step_id)
        reset: list[str] = []
        for s in self._steps[i:]:
            if s.state == StepState.PENDING:
                continue
            if s.state == StepState.ACTIVE:
                raise InvalidTransitionError(f"Cannot reset {s.id} while it is active")
            self.transition(s.id, StepState.PENDING)
            reset.append(s.id)
        return reset
