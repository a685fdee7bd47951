from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, FrozenSet, List, Optional

from ..exceptions import (
    BackendError,
    IllegalTransitionError,
    SelectionError,
    SubmissionInProgressError,
    ValidationError,
)
from .client import IndexingClient
from .guard import SelectionGuard
from .models import DocumentBuffer, ParsedDocument, Selection, WorkflowPhase, WorkflowState
from .reporter import ResultReporter
from .validation import ValidationGate

logger = logging.getLogger(__name__)

PARSING_MESSAGE = "Parsing..."
INDEXING_MESSAGE = "Indexing..."
CANCELLED_MESSAGE = "Submission cancelled."

StateListener = Callable[[WorkflowState], None]

_TRANSITIONS: Dict[WorkflowPhase, FrozenSet[WorkflowPhase]] = {
    WorkflowPhase.IDLE: frozenset({WorkflowPhase.VALIDATING}),
    WorkflowPhase.VALIDATING: frozenset({WorkflowPhase.SUBMITTING, WorkflowPhase.FAILED}),
    WorkflowPhase.SUBMITTING: frozenset({WorkflowPhase.SUCCEEDED, WorkflowPhase.FAILED}),
    WorkflowPhase.SUCCEEDED: frozenset({WorkflowPhase.IDLE}),
    WorkflowPhase.FAILED: frozenset({WorkflowPhase.IDLE}),
}


class SubmissionHandle:
    """
    Awaitable handle on an in-flight submission. Awaiting it yields the
    state the submission settled in. A cancelled submission yields the
    Failed "Submission cancelled." snapshot even after a replacement has
    moved the controller on.
    """

    def __init__(self, controller: "SubmissionController", task: "asyncio.Task[WorkflowState]"):
        self._controller = controller
        self._task = task
        self._outcome: Optional[WorkflowState] = None

    def cancel(self) -> bool:
        return self._controller._cancel_handle(self)

    def done(self) -> bool:
        return self._task.done()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    async def wait(self) -> WorkflowState:
        try:
            return await asyncio.shield(self._task)
        except asyncio.CancelledError:
            if not self._task.cancelled():
                # The awaiter itself was cancelled, not the submission.
                raise
            return self._outcome or self._controller.state

    def __await__(self):
        return self.wait().__await__()


class SubmissionController:
    """
    Drives one "post JSON" attempt through guard -> validate -> submit ->
    report. Only one submission is in flight at a time; state changes are
    pushed to subscribers in the order they happen.
    """

    def __init__(
        self,
        client: IndexingClient,
        guard: Optional[SelectionGuard] = None,
        gate: Optional[ValidationGate] = None,
        reporter: Optional[ResultReporter] = None,
    ):
        self.client = client
        self.guard = guard or SelectionGuard()
        self.gate = gate or ValidationGate()
        self.reporter = reporter or ResultReporter()
        self._state = WorkflowState()
        self._handle: Optional[SubmissionHandle] = None
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state.busy

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def submit(self, selection: Selection, buffer: DocumentBuffer, replace: bool = False) -> Optional[SubmissionHandle]:
        """
        Start a submission. Returns a handle when the request went out, or
        None when the guard or the validation stopped it (the reason is in
        `state.message`). Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        if self.busy:
            if not replace:
                raise SubmissionInProgressError("A submission is already in progress")
            self.cancel()

        if self._state.phase in (WorkflowPhase.SUCCEEDED, WorkflowPhase.FAILED):
            self._transition(WorkflowPhase.IDLE)

        try:
            self.guard.check(selection)
        except SelectionError as exc:
            logger.info("Submission blocked: %s", exc.detail)
            self._update(message=exc.detail, error=True, spinning=False)
            return None

        self._transition(WorkflowPhase.VALIDATING, message=PARSING_MESSAGE, spinning=True)
        try:
            document = self.gate.validate(buffer)
        except ValidationError as exc:
            logger.info("Document rejected: %s", exc.detail)
            self._transition(WorkflowPhase.FAILED, message=exc.detail, error=True)
            return None

        self._transition(WorkflowPhase.SUBMITTING, message=INDEXING_MESSAGE, spinning=True)
        task = loop.create_task(self._send(selection, document))
        handle = SubmissionHandle(self, task)
        self._handle = handle
        task.add_done_callback(lambda _: self._on_done(handle))
        return handle

    async def run(self, selection: Selection, buffer: DocumentBuffer, replace: bool = False) -> WorkflowState:
        handle = self.submit(selection, buffer, replace=replace)
        if handle is None:
            return self._state
        return await handle

    def cancel(self) -> bool:
        if self._handle is None:
            return False
        return self._cancel_handle(self._handle)

    def _cancel_handle(self, handle: SubmissionHandle) -> bool:
        if handle is not self._handle:
            return False
        if not handle._task.cancel() and not handle._task.cancelled():
            return False
        self._handle = None
        logger.info("Submission cancelled")
        self._transition(WorkflowPhase.FAILED, message=CANCELLED_MESSAGE, error=True)
        handle._outcome = self._state
        return True

    async def _send(self, selection: Selection, document: ParsedDocument) -> WorkflowState:
        try:
            count = await self.client.index_json(selection.schema_name, selection.index_name, document)
            message = self.reporter.report(count)
        except BackendError as exc:
            self._transition(WorkflowPhase.FAILED, message=exc.detail, error=True)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Unexpected failure while indexing into %s/%s", selection.schema_name, selection.index_name)
            self._transition(WorkflowPhase.FAILED, message=str(exc) or exc.__class__.__name__, error=True)
        else:
            logger.info("Indexed %d record(s) into %s/%s", count, selection.schema_name, selection.index_name)
            self._transition(WorkflowPhase.SUCCEEDED, message=message, error=False)
        return self._state

    def _on_done(self, handle: SubmissionHandle) -> None:
        if handle is not self._handle:
            return
        self._handle = None
        if handle.cancelled() and self._state.phase == WorkflowPhase.SUBMITTING:
            # Cancelled from outside the controller.
            self._transition(WorkflowPhase.FAILED, message=CANCELLED_MESSAGE, error=True)
            handle._outcome = self._state

    def _transition(
        self,
        phase: WorkflowPhase,
        message: Optional[str] = None,
        spinning: bool = False,
        error: bool = False,
    ) -> None:
        current = self._state.phase
        if phase not in _TRANSITIONS[current]:
            raise IllegalTransitionError(f"Cannot move from {current.value} to {phase.value}")
        logger.debug("Phase %s -> %s", current.value, phase.value)
        self._update(phase=phase, message=message, spinning=spinning, error=error)

    def _update(self, **changes) -> None:
        self._state = self._state.with_changes(**changes)
        for listener in list(self._listeners):
            listener(self._state)
