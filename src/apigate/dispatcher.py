"""Validating dispatcher.

Per call, the dispatcher walks a small state machine::

    IDLE -> VALIDATING_QUERY -> VALIDATING_BODY -> VALIDATING_PARAMS -> INVOKING -> DONE
                  \\                   \\                   \\              \\
                   +-------------------+-------------------+--------------+--> FAILED

Only slots with a registered schema are visited, always in the order
query, body, params. The first rejection ends the call. If every gate
passes, the handler is called with exactly the validated slots as keyword
arguments (no slots: no arguments at all). Anything the handler raises is
normalized into a StructuredError.

The error sink is told about every FAILED transition, once. Nothing is
emitted for DONE; success logging belongs to whatever wraps the dispatcher.

Configuration is fixed at construction and read-only afterwards, so one
instance can serve any number of concurrent calls.
"""

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any, Protocol

from apigate.adapter import MISSING, RawInputs
from apigate.exceptions import StructuredError
from apigate.gate import Invalid, Schema, as_schema, validate_input
from apigate.logging import get_logger
from apigate.normalizer import ErrorOptions, normalize_error
from apigate.slots import Slot, SlotSet

logger = get_logger(__name__)

Handler = Callable[..., Any]


class DispatchState(StrEnum):
    IDLE = "idle"
    VALIDATING_QUERY = "validating_query"
    VALIDATING_BODY = "validating_body"
    VALIDATING_PARAMS = "validating_params"
    INVOKING = "invoking"
    DONE = "done"
    FAILED = "failed"


_VALIDATING = {
    Slot.QUERY: DispatchState.VALIDATING_QUERY,
    Slot.BODY: DispatchState.VALIDATING_BODY,
    Slot.PARAMS: DispatchState.VALIDATING_PARAMS,
}


@dataclass(frozen=True)
class Success:
    result: Any
    state: DispatchState = DispatchState.DONE


@dataclass(frozen=True)
class Failure:
    error: StructuredError
    failed_in: DispatchState
    state: DispatchState = DispatchState.FAILED


type Outcome = Success | Failure


class ErrorSink(Protocol):
    """Receives one call per failed dispatch. May be sync or async."""

    def error(self, message: str, payload: Mapping[str, Any]) -> Awaitable[None] | None: ...


class StructlogErrorSink:
    """Default sink: one structlog ``error`` event per failure."""

    def __init__(self, name: str = "apigate.dispatch") -> None:
        self._logger = get_logger(name)

    def error(self, message: str, payload: Mapping[str, Any]) -> None:
        self._logger.error("dispatch_failed", detail=message, error=dict(payload))


class NullErrorSink:
    """Silent sink for callers that log failures themselves."""

    def error(self, message: str, payload: Mapping[str, Any]) -> None:
        return None


class Dispatcher:
    """Validate up to three inputs, call the handler, capture the outcome.

    Args:
        handler: Sync or async callable. Receives ``query=``, ``body=`` and
            ``params=`` keyword arguments for the configured slots only.
        body_schema, query_schema, params_schema: Optional schema per slot,
            anything ``as_schema`` accepts.
        error: Defaults used when normalizing failures for this dispatcher.
        sink: Where failures are reported. Defaults to ``StructlogErrorSink``.

    Example:
        dispatcher = Dispatcher(create_user, body_schema=NewUser)
        outcome = await dispatcher.dispatch(RawInputs(body={"name": "Ada"}))
    """

    def __init__(
        self,
        handler: Handler,
        *,
        body_schema: Any = None,
        query_schema: Any = None,
        params_schema: Any = None,
        error: ErrorOptions | None = None,
        sink: ErrorSink | None = None,
    ) -> None:
        declared = {Slot.QUERY: query_schema, Slot.BODY: body_schema, Slot.PARAMS: params_schema}
        self._schemas: dict[Slot, Schema] = {
            slot: as_schema(declaration) for slot, declaration in declared.items() if declaration is not None
        }
        self._slots = SlotSet.of(*self._schemas)
        self._handler = handler
        self._options = error or ErrorOptions()
        self._sink: ErrorSink = sink if sink is not None else StructlogErrorSink()

    @property
    def slots(self) -> SlotSet:
        return self._slots

    @property
    def options(self) -> ErrorOptions:
        return self._options

    async def dispatch(self, inputs: RawInputs, **context: Any) -> Outcome:
        """Run one call. Never raises for handler or validation failures.

        ``context`` is passed to the handler as extra keyword arguments
        (e.g. ``request``) and is never validated.
        """
        state = DispatchState.IDLE
        arguments: dict[str, Any] = {}

        for slot in self._slots.ordered():
            state = self._transition(state, _VALIDATING[slot])
            raw = inputs.get(slot)
            outcome = validate_input(
                None if raw is MISSING else raw,
                self._schemas[slot],
                self._options.default_ui_message,
            )
            if isinstance(outcome, Invalid):
                return await self._fail(state, outcome.error)
            arguments[slot.value] = outcome.value

        state = self._transition(state, DispatchState.INVOKING)
        try:
            result = self._handler(**arguments, **context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            return await self._fail(state, self.normalize(exc))

        self._transition(state, DispatchState.DONE)
        return Success(result)

    def normalize(self, thrown: object) -> StructuredError:
        """Normalize ``thrown`` with this dispatcher's options.

        A classifier that raises is logged and skipped; the rest of the chain
        still produces an error.
        """
        try:
            return normalize_error(thrown, self._options)
        except Exception:
            if self._options.classifier is None:
                raise
            logger.exception("error_classifier_failed", thrown_type=type(thrown).__name__)
            return normalize_error(thrown, replace(self._options, classifier=None))

    async def reject(self, error: StructuredError, failed_in: DispatchState = DispatchState.IDLE) -> Failure:
        """Fail a call outside the validate-invoke path.

        Used by transports when an input can't be read (``IDLE``) or a
        handler result can't be delivered.
        """
        return await self._fail(failed_in, error)

    def _transition(self, current: DispatchState, target: DispatchState) -> DispatchState:
        logger.debug("dispatch_transition", source=current.value, target=target.value)
        return target

    async def _fail(self, state: DispatchState, error: StructuredError) -> Failure:
        self._transition(state, DispatchState.FAILED)
        await self._report(error)
        return Failure(error=error, failed_in=state)

    async def _report(self, error: StructuredError) -> None:
        try:
            pending = self._sink.error(error.message, error.to_json())
            if inspect.isawaitable(pending):
                await pending
        except Exception:
            # A broken sink must not change the outcome of the call
            logger.exception("error_sink_failed", code=error.code, status=error.status)
