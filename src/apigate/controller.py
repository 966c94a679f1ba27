"""Factories that wrap a handler in a validating dispatcher.

``make_api_controller`` returns a Starlette endpoint: ``(request) -> Response``.
Register it with ``app.add_route`` (FastAPI and Starlette both accept it)::

    async def create_item(*, body: NewItem, params: ItemPath) -> Reply[Item]:
        return Reply.created(await items.create(params.shop_id, body))

    app.add_route(
        "/shops/{shop_id}/items",
        make_api_controller(create_item, body_schema=NewItem, params_schema=ItemPath),
        methods=["POST"],
    )

``make_server_action`` returns an in-process callable that never raises for
validation or handler failures; it resolves to a ``SuccessEnvelope`` or an
``ErrorEnvelope``::

    create_user = make_server_action(save_user, body_schema=NewUser)
    result = await create_user(body={"name": "Ada", "email": "ada@example.com"})
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from starlette.requests import Request
from starlette.responses import Response

from apigate.adapter import MISSING, RawInputs, extract_inputs
from apigate.dispatcher import DispatchState, Dispatcher, ErrorSink, Failure, Handler, Outcome
from apigate.envelopes import EnvelopeStrategy, ProgrammaticStrategy, TransportStrategy
from apigate.exceptions import StructuredError
from apigate.normalizer import ErrorOptions
from apigate.schemas.envelope import ProgrammaticEnvelope

ApiController = Callable[..., Awaitable[Response]]
ServerAction = Callable[..., Awaitable[ProgrammaticEnvelope[Any]]]


def _package[E](outcome: Outcome, strategy: EnvelopeStrategy[E]) -> E:
    if isinstance(outcome, Failure):
        return strategy.failure(outcome.error)
    return strategy.success(outcome.result)


def make_api_controller(
    handler: Handler,
    *,
    body_schema: Any = None,
    query_schema: Any = None,
    params_schema: Any = None,
    error: ErrorOptions | None = None,
    logger: ErrorSink | None = None,
    include_request: bool = False,
) -> ApiController:
    """Wrap ``handler`` as an HTTP endpoint.

    Success responds with the handler's data and status (200 unless the
    handler returns a ``Reply``). Failure responds with the error record and
    the error's status. A 204 reply is sent without a body.

    ``include_request`` also passes the Starlette request as ``request=``.
    """
    dispatcher = Dispatcher(
        handler,
        body_schema=body_schema,
        query_schema=query_schema,
        params_schema=params_schema,
        error=error,
        sink=logger,
    )
    strategy = TransportStrategy()

    async def controller(request: Request, route_params: Mapping[str, Any] | None = None) -> Response:
        try:
            inputs = await extract_inputs(
                request, dispatcher.slots, route_params, dispatcher.options.default_ui_message
            )
        except StructuredError as exc:
            outcome: Outcome = await dispatcher.reject(exc)
        else:
            context = {"request": request} if include_request else {}
            outcome = await dispatcher.dispatch(inputs, **context)
        envelope = _package(outcome, strategy)
        try:
            return envelope.to_response()
        except Exception as exc:
            # Handler data that can't be encoded fails like the handler itself
            failure = await dispatcher.reject(dispatcher.normalize(exc), DispatchState.INVOKING)
            return strategy.failure(failure.error).to_response()

    controller.__name__ = getattr(handler, "__name__", controller.__name__)
    controller.__doc__ = getattr(handler, "__doc__", None)
    return controller


def make_server_action(
    handler: Handler,
    *,
    body_schema: Any = None,
    query_schema: Any = None,
    params_schema: Any = None,
    error: ErrorOptions | None = None,
    logger: ErrorSink | None = None,
) -> ServerAction:
    """Wrap ``handler`` as an exception-free in-process call.

    The returned coroutine function takes the raw slot values as keyword
    arguments (``body=``, ``query=``, ``params=``). Values for slots without
    a schema are ignored.
    """
    dispatcher = Dispatcher(
        handler,
        body_schema=body_schema,
        query_schema=query_schema,
        params_schema=params_schema,
        error=error,
        sink=logger,
    )
    strategy = ProgrammaticStrategy()

    async def action(*, body: Any = MISSING, query: Any = MISSING, params: Any = MISSING) -> ProgrammaticEnvelope[Any]:
        outcome = await dispatcher.dispatch(RawInputs(query=query, body=body, params=params))
        return _package(outcome, strategy)

    action.__name__ = getattr(handler, "__name__", action.__name__)
    action.__doc__ = getattr(handler, "__doc__", None)
    return action
