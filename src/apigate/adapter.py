"""Request adapter: pull raw slot values out of a Starlette request.

Extraction only. Nothing here validates; values are handed to the
dispatcher as plain Python objects. A slot without a registered schema is
never read, so an unvalidated body is never consumed from the stream.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, Literal

from fastapi import status
from starlette.requests import Request

from apigate.exceptions import ErrorCode, StructuredError
from apigate.slots import Slot, SlotSet


class _Missing(Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing.MISSING

type QueryMapping = dict[str, str | list[str]]


@dataclass(frozen=True)
class RawInputs:
    """Unvalidated slot values. ``MISSING`` marks a slot that was not supplied."""

    query: Any = MISSING
    body: Any = MISSING
    params: Any = MISSING

    def get(self, slot: Slot) -> Any | Literal[_Missing.MISSING]:
        return getattr(self, slot.value)


def collect_query(request: Request) -> QueryMapping:
    """Query string as a dict; repeated keys are collected into lists.

    ``?tag=a&tag=b&limit=5`` -> ``{"tag": ["a", "b"], "limit": "5"}``
    """
    collected: QueryMapping = {}
    for key, value in request.query_params.multi_items():
        current = collected.get(key)
        if current is None:
            collected[key] = value
        elif isinstance(current, list):
            current.append(value)
        else:
            collected[key] = [current, value]
    return collected


async def read_json_body(request: Request, ui_message: str | None = None) -> Any:
    """Parse the request payload as JSON. An empty payload reads as ``None``.

    A payload that is not JSON raises a VALIDATION_ERROR carrying ``ui_message``.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return await request.json()
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StructuredError(
            message="Request body is not valid JSON",
            code=ErrorCode.VALIDATION_ERROR,
            status=status.HTTP_400_BAD_REQUEST,
            ui_message=ui_message,
            meta={"reason": str(exc)},
        ) from exc


async def extract_inputs(
    request: Request,
    slots: SlotSet,
    route_params: Mapping[str, Any] | None = None,
    ui_message: str | None = None,
) -> RawInputs:
    """Read the raw values for ``slots`` from ``request``.

    Route parameters come from ``route_params`` when given, otherwise from
    the router's own ``request.path_params``. Never from the query string.
    """
    query: Any = MISSING
    body: Any = MISSING
    params: Any = MISSING

    if Slot.QUERY in slots:
        query = collect_query(request)
    if Slot.BODY in slots:
        body = await read_json_body(request, ui_message)
    if Slot.PARAMS in slots:
        params = dict(route_params) if route_params is not None else dict(request.path_params)

    return RawInputs(query=query, body=body, params=params)
