"""Outbound packaging of a dispatch outcome.

The dispatcher produces a ``Success`` or ``Failure``; an envelope strategy
turns that into what the caller sees:

TransportStrategy     -> TransportEnvelope(data, http_status) -> Starlette Response
ProgrammaticStrategy  -> SuccessEnvelope | ErrorEnvelope, never raises
"""

from dataclasses import dataclass
from typing import Any, Protocol

from fastapi import status
from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse, Response

from apigate.exceptions import StructuredError
from apigate.schemas.envelope import ErrorEnvelope, ProgrammaticEnvelope, SuccessEnvelope

# Statuses that must not carry a body
BODYLESS_STATUSES = frozenset({status.HTTP_204_NO_CONTENT, status.HTTP_304_NOT_MODIFIED})


@dataclass(frozen=True)
class Reply[T]:
    """Handler return value that also picks the transport status.

    Handlers that don't care about the status just return the data.
    """

    data: T
    status: int = status.HTTP_200_OK

    @classmethod
    def created(cls, data: T) -> "Reply[T]":
        return cls(data=data, status=status.HTTP_201_CREATED)

    @classmethod
    def no_content(cls) -> "Reply[None]":
        return Reply(data=None, status=status.HTTP_204_NO_CONTENT)


def unwrap_reply(result: Any) -> tuple[Any, int]:
    """Split a handler result into ``(data, status)``."""
    if isinstance(result, Reply):
        return result.data, result.status
    return result, status.HTTP_200_OK


@dataclass(frozen=True)
class TransportEnvelope:
    data: Any
    http_status: int

    @property
    def has_body(self) -> bool:
        return self.http_status not in BODYLESS_STATUSES

    def to_response(self) -> Response:
        if not self.has_body:
            return Response(status_code=self.http_status)
        return JSONResponse(content=jsonable_encoder(self.data), status_code=self.http_status)


class EnvelopeStrategy[E](Protocol):
    def success(self, result: Any) -> E: ...

    def failure(self, error: StructuredError) -> E: ...


class TransportStrategy:
    """HTTP packaging: handler data with its status, or the error record with the error's status."""

    def success(self, result: Any) -> TransportEnvelope:
        data, http_status = unwrap_reply(result)
        return TransportEnvelope(data=data, http_status=http_status)

    def failure(self, error: StructuredError) -> TransportEnvelope:
        return TransportEnvelope(data=error.to_json(), http_status=error.status)


class ProgrammaticStrategy:
    """In-process packaging, discriminated by ``outcome``."""

    def success(self, result: Any) -> ProgrammaticEnvelope[Any]:
        data, _ = unwrap_reply(result)
        return SuccessEnvelope[Any](data=data)

    def failure(self, error: StructuredError) -> ProgrammaticEnvelope[Any]:
        return ErrorEnvelope(error=error.to_payload())
