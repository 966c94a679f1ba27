"""Programmatic envelope schemas.

Returned by server actions instead of raising, so callers branch on
``outcome`` rather than catching exceptions::

    result = await create_user(body={"name": "Ada"})
    if result.outcome == "error":
        show(result.error.ui_message)
"""

from typing import Literal

from pydantic import BaseModel

from apigate.schemas.error import ErrorPayload


class SuccessEnvelope[T](BaseModel):
    """Successful call: ``{"outcome": "success", "data": ...}``."""

    outcome: Literal["success"] = "success"
    data: T


class ErrorEnvelope(BaseModel):
    """Failed call: ``{"outcome": "error", "error": {...}}``."""

    outcome: Literal["error"] = "error"
    error: ErrorPayload


type ProgrammaticEnvelope[T] = SuccessEnvelope[T] | ErrorEnvelope
