"""Structured errors raised by handlers and synthesized by the normalizer.

Handlers raise these to signal expected failures (not found, forbidden,
conflict). Dispatchers pass them through untouched and serialize them into
the stable wire record: {"message", "code", "status", "uiMessage"}.
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from fastapi import status as http_status

from apigate.schemas.error import ErrorPayload


class ErrorCode(StrEnum):
    """Machine-readable codes produced by the library itself."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    GENERIC_ERROR = "GENERIC_ERROR"


DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


class StructuredError(Exception):
    """Typed error carrying code, status and an optional user-facing message.

    Attributes are read-only after construction. ``meta`` is open context for
    logs and callers; it is not part of the wire record.
    """

    def __init__(
        self,
        *,
        message: str,
        code: str = ErrorCode.GENERIC_ERROR,
        status: int = http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        ui_message: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        if not message:
            message = DEFAULT_ERROR_MESSAGE
        self._message = message
        self._code = str(code)
        self._status = int(status)
        self._ui_message = ui_message
        self._meta = dict(meta) if meta is not None else None
        super().__init__(message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def code(self) -> str:
        return self._code

    @property
    def status(self) -> int:
        return self._status

    @property
    def ui_message(self) -> str | None:
        return self._ui_message

    @property
    def meta(self) -> dict[str, Any] | None:
        # Copy so callers can't mutate the error through the returned dict
        return dict(self._meta) if self._meta is not None else None

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(
            message=self._message,
            code=self._code,
            status=self._status,
            uiMessage=self._ui_message,
        )

    def to_json(self) -> dict[str, Any]:
        """Serialize to the wire record. Field order is part of the contract."""
        return self.to_payload().model_dump(by_alias=True)

    @classmethod
    def from_json(cls, record: Mapping[str, Any]) -> "StructuredError":
        """Rebuild an equivalent error from a wire record."""
        payload = ErrorPayload.model_validate(record)
        return cls(
            message=payload.message,
            code=payload.code,
            status=payload.status,
            ui_message=payload.ui_message,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self._code!r}, status={self._status}, message={self._message!r})"


class NotFoundError(StructuredError):
    """Raised when a requested entity does not exist."""

    def __init__(
        self,
        *,
        message: str = "Resource not found",
        code: str = "NOT_FOUND",
        ui_message: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status=http_status.HTTP_404_NOT_FOUND,
            ui_message=ui_message,
            meta=meta,
        )


class ForbiddenError(StructuredError):
    """Raised when the caller may not perform the operation."""

    def __init__(
        self,
        *,
        message: str = "Forbidden",
        code: str = "FORBIDDEN",
        ui_message: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status=http_status.HTTP_403_FORBIDDEN,
            ui_message=ui_message,
            meta=meta,
        )


class ConflictError(StructuredError):
    """Raised when an operation conflicts with existing state (e.g. duplicate)."""

    def __init__(
        self,
        *,
        message: str = "Conflict",
        code: str = "CONFLICT",
        ui_message: str | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            status=http_status.HTTP_409_CONFLICT,
            ui_message=ui_message,
            meta=meta,
        )
