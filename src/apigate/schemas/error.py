"""Error wire schema.

Every failure leaving a dispatcher is serialized with this record:
{"message": ..., "code": ..., "status": ..., "uiMessage": ...}.
The field order and the ``uiMessage`` key are stable across implementations.
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorPayload(BaseModel):
    """Serialized StructuredError. ``uiMessage`` is null when not set."""

    model_config = ConfigDict(populate_by_name=True, serialize_by_alias=True, frozen=True)

    message: str = Field(min_length=1)
    code: str
    status: int
    ui_message: str | None = Field(default=None, alias="uiMessage")
