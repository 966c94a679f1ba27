"""Schema gate: validate one raw input against an optional schema.

No schema means pass-through: the raw value is returned as-is and never
inspected. With a schema, parsing (including any coercion, e.g. ``"5"`` ->
``5`` for an ``int`` field) is delegated to pydantic; the gate only wraps
the result.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError

from apigate.exceptions import StructuredError
from apigate.normalizer import validation_failure


@runtime_checkable
class Schema(Protocol):
    """Anything that can parse-or-reject a raw value.

    ``pydantic.TypeAdapter`` satisfies this directly. Rejections must raise
    ``pydantic.ValidationError``.
    """

    def validate_python(self, value: Any, /) -> Any: ...


@dataclass(frozen=True)
class _ModelSchema:
    model: type[BaseModel]

    def validate_python(self, value: Any, /) -> Any:
        return self.model.model_validate(value)


def as_schema(declaration: Any) -> Schema:
    """Resolve a schema declaration into a ``Schema``.

    Accepts a ``BaseModel`` subclass, an object that already has
    ``validate_python`` (``TypeAdapter`` included), or any type/annotation
    pydantic can build a ``TypeAdapter`` for (``dict[str, int]``, ...).
    """
    if isinstance(declaration, type) and issubclass(declaration, BaseModel):
        return _ModelSchema(declaration)
    if isinstance(declaration, Schema):
        return declaration
    return TypeAdapter(declaration)


@dataclass(frozen=True)
class Valid[T]:
    value: T
    valid: ClassVar[bool] = True


@dataclass(frozen=True)
class Invalid:
    error: StructuredError
    valid: ClassVar[bool] = False


type ValidationOutcome[T] = Valid[T] | Invalid


def validate_input(raw: Any, schema: Schema | None = None, ui_message: str | None = None) -> ValidationOutcome[Any]:
    """Validate ``raw`` against ``schema``; no schema returns ``raw`` unchanged."""
    if schema is None:
        return Valid(raw)

    try:
        value = schema.validate_python(raw)
    except ValidationError as exc:
        return Invalid(validation_failure(exc, ui_message))
    return Valid(value)
