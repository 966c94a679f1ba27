"""Turn any thrown value into exactly one StructuredError.

Classification is an ordered chain, first match wins:

1. the caller's classifier, when it returns a StructuredError
2. StructuredError            -> returned unchanged
3. pydantic ValidationError   -> VALIDATION_ERROR / 400
4. any other Exception        -> its message with the configured defaults
5. anything else              -> the configured default message

Normalization has no side effects. Logging is the caller's job.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeGuard

from fastapi import status
from pydantic import ValidationError

from apigate.exceptions import DEFAULT_ERROR_MESSAGE, ErrorCode, StructuredError

Classifier = Callable[[object], StructuredError | None]


@dataclass(frozen=True)
class ErrorOptions:
    """Per-dispatcher overrides applied when synthesizing an error."""

    default_message: str = DEFAULT_ERROR_MESSAGE
    default_code: str = ErrorCode.GENERIC_ERROR
    default_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_ui_message: str | None = DEFAULT_ERROR_MESSAGE
    classifier: Classifier | None = None


DEFAULT_OPTIONS = ErrorOptions()


def is_structured_error(thrown: object) -> TypeGuard[StructuredError]:
    return isinstance(thrown, StructuredError)


def is_validation_error(thrown: object) -> TypeGuard[ValidationError]:
    return isinstance(thrown, ValidationError)


def is_generic_error(thrown: object) -> TypeGuard[Exception]:
    return isinstance(thrown, Exception)


def _issue_path(location: tuple[Any, ...]) -> str:
    if not location:
        return "(root)"
    return ".".join(str(part) for part in location)


def format_issues(errors: Iterable[Mapping[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic-style error dicts into ``{"path", "message"}`` records."""
    return [
        {"path": _issue_path(tuple(issue.get("loc", ()))), "message": str(issue.get("msg", "Invalid value"))}
        for issue in errors
    ]


def validation_failure(exc: ValidationError, ui_message: str | None = None) -> StructuredError:
    """Build the VALIDATION_ERROR for a schema rejection."""
    return StructuredError(
        message=str(exc),
        code=ErrorCode.VALIDATION_ERROR,
        status=status.HTTP_400_BAD_REQUEST,
        ui_message=ui_message,
        meta={"issues": format_issues(exc.errors())},
    )


def default_error(options: ErrorOptions | None = None) -> StructuredError:
    """The error reported when nothing about the failure may be shown."""
    opts = options or DEFAULT_OPTIONS
    return StructuredError(
        message=opts.default_message,
        code=opts.default_code,
        status=opts.default_status,
        ui_message=opts.default_ui_message,
    )


def normalize_error(thrown: object, options: ErrorOptions | None = None) -> StructuredError:
    """Classify ``thrown`` and return the matching StructuredError."""
    opts = options or DEFAULT_OPTIONS

    if opts.classifier is not None:
        custom = opts.classifier(thrown)
        if is_structured_error(custom):
            return custom

    if is_structured_error(thrown):
        return thrown

    if is_validation_error(thrown):
        return validation_failure(thrown, opts.default_ui_message)

    # Exceptions with an empty message fall through to the default so that
    # ``message`` is never empty.
    if is_generic_error(thrown) and str(thrown):
        return StructuredError(
            message=str(thrown),
            code=opts.default_code,
            status=opts.default_status,
            ui_message=opts.default_ui_message,
        )

    # Never echo a non-exception value into the message
    return default_error(opts)
