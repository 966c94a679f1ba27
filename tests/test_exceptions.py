import json

import pytest

from apigate.exceptions import ConflictError, ErrorCode, ForbiddenError, NotFoundError, StructuredError


def test_defaults_to_generic_code_and_500() -> None:
    error = StructuredError(message="boom")
    assert error.code == "GENERIC_ERROR"
    assert error.code == ErrorCode.GENERIC_ERROR
    assert error.status == 500
    assert error.ui_message is None
    assert error.meta is None
    assert str(error) == "boom"


def test_empty_message_is_replaced() -> None:
    assert StructuredError(message="").message == "An unexpected error occurred"


def test_wire_record_has_exact_fields_in_order() -> None:
    error = StructuredError(
        message="not found",
        code="NOT_FOUND",
        status=404,
        ui_message="Nothing here",
        meta={"id": 7},
    )
    record = error.to_json()
    assert list(record) == ["message", "code", "status", "uiMessage"]
    assert record == {"message": "not found", "code": "NOT_FOUND", "status": 404, "uiMessage": "Nothing here"}


def test_ui_message_serializes_as_null() -> None:
    assert json.dumps(StructuredError(message="x").to_json()) == (
        '{"message": "x", "code": "GENERIC_ERROR", "status": 500, "uiMessage": null}'
    )


def test_serialization_round_trip_is_stable() -> None:
    first = StructuredError(message="conflict", code="DUPLICATE", status=409, ui_message="Already exists").to_json()
    second = StructuredError.from_json(json.loads(json.dumps(first))).to_json()
    assert second == first


def test_attributes_are_read_only() -> None:
    error = StructuredError(message="boom", meta={"a": 1})
    with pytest.raises(AttributeError):
        error.status = 200  # type: ignore[misc]

    meta = error.meta
    assert meta is not None
    meta["a"] = 2
    assert error.meta == {"a": 1}


@pytest.mark.parametrize(
    "error, status, code",
    [
        (NotFoundError(), 404, "NOT_FOUND"),
        (ForbiddenError(), 403, "FORBIDDEN"),
        (ConflictError(), 409, "CONFLICT"),
    ],
    ids=["not_found", "forbidden", "conflict"],
)
def test_convenience_subclasses(error: StructuredError, status: int, code: str) -> None:
    assert error.status == status
    assert error.code == code
    assert isinstance(error, StructuredError)
