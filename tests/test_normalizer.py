import pytest
from pydantic import BaseModel, ValidationError

from apigate.exceptions import ErrorCode, StructuredError
from apigate.normalizer import ErrorOptions, default_error, normalize_error


class Payload(BaseModel):
    name: str
    age: int


def _validation_error() -> ValidationError:
    with pytest.raises(ValidationError) as info:
        Payload.model_validate({"name": "Ada", "age": "old"})
    return info.value


def test_structured_error_is_returned_unchanged() -> None:
    original = StructuredError(message="gone", code="GONE", status=410, ui_message="It's gone")
    assert normalize_error(original, ErrorOptions(default_status=503, default_code="X")) is original


def test_validation_error_becomes_400() -> None:
    error = normalize_error(_validation_error(), ErrorOptions(default_ui_message="Check the form"))
    assert error.code == ErrorCode.VALIDATION_ERROR
    assert error.status == 400
    assert error.ui_message == "Check the form"
    assert "age" in error.message
    assert error.meta is not None
    assert [issue["path"] for issue in error.meta["issues"]] == ["age"]


def test_generic_exception_keeps_its_message() -> None:
    error = normalize_error(ValueError("bad things"))
    assert error.message == "bad things"
    assert error.code == "GENERIC_ERROR"
    assert error.status == 500
    assert error.ui_message == "An unexpected error occurred"


def test_generic_exception_uses_overrides() -> None:
    options = ErrorOptions(default_code="PAYMENT", default_status=502, default_ui_message="Try later")
    error = normalize_error(RuntimeError("gateway timeout"), options)
    assert (error.message, error.code, error.status, error.ui_message) == ("gateway timeout", "PAYMENT", 502, "Try later")


def test_exception_without_message_uses_default_message() -> None:
    error = normalize_error(RuntimeError(), ErrorOptions(default_message="Something broke"))
    assert error.message == "Something broke"


@pytest.mark.parametrize(
    "thrown",
    ["secret-token-123", 42, None, {"password": "hunter2"}, ["x"]],
    ids=["string", "number", "none", "dict", "list"],
)
def test_non_exception_values_never_leak(thrown: object) -> None:
    error = normalize_error(thrown, ErrorOptions(default_message="Unexpected failure"))
    assert error.message == "Unexpected failure"
    assert str(thrown) not in error.to_json().values()
    if thrown is not None:
        assert str(thrown) not in error.message


def test_classifier_wins_when_it_returns_an_error() -> None:
    def classify(thrown: object) -> StructuredError | None:
        if isinstance(thrown, KeyError):
            return StructuredError(message="missing key", code="MISSING", status=422)
        return None

    options = ErrorOptions(classifier=classify)
    assert normalize_error(KeyError("id"), options).code == "MISSING"
    assert normalize_error(ValueError("other"), options).code == "GENERIC_ERROR"


def test_classifier_runs_before_structured_pass_through() -> None:
    replacement = StructuredError(message="rewritten", code="REWRITTEN")
    options = ErrorOptions(classifier=lambda thrown: replacement)
    assert normalize_error(StructuredError(message="original"), options) is replacement


def test_default_error_matches_options() -> None:
    error = default_error(ErrorOptions(default_message="nope", default_code="NOPE", default_status=418))
    assert error.to_json() == {
        "message": "nope",
        "code": "NOPE",
        "status": 418,
        "uiMessage": "An unexpected error occurred",
    }
