import json

from apigate.envelopes import ProgrammaticStrategy, Reply, TransportEnvelope, TransportStrategy
from apigate.exceptions import NotFoundError
from apigate.schemas.envelope import ErrorEnvelope, SuccessEnvelope


def test_plain_results_default_to_200() -> None:
    envelope = TransportStrategy().success({"ok": True})
    assert envelope == TransportEnvelope(data={"ok": True}, http_status=200)


def test_reply_overrides_status() -> None:
    envelope = TransportStrategy().success(Reply.created({"id": 1}))
    assert envelope.http_status == 201
    assert envelope.data == {"id": 1}


def test_failure_uses_error_status_and_wire_record() -> None:
    envelope = TransportStrategy().failure(NotFoundError(message="no such order"))
    assert envelope.http_status == 404
    assert envelope.data == {"message": "no such order", "code": "NOT_FOUND", "status": 404, "uiMessage": None}


def test_no_content_response_has_empty_body() -> None:
    response = TransportStrategy().success(Reply.no_content()).to_response()
    assert response.status_code == 204
    assert response.body == b""


def test_none_with_200_is_serialized_as_null() -> None:
    response = TransportEnvelope(data=None, http_status=200).to_response()
    assert json.loads(response.body) is None


def test_programmatic_envelopes() -> None:
    strategy = ProgrammaticStrategy()

    success = strategy.success([1, 2])
    assert isinstance(success, SuccessEnvelope)
    assert success.model_dump() == {"outcome": "success", "data": [1, 2]}

    failure = strategy.failure(NotFoundError())
    assert isinstance(failure, ErrorEnvelope)
    assert failure.model_dump()["error"]["uiMessage"] is None
