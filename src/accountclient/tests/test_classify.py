"""Tests for error response classification and the error hierarchy."""

import pytest

from accountclient import (
    AccountClientError,
    CircuitOpenError,
    ConfigurationError,
    ErrorCode,
    RequestError,
    TransportError,
    classify,
)


def test_empty_404_body_gives_empty_message() -> None:
    err = classify(b"", 404)
    assert err.status_code == 404
    assert err.message == ""
    assert err.code is ErrorCode.NOT_FOUND


def test_documented_error_body_is_parsed() -> None:
    err = classify(b'{"error_message":"bad country"}', 400)
    assert (err.status_code, err.message) == (400, "bad country")
    assert str(err) == "status 400: error: bad country"


def test_missing_body_is_tolerated() -> None:
    assert classify(None, 503) == RequestError(503, "")


@pytest.mark.parametrize(
    "body",
    [
        b"Forbidden",
        b'["a", "list"]',
        b'{"error_message": 42}',
        b"{not json",
    ],
)
def test_undocumented_bodies_fall_back_to_raw_text(body: bytes) -> None:
    err = classify(body, 403)
    assert err.status_code == 403
    assert err.message == body.decode()


@pytest.mark.parametrize("body", [b"{}", b"null", b'{"error_message": null}', b'{"message": "other field"}'])
def test_json_without_a_message_gives_empty_message(body: bytes) -> None:
    err = classify(body, 500)
    assert (err.status_code, err.message) == (500, "")


def test_undecodable_bytes_are_replaced() -> None:
    err = classify(b"\xff\xfeoops", 500)
    assert err.status_code == 500
    assert "oops" in err.message


def test_extra_fields_next_to_message_are_ignored() -> None:
    err = classify(b'{"error_message": "invalid version", "error_code": "abc"}', 409)
    assert err.message == "invalid version"
    assert err.code is ErrorCode.CONFLICT


@pytest.mark.parametrize(
    ("status", "code"),
    [(400, ErrorCode.BAD_REQUEST), (401, ErrorCode.UNAUTHORIZED), (403, ErrorCode.PERMISSION_DENIED),
     (429, ErrorCode.RATE_LIMITED), (500, ErrorCode.SERVER_ERROR), (504, ErrorCode.SERVER_ERROR),
     (418, ErrorCode.UNKNOWN)],
)
def test_status_to_code(status: int, code: ErrorCode) -> None:
    assert RequestError(status).code is code


def test_request_error_flags() -> None:
    assert RequestError(404).is_client_error and not RequestError(404).is_server_error
    assert RequestError(502).is_server_error and not RequestError(502).is_client_error


def test_error_hierarchy() -> None:
    assert issubclass(RequestError, AccountClientError)
    assert issubclass(CircuitOpenError, TransportError)
    assert not issubclass(CircuitOpenError, RequestError)
    assert issubclass(ConfigurationError, ValueError)


def test_circuit_open_message() -> None:
    err = CircuitOpenError("account-client", retry_after=2.5)
    assert err.command == "account-client"
    assert "account-client" in str(err) and "2.5s" in str(err)
