"""Unit tests for boundary normalization of send errors."""

from __future__ import annotations

import smtplib
import socket
import ssl
import urllib.error

import pytest

from perfmail.email import (
    ClassificationCause,
    SendErrorInfo,
    SendTransportError,
    is_transient_send_error,
    normalize_send_error,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("error", "code"),
    [
        (TimeoutError("timed out"), "ETIMEDOUT"),
        (ConnectionResetError("reset"), "ECONNRESET"),
        (ConnectionRefusedError("refused"), "ECONNECTION"),
        (socket.gaierror("name resolution"), "EDNS"),
        (ssl.SSLError("handshake"), "ETLS"),
        (OSError("broken pipe"), "ESOCKET"),
        (smtplib.SMTPServerDisconnected("gone"), "ECONNECTION"),
    ],
)
def test_stdlib_exceptions_map_to_codes(error: Exception, code: str) -> None:
    """Stdlib network exceptions should map to stable transport codes."""
    info = normalize_send_error(error)

    assert info is not None
    assert info.code == code
    assert is_transient_send_error(error).transient is True


@pytest.mark.unit
def test_smtp_auth_error_is_permanent_with_status() -> None:
    """SMTP auth failures carry EAUTH and the numeric SMTP status."""
    error = smtplib.SMTPAuthenticationError(
        535, b"5.7.8 Username and Password not accepted"
    )

    info = normalize_send_error(error)

    assert info == SendErrorInfo(
        code="EAUTH",
        status=535,
        message="5.7.8 Username and Password not accepted",
    )
    assert is_transient_send_error(error).transient is False


@pytest.mark.unit
def test_smtp_temporary_response_is_transient() -> None:
    """SMTP 4xx responses are temporary failures."""
    error = smtplib.SMTPDataError(451, b"4.3.0 Mail server temporarily rejected")

    info = normalize_send_error(error)

    assert info is not None
    assert info.code is None
    assert info.status == 451
    assert is_transient_send_error(error).transient is True


@pytest.mark.unit
def test_string_errno_is_used_as_code() -> None:
    """Duck-typed errors exposing a string errno should use it as code."""

    class _Err(Exception):
        errno = "ECONNRESET"

    assert normalize_send_error(_Err("x")) == SendErrorInfo(
        code="ECONNRESET", message="x"
    )


@pytest.mark.unit
def test_transport_error_round_trips_its_record() -> None:
    """Wrapped transport errors expose the original normalized record."""
    info = SendErrorInfo(code="ETLS", message="bad cert")

    assert normalize_send_error(SendTransportError(info)) is info
    assert normalize_send_error(None) is None


class _HttpApiError(Exception):
    """HTTP-API transport error exposing a plain ``status`` attribute."""

    def __init__(self, message: str, *, status: int) -> None:
        """Store status."""
        super().__init__(message)
        self.status = status


@pytest.mark.unit
def test_plain_status_attribute_drives_classification() -> None:
    """A rate-limited HTTP transport error is retried on its 4xx status."""
    error = _HttpApiError("Too Many Requests", status=429)

    classification = is_transient_send_error(error)

    assert normalize_send_error(error) == SendErrorInfo(
        status=429, message="Too Many Requests"
    )
    assert classification.transient is True
    assert classification.cause == ClassificationCause.STATUS


@pytest.mark.unit
def test_http_error_status_outranks_socket_code() -> None:
    """HTTP 5xx errors are permanent despite being ``OSError`` subclasses."""
    error = urllib.error.HTTPError(
        "https://mail.example.com/send", 503, "Service Unavailable", None, None
    )

    info = normalize_send_error(error)
    classification = is_transient_send_error(error)

    assert info is not None
    assert info.code is None
    assert info.status == 503
    assert classification.transient is False
    assert classification.cause == ClassificationCause.STATUS


@pytest.mark.unit
def test_integer_code_attribute_is_read_as_status() -> None:
    """Duck-typed errors with a numeric ``code`` classify by that status."""

    class _Err(Exception):
        code = 421

    info = normalize_send_error(_Err("service not available, try later"))

    assert info == SendErrorInfo(status=421, message="service not available, try later")
    assert is_transient_send_error(_Err("x")).transient is True
