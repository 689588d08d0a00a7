"""Normalized send-error records produced at the transport boundary."""

from __future__ import annotations

import smtplib
import socket
import ssl

from pydantic import BaseModel, ConfigDict

from perfmail.errors import ErrorCode, PerfmailError


class SendErrorInfo(BaseModel):
    """Transport-independent view of one send failure."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str | None = None
    status: int | None = None
    message: str = ""


class SendTransportError(PerfmailError):
    """Raised by transports with an already-normalized error record."""

    def __init__(self, info: SendErrorInfo) -> None:
        """Create transport error.

        Args:
            info: Normalized code/status/message record.
        """
        super().__init__(
            ErrorCode.SEND_TRANSPORT_FAILED,
            info.message,
            data={"code": info.code, "status": info.status},
        )
        self.info = info


_STATUS_ATTRS = (
    "status",
    "response_code",
    "responseCode",
    "status_code",
    "statusCode",
    "smtp_code",
)


def _code_for_exception(error: BaseException) -> str | None:
    """Map stdlib exception types to stable transport codes."""
    if isinstance(error, smtplib.SMTPAuthenticationError):
        return "EAUTH"
    if isinstance(error, smtplib.SMTPServerDisconnected):
        return "ECONNECTION"
    if isinstance(error, smtplib.SMTPException):
        return None
    if isinstance(error, TimeoutError):
        return "ETIMEDOUT"
    if isinstance(error, ConnectionResetError):
        return "ECONNRESET"
    if isinstance(error, ConnectionRefusedError):
        return "ECONNECTION"
    if isinstance(error, socket.gaierror):
        return "EDNS"
    if isinstance(error, ssl.SSLError):
        return "ETLS"
    if isinstance(error, OSError):
        return "ESOCKET"
    return None


def _status_for(error: object) -> int | None:
    """Read the first integer status attribute, then an integer ``code``."""
    for attr in _STATUS_ATTRS:
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    code = getattr(error, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return None


def _message_for(error: object) -> str:
    """Extract message text, decoding SMTP byte payloads."""
    smtp_error = getattr(error, "smtp_error", None)
    if isinstance(smtp_error, bytes):
        return smtp_error.decode("utf-8", errors="replace")
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    return str(error)


def normalize_send_error(error: object) -> SendErrorInfo | None:
    """Normalize an arbitrary error into a ``SendErrorInfo`` record.

    Args:
        error: Exception (or duck-typed object) raised by a transport.

    Returns:
        Normalized record, or None when ``error`` is absent.
    """
    if error is None:
        return None
    if isinstance(error, SendErrorInfo):
        return error
    if isinstance(error, SendTransportError):
        return error.info

    code = getattr(error, "code", None)
    if not isinstance(code, str):
        errno_value = getattr(error, "errno", None)
        code = errno_value if isinstance(errno_value, str) else None
    status = _status_for(error)
    # A reported status outranks the synthetic socket-level codes.
    if (
        code is None
        and isinstance(error, BaseException)
        and (status is None or isinstance(error, smtplib.SMTPException))
    ):
        code = _code_for_exception(error)

    return SendErrorInfo(
        code=code,
        status=status,
        message=_message_for(error),
    )
