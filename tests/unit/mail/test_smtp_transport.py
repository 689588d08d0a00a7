"""Unit tests for the SMTP transport facade."""

from __future__ import annotations

import smtplib

import pytest

from perfmail.config import RuntimeConfig
from perfmail.email import (
    RetryPolicy,
    SendTransportError,
    SmtpTransport,
    build_message,
    send_with_retry,
)


class _FakeSmtp:
    """Stand-in for ``smtplib.SMTP_SSL`` recording calls."""

    instances: list[_FakeSmtp] = []
    failures: list[Exception] = []

    def __init__(self, host: str, port: int, **kwargs: object) -> None:
        """Record connection parameters."""
        self.host = host
        self.port = port
        self.kwargs = kwargs
        self.logins: list[tuple[str, str]] = []
        self.sent: list[tuple[str, list[str]]] = []
        _FakeSmtp.instances.append(self)

    def __enter__(self) -> _FakeSmtp:
        """Enter context."""
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Exit context."""

    def login(self, user: str, password: str) -> None:
        """Record login or raise the next scripted failure."""
        if _FakeSmtp.failures:
            raise _FakeSmtp.failures.pop(0)
        self.logins.append((user, password))

    def sendmail(self, sender: str, recipients: list[str], body: str) -> dict:
        """Record sent message."""
        del body
        self.sent.append((sender, recipients))
        return {}


@pytest.fixture
def fake_smtp(monkeypatch: pytest.MonkeyPatch) -> type[_FakeSmtp]:
    """Patch SMTP_SSL with the recording fake."""
    _FakeSmtp.instances = []
    _FakeSmtp.failures = []
    monkeypatch.setattr(smtplib, "SMTP_SSL", _FakeSmtp)
    return _FakeSmtp


def _message() -> object:
    """Build a shared HTML message fixture."""
    return build_message(
        sender="reports@x.ro",
        recipients=["qa@x.ro", "dev@x.ro"],
        subject="[TEST] Raport",
        html_body="<p>Salut</p>",
    )


@pytest.mark.unit
def test_build_message_sets_headers() -> None:
    """Built message should carry HTML body and headers."""
    msg = _message()

    assert msg["Subject"] == "[TEST] Raport"
    assert msg["To"] == "qa@x.ro, dev@x.ro"
    assert msg.get_content_type() == "text/html"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_logs_in_and_sends(fake_smtp: type[_FakeSmtp]) -> None:
    """Transport should log in and send to every recipient."""
    transport = SmtpTransport("reports@x.ro", "app-pass")

    result = await transport.send(_message())

    assert result == {}
    server = fake_smtp.instances[0]
    assert (server.host, server.port) == ("smtp.gmail.com", 465)
    assert server.logins == [("reports@x.ro", "app-pass")]
    assert server.sent == [("reports@x.ro", ["qa@x.ro", "dev@x.ro"])]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_send_normalizes_auth_failure(fake_smtp: type[_FakeSmtp]) -> None:
    """Auth failures surface as normalized permanent transport errors."""
    fake_smtp.failures.append(
        smtplib.SMTPAuthenticationError(535, b"Username and Password not accepted")
    )
    transport = SmtpTransport("reports@x.ro", "app-pass")

    with pytest.raises(SendTransportError) as exc_info:
        await transport.send(_message())

    assert exc_info.value.info.code == "EAUTH"
    assert exc_info.value.info.status == 535
    assert "app-pass" not in str(exc_info.value)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_retry_recovers_from_transient_smtp_timeout(
    fake_smtp: type[_FakeSmtp],
) -> None:
    """Retry executor should retry a normalized timeout and then succeed."""
    fake_smtp.failures.append(TimeoutError("timed out"))
    transport = SmtpTransport("reports@x.ro", "app-pass")
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    result = await send_with_retry(
        transport,
        _message(),
        policy=RetryPolicy(max_attempts=3, initial_backoff_ms=10),
        sleep_fn=_sleep,
        jitter_fn=lambda cap: 0,
    )

    assert result == {}
    assert len(fake_smtp.instances) == 2
    assert delays == [0.01]


@pytest.mark.unit
def test_from_config_requires_identity() -> None:
    """Transport construction needs both identity and credential."""
    with pytest.raises(ValueError):
        SmtpTransport.from_config(RuntimeConfig.from_env({"GMAIL_USER": "a@x.ro"}))

    transport = SmtpTransport.from_config(
        RuntimeConfig.from_env({"GMAIL_USER": "a@x.ro", "GMAIL_APP_PASSWORD": "p"})
    )
    assert isinstance(transport, SmtpTransport)
