"""Gmail SMTP transport with boundary error normalization."""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from email.mime.text import MIMEText

from perfmail.config import RuntimeConfig
from perfmail.email.errors import (
    SendErrorInfo,
    SendTransportError,
    normalize_send_error,
)

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 465
DEFAULT_TIMEOUT_SECONDS = 30.0


def build_message(
    *,
    sender: str,
    recipients: list[str],
    subject: str,
    html_body: str,
) -> MIMEText:
    """Build one HTML email message.

    Args:
        sender: From address.
        recipients: Resolved To addresses.
        subject: Resolved subject line.
        html_body: Rendered HTML body.

    Returns:
        MIME message ready for ``SmtpTransport.send``.
    """
    msg = MIMEText(html_body, "html", "utf-8")
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = ", ".join(recipients)
    return msg


class SmtpTransport:
    """Async facade over blocking ``smtplib.SMTP_SSL`` sends."""

    def __init__(
        self,
        username: str,
        app_password: str,
        *,
        host: str = GMAIL_SMTP_HOST,
        port: int = GMAIL_SMTP_PORT,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Create SMTP transport.

        Args:
            username: SMTP login identity.
            app_password: SMTP credential; never logged.
            host: SMTP host.
            port: SMTP SSL port.
            timeout_seconds: Socket timeout per connection.
        """
        self._username = username
        self._app_password = app_password
        self._host = host
        self._port = port
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_config(cls, config: RuntimeConfig) -> SmtpTransport:
        """Build transport from validated runtime config.

        Args:
            config: Config already checked by ``validate_runtime_config``.

        Returns:
            Configured transport.

        Raises:
            ValueError: If email identity or credential is absent.
        """
        if not config.gmail_user or not config.gmail_app_password:
            raise ValueError("GMAIL_USER and GMAIL_APP_PASSWORD are required.")
        return cls(config.gmail_user, config.gmail_app_password)

    async def send(self, payload: MIMEText) -> dict[str, tuple[int, bytes]]:
        """Send one message in a worker thread.

        Args:
            payload: Message built by ``build_message``.

        Returns:
            Refused-recipient mapping from ``smtplib`` (empty on full success).

        Raises:
            SendTransportError: With normalized code/status/message.
        """
        try:
            return await asyncio.to_thread(self._send_blocking, payload)
        except (smtplib.SMTPException, OSError) as exc:
            info = normalize_send_error(exc) or SendErrorInfo(message=str(exc))
            raise SendTransportError(info) from exc

    def _send_blocking(self, payload: MIMEText) -> dict[str, tuple[int, bytes]]:
        """Open an SSL session, log in, and send."""
        context = ssl.create_default_context()
        recipients = [
            item.strip() for item in str(payload["To"] or "").split(",") if item.strip()
        ]
        with smtplib.SMTP_SSL(
            self._host, self._port, context=context, timeout=self._timeout_seconds
        ) as server:
            server.login(self._username, self._app_password)
            return server.sendmail(self._username, recipients, payload.as_string())
