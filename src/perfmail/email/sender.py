"""Send-mode policy: recipient and subject resolution for test vs prod."""

from __future__ import annotations

import logging

from perfmail.config import RuntimeConfig, SendMode
from perfmail.errors import ConfigurationError

_LOGGER = logging.getLogger(__name__)

TEST_SUBJECT_PREFIX = "[TEST] "


def resolve_recipients(config: RuntimeConfig, real_recipients: list[str]) -> list[str]:
    """Resolve recipients for one send.

    Args:
        config: Runtime config snapshot.
        real_recipients: Intended recipients from org data.

    Returns:
        Test recipients in test mode, else a copy of ``real_recipients``.

    Raises:
        ConfigurationError: If test mode has no test recipients.
    """
    if config.resolved_send_mode() == SendMode.PROD:
        return list(real_recipients)
    test_list = config.test_recipients()
    if not test_list:
        raise ConfigurationError(
            "TEST_EMAILS",
            "TEST_EMAILS must be set when SEND_MODE=test "
            "(comma-separated list of recipient emails).",
        )
    return test_list


def resolve_subject(config: RuntimeConfig, subject: str) -> str:
    """Prefix subject with ``[TEST] `` in test mode."""
    if config.resolved_send_mode() == SendMode.TEST:
        return TEST_SUBJECT_PREFIX + (subject or "")
    return subject or ""


def log_sender_config(config: RuntimeConfig) -> None:
    """Log send mode and test recipient count (no addresses, no secrets)."""
    mode = config.resolved_send_mode()
    _LOGGER.info(
        "email_sender_config",
        extra={
            "send_mode": mode.value,
            "test_recipient_count": len(config.test_recipients()),
        },
    )
