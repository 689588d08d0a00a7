"""Retry wrapper for email sends with transient-vs-permanent classification.

Only transient failures (network, timeout, SMTP 4xx) are retried; auth and
config failures fail fast. Delays grow exponentially with small jitter.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from perfmail.config import RuntimeConfig
from perfmail.email.errors import SendErrorInfo, normalize_send_error

_LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_INITIAL_BACKOFF_MS = 1000
JITTER_CAP_MS = 500
LOG_MESSAGE_MAX = 80

PERMANENT_CODES = frozenset({"EAUTH", "ENOAUTH", "EOAUTH2", "ECONFIG", "EPROTOCOL"})
TRANSIENT_CODES = frozenset(
    {"ECONNECTION", "ETIMEDOUT", "ECONNRESET", "EDNS", "ESOCKET", "ETLS"}
)
TRANSIENT_MESSAGE_PATTERN = re.compile(
    r"timeout|ECONNRESET|ETIMEDOUT|temporarily|try again|connection refused"
    r"|ENOTFOUND|network",
    re.IGNORECASE,
)
PERMANENT_MESSAGE_PATTERN = re.compile(
    r"authentication|invalid credentials|invalid login|username and password",
    re.IGNORECASE,
)

ResultT = TypeVar("ResultT")
PayloadT = TypeVar("PayloadT", contravariant=True)


class FailureReason(StrEnum):
    """Classification outcomes for one failure."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class ClassificationCause(StrEnum):
    """Which part of the error record decided the classification."""

    CODE = "code"
    STATUS = "status"
    MESSAGE = "message"
    FALLBACK = "fallback"


class FailureClassification(BaseModel):
    """Classification of one send failure."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    transient: bool
    reason: FailureReason
    cause: ClassificationCause = ClassificationCause.FALLBACK


class RetryPolicy(BaseModel):
    """Attempt budget and initial backoff for one send."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)
    initial_backoff_ms: int = Field(default=DEFAULT_INITIAL_BACKOFF_MS, ge=0)


class SendTransport(Protocol[PayloadT]):
    """Anything exposing one asynchronous ``send`` operation."""

    async def send(self, payload: PayloadT) -> object:
        """Send one message payload.

        Args:
            payload: Transport-specific message options.
        """


def _classify_info(info: SendErrorInfo) -> FailureClassification:
    """Apply ordered classification rules to a normalized record."""
    if info.code in PERMANENT_CODES:
        return FailureClassification(
            transient=False,
            reason=FailureReason.PERMANENT,
            cause=ClassificationCause.CODE,
        )
    if PERMANENT_MESSAGE_PATTERN.search(info.message):
        return FailureClassification(
            transient=False,
            reason=FailureReason.PERMANENT,
            cause=ClassificationCause.MESSAGE,
        )
    if info.status is not None and info.status >= 500:
        return FailureClassification(
            transient=False,
            reason=FailureReason.PERMANENT,
            cause=ClassificationCause.STATUS,
        )
    if info.code in TRANSIENT_CODES:
        return FailureClassification(
            transient=True,
            reason=FailureReason.TRANSIENT,
            cause=ClassificationCause.CODE,
        )
    if info.status is not None and 400 <= info.status < 500:
        return FailureClassification(
            transient=True,
            reason=FailureReason.TRANSIENT,
            cause=ClassificationCause.STATUS,
        )
    if TRANSIENT_MESSAGE_PATTERN.search(info.message):
        return FailureClassification(
            transient=True,
            reason=FailureReason.TRANSIENT,
            cause=ClassificationCause.MESSAGE,
        )
    return FailureClassification(transient=False, reason=FailureReason.PERMANENT)


def is_transient_send_error(error: object) -> FailureClassification:
    """Classify a send error as transient (retry) or permanent (fail fast).

    Unknown failure modes are permanent so they are never retried blindly.

    Args:
        error: Exception, duck-typed error, or normalized ``SendErrorInfo``.

    Returns:
        Classification with reason and deciding cause.
    """
    info = normalize_send_error(error)
    if info is None:
        return FailureClassification(transient=False, reason=FailureReason.UNKNOWN)
    return _classify_info(info)


def _parse_int(raw: str | None) -> int | None:
    """Parse a leading base-10 integer, returning None for garbage."""
    if raw is None:
        return None
    match = re.match(r"\s*([+-]?\d+)", raw)
    if match is None:
        return None
    return int(match.group(1))


def get_retry_policy(config: RuntimeConfig | None = None) -> RetryPolicy:
    """Read retry policy from config with safe defaults.

    Zero or unparseable values fall back to defaults; results are clamped to
    ``max_attempts >= 1`` and ``initial_backoff_ms >= 0``.

    Args:
        config: Runtime config snapshot; defaults apply when None.

    Returns:
        Effective retry policy.
    """
    if config is None:
        return RetryPolicy()
    attempts = _parse_int(config.email_send_max_attempts) or DEFAULT_MAX_ATTEMPTS
    backoff = _parse_int(config.email_send_backoff_ms) or DEFAULT_INITIAL_BACKOFF_MS
    return RetryPolicy(
        max_attempts=max(1, attempts),
        initial_backoff_ms=max(0, backoff),
    )


def backoff_delay_ms(
    attempt: int,
    initial_backoff_ms: int,
    jitter_fn: Callable[[int], int] | None = None,
) -> int:
    """Compute delay before attempt ``attempt + 1``.

    Args:
        attempt: Attempt number that just failed (1-based).
        initial_backoff_ms: Policy initial backoff.
        jitter_fn: Returns jitter in ``[0, cap)`` for a cap; random by default.

    Returns:
        Delay in milliseconds.
    """
    base_delay = initial_backoff_ms * 2 ** (attempt - 1)
    cap = min(JITTER_CAP_MS, base_delay)
    jitter = (jitter_fn or _random_jitter)(cap)
    return base_delay + jitter


def _random_jitter(cap_ms: int) -> int:
    """Uniform integer jitter in ``[0, cap_ms)``; zero when cap is empty."""
    if cap_ms <= 0:
        return 0
    return random.randrange(cap_ms)  # nosec B311


async def send_with_retry(
    transport: SendTransport[PayloadT],
    payload: PayloadT,
    *,
    policy: RetryPolicy | None = None,
    config: RuntimeConfig | None = None,
    context: str = "send",
    sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    jitter_fn: Callable[[int], int] | None = None,
) -> object:
    """Send with retry on transient errors using exponential backoff.

    Args:
        transport: Object exposing async ``send(payload)``.
        payload: Message options passed through to ``transport.send``.
        policy: Per-call override; read from ``config`` when None.
        config: Runtime config used to build the default policy.
        context: Short label included in retry logs.
        sleep_fn: Injectable async sleep taking seconds.
        jitter_fn: Injectable jitter source taking a cap in milliseconds.

    Returns:
        Result of the first successful ``transport.send`` call.

    Raises:
        Exception: The original transport error after a permanent
            classification or an exhausted attempt budget.
    """
    effective = policy or get_retry_policy(config)
    max_attempts = effective.max_attempts

    for attempt in range(1, max_attempts + 1):
        try:
            return await transport.send(payload)
        except Exception as exc:
            classification = is_transient_send_error(exc)
            info = normalize_send_error(exc)
            code = info.code if info is not None else None
            message = (info.message if info is not None else str(exc))[
                :LOG_MESSAGE_MAX
            ]

            if not classification.transient or attempt >= max_attempts:
                if attempt > 1:
                    _LOGGER.error(
                        "email_send_retry_final_failure",
                        extra={
                            "context": context,
                            "attempt": attempt,
                            "max_attempts": max_attempts,
                            "reason": classification.reason.value,
                            "code": code,
                            "error_message": message,
                        },
                    )
                raise

            delay_ms = backoff_delay_ms(
                attempt, effective.initial_backoff_ms, jitter_fn
            )
            _LOGGER.warning(
                "email_send_retry",
                extra={
                    "context": context,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "reason": classification.reason.value,
                    "code": code,
                    "error_message": message,
                    "next_attempt_in_ms": delay_ms,
                },
            )
            await sleep_fn(delay_ms / 1000)

    raise RuntimeError("send_with_retry exited without result")  # pragma: no cover
