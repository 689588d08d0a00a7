"""Email send path: retry executor, send-mode policy, SMTP transport."""

from perfmail.email.errors import (
    SendErrorInfo,
    SendTransportError,
    normalize_send_error,
)
from perfmail.email.retry import (
    DEFAULT_INITIAL_BACKOFF_MS,
    DEFAULT_MAX_ATTEMPTS,
    ClassificationCause,
    FailureClassification,
    FailureReason,
    RetryPolicy,
    SendTransport,
    backoff_delay_ms,
    get_retry_policy,
    is_transient_send_error,
    send_with_retry,
)
from perfmail.email.sender import (
    TEST_SUBJECT_PREFIX,
    log_sender_config,
    resolve_recipients,
    resolve_subject,
)
from perfmail.email.smtp_transport import SmtpTransport, build_message

__all__ = [
    "DEFAULT_INITIAL_BACKOFF_MS",
    "DEFAULT_MAX_ATTEMPTS",
    "TEST_SUBJECT_PREFIX",
    "ClassificationCause",
    "FailureClassification",
    "FailureReason",
    "RetryPolicy",
    "SendErrorInfo",
    "SendTransport",
    "SendTransportError",
    "SmtpTransport",
    "backoff_delay_ms",
    "build_message",
    "get_retry_policy",
    "is_transient_send_error",
    "log_sender_config",
    "normalize_send_error",
    "resolve_recipients",
    "resolve_subject",
    "send_with_retry",
]
