"""Transient-vs-permanent classification for LLM provider failures."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from perfmail.llm.base import LlmProviderError

TRANSIENT_PROVIDER_CODES = frozenset(
    {"RESOURCE_EXHAUSTED", "UNAVAILABLE", "DEADLINE_EXCEEDED", "ABORTED", "INTERNAL"}
)
TRANSIENT_PROVIDER_STATUSES = frozenset({408, 409, 429})
TRANSIENT_PROVIDER_MESSAGE = re.compile(
    r"rate limit|quota|overloaded|unavailable|timeout|timed out|ECONNRESET"
    r"|connection reset|try again",
    re.IGNORECASE,
)


class ProviderFailure(BaseModel):
    """Normalized provider failure with its retry decision."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str | None = None
    status: int | None = None
    message: str = ""
    transient: bool = False


def _provider_code(error: object) -> str | None:
    """Read a symbolic status code name from common provider error shapes."""
    for attr in ("code", "grpc_status_code"):
        value = getattr(error, attr, None)
        if isinstance(value, str):
            return value.upper()
        name = getattr(value, "name", None)
        if isinstance(name, str) and not isinstance(value, int):
            return name.upper()
    return None


def _provider_status(error: object) -> int | None:
    """Read a numeric HTTP-like status from common provider error shapes."""
    for attr in ("status", "status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return int(value)
    return None


def classify_provider_error(error: object) -> ProviderFailure:
    """Classify one provider failure.

    Rate-limit, overload, unavailability and timeout signatures are
    transient; everything else is permanent.

    Args:
        error: Exception raised by the provider call.

    Returns:
        Normalized failure with ``transient`` decision.
    """
    if isinstance(error, TimeoutError):
        return ProviderFailure(
            code="DEADLINE_EXCEEDED", message=str(error), transient=True
        )
    if isinstance(error, LlmProviderError):
        code, status = error.provider_code, error.status
    else:
        code, status = _provider_code(error), _provider_status(error)
    message = str(error)
    transient = (
        code in TRANSIENT_PROVIDER_CODES
        or (
            status is not None
            and (status in TRANSIENT_PROVIDER_STATUSES or 500 <= status < 600)
        )
        or bool(TRANSIENT_PROVIDER_MESSAGE.search(message))
    )
    return ProviderFailure(
        code=code, status=status, message=message, transient=transient
    )
