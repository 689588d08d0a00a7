"""LLM request/response contracts and orchestration error types."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

from perfmail.errors import ErrorCode, PerfmailError


class ReportKind(StrEnum):
    """Supported monthly report shapes."""

    EMPLOYEE = "employee"
    DEPARTMENT = "department"


class LlmRequest(BaseModel):
    """Normalized request for one LLM generation."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    model: str = Field(min_length=1)
    system_prompt: str
    user_content: str


class TokenUsage(BaseModel):
    """Optional token counters reported by the provider."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class LlmRawResult(BaseModel):
    """Raw provider output before JSON parsing."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    content: str
    usage: TokenUsage | None = None
    model: str


class LlmProvider(Protocol):
    """Provider port consumed by the orchestrator."""

    async def generate(self, request: LlmRequest) -> LlmRawResult:
        """Execute one model call.

        Args:
            request: Normalized request payload.
        """


class LlmProviderError(PerfmailError):
    """Provider failure with optional machine code and numeric status."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
    ) -> None:
        """Create provider error.

        Args:
            message: Human-readable error message.
            code: Provider status code name, e.g. ``RESOURCE_EXHAUSTED``.
            status: Numeric HTTP-like status when known.
        """
        super().__init__(
            ErrorCode.LLM_PROVIDER_FAILED,
            message,
            data={"code": code, "status": status},
        )
        self.provider_code = code
        self.status = status


class LlmContractError(PerfmailError):
    """Raised when a transported response violates the output contract."""

    def __init__(
        self,
        message: str,
        *,
        kind: ReportKind,
        missing_key: str | None = None,
        code: ErrorCode = ErrorCode.LLM_CONTRACT_VIOLATION,
    ) -> None:
        """Create contract error.

        Args:
            message: Human-readable error message.
            kind: Report shape being validated.
            missing_key: Required key that was absent or empty.
            code: Stable error code.
        """
        super().__init__(
            code,
            message,
            data={"kind": kind.value, "missing_key": missing_key},
        )
        self.kind = kind
        self.missing_key = missing_key


class LlmInvalidJsonError(LlmContractError):
    """Raised when every attempt returned text that is not valid JSON."""

    def __init__(self, kind: ReportKind, attempts: int) -> None:
        """Create invalid-JSON error.

        Args:
            kind: Report shape being generated.
            attempts: Attempts consumed before giving up.
        """
        super().__init__(
            f"LLM {kind.value} response is not valid JSON "
            f"after {attempts} attempt(s).",
            kind=kind,
            code=ErrorCode.LLM_INVALID_JSON,
        )
        self.attempts = attempts
