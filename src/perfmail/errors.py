"""Deterministic error contracts shared across perfmail layers."""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable perfmail error codes."""

    CONFIG_INVALID = "config_invalid"
    SEND_TRANSPORT_FAILED = "send_transport_failed"
    LLM_PROVIDER_FAILED = "llm_provider_failed"
    LLM_CONTRACT_VIOLATION = "llm_contract_violation"
    LLM_INVALID_JSON = "llm_invalid_json"
    ADAPTER_INPUT_INVALID = "adapter_input_invalid"


class PerfmailError(RuntimeError):
    """Failure with stable deterministic code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        data: dict[str, object] | None = None,
    ) -> None:
        """Create perfmail failure.

        Args:
            code: Stable error code.
            message: Human-readable error message.
            data: Optional structured payload for diagnostics.
        """
        super().__init__(message)
        self.code = code
        self.data = data or {}


class ConfigurationError(PerfmailError):
    """Raised when a required runtime setting is absent or malformed."""

    def __init__(self, setting: str, message: str) -> None:
        """Create configuration error.

        Args:
            setting: Environment name of the offending setting.
            message: Operator-facing message; never contains secret values.
        """
        super().__init__(
            ErrorCode.CONFIG_INVALID,
            message,
            data={"setting": setting},
        )
        self.setting = setting


class AdapterInputError(PerfmailError):
    """Raised when the semantic adapter receives no usable LLM object."""

    def __init__(self, message: str) -> None:
        """Create adapter input error.

        Args:
            message: Human-readable error message.
        """
        super().__init__(ErrorCode.ADAPTER_INPUT_INVALID, message)
