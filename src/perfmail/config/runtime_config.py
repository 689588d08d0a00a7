"""Runtime config model and fail-fast preflight validation.

Settings are read once from a flat string mapping (normally ``os.environ``)
into an explicit ``RuntimeConfig`` that is passed to every component.
Validation raises ``ConfigurationError`` on the first failing rule and never
echoes secret values.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from perfmail.errors import ConfigurationError


_DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class SendMode(StrEnum):
    """Supported email send modes."""

    TEST = "test"
    PROD = "prod"


_ENV_NAMES: dict[str, str] = {
    "monday_api_token": "MONDAY_API_TOKEN",
    "llm_api_key": "LLM_API_KEY",
    "gmail_user": "GMAIL_USER",
    "gmail_app_password": "GMAIL_APP_PASSWORD",
    "test_emails": "TEST_EMAILS",
    "send_mode": "SEND_MODE",
    "llm_timeout_ms": "LLM_TIMEOUT_MS",
    "llm_max_tokens": "LLM_MAX_TOKENS",
    "monday_max_concurrent": "MONDAY_MAX_CONCURRENT",
    "monday_min_delay_ms": "MONDAY_MIN_DELAY_MS",
    "monday_max_attempts": "MONDAY_MAX_ATTEMPTS",
    "email_send_max_attempts": "EMAIL_SEND_MAX_ATTEMPTS",
    "email_send_backoff_ms": "EMAIL_SEND_BACKOFF_MS",
    "llm_model": "LLM_MODEL",
    "gcp_project": "GCP_PROJECT",
    "gcp_location": "GCP_LOCATION",
}

SECRET_FIELDS = frozenset({"monday_api_token", "llm_api_key", "gmail_app_password"})


class RuntimeConfig(BaseModel):
    """Explicit runtime settings snapshot; every field is optional text."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    monday_api_token: str | None = Field(default=None, repr=False)
    llm_api_key: str | None = Field(default=None, repr=False)
    gmail_user: str | None = None
    gmail_app_password: str | None = Field(default=None, repr=False)
    test_emails: str | None = None
    send_mode: str | None = None
    llm_timeout_ms: str | None = None
    llm_max_tokens: str | None = None
    monday_max_concurrent: str | None = None
    monday_min_delay_ms: str | None = None
    monday_max_attempts: str | None = None
    email_send_max_attempts: str | None = None
    email_send_backoff_ms: str | None = None
    llm_model: str | None = None
    gcp_project: str | None = None
    gcp_location: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> RuntimeConfig:
        """Build config from a flat environment mapping.

        Empty and whitespace-only values are treated as absent.

        Args:
            env: Environment-like mapping of string settings.

        Returns:
            Immutable runtime config.
        """
        values: dict[str, str] = {}
        for field_name, env_name in _ENV_NAMES.items():
            raw = env.get(env_name)
            if raw is None:
                continue
            text = str(raw).strip()
            if text:
                values[field_name] = text
        return cls(**values)

    def setting(self, env_name: str) -> str | None:
        """Return one setting by its environment name.

        Args:
            env_name: Environment variable name, e.g. ``SEND_MODE``.

        Returns:
            Trimmed value or None when absent.

        Raises:
            KeyError: If the name is not a known setting.
        """
        for field_name, known in _ENV_NAMES.items():
            if known == env_name:
                return getattr(self, field_name)
        raise KeyError(env_name)

    def resolved_send_mode(self) -> SendMode:
        """Resolve send mode; anything but literal ``prod`` means test."""
        return SendMode.PROD if self.send_mode == SendMode.PROD else SendMode.TEST

    def test_recipients(self) -> list[str]:
        """Parse comma-separated test recipients, dropping blanks."""
        raw = self.test_emails or ""
        return [item.strip() for item in raw.split(",") if item.strip()]

    def safe_summary(self) -> dict[str, str]:
        """Return a secret-free view keyed by environment name.

        Secrets are reported only as ``set`` or ``missing``.
        """
        summary: dict[str, str] = {}
        for field_name, env_name in _ENV_NAMES.items():
            value = getattr(self, field_name)
            if field_name in SECRET_FIELDS:
                summary[env_name] = "set" if value else "missing"
            else:
                summary[env_name] = value if value is not None else "-"
        return summary


def _require(config: RuntimeConfig, env_name: str, purpose: str) -> None:
    """Raise when a presence-required setting is absent; never echoes values."""
    if not config.setting(env_name):
        raise ConfigurationError(env_name, f"{env_name} must be set for {purpose}.")


def _validate_number(
    config: RuntimeConfig,
    env_name: str,
    description: str,
    predicate: Callable[[float], bool],
) -> None:
    """Validate a numeric setting when present.

    Args:
        config: Runtime config snapshot.
        env_name: Setting environment name.
        description: Human requirement, e.g. ``must be a positive number``.
        predicate: Range check applied to the parsed value.

    Raises:
        ConfigurationError: If the value is not finite or fails ``predicate``.
    """
    raw = config.setting(env_name)
    if raw is None:
        return
    # Plain decimal or exponent notation only; "1_000" and "inf" are rejected.
    value = float(raw) if _DECIMAL_PATTERN.fullmatch(raw) else math.nan
    if not math.isfinite(value):
        raise ConfigurationError(
            env_name, f'{env_name} must be a number (got: "{raw}"). {description}.'
        )
    if not predicate(value):
        raise ConfigurationError(env_name, f'{env_name} {description} (got: "{raw}").')


def _validate_int(
    config: RuntimeConfig,
    env_name: str,
    description: str,
    predicate: Callable[[int], bool],
) -> None:
    """Validate a base-10 integer setting when present.

    Args:
        config: Runtime config snapshot.
        env_name: Setting environment name.
        description: Human requirement, e.g. ``must be an integer >= 1``.
        predicate: Range check applied to the parsed value.

    Raises:
        ConfigurationError: If the value is not a plain integer or fails
            ``predicate``.
    """
    raw = config.setting(env_name)
    if raw is None:
        return
    try:
        value = int(raw, 10)
    except ValueError:
        value = None
    # Rejects "1.5", "12abc", "+3", "007" and "1_000".
    if value is None or str(value) != raw:
        raise ConfigurationError(
            env_name, f'{env_name} must be an integer (got: "{raw}"). {description}.'
        )
    if not predicate(value):
        raise ConfigurationError(env_name, f'{env_name} {description} (got: "{raw}").')


def validate_runtime_config(
    *,
    dry_run: bool,
    env: Mapping[str, str] | RuntimeConfig,
    send_mode: str | None = None,
) -> None:
    """Validate monthly runtime config before any external call.

    Rules are evaluated in order and the first failure is raised.

    Args:
        dry_run: Whether the job renders without sending email.
        env: Environment mapping or an already-built config snapshot.
        send_mode: Resolved send mode; falls back to ``SEND_MODE`` when None.

    Raises:
        ConfigurationError: With operator-friendly, secret-free message.
    """
    config = env if isinstance(env, RuntimeConfig) else RuntimeConfig.from_env(env)
    mode_source = send_mode if send_mode is not None else config.send_mode
    mode = SendMode.PROD if mode_source == SendMode.PROD else SendMode.TEST

    _require(config, "MONDAY_API_TOKEN", "the monthly report data fetch")
    _require(config, "LLM_API_KEY", "monthly LLM analysis")

    if not dry_run:
        _require(config, "GMAIL_USER", "monthly email send (non-dry-run)")
        _require(config, "GMAIL_APP_PASSWORD", "monthly email send (non-dry-run)")
        if mode == SendMode.TEST and not config.test_recipients():
            raise ConfigurationError(
                "TEST_EMAILS",
                "TEST_EMAILS must be set when SEND_MODE=test "
                "(comma-separated list of recipient emails, at least one).",
            )

    raw_mode = config.send_mode
    if raw_mode is not None and raw_mode not in (SendMode.TEST, SendMode.PROD):
        raise ConfigurationError(
            "SEND_MODE", f'SEND_MODE must be "test" or "prod" (got: "{raw_mode}").'
        )

    _validate_number(
        config,
        "LLM_TIMEOUT_MS",
        "must be a positive number (milliseconds)",
        lambda n: n > 0,
    )
    _validate_number(
        config, "LLM_MAX_TOKENS", "must be a positive number", lambda n: n > 0
    )
    _validate_int(
        config, "MONDAY_MAX_CONCURRENT", "must be an integer >= 1", lambda n: n >= 1
    )
    _validate_number(config, "MONDAY_MIN_DELAY_MS", "must be >= 0", lambda n: n >= 0)
    _validate_int(
        config, "MONDAY_MAX_ATTEMPTS", "must be an integer >= 1", lambda n: n >= 1
    )
