"""Runtime configuration loading and preflight validation."""

from perfmail.config.runtime_config import (
    SECRET_FIELDS,
    RuntimeConfig,
    SendMode,
    validate_runtime_config,
)
from perfmail.errors import ConfigurationError

__all__ = [
    "SECRET_FIELDS",
    "ConfigurationError",
    "RuntimeConfig",
    "SendMode",
    "validate_runtime_config",
]
