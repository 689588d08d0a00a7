"""LLM orchestration: provider port, output contracts, retrying orchestrator."""

from perfmail.llm.base import (
    LlmContractError,
    LlmInvalidJsonError,
    LlmProvider,
    LlmProviderError,
    LlmRawResult,
    LlmRequest,
    ReportKind,
    TokenUsage,
)
from perfmail.llm.contracts import (
    DEPARTMENT_KEYS,
    EMPLOYEE_KEYS,
    REQUIRED_KEYS,
    STRICT_JSON_INSTRUCTION,
    validate_sections,
)
from perfmail.llm.json_text import JsonTextError, parse_json_from_text
from perfmail.llm.orchestrator import (
    INITIAL_BACKOFF_MS,
    MAX_ATTEMPTS,
    AttemptState,
    LlmOrchestrator,
)
from perfmail.llm.provider_errors import ProviderFailure, classify_provider_error
from perfmail.llm.vertex_provider import VertexProvider

__all__ = [
    "DEPARTMENT_KEYS",
    "EMPLOYEE_KEYS",
    "INITIAL_BACKOFF_MS",
    "MAX_ATTEMPTS",
    "REQUIRED_KEYS",
    "STRICT_JSON_INSTRUCTION",
    "AttemptState",
    "JsonTextError",
    "LlmContractError",
    "LlmInvalidJsonError",
    "LlmOrchestrator",
    "LlmProvider",
    "LlmProviderError",
    "LlmRawResult",
    "LlmRequest",
    "ProviderFailure",
    "ReportKind",
    "TokenUsage",
    "VertexProvider",
    "classify_provider_error",
    "parse_json_from_text",
    "validate_sections",
]
