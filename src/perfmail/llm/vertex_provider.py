"""LangChain-backed Vertex AI provider (isolated behind the provider port)."""

from __future__ import annotations

import logging

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from perfmail.config import RuntimeConfig
from perfmail.llm.base import LlmProviderError, LlmRawResult, LlmRequest, TokenUsage

_LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_LOCATION = "europe-west1"
DEFAULT_TIMEOUT_MS = 90_000
DEFAULT_MAX_TOKENS = 8192


class VertexProvider:
    """Provider executing one chat call per request via LangChain."""

    def __init__(
        self,
        *,
        project: str | None,
        api_key: str | None = None,
        location: str = DEFAULT_LOCATION,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        chat_model: BaseChatModel | None = None,
    ) -> None:
        """Create provider.

        Args:
            project: Google Cloud project id.
            api_key: LLM credential passed to the chat model; never logged.
            location: Vertex AI region.
            timeout_ms: Per-request provider timeout.
            max_tokens: Output token cap.
            chat_model: Prebuilt chat model, mainly for tests.
        """
        self._project = project
        self._api_key = api_key
        self._location = location
        self._timeout_ms = timeout_ms
        self._max_tokens = max_tokens
        self._chat_model = chat_model
        self._models: dict[str, BaseChatModel] = {}

    @classmethod
    def from_config(cls, config: RuntimeConfig) -> VertexProvider:
        """Build provider from validated runtime config.

        Args:
            config: Config already checked by ``validate_runtime_config``.

        Returns:
            Configured provider.
        """
        return cls(
            project=config.gcp_project,
            api_key=config.llm_api_key,
            location=config.gcp_location or DEFAULT_LOCATION,
            timeout_ms=float(config.llm_timeout_ms or DEFAULT_TIMEOUT_MS),
            max_tokens=int(float(config.llm_max_tokens or DEFAULT_MAX_TOKENS)),
        )

    def _model_handle(self, model: str) -> BaseChatModel:
        """Return a cached chat model handle for ``model``."""
        if self._chat_model is not None:
            return self._chat_model
        handle = self._models.get(model)
        if handle is None:
            handle = init_chat_model(
                model,
                model_provider="google_vertexai",
                project=self._project,
                api_key=self._api_key,
                location=self._location,
                timeout=self._timeout_ms / 1000,
                max_tokens=self._max_tokens,
                max_retries=0,
            )
            self._models[model] = handle
            _LOGGER.info(
                "vertex_model_initialized",
                extra={"model": model, "location": self._location},
            )
        return handle

    async def generate(self, request: LlmRequest) -> LlmRawResult:
        """Execute one model call.

        Provider exceptions propagate unchanged so the orchestrator can
        classify them.

        Args:
            request: Normalized request payload.

        Returns:
            Raw text content with optional usage counters.

        Raises:
            LlmProviderError: If the response carries no text content.
        """
        handle = self._model_handle(request.model)
        message = await handle.ainvoke(
            [
                SystemMessage(content=request.system_prompt),
                HumanMessage(content=request.user_content),
            ]
        )
        content = _extract_text(getattr(message, "content", None))
        if not content:
            raise LlmProviderError(
                "Vertex response did not include text content.",
                code="INVALID_RESPONSE",
            )
        return LlmRawResult(
            content=content,
            usage=_extract_usage(getattr(message, "usage_metadata", None)),
            model=_returned_model(message, request.model),
        )


def _extract_text(content: object) -> str:
    """Flatten LangChain message content into plain text."""
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        chunks = []
        for item in content:
            if isinstance(item, str):
                chunks.append(item.strip())
            elif isinstance(item, dict):
                chunks.append(str(item.get("text", "")).strip())
        return "\n".join(chunk for chunk in chunks if chunk)
    return ""


def _extract_usage(usage: object) -> TokenUsage | None:
    """Map LangChain ``usage_metadata`` to token counters."""
    if not isinstance(usage, dict):
        return None
    return TokenUsage(
        prompt_tokens=usage.get("input_tokens"),
        completion_tokens=usage.get("output_tokens"),
        total_tokens=usage.get("total_tokens"),
    )


def _returned_model(message: object, requested: str) -> str:
    """Prefer the model name reported by the provider."""
    metadata = getattr(message, "response_metadata", None)
    if isinstance(metadata, dict):
        name = metadata.get("model_name")
        if isinstance(name, str) and name:
            return name
    return requested
