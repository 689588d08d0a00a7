"""LLM-call orchestrator with transport and output-validity retry axes.

Both axes share one attempt budget but end in distinct terminal errors:
transport failures re-raise the provider error, exhausted parse retries raise
``LlmInvalidJsonError``. Required-key failures are never retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Mapping
from enum import StrEnum

from perfmail.llm.base import (
    LlmInvalidJsonError,
    LlmProvider,
    LlmRawResult,
    LlmRequest,
    ReportKind,
)
from perfmail.llm.contracts import (
    JSON_INSTRUCTIONS,
    STRICT_JSON_INSTRUCTION,
    validate_sections,
)
from perfmail.llm.json_text import JsonTextError, parse_json_from_text
from perfmail.llm.provider_errors import classify_provider_error

_LOGGER = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
INITIAL_BACKOFF_MS = 2000

_USER_CONTENT_PREFIX: dict[ReportKind, str] = {
    ReportKind.EMPLOYEE: "Date pentru analiză (JSON):\n",
    ReportKind.DEPARTMENT: "Date pentru analiză (JSON, 3 luni):\n",
}


class AttemptState(StrEnum):
    """States of one ``generate_sections`` run."""

    ATTEMPTING = "attempting"
    TRANSPORT_RETRY_WAIT = "transport_retry_wait"
    CONTENT_RETRY_WAIT = "content_retry_wait"
    SUCCEEDED = "succeeded"
    FAILED_TRANSPORT = "failed_transport"
    FAILED_CONTRACT = "failed_contract"


class LlmOrchestrator:
    """Run one report-section generation against an LLM provider."""

    def __init__(
        self,
        provider: LlmProvider,
        *,
        model: str,
        sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_attempts: int = MAX_ATTEMPTS,
        initial_backoff_ms: int = INITIAL_BACKOFF_MS,
    ) -> None:
        """Create orchestrator.

        Args:
            provider: Provider port executing single model calls.
            model: Model identifier sent with each request.
            sleep_fn: Injectable async sleep taking seconds.
            max_attempts: Shared attempt budget for both retry axes.
            initial_backoff_ms: Base delay, doubled per attempt.

        Raises:
            ValueError: If ``max_attempts`` is less than 1.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._provider = provider
        self._model = model
        self._sleep_fn = sleep_fn
        self._max_attempts = max_attempts
        self._initial_backoff_ms = initial_backoff_ms

    async def generate_sections(
        self,
        kind: ReportKind | str,
        system_prompt: str,
        input_data: Mapping[str, object],
    ) -> dict[str, str]:
        """Generate and validate report sections for one unit.

        Args:
            kind: ``employee`` or ``department``.
            system_prompt: Base system prompt for the report kind.
            input_data: JSON-serializable analysis input.

        Returns:
            Validated output with exactly the required keys for ``kind``.

        Raises:
            LlmInvalidJsonError: If no attempt produced parseable JSON.
            LlmContractError: If parsed output misses a required key.
            Exception: The provider error on permanent failure or after the
                transient retry budget is exhausted.
        """
        report_kind = ReportKind(kind)
        base_system = f"{system_prompt}\n\n{JSON_INSTRUCTIONS[report_kind]}"
        user_content = _USER_CONTENT_PREFIX[report_kind] + json.dumps(
            input_data, ensure_ascii=False, indent=2
        )

        state = AttemptState.ATTEMPTING
        attempt = 1
        strict = False
        result: LlmRawResult | None = None
        parsed: object = None
        last_transport_error: Exception | None = None

        while True:
            if state == AttemptState.ATTEMPTING:
                request = LlmRequest(
                    model=self._model,
                    system_prompt=(
                        base_system + STRICT_JSON_INSTRUCTION if strict else base_system
                    ),
                    user_content=user_content,
                )
                try:
                    result = await self._provider.generate(request)
                except Exception as exc:
                    last_transport_error = exc
                    failure = classify_provider_error(exc)
                    retry = failure.transient and attempt < self._max_attempts
                    self._log_failure(
                        report_kind, attempt, "transport", failure.transient, exc
                    )
                    state = (
                        AttemptState.TRANSPORT_RETRY_WAIT
                        if retry
                        else AttemptState.FAILED_TRANSPORT
                    )
                    continue
                try:
                    parsed = parse_json_from_text(result.content)
                except JsonTextError as exc:
                    self._log_failure(
                        report_kind,
                        attempt,
                        "invalid_json",
                        attempt < self._max_attempts,
                        exc,
                    )
                    state = (
                        AttemptState.CONTENT_RETRY_WAIT
                        if attempt < self._max_attempts
                        else AttemptState.FAILED_CONTRACT
                    )
                    continue
                state = AttemptState.SUCCEEDED

            elif state in (
                AttemptState.TRANSPORT_RETRY_WAIT,
                AttemptState.CONTENT_RETRY_WAIT,
            ):
                if state == AttemptState.CONTENT_RETRY_WAIT:
                    strict = True
                await self._sleep_fn(self._backoff_ms(attempt) / 1000)
                attempt += 1
                state = AttemptState.ATTEMPTING

            elif state == AttemptState.FAILED_TRANSPORT:
                assert last_transport_error is not None
                raise last_transport_error

            elif state == AttemptState.FAILED_CONTRACT:
                raise LlmInvalidJsonError(report_kind, attempt)

            else:
                assert result is not None
                validated = validate_sections(report_kind, parsed)
                _LOGGER.info(
                    "llm_sections_generated",
                    extra={
                        "kind": report_kind.value,
                        "model": result.model,
                        "attempts": attempt,
                        "usage": (
                            result.usage.model_dump() if result.usage else None
                        ),
                    },
                )
                return validated

    def _backoff_ms(self, attempt: int) -> int:
        """Return doubling delay before attempt ``attempt + 1``."""
        return self._initial_backoff_ms * 2 ** (attempt - 1)

    def _log_failure(
        self,
        kind: ReportKind,
        attempt: int,
        axis: str,
        transient: bool,
        error: BaseException,
    ) -> None:
        """Emit one structured attempt-failure event without prompt content."""
        _LOGGER.warning(
            "llm_attempt_failed",
            extra={
                "kind": kind.value,
                "model": self._model,
                "attempt": attempt,
                "max_attempts": self._max_attempts,
                "axis": axis,
                "transient": transient,
                "error_message": str(error)[:200],
            },
        )
