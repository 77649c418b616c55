"""Repair backend backed by an OpenAI-compatible chat API (OpenRouter).

The backend asks the model for JSON matching the kind's schema:
1. First as a structured ``json_schema`` response format.
2. If the provider rejects that request (a 4xx other than rate limiting,
   or an error mentioning ``response_format``), again as a forced
   function call whose parameters are the schema.
3. The candidate is read from tool call arguments or message content.

Connection failures and timeouts are retried with exponential backoff.
Every other failure is raised as an ``AIControlError`` subclass; the
orchestrator lets these propagate without recording or retrying them.
"""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any

from openai import (
    APIConnectionError,
    APIStatusError,
    AsyncOpenAI,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lorewright.core.config import Settings, get_settings
from lorewright.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    ConfigurationError,
)
from lorewright.core.logging import get_logger
from lorewright.pipeline.prompts import SERIALIZER_SYSTEM_PROMPT


if TYPE_CHECKING:
    from tenacity.wait import wait_base

    from lorewright.schemas.registry import SchemaDescriptor


logger = get_logger(__name__)

PROVIDER = "openrouter"

DEFAULT_HEADERS = {
    "HTTP-Referer": "https://github.com/lorewright/lorewright",
    "X-Title": "lorewright",
}


def _should_fallback(exc: APIStatusError) -> bool:
    """Decide whether a rejected structured request is worth a tool-call retry."""
    if isinstance(exc, RateLimitError):
        return False
    code = getattr(exc, "code", None)
    if isinstance(code, str) and "response_format" in code.lower():
        return True
    if 400 <= exc.status_code < 500:
        return True
    return "response_format" in str(exc).lower()


def _parse_json_text(value: Any) -> Any | None:
    """Parse JSON text, tolerating a surrounding markdown code fence."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        text = "\n".join(lines).strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def extract_candidate(response: Any) -> Any | None:
    """Find the JSON candidate in a chat completion.

    Tool call arguments take precedence over message content. Returns None
    when no choice carries parseable JSON.
    """
    for choice in getattr(response, "choices", None) or []:
        message = getattr(choice, "message", None)
        if message is None:
            continue
        for call in getattr(message, "tool_calls", None) or []:
            function = getattr(call, "function", None)
            parsed = _parse_json_text(getattr(function, "arguments", None))
            if parsed is not None:
                return parsed
        parsed = _parse_json_text(getattr(message, "content", None))
        if parsed is not None:
            return parsed
    return None


class OpenRouterRepairBackend:
    """Repair backend for OpenRouter or any OpenAI-compatible endpoint.

    Attributes:
        client: Async OpenAI client.
        model: Model identifier sent with each request.
        max_retries: Attempts per request for connection failures.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str,
        temperature: float = 0.0,
        top_p: float = 1.0,
        seed: int | None = None,
        max_retries: int = 3,
        strict_schema: bool = False,
        retry_wait: wait_base | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            client: Async OpenAI client pointed at the provider.
            model: Model identifier.
            temperature: Sampling temperature.
            top_p: Nucleus sampling parameter.
            seed: Optional sampling seed.
            max_retries: Attempts per request for connection failures.
            strict_schema: Ask the provider to enforce the schema strictly.
            retry_wait: Tenacity wait strategy between connection retries.
        """
        self.client = client
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.seed = seed
        self.max_retries = max_retries
        self.strict_schema = strict_schema
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> OpenRouterRepairBackend:
        """Build a backend from application settings.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        settings = settings or get_settings()
        ai = settings.ai
        if ai.openrouter_api_key is None or not ai.openrouter_api_key.get_secret_value():
            raise ConfigurationError(
                "OpenRouter API key not configured. Set LOREWRIGHT_OPENROUTER_API_KEY",
                config_key="openrouter_api_key",
            )
        client = AsyncOpenAI(
            api_key=ai.openrouter_api_key.get_secret_value(),
            base_url=ai.base_url,
            timeout=ai.timeout_seconds,
            max_retries=0,
            default_headers=DEFAULT_HEADERS,
        )
        logger.info("Repair backend configured", model=ai.model, base_url=ai.base_url)
        return cls(
            client,
            model=ai.model,
            temperature=ai.temperature,
            top_p=ai.top_p,
            seed=ai.seed,
            max_retries=ai.max_retries,
        )

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    def _base_request(self) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "top_p": self.top_p,
        }
        if self.seed is not None:
            request["seed"] = self.seed
        return request

    def structured_request(self, prompt: str, schema: SchemaDescriptor) -> dict[str, Any]:
        """Build a request using the ``json_schema`` response format."""
        return {
            **self._base_request(),
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": schema.name,
                    "schema": schema.schema,
                    "strict": self.strict_schema,
                },
            },
        }

    def tool_request(self, prompt: str, schema: SchemaDescriptor) -> dict[str, Any]:
        """Build a request forcing a function call whose parameters are the schema."""
        return {
            **self._base_request(),
            "messages": [
                {"role": "system", "content": SERIALIZER_SYSTEM_PROMPT.format(schema_name=schema.name)},
                {"role": "user", "content": prompt},
            ],
            "tools": [
                {
                    "type": "function",
                    "function": {
                        "name": schema.name,
                        "description": schema.description or "Return JSON matching the provided schema.",
                        "parameters": schema.schema,
                        "strict": self.strict_schema,
                    },
                }
            ],
            "tool_choice": {"type": "function", "function": {"name": schema.name}},
        }

    async def _create(self, request: dict[str, Any]) -> Any:
        """Send one request, retrying connection failures and timeouts."""
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(APIConnectionError),
            stop=stop_after_attempt(self.max_retries),
            wait=self._retry_wait,
            reraise=True,
        ):
            with attempt:
                return await self.client.chat.completions.create(**request)
        raise AIConnectionError("Repair request was not attempted", model=self.model, provider=PROVIDER)

    def _translate(self, exc: Exception) -> AIControlError:
        if isinstance(exc, RateLimitError):
            retry_after = exc.response.headers.get("retry-after") if exc.response is not None else None
            try:
                seconds = float(retry_after) if retry_after is not None else None
            except ValueError:
                seconds = None
            return AIRateLimitError(
                f"OpenRouter rate limit exceeded: {exc}",
                retry_after_seconds=seconds,
                model=self.model,
                provider=PROVIDER,
            )
        if isinstance(exc, APIConnectionError):
            return AIConnectionError(
                f"Failed to connect to OpenRouter: {exc}",
                model=self.model,
                provider=PROVIDER,
            )
        if isinstance(exc, APIStatusError):
            return AIControlError(
                f"OpenRouter API error: {exc}",
                model=self.model,
                provider=PROVIDER,
                details={"status_code": exc.status_code},
            )
        return AIControlError(f"Repair request failed: {exc}", model=self.model, provider=PROVIDER)

    async def _send(self, request: dict[str, Any]) -> Any:
        try:
            return await self._create(request)
        except (APIStatusError, APIConnectionError) as exc:
            raise self._translate(exc) from exc

    # -------------------------------------------------------------------------
    # RepairBackend
    # -------------------------------------------------------------------------

    async def generate(self, prompt: str, schema: SchemaDescriptor) -> Any:
        """Ask the model for a candidate matching ``schema``.

        Returns:
            The parsed JSON candidate.

        Raises:
            AIRateLimitError: If the provider rate-limits the request.
            AIConnectionError: If the provider stays unreachable.
            AIResponseError: If the response carries no parseable JSON.
            AIControlError: For any other provider error.
        """
        started = time.perf_counter()
        method = "response_format"
        try:
            response = await self._create(self.structured_request(prompt, schema))
        except APIStatusError as exc:
            if not _should_fallback(exc):
                raise self._translate(exc) from exc
            logger.info(
                "Structured output rejected, falling back to tool call",
                model=self.model,
                status_code=exc.status_code,
            )
            method = "tool"
            response = await self._send(self.tool_request(prompt, schema))
        except APIConnectionError as exc:
            raise self._translate(exc) from exc

        usage = getattr(response, "usage", None)
        logger.debug(
            "Repair response received",
            model=self.model,
            schema=schema.name,
            method=method,
            duration_ms=round((time.perf_counter() - started) * 1000),
            total_tokens=getattr(usage, "total_tokens", None),
        )

        candidate = extract_candidate(response)
        if candidate is None:
            raise AIResponseError(
                f'Unable to parse JSON response for schema "{schema.name}"',
                model=self.model,
                provider=PROVIDER,
            )
        return candidate


__all__ = [
    "PROVIDER",
    "OpenRouterRepairBackend",
    "extract_candidate",
]
