"""LLM adapters returning raw JSON text for the normalizer."""

import asyncio
import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError, UserError

from ..config import LlmSettings
from ..errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

OPENAI_COMPATIBLE_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "groq": "https://api.groq.com/openai/v1",
    "ollama": "http://localhost:11434/v1",
}


class LlmRequest(BaseModel):
    """One JSON generation call."""

    system_prompt: str
    user_prompt: str
    max_tokens: int = Field(..., ge=1)
    timeout_ms: int = Field(..., ge=1)
    temperature: float | None = None


class LlmResult(BaseModel):
    raw_text: str


class LlmGateway(Protocol):
    """Provider adapter. Failures raise, empty output is a failure."""

    async def generate_json(self, request: LlmRequest) -> LlmResult: ...


def validate_model_string(model: str) -> tuple[str, str]:
    """Split a 'provider:model' identifier.

    Raises:
        ConfigurationError: If the string is not in provider:model form
    """
    provider, sep, name = model.partition(":")
    if not sep or not provider or not name:
        raise ConfigurationError(
            f"Invalid model format '{model}'. Expected format: provider:model "
            f"(e.g. openai:gpt-4o-mini)"
        )
    return provider.lower(), name


class PydanticAILlmGateway:
    """Runs the prompt through a pydantic-ai Agent with plain text output."""

    def __init__(self, model: str):
        validate_model_string(model)
        self.model = model
        self._agents: dict[str, Agent[None, str]] = {}

    def _get_agent(self, system_prompt: str) -> Agent[None, str]:
        agent = self._agents.get(system_prompt)
        if agent is None:
            agent = Agent(
                self.model,
                output_type=str,
                instructions=system_prompt,
            )
            self._agents[system_prompt] = agent
        return agent

    async def generate_json(self, request: LlmRequest) -> LlmResult:
        timeout_s = request.timeout_ms / 1000
        model_settings: dict[str, Any] = {
            "max_tokens": request.max_tokens,
            "timeout": timeout_s,
        }
        if request.temperature is not None:
            model_settings["temperature"] = request.temperature

        try:
            agent = self._get_agent(request.system_prompt)
            result = await asyncio.wait_for(
                agent.run(request.user_prompt, model_settings=model_settings),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamError(
                f"LLM call timed out after {request.timeout_ms}ms"
            ) from e
        except (AgentRunError, UserError) as e:
            raise UpstreamError(f"LLM call failed: {e}") from e

        text = (result.output or "").strip()
        if not text:
            raise UpstreamError("LLM returned empty output")
        return LlmResult(raw_text=text)


class OpenAICompatibleLlmGateway:
    """Calls any /chat/completions endpoint speaking the OpenAI wire format."""

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._client = client

    async def generate_json(self, request: LlmRequest) -> LlmResult:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            "max_tokens": request.max_tokens,
            "response_format": {"type": "json_object"},
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        url = f"{self.base_url}/chat/completions"
        timeout = httpx.Timeout(request.timeout_ms / 1000)
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, json=payload, headers=headers, timeout=timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(
                        url, json=payload, headers=headers, timeout=timeout
                    )
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"LLM call timed out after {request.timeout_ms}ms"
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"LLM request failed: {e}") from e

        if not response.is_success:
            raise UpstreamError(
                f"LLM provider returned HTTP {response.status_code}"
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError("LLM response has no message content") from e
        if not isinstance(content, str) or not content.strip():
            raise UpstreamError("LLM returned empty output")
        return LlmResult(raw_text=content.strip())


def create_llm_gateway(settings: LlmSettings) -> LlmGateway:
    """Build the single adapter this process uses.

    With tracing enabled the adapter is wrapped in an ObservedLlmGateway.

    Raises:
        ConfigurationError: If the provider is unknown or misconfigured
    """
    provider = settings.provider
    endpoint: str | None = None
    gateway: LlmGateway
    if provider == "pydantic-ai":
        gateway = PydanticAILlmGateway(settings.model)
    elif provider in OPENAI_COMPATIBLE_BASE_URLS:
        if provider != "ollama" and not settings.api_key:
            raise ConfigurationError(f"LLM_API_KEY is required for provider {provider}")
        model = settings.model
        if ":" in model and model.split(":", 1)[0].lower() == provider:
            model = model.split(":", 1)[1]
        endpoint = settings.base_url or OPENAI_COMPATIBLE_BASE_URLS[provider]
        gateway = OpenAICompatibleLlmGateway(
            model=model, base_url=endpoint, api_key=settings.api_key
        )
    else:
        raise ConfigurationError(
            f"Unknown LLM_PROVIDER '{provider}'. Expected one of: pydantic-ai, "
            f"{', '.join(OPENAI_COMPATIBLE_BASE_URLS)}"
        )

    if not settings.tracing_enabled:
        return gateway

    from .observability import ObservedLlmGateway

    return ObservedLlmGateway(
        gateway, provider=provider, model=settings.model, endpoint=endpoint
    )
