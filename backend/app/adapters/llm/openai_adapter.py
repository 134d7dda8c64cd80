"""
ChatGPT answer engine over the OpenAI chat completions API
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
import tiktoken

from app.config import get_settings
from .base import (
    BaseLLMAdapter,
    LLMConfig,
    LLMMessage,
    LLMResponse,
    LLMUsage,
    LLMProviderType,
    LLMAdapterError,
    LLMRateLimitError,
    LLMAuthenticationError,
    LLMTimeoutError,
    LLMInvalidRequestError,
    LLMEmptyResponseError,
)


class OpenAIAdapter(BaseLLMAdapter):
    """Sends tracked prompts to ChatGPT and normalizes the answer"""

    API_BASE = "https://api.openai.com/v1"

    # USD per 1K tokens; unknown models are priced as gpt-4o-mini
    PRICING = {
        "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
        "gpt-4o": {"input": 0.0025, "output": 0.01},
        "gpt-4-turbo": {"input": 0.01, "output": 0.03},
        "gpt-3.5-turbo": {"input": 0.0005, "output": 0.0015},
    }
    FALLBACK_PRICING_MODEL = "gpt-4o-mini"

    # HTTP status -> (error class, fixed message); None means use the body
    STATUS_ERRORS = {
        401: (LLMAuthenticationError, "Invalid API key"),
        429: (LLMRateLimitError, "Rate limit exceeded"),
        400: (LLMInvalidRequestError, None),
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        super().__init__(api_key or settings.OPENAI_API_KEY, config)
        self._default_model = settings.OPENAI_DEFAULT_MODEL
        self._default_timeout = settings.LLM_REQUEST_TIMEOUT
        self._transport = transport
        self._encoder = None

    @property
    def provider(self) -> LLMProviderType:
        return LLMProviderType.OPENAI

    @property
    def default_model(self) -> str:
        return self._default_model

    def estimate_tokens(self, text: str) -> int:
        if self._encoder is None:
            try:
                self._encoder = tiktoken.encoding_for_model(self.default_model)
            except KeyError:
                self._encoder = tiktoken.get_encoding("cl100k_base")
        return len(self._encoder.encode(text))

    def estimate_cost(self, input_tokens: int, output_tokens: int, model: Optional[str] = None) -> float:
        rates = self.PRICING.get(model or self.default_model) or self.PRICING[self.FALLBACK_PRICING_MODEL]
        return (input_tokens * rates["input"] + output_tokens * rates["output"]) / 1000

    async def execute(
        self,
        prompt: str,
        config: Optional[LLMConfig] = None,
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        if not self.api_key:
            raise LLMAuthenticationError("Missing OPENAI_API_KEY", self.provider)

        cfg = config or self.config or LLMConfig(model=self.default_model, timeout=self._default_timeout)
        messages = [LLMMessage(role="user", content=prompt)]
        if system_prompt:
            messages.insert(0, LLMMessage(role="system", content=system_prompt))

        request_time = datetime.utcnow()
        response = await self._post(self._payload(messages, cfg), cfg.timeout)
        response_time = datetime.utcnow()

        self._raise_for_status(response)

        data = response.json()
        choices = data.get("choices") or []
        if not choices:
            raise LLMEmptyResponseError("No response from ChatGPT", self.provider, {"response": data})

        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or ""
        usage = self._usage(data.get("usage"), messages, content)

        return LLMResponse(
            content=content,
            raw_response=data,
            provider=self.provider,
            model=data.get("model", cfg.model),
            finish_reason=choice.get("finish_reason"),
            usage=usage,
            estimated_cost_usd=self.estimate_cost(usage.prompt_tokens, usage.completion_tokens, cfg.model),
            request_time=request_time,
            response_time=response_time,
            latency_ms=self._latency_ms(request_time, response_time),
        )

    @staticmethod
    def _payload(messages: List[LLMMessage], cfg: LLMConfig) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": cfg.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": cfg.temperature,
            "max_tokens": cfg.max_tokens,
        }
        if cfg.top_p is not None:
            payload["top_p"] = cfg.top_p
        if cfg.stop_sequences:
            payload["stop"] = cfg.stop_sequences
        payload.update(cfg.extra_params)
        return payload

    async def _post(self, payload: Dict[str, Any], timeout: int) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                return await client.post(f"{self.API_BASE}/chat/completions", json=payload, headers=headers)
        except httpx.TimeoutException:
            raise LLMTimeoutError(f"Request timed out after {timeout}s", self.provider)
        except httpx.RequestError as e:
            raise LLMAdapterError(f"Request failed: {e}", self.provider)

    def _raise_for_status(self, response: httpx.Response):
        if response.status_code == 200:
            return

        error_class, message = self.STATUS_ERRORS.get(response.status_code, (LLMAdapterError, None))
        details = {"status_code": response.status_code}
        if message is None:
            message = f"OpenAI API Error: {response.text}"
            details["response"] = response.text
        raise error_class(message, self.provider, details)

    def _usage(self, reported: Optional[dict], messages: List[LLMMessage], content: str) -> LLMUsage:
        """Token usage from the API, or counted locally when the API omits it"""
        if reported:
            return LLMUsage(
                prompt_tokens=reported.get("prompt_tokens", 0),
                completion_tokens=reported.get("completion_tokens", 0),
                total_tokens=reported.get("total_tokens", 0),
            )

        prompt_tokens = sum(self.estimate_tokens(m.content) for m in messages)
        completion_tokens = self.estimate_tokens(content)
        return LLMUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
