"""
Answer-engine adapters and the engine -> adapter wiring used by tracking
"""

from typing import Dict, Optional, Type, Union

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
from .openai_adapter import OpenAIAdapter

ADAPTERS: Dict[LLMProviderType, Type[BaseLLMAdapter]] = {
    LLMProviderType.OPENAI: OpenAIAdapter,
}

# Settings attribute holding each provider's API key
PROVIDER_KEY_SETTINGS = {
    LLMProviderType.OPENAI: "OPENAI_API_KEY",
}

# AI engine identifier -> provider that answers for it
ENGINE_PROVIDERS = {
    "chatgpt": LLMProviderType.OPENAI,
}


def get_adapter(
    provider: Union[str, LLMProviderType],
    api_key: Optional[str] = None,
    config: Optional[LLMConfig] = None,
) -> BaseLLMAdapter:
    """
    Instantiate the adapter for a provider.

    Raises:
        ValueError: provider has no adapter
    """
    try:
        adapter_class = ADAPTERS[LLMProviderType(provider)]
    except (ValueError, KeyError):
        raise ValueError(f"Unsupported provider: {provider}. Must be one of {[p.value for p in ADAPTERS]}")
    return adapter_class(api_key=api_key, config=config)


def get_engine_adapters(api_keys: Optional[Dict[str, str]] = None) -> Dict[str, BaseLLMAdapter]:
    """
    Adapters for every engine whose provider has an API key.

    Keys passed in ({provider: key}) win over the ones in settings; engines
    without any key are left out, so tracking them fails as unavailable.
    """
    settings = get_settings()
    api_keys = api_keys or {}

    adapters = {}
    for engine, provider in ENGINE_PROVIDERS.items():
        key = api_keys.get(provider.value) or getattr(settings, PROVIDER_KEY_SETTINGS[provider], None)
        if key:
            adapters[engine] = get_adapter(provider, api_key=key)
    return adapters


__all__ = [
    "ADAPTERS",
    "ENGINE_PROVIDERS",
    "get_adapter",
    "get_engine_adapters",
    "BaseLLMAdapter",
    "LLMConfig",
    "LLMMessage",
    "LLMResponse",
    "LLMUsage",
    "LLMProviderType",
    "LLMAdapterError",
    "LLMRateLimitError",
    "LLMAuthenticationError",
    "LLMTimeoutError",
    "LLMInvalidRequestError",
    "LLMEmptyResponseError",
    "OpenAIAdapter",
]
