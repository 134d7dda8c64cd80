"""
LLM Adapter Contract
What the tracker needs from an answer-engine provider: one prompt in, one
answer out, typed errors on failure
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class LLMProviderType(str, Enum):
    """Providers with an adapter in this package"""
    OPENAI = "openai"


@dataclass
class LLMConfig:
    """Per-request generation settings"""
    model: str
    temperature: float = 0.7
    max_tokens: int = 2000
    timeout: int = 60  # seconds
    top_p: Optional[float] = None
    stop_sequences: Optional[List[str]] = None
    extra_params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_tracking(cls, model: str, settings) -> "LLMConfig":
        """Config for a tracking run: room for a long answer with sources"""
        return cls(
            model=model,
            temperature=settings.LLM_DEFAULT_TEMPERATURE,
            max_tokens=settings.TRACKING_MAX_TOKENS,
            timeout=settings.LLM_REQUEST_TIMEOUT,
        )


@dataclass
class LLMMessage:
    role: str  # system, user, assistant
    content: str


@dataclass
class LLMUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class LLMResponse:
    """A provider answer normalized for tracking"""
    content: str
    raw_response: Dict[str, Any]
    provider: LLMProviderType
    model: str
    finish_reason: Optional[str] = None

    usage: Optional[LLMUsage] = None
    estimated_cost_usd: Optional[float] = None

    request_time: Optional[datetime] = None
    response_time: Optional[datetime] = None
    latency_ms: Optional[int] = None

    # Source URLs some search-enabled engines return beside the text
    citations: List[str] = field(default_factory=list)

    def run_metadata(self) -> Dict[str, Any]:
        """JSON-safe facts about the call, stored on the tracking run"""
        return {
            "model": self.model,
            "finish_reason": self.finish_reason,
            "total_tokens": self.usage.total_tokens if self.usage else None,
            "estimated_cost_usd": self.estimated_cost_usd,
            "latency_ms": self.latency_ms,
        }


class BaseLLMAdapter(ABC):
    """
    An answer engine the tracker can query.

    Implementations send one prompt and return the answer text. Transport,
    auth and provider failures are raised as LLMAdapterError subclasses so the
    tracker can record them on the run.
    """

    def __init__(self, api_key: Optional[str], config: Optional[LLMConfig] = None):
        self.api_key = api_key
        self.config = config

    @property
    @abstractmethod
    def provider(self) -> LLMProviderType:
        pass

    @property
    @abstractmethod
    def default_model(self) -> str:
        pass

    @abstractmethod
    async def execute(
        self,
        prompt: str,
        config: Optional[LLMConfig] = None,
        system_prompt: Optional[str] = None,
    ) -> LLMResponse:
        """
        Send a prompt and return the answer.

        Raises:
            LLMAdapterError: or a subclass, for any failure
        """
        pass

    @abstractmethod
    def estimate_tokens(self, text: str) -> int:
        pass

    @abstractmethod
    def estimate_cost(self, input_tokens: int, output_tokens: int, model: Optional[str] = None) -> float:
        """Approximate USD cost of a call"""
        pass

    @staticmethod
    def _latency_ms(start: datetime, end: datetime) -> int:
        return int((end - start).total_seconds() * 1000)


class LLMAdapterError(Exception):
    """Provider call failed; details carry status code and body when known"""

    def __init__(self, message: str, provider: LLMProviderType, details: Optional[Dict] = None):
        super().__init__(message)
        self.provider = provider
        self.details = details or {}

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class LLMRateLimitError(LLMAdapterError):
    pass


class LLMAuthenticationError(LLMAdapterError):
    """Missing or rejected API key"""
    pass


class LLMTimeoutError(LLMAdapterError):
    pass


class LLMInvalidRequestError(LLMAdapterError):
    pass


class LLMEmptyResponseError(LLMAdapterError):
    """Provider answered without any content to analyze"""
    pass
