"""Provider clients for chat-style and completion-style generation.

Neither variant performs real generation. Every call answers with
``NOT_IMPLEMENTED`` in a response shaped like the provider's own, which
tells the caller to run the generation itself.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .config import ExecutionMode


logger = logging.getLogger("taskmaster.providers")

SENTINEL_TEXT = "NOT_IMPLEMENTED"
STREAM_CHUNK_SIZE = 20

PRIMARY_DEFAULT_MODEL = "claude-3-7-sonnet-20250219"
RESEARCH_DEFAULT_MODEL = "sonar-medium-online"
RESEARCH_BASE_URL = "https://api.perplexity.ai"
PRIMARY_DEFAULT_HEADERS = {"anthropic-beta": "output-128k-2025-02-19"}

Pacer = Callable[[], None]


class ProviderKind(str, Enum):
    """Which backend a client stands in for."""

    PRIMARY_ASSISTANT = "claude"
    RESEARCH_PROVIDER = "perplexity"

    @property
    def default_model(self) -> str:
        if self is ProviderKind.RESEARCH_PROVIDER:
            return RESEARCH_DEFAULT_MODEL
        return PRIMARY_DEFAULT_MODEL


class StreamEventType(str, Enum):
    CONTENT_BLOCK_START = "content_block_start"
    CONTENT_BLOCK_DELTA = "content_block_delta"
    CONTENT_BLOCK_STOP = "content_block_stop"
    MESSAGE_STOP = "message_stop"


@dataclass(slots=True)
class ChatParams:
    """Chat-message calling convention."""

    messages: List[Dict[str, str]]
    model: Optional[str] = None
    stream: bool = False
    system: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


@dataclass(slots=True)
class CompletionParams:
    """Text-completion calling convention."""

    messages: List[Dict[str, str]]
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


@dataclass(slots=True)
class ChatResponse:
    id: str
    model: str
    content: List[Dict[str, str]]
    role: str = "assistant"
    type: str = "message"
    stop_reason: str = "end_turn"
    usage: Dict[str, int] = field(default_factory=lambda: {"input_tokens": 1000, "output_tokens": 2000})

    @property
    def text(self) -> str:
        return "".join(block.get("text", "") for block in self.content if block.get("type") == "text")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "role": self.role,
            "content": [dict(block) for block in self.content],
            "model": self.model,
            "stop_reason": self.stop_reason,
            "usage": dict(self.usage),
        }


@dataclass(slots=True)
class CompletionResponse:
    id: str
    model: str
    choices: List[Dict[str, Any]]
    usage: Dict[str, int] = field(
        default_factory=lambda: {"prompt_tokens": 1000, "completion_tokens": 2000, "total_tokens": 3000}
    )

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0]["message"]["content"]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "model": self.model,
            "choices": [dict(choice) for choice in self.choices],
            "usage": dict(self.usage),
        }


@dataclass(frozen=True, slots=True)
class StreamFrame:
    """One event of a streamed chat response."""

    type: StreamEventType
    index: int = 0
    text: str = ""
    message: Optional[ChatResponse] = None


def chunk_text(text: str, size: int = STREAM_CHUNK_SIZE) -> List[str]:
    """Split ``text`` into consecutive slices of at most ``size`` characters."""
    if size <= 0:
        raise ValueError("Chunk size must be positive")
    return [text[start:start + size] for start in range(0, len(text), size)]


def fixed_delay(seconds: float) -> Pacer:
    """Pacing policy that sleeps between stream deltas."""
    def pace() -> None:
        time.sleep(seconds)
    return pace


class MessageStream:
    """Finite stream of frames; iterating again replays it from the start."""

    def __init__(self, response: ChatResponse, *, chunk_size: int = STREAM_CHUNK_SIZE, pacer: Optional[Pacer] = None):
        self.response = response
        self.chunk_size = chunk_size
        self.pacer = pacer

    def __iter__(self) -> Iterator[StreamFrame]:
        yield StreamFrame(type=StreamEventType.CONTENT_BLOCK_START)
        for chunk in chunk_text(self.response.text, self.chunk_size):
            yield StreamFrame(type=StreamEventType.CONTENT_BLOCK_DELTA, text=chunk)
            if self.pacer is not None:
                self.pacer()
        yield StreamFrame(type=StreamEventType.CONTENT_BLOCK_STOP)
        yield StreamFrame(type=StreamEventType.MESSAGE_STOP, message=self.response)

    def text(self) -> str:
        return "".join(frame.text for frame in self if frame.type is StreamEventType.CONTENT_BLOCK_DELTA)


class ProviderClient(ABC):
    """Common calling conventions shared by every client variant."""

    mode: ExecutionMode

    def __init__(self, kind: ProviderKind, *, pacer: Optional[Pacer] = None):
        self.kind = kind
        self.pacer = pacer

    @abstractmethod
    def _generate(self, model: str, messages: List[Dict[str, str]]) -> str:
        """Produce the response text for a request."""

    def create_message(self, params: ChatParams) -> Union[ChatResponse, MessageStream]:
        model = params.model or self.kind.default_model
        messages = list(params.messages)
        if params.system:
            messages.insert(0, {"role": "system", "content": params.system})
        response = ChatResponse(
            id="mock-message-id",
            model=model,
            content=[{"type": "text", "text": self._generate(model, messages)}],
        )
        if params.stream:
            return MessageStream(response, pacer=self.pacer)
        return response

    def create_completion(self, params: CompletionParams) -> CompletionResponse:
        model = params.model or self.kind.default_model
        text = self._generate(model, list(params.messages))
        return CompletionResponse(
            id="mock-completion-id",
            model=model,
            choices=[{
                "index": 0,
                "message": {"role": "assistant", "content": text},
                "finish_reason": "stop",
            }],
        )


class DirectGenerationClient(ProviderClient):
    """Stand-in used when the calling assistant generates the content itself."""

    mode = ExecutionMode.DIRECT_GENERATION

    def _generate(self, model: str, messages: List[Dict[str, str]]) -> str:
        logger.debug(f"Direct generation requested for {model} with {len(messages)} messages")
        return SENTINEL_TEXT


class ProviderBackedClient(ProviderClient):
    """Credentialed client marking where a network call to the provider belongs."""

    mode = ExecutionMode.PROVIDER_BACKED

    def __init__(
        self,
        kind: ProviderKind,
        *,
        api_key: str,
        base_url: Optional[str] = None,
        default_headers: Optional[Dict[str, str]] = None,
        pacer: Optional[Pacer] = None,
    ):
        if not api_key:
            raise ValueError(f"An API key is required for the {kind.value} provider")
        super().__init__(kind, pacer=pacer)
        self.api_key = api_key
        self.base_url = base_url
        self.default_headers = dict(default_headers or {})

    def _generate(self, model: str, messages: List[Dict[str, str]]) -> str:
        logger.debug(f"Provider call to {self.base_url or self.kind.value} for {model} is not performed")
        return SENTINEL_TEXT
