"""Model-facing value types.

Provides reusable dataclasses for:
- ChatUsage / ChatResponse: parsed model output
- ToolSchema / ToolChoice: what tools a model may call
- GenerateOptions / ExecutionConfig: per-call generation and retry settings
"""

import uuid
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from ..message import ContentBlock, Msg, MsgRole


@dataclass
class ChatUsage:
    """Token usage of a single model call.

    Attributes:
        input_tokens: Prompt tokens
        output_tokens: Completion tokens (reasoning excluded where reported)
        time: Wall-clock seconds spent on the call
    """
    input_tokens: int = 0
    output_tokens: int = 0
    time: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
            "time": self.time,
        }


@dataclass
class ChatResponse:
    """A parsed model response.

    Attributes:
        content: Thinking, text and tool-use blocks in vendor order
        id: Response identifier (generated when the vendor omits it)
        usage: Token usage, if reported
        metadata: Vendor extras (model name, durations, ...)
        finish_reason: Vendor stop reason
    """
    content: List[ContentBlock] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    usage: Optional[ChatUsage] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    finish_reason: Optional[str] = None

    def to_msg(self, name: Optional[str] = None) -> Msg:
        return Msg(name=name, content=list(self.content), role=MsgRole.ASSISTANT)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "content": [block.to_dict() for block in self.content],
        }
        if self.usage:
            result["usage"] = self.usage.to_dict()
        if self.finish_reason:
            result["finish_reason"] = self.finish_reason
        if self.metadata:
            result["metadata"] = self.metadata
        return result


@dataclass
class ToolSchema:
    """Vendor-neutral description of a callable tool."""
    name: str
    description: str = ""
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    strict: Optional[bool] = None


@dataclass(frozen=True)
class ToolChoice:
    """How the model may pick tools: ``auto``, ``none``, ``required`` or a specific tool.

    Usage:
        ToolChoice.auto()
        ToolChoice.specific("get_weather")
    """
    mode: str
    tool_name: Optional[str] = None

    AUTO = "auto"
    NONE = "none"
    REQUIRED = "required"
    SPECIFIC = "specific"

    @classmethod
    def auto(cls) -> "ToolChoice":
        return cls(cls.AUTO)

    @classmethod
    def none(cls) -> "ToolChoice":
        return cls(cls.NONE)

    @classmethod
    def required(cls) -> "ToolChoice":
        return cls(cls.REQUIRED)

    @classmethod
    def specific(cls, tool_name: str) -> "ToolChoice":
        if not tool_name:
            raise ValueError("Specific tool choice requires a tool name")
        return cls(cls.SPECIFIC, tool_name)


@dataclass
class ExecutionConfig:
    """Timeout and retry policy for model or tool calls (seconds)."""
    timeout: Optional[float] = None
    max_attempts: Optional[int] = None
    initial_backoff: float = 1.0
    max_backoff: float = 10.0


@dataclass
class GenerateOptions:
    """Generation parameters; ``None`` means "not set"."""
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_tokens: Optional[int] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    seed: Optional[int] = None
    thinking_budget: Optional[int] = None
    reasoning_effort: Optional[str] = None
    stream: Optional[bool] = None
    tool_choice: Optional[ToolChoice] = None
    execution_config: Optional[ExecutionConfig] = None
    additional_headers: Dict[str, str] = field(default_factory=dict)
    additional_body_params: Dict[str, Any] = field(default_factory=dict)
    additional_query_params: Dict[str, str] = field(default_factory=dict)

    def merge(self, other: Optional["GenerateOptions"]) -> "GenerateOptions":
        """Return options where values set on ``other`` win over ours.

        Additional header / body / query maps are merged key by key.
        """
        if other is None:
            return self
        merged = {}
        for f in fields(self):
            mine, theirs = getattr(self, f.name), getattr(other, f.name)
            if isinstance(mine, dict):
                merged[f.name] = {**mine, **theirs}
            else:
                merged[f.name] = theirs if theirs is not None else mine
        return GenerateOptions(**merged)
