"""Models package - value types and async chat-model clients."""

# Types first: formatter modules import them while this package initializes.
from .types import (
    ChatResponse,
    ChatUsage,
    ExecutionConfig,
    GenerateOptions,
    ToolChoice,
    ToolSchema,
)
from .base import ChatModelBase, HttpChatModel, run_with_retry
from .dashscope_model import DashScopeChatModel
from .gemini_model import GeminiChatModel
from .ollama_model import OllamaChatModel
from .openai_model import OpenAIChatModel

__all__ = [
    "ChatResponse",
    "ChatUsage",
    "ExecutionConfig",
    "GenerateOptions",
    "ToolChoice",
    "ToolSchema",
    "ChatModelBase",
    "HttpChatModel",
    "run_with_retry",
    "DashScopeChatModel",
    "GeminiChatModel",
    "OllamaChatModel",
    "OpenAIChatModel",
]
