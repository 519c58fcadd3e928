"""Formatters - translate ``Msg`` lists into vendor request payloads.

Each vendor ships a chat formatter (one user, one assistant) and a
multi-agent formatter that folds agent turns into ``<history>`` blocks.

Usage:
    from agenthub_core.formatter import OpenAIChatFormatter

    formatter = OpenAIChatFormatter()
    messages = formatter.format(msgs)
"""

from .base import (
    DEFAULT_CONVERSATION_HISTORY_PROMPT,
    FormatterBase,
    GroupType,
    MessageGroup,
    convert_tool_result_to_string,
    group_messages_sequentially,
)
from .dashscope import DashScopeChatFormatter, DashScopeMultiAgentFormatter
from .gemini import GeminiChatFormatter, GeminiMultiAgentFormatter
from .ollama import OllamaChatFormatter, OllamaMultiAgentFormatter
from .openai import OpenAIChatFormatter, OpenAIMultiAgentFormatter

__all__ = [
    "DEFAULT_CONVERSATION_HISTORY_PROMPT",
    "FormatterBase",
    "GroupType",
    "MessageGroup",
    "convert_tool_result_to_string",
    "group_messages_sequentially",
    "DashScopeChatFormatter",
    "DashScopeMultiAgentFormatter",
    "GeminiChatFormatter",
    "GeminiMultiAgentFormatter",
    "OllamaChatFormatter",
    "OllamaMultiAgentFormatter",
    "OpenAIChatFormatter",
    "OpenAIMultiAgentFormatter",
]
