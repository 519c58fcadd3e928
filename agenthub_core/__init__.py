"""AgentHub Core - message formatting and multi-agent plumbing for LLM apps.

This package turns role-tagged ``Msg`` conversations into the request formats
of several model vendors, and back again, with the agent plumbing around it.

Core Components:
- Msg / content blocks: the vendor-neutral conversation model
- Formatters: Gemini, Ollama, OpenAI and DashScope, chat and multi-agent
- Chat models: async clients pairing a formatter with a transport
- Toolkit / ToolExecutor: function tools with schemas, groups and retries
- ChatAgent, pipelines and MsgHub: composing agents

Quick Start:
    from agenthub_core import (
        Msg,
        ChatAgent,
        MsgHub,
        OpenAIChatModel,
        OpenAIMultiAgentFormatter,
    )

    model = OpenAIChatModel("gpt-4o-mini")
    alice = ChatAgent("Alice", "You are Alice, an optimist.", model, OpenAIMultiAgentFormatter())
    bob = ChatAgent("Bob", "You are Bob, a sceptic.", model, OpenAIMultiAgentFormatter())

    async with MsgHub([alice, bob], announcement=Msg(name="host", content="Discuss: will it rain?")):
        await alice()
        await bob()
"""

from .exceptions import (
    AgentHubError,
    AgentErrorInfo,
    CompositeAgentError,
    FormatterError,
    ModelError,
    ToolError,
    ToolSuspendedError,
)
from .message import (
    AudioBlock,
    Base64Source,
    ImageBlock,
    Msg,
    MsgRole,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    URLSource,
    VideoBlock,
)
# Model must be imported before formatter (formatters import model.types).
from .model import (
    ChatResponse,
    ChatUsage,
    DashScopeChatModel,
    ExecutionConfig,
    GeminiChatModel,
    GenerateOptions,
    OllamaChatModel,
    OpenAIChatModel,
    ToolChoice,
    ToolSchema,
)
from .formatter import (
    DashScopeChatFormatter,
    DashScopeMultiAgentFormatter,
    GeminiChatFormatter,
    GeminiMultiAgentFormatter,
    OllamaChatFormatter,
    OllamaMultiAgentFormatter,
    OpenAIChatFormatter,
    OpenAIMultiAgentFormatter,
)
from .tool import Toolkit, ToolExecutor
from .memory import InMemoryMemory, SQLiteMemory, SQLiteMsgStore
from .agent import AgentBase, ChatAgent
from .pipeline import FanoutPipeline, MsgHub, SequentialPipeline, fanout_pipeline, sequential_pipeline

__all__ = [
    # Errors
    "AgentHubError",
    "AgentErrorInfo",
    "CompositeAgentError",
    "FormatterError",
    "ModelError",
    "ToolError",
    "ToolSuspendedError",
    # Messages
    "AudioBlock",
    "Base64Source",
    "ImageBlock",
    "Msg",
    "MsgRole",
    "TextBlock",
    "ThinkingBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "URLSource",
    "VideoBlock",
    # Models
    "ChatResponse",
    "ChatUsage",
    "DashScopeChatModel",
    "ExecutionConfig",
    "GeminiChatModel",
    "GenerateOptions",
    "OllamaChatModel",
    "OpenAIChatModel",
    "ToolChoice",
    "ToolSchema",
    # Formatters
    "DashScopeChatFormatter",
    "DashScopeMultiAgentFormatter",
    "GeminiChatFormatter",
    "GeminiMultiAgentFormatter",
    "OllamaChatFormatter",
    "OllamaMultiAgentFormatter",
    "OpenAIChatFormatter",
    "OpenAIMultiAgentFormatter",
    # Tools
    "Toolkit",
    "ToolExecutor",
    # Memory
    "InMemoryMemory",
    "SQLiteMemory",
    "SQLiteMsgStore",
    # Agents & pipelines
    "AgentBase",
    "ChatAgent",
    "FanoutPipeline",
    "MsgHub",
    "SequentialPipeline",
    "fanout_pipeline",
    "sequential_pipeline",
]
