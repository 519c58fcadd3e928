from .converter import GeminiMessageConverter
from .chat_formatter import GeminiChatFormatter
from .multi_agent_formatter import GeminiMultiAgentFormatter
from .response_parser import GeminiResponseParser
from .tools_helper import GeminiToolsHelper

__all__ = [
    "GeminiMessageConverter",
    "GeminiChatFormatter",
    "GeminiMultiAgentFormatter",
    "GeminiResponseParser",
    "GeminiToolsHelper",
]
