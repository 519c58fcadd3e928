from .converter import OllamaMessageConverter
from .chat_formatter import OllamaChatFormatter
from .merger import OllamaConversationMerger
from .multi_agent_formatter import OllamaMultiAgentFormatter
from .response_parser import OllamaResponseParser
from .tools_helper import OllamaToolsHelper

__all__ = [
    "OllamaMessageConverter",
    "OllamaChatFormatter",
    "OllamaConversationMerger",
    "OllamaMultiAgentFormatter",
    "OllamaResponseParser",
    "OllamaToolsHelper",
]
