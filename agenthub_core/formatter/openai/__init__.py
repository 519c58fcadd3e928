from .converter import OpenAIMessageConverter
from .chat_formatter import OpenAIChatFormatter
from .merger import OpenAIConversationMerger
from .multi_agent_formatter import OpenAIMultiAgentFormatter
from .response_parser import OpenAIResponseParser
from .tools_helper import OpenAIToolsHelper

__all__ = [
    "OpenAIMessageConverter",
    "OpenAIChatFormatter",
    "OpenAIConversationMerger",
    "OpenAIMultiAgentFormatter",
    "OpenAIResponseParser",
    "OpenAIToolsHelper",
]
