from .converter import DashScopeMessageConverter
from .chat_formatter import DashScopeChatFormatter
from .merger import DashScopeConversationMerger
from .multi_agent_formatter import DashScopeMultiAgentFormatter
from .response_parser import DashScopeResponseParser
from .tools_helper import DashScopeToolsHelper

__all__ = [
    "DashScopeMessageConverter",
    "DashScopeChatFormatter",
    "DashScopeConversationMerger",
    "DashScopeMultiAgentFormatter",
    "DashScopeResponseParser",
    "DashScopeToolsHelper",
]
