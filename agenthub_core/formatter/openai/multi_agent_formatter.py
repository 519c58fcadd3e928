"""Multi-agent OpenAI formatter."""

from typing import Any, Dict, List

from ...message import Msg, MsgRole
from ..base import DEFAULT_CONVERSATION_HISTORY_PROMPT, GroupType, group_messages_sequentially
from .chat_formatter import OpenAIChatFormatter
from .merger import OpenAIConversationMerger


class OpenAIMultiAgentFormatter(OpenAIChatFormatter):
    """OpenAI formatter for conversations between several named agents.

    Agent turns are merged into one user message per run; tool call
    sequences keep their assistant / tool message pairs.

    Usage:
        formatter = OpenAIMultiAgentFormatter()
        messages = formatter.format([system_msg, alice_msg, bob_msg])
    """

    def __init__(
        self,
        conversation_history_prompt: str = DEFAULT_CONVERSATION_HISTORY_PROMPT,
        supports_strict: bool = True,
    ):
        super().__init__(supports_strict=supports_strict)
        self.conversation_history_prompt = conversation_history_prompt
        self.merger = OpenAIConversationMerger(conversation_history_prompt)

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []

        start = 0
        if msgs and msgs[0].role == MsgRole.SYSTEM:
            result.append(self.converter.convert_to_message(msgs[0]))
            start = 1

        is_first_agent_group = True
        for group in group_messages_sequentially(msgs[start:]):
            if group.type == GroupType.AGENT_MESSAGE:
                result.append(
                    self.merger.merge_to_user_message(
                        group.messages,
                        tool_result_converter=self.convert_tool_result_to_string,
                        history_prompt=self.conversation_history_prompt if is_first_agent_group else "",
                    )
                )
                is_first_agent_group = False
            else:
                result.extend(
                    self.converter.convert_to_message(m, self.has_media_content(m))
                    for m in group.messages
                )

        return result
