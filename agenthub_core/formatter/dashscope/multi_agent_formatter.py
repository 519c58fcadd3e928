"""Multi-agent DashScope formatter."""

import logging
from typing import Any, Dict, List

from ...message import Msg, MsgRole, ToolResultBlock, ToolUseBlock
from ..base import DEFAULT_CONVERSATION_HISTORY_PROMPT, GroupType, group_messages_sequentially
from .chat_formatter import DashScopeChatFormatter
from .converter import fallback_tool_call_id
from .merger import DashScopeConversationMerger

logger = logging.getLogger(__name__)


class DashScopeMultiAgentFormatter(DashScopeChatFormatter):
    """DashScope formatter for conversations between several named agents.

    ``format`` targets text models: agent runs collapse into one string user
    message each. ``format_multimodal`` keeps media inline for vision / audio
    models.

    Usage:
        formatter = DashScopeMultiAgentFormatter()
        messages = formatter.format([system_msg, alice_msg, bob_msg])
    """

    def __init__(self, conversation_history_prompt: str = DEFAULT_CONVERSATION_HISTORY_PROMPT):
        super().__init__()
        self.conversation_history_prompt = conversation_history_prompt
        self.merger = DashScopeConversationMerger(conversation_history_prompt)

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []
        start = 0
        if msgs and msgs[0].role == MsgRole.SYSTEM:
            result.append({"role": "system", "content": self.extract_text_content(msgs[0])})
            start = 1

        is_first_agent_group = True
        for group in group_messages_sequentially(msgs[start:]):
            if group.type == GroupType.AGENT_MESSAGE:
                result.append(
                    self.merger.merge_to_message(
                        group.messages,
                        history_prompt=self.conversation_history_prompt if is_first_agent_group else "",
                        tool_result_converter=self.convert_tool_result_to_string,
                    )
                )
                is_first_agent_group = False
            elif group.type == GroupType.TOOL_SEQUENCE:
                result.extend(self._format_tool_sequence(group.messages))
            else:
                result.extend(self.converter.convert_to_message(m) for m in group.messages)
        return result

    def format_multimodal(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        """Like ``format`` but every message uses the part-list content shape."""
        msgs = list(msgs or [])
        result: List[Dict[str, Any]] = []
        start = 0
        if msgs and msgs[0].role == MsgRole.SYSTEM:
            result.append(
                {"role": "system", "content": [{"text": self.extract_text_content(msgs[0])}]}
            )
            start = 1

        is_first_agent_group = True
        for group in group_messages_sequentially(msgs[start:]):
            if group.type == GroupType.AGENT_MESSAGE:
                result.append(
                    self.merger.merge_to_multimodal_message(group.messages, is_first_agent_group)
                )
                is_first_agent_group = False
            else:
                result.extend(
                    self.converter.convert_to_message(m, use_multimodal=True) for m in group.messages
                )

        logger.debug(f"Formatted {len(msgs)} msgs into {len(result)} multimodal DashScope entries")
        return result

    def _format_tool_sequence(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []
        for msg in msgs:
            if msg.role == MsgRole.ASSISTANT:
                result.append(self._format_assistant_tool_call(msg))
            elif msg.role == MsgRole.TOOL or (
                msg.role == MsgRole.SYSTEM and msg.has_content_blocks(ToolResultBlock)
            ):
                result.append(self._format_tool_result(msg))
            else:
                logger.debug(f"Dropping {msg.role.value} message from DashScope tool sequence")
        return result

    def _format_assistant_tool_call(self, msg: Msg) -> Dict[str, Any]:
        text = self.extract_text_content(msg)
        tool_uses = msg.get_content_blocks(ToolUseBlock)
        if not tool_uses:
            return {"role": "assistant", "content": text}
        return {
            "role": "assistant",
            "content": text or None,
            "tool_calls": self.tools_helper.convert_tool_calls(tool_uses),
        }

    def _format_tool_result(self, msg: Msg) -> Dict[str, Any]:
        result = msg.get_first_content_block(ToolResultBlock)
        if result is None:
            return {
                "role": "tool",
                "tool_call_id": fallback_tool_call_id(),
                "content": self.extract_text_content(msg),
            }
        return {
            "role": "tool",
            "tool_call_id": result.id,
            "name": result.name,
            "content": self.convert_tool_result_to_string(result.output),
        }
