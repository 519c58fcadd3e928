"""Multi-agent Gemini formatter.

Consecutive agent messages are folded into one user content wrapped in
``<history>`` tags, with media kept inline in speaking order. Tool call
sequences are passed through the regular converter so calls and responses
stay paired.
"""

import logging
from typing import Any, Dict, List

from ...message import MEDIA_BLOCKS, Msg, MsgRole, TextBlock, ThinkingBlock
from ..base import (
    DEFAULT_CONVERSATION_HISTORY_PROMPT,
    HISTORY_END_TAG,
    HISTORY_START_TAG,
    GroupType,
    display_name,
    group_messages_sequentially,
)
from .chat_formatter import GeminiChatFormatter

logger = logging.getLogger(__name__)


class GeminiMultiAgentFormatter(GeminiChatFormatter):
    """Gemini formatter for conversations between several named agents.

    Usage:
        formatter = GeminiMultiAgentFormatter()
        contents = formatter.format([system_msg, alice_msg, bob_msg])
    """

    def __init__(self, conversation_history_prompt: str = DEFAULT_CONVERSATION_HISTORY_PROMPT):
        super().__init__()
        self.conversation_history_prompt = conversation_history_prompt

    def _format(self, msgs: List[Msg]) -> List[Dict[str, Any]]:
        result: List[Dict[str, Any]] = []

        start = 0
        if msgs and msgs[0].role == MsgRole.SYSTEM:
            result.append(
                {"role": "user", "parts": [{"text": self.extract_text_content(msgs[0])}]}
            )
            start = 1

        is_first_agent_group = True
        for group in group_messages_sequentially(msgs[start:]):
            if group.type == GroupType.AGENT_MESSAGE:
                prompt = self.conversation_history_prompt if is_first_agent_group else ""
                result.append(self._merge_agent_messages(group.messages, prompt))
                is_first_agent_group = False
            else:
                result.extend(self.converter.convert_messages(group.messages))

        return result

    def _merge_agent_messages(self, msgs: List[Msg], prompt: str) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        lines: List[str] = []

        for msg in msgs:
            name = display_name(msg)
            for block in msg.content:
                if isinstance(block, TextBlock):
                    lines.append(f"{name}: {block.text}")
                elif isinstance(block, MEDIA_BLOCKS):
                    if lines:
                        parts.append({"text": "\n".join(lines)})
                        lines = []
                    parts.append(self.converter.convert_media(block))
                elif isinstance(block, ThinkingBlock):
                    logger.debug("Skipping ThinkingBlock in multi-agent history")
                else:
                    logger.warning(
                        f"Unsupported block type {type(block).__name__} in agent history, skipped."
                    )

        if lines:
            parts.append({"text": "\n".join(lines)})

        opening = prompt + HISTORY_START_TAG
        if parts and "text" in parts[0]:
            parts[0]["text"] = opening + parts[0]["text"]
        else:
            parts.insert(0, {"text": opening})

        if "text" in parts[-1]:
            parts[-1]["text"] += "\n" + HISTORY_END_TAG
        else:
            parts.append({"text": HISTORY_END_TAG})

        return {"role": "user", "parts": parts}
