"""Folds a run of agent messages into one OpenAI user message."""

import logging
from typing import Any, Callable, Dict, List, Optional

from ...message import (
    AudioBlock,
    Base64Source,
    ContentBlock,
    ImageBlock,
    Msg,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
)
from ..base import (
    DEFAULT_CONVERSATION_HISTORY_PROMPT,
    HISTORY_END_TAG,
    HISTORY_START_TAG,
    convert_tool_result_to_string,
    display_name,
)
from .converter import MEDIA_ERRORS, audio_part, image_part, text_part

logger = logging.getLogger(__name__)


class OpenAIConversationMerger:
    """Builds a single multimodal user message from agent messages.

    Every message but the last goes inside ``<history>`` tags; the last one
    follows the closing tag, labelled only when history precedes it. Images
    and base64 audio interrupt the text buffer and become their own parts.
    """

    def __init__(self, conversation_history_prompt: str = DEFAULT_CONVERSATION_HISTORY_PROMPT):
        self.conversation_history_prompt = conversation_history_prompt

    def merge_to_user_message(
        self,
        msgs: List[Msg],
        role_formatter: Callable[[Msg], Optional[str]] = display_name,
        tool_result_converter: Callable[[List[ContentBlock]], str] = convert_tool_result_to_string,
        history_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        prompt = self.conversation_history_prompt if history_prompt is None else history_prompt
        parts: List[Dict[str, Any]] = []
        buffer: List[str] = [prompt or "", HISTORY_START_TAG, "\n"]

        last = len(msgs) - 1
        for msg in msgs[:max(last, 0)]:
            self._process_message(msg, role_formatter, tool_result_converter, buffer, parts, True)

        buffer.append(HISTORY_END_TAG + "\n")

        if last >= 0:
            self._process_message(
                msgs[last], role_formatter, tool_result_converter, buffer, parts, last > 0
            )

        self._flush(buffer, parts)
        return {"role": "user", "content": parts}

    @staticmethod
    def _flush(buffer: List[str], parts: List[Dict[str, Any]]) -> None:
        text = "".join(buffer)
        if text:
            parts.append(text_part(text))
        buffer.clear()

    @staticmethod
    def _label(role_label: str, agent_name: Optional[str]) -> str:
        if agent_name is not None and agent_name not in (role_label, "Unknown"):
            return f"{role_label} {agent_name}"
        return role_label

    def _process_message(
        self,
        msg: Msg,
        role_formatter: Callable[[Msg], Optional[str]],
        tool_result_converter: Callable[[List[ContentBlock]], str],
        buffer: List[str],
        parts: List[Dict[str, Any]],
        include_prefix: bool,
    ) -> None:
        label = self._label(role_formatter(msg) or "Unknown", msg.name)
        prefix = f"{label}: " if include_prefix else ""

        for block in msg.content:
            if isinstance(block, TextBlock):
                buffer.append(f"{prefix}{block.text}\n")

            elif isinstance(block, ImageBlock):
                self._flush(buffer, parts)
                try:
                    parts.append(image_part(block.source))
                except MEDIA_ERRORS as e:
                    logger.warning(f"Failed to process ImageBlock: {e}")
                    buffer.append(f"{prefix}[Image - processing failed: {e}]\n")

            elif isinstance(block, AudioBlock):
                self._flush(buffer, parts)
                if isinstance(block.source, Base64Source) and block.source.data:
                    parts.append(audio_part(block.source))
                elif isinstance(block.source, Base64Source):
                    logger.warning("Base64 audio has empty data, skipping")
                    buffer.append(f"{prefix}[Audio - null or empty data]\n")
                else:
                    logger.warning("URL-based audio not directly supported, using text reference")
                    buffer.append(f"{prefix}[Audio URL: {block.source.url}]\n")

            elif isinstance(block, ThinkingBlock):
                if block.thinking:
                    buffer.append(f"{prefix}[Thinking]: {block.thinking}\n")

            elif isinstance(block, ToolResultBlock):
                result = tool_result_converter(block.output) or "[Empty tool result]"
                buffer.append(f"{label} ({block.name}): {result}\n")
