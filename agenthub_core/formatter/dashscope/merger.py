"""Folds a run of agent messages into one DashScope user message."""

import logging
from typing import Any, Callable, Dict, List, Optional

from ...message import (
    AudioBlock,
    ContentBlock,
    ImageBlock,
    Msg,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    VideoBlock,
)
from ..base import (
    DEFAULT_CONVERSATION_HISTORY_PROMPT,
    HISTORY_END_TAG,
    HISTORY_START_TAG,
    convert_tool_result_to_string,
    display_name,
)
from .converter import DashScopeMessageConverter, media_to_part, source_to_media_url

logger = logging.getLogger(__name__)


class DashScopeConversationMerger:
    """Renders agent turns as ``name: text`` lines wrapped in ``<history>`` tags.

    ``merge_to_message`` targets text models and yields string content unless
    images are present. ``merge_to_multimodal_message`` keeps media inline,
    flushing the accumulated text before each media part.
    """

    def __init__(self, conversation_history_prompt: str = DEFAULT_CONVERSATION_HISTORY_PROMPT):
        self.conversation_history_prompt = conversation_history_prompt

    def merge_to_message(
        self,
        msgs: List[Msg],
        history_prompt: Optional[str] = None,
        name_of: Callable[[Msg], str] = display_name,
        tool_result_converter: Callable[[List[ContentBlock]], str] = convert_tool_result_to_string,
    ) -> Dict[str, Any]:
        prompt = self.conversation_history_prompt if history_prompt is None else history_prompt
        text = (prompt or "") + HISTORY_START_TAG + "\n"
        images: List[Dict[str, Any]] = []

        for msg in msgs:
            name = name_of(msg)
            for block in msg.content:
                if isinstance(block, TextBlock):
                    text += f"{name}: {block.text}\n"
                elif isinstance(block, ImageBlock):
                    try:
                        images.append(media_to_part(block))
                        text += f"{name}: [Image]\n"
                    except (OSError, ValueError) as e:
                        logger.warning(f"Failed to process ImageBlock: {e}")
                        text += f"{name}: [Image - processing failed]\n"
                elif isinstance(block, VideoBlock):
                    try:
                        url = source_to_media_url(block.source)
                        text += f"{name}: [Video: {url}]\n"
                    except (OSError, ValueError) as e:
                        logger.warning(f"Failed to process VideoBlock: {e}")
                        text += f"{name}: [Video - processing failed]\n"
                elif isinstance(block, ThinkingBlock):
                    logger.debug("Skipping ThinkingBlock in multi-agent conversation")
                elif isinstance(block, ToolResultBlock):
                    result = tool_result_converter(block.output) or "[Empty tool result]"
                    text += f"{name} ({block.name}): {result}\n"

        text += HISTORY_END_TAG

        if not images:
            return {"role": "user", "content": text}
        return {"role": "user", "content": [{"text": text}] + images}

    def merge_to_multimodal_message(
        self,
        msgs: List[Msg],
        is_first: bool,
        name_of: Callable[[Msg], str] = display_name,
    ) -> Dict[str, Any]:
        content: List[Dict[str, Any]] = []
        pending: List[str] = [
            self.conversation_history_prompt + HISTORY_START_TAG if is_first else HISTORY_START_TAG
        ]

        def flush():
            if pending:
                content.append({"text": "\n".join(pending)})
                pending.clear()

        for msg in msgs:
            name = name_of(msg)
            for block in msg.content:
                if isinstance(block, TextBlock):
                    pending.append(f"{name}: {block.text}")
                elif isinstance(block, (ImageBlock, AudioBlock, VideoBlock)):
                    flush()
                    content.append(DashScopeMessageConverter.safe_media_part(block))
                elif isinstance(block, ThinkingBlock):
                    logger.debug("Skipping ThinkingBlock in multi-agent multimodal formatting")
                elif isinstance(block, ToolResultBlock):
                    logger.warning("Unexpected ToolResultBlock in agent message group, skipping")

        pending.append(HISTORY_END_TAG)
        flush()

        return {"role": "user", "content": content or [{"text": ""}]}
