"""Folds a run of agent messages into one Ollama user message."""

import logging
from typing import Any, Callable, Dict, List, Optional

from ...message import (
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
from .converter import image_to_base64

logger = logging.getLogger(__name__)


class OllamaConversationMerger:
    """Renders agent messages as ``name: text`` lines inside ``<history>``.

    Images are listed as ``name: [Image]`` lines and their payloads are
    collected into the message's ``images`` field.
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
        content = (prompt or "") + HISTORY_START_TAG + "\n"
        images: List[str] = []

        for msg in msgs:
            name = name_of(msg)
            for block in msg.content:
                if isinstance(block, TextBlock):
                    content += f"{name}: {block.text}\n"
                elif isinstance(block, ImageBlock):
                    data = image_to_base64(block)
                    if data is not None:
                        images.append(data)
                        content += f"{name}: [Image]\n"
                    else:
                        content += f"{name}: [Image - processing failed]\n"
                elif isinstance(block, ToolResultBlock):
                    result = tool_result_converter(block.output) or "[Empty tool result]"
                    content += f"{name} ({block.name}): {result}\n"
                elif isinstance(block, ThinkingBlock):
                    logger.debug("Skipping ThinkingBlock in Ollama conversation history")

        content += HISTORY_END_TAG

        message: Dict[str, Any] = {"role": "user", "content": content}
        if images:
            message["images"] = images
        return message
